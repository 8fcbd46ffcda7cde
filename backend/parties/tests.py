"""
Test suite for Parties module
Tests: vendor name resolution, aliases, staff assignments, client KPIs and vendor performance
"""
from datetime import date, timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.parties.models import StaffClientAssignment
from backend.parties.performance import (
    otd_years, vendor_detail_performance, vendor_otd_yoy, vendor_yoy_sales, vendor_ytd_performance,
)
from backend.parties.services import client_kpis, resolve_vendor, vendor_name_map, vendor_names_for


class VendorResolutionTests(TestCase):
    """Test vendor lookup by name and alias"""

    def setUp(self):
        self.vendor = TestDataFactory.create_vendor(name='Yung Chang Furniture')
        TestDataFactory.create_vendor_alias(self.vendor, alias='YC')

    def test_resolve_by_name_ignores_case_and_whitespace(self):
        self.assertEqual(resolve_vendor('  yung chang furniture '), self.vendor)

    def test_resolve_by_alias(self):
        self.assertEqual(resolve_vendor('yc'), self.vendor)

    def test_resolve_unknown(self):
        self.assertIsNone(resolve_vendor('Nobody Ltd'))
        self.assertIsNone(resolve_vendor(''))

    def test_name_map_prefers_canonical_name(self):
        other = TestDataFactory.create_vendor(name='YC Trading')
        TestDataFactory.create_vendor_alias(other, alias='Yung Chang Furniture Old')
        mapping = vendor_name_map()
        self.assertEqual(mapping['yc'], self.vendor.id)
        self.assertEqual(mapping['yc trading'], other.id)

    def test_vendor_names_for_includes_aliases(self):
        names = vendor_names_for('YC')
        self.assertIn('Yung Chang Furniture', names)
        self.assertIn('YC', names)
        self.assertEqual(vendor_names_for('Unknown Vendor '), ['Unknown Vendor'])


class ClientKPITests(TestCase):
    """Test client level KPIs"""

    def setUp(self):
        self.client_obj = TestDataFactory.create_client(name='Crate & Barrel', code='CB')
        vendor = TestDataFactory.create_vendor()
        today = timezone.localdate()
        TestDataFactory.create_purchase_order(
            vendor=vendor, client='Crate & Barrel', total_value=100000,
            status='Shipped', shipment_status='On-Time',
        )
        TestDataFactory.create_purchase_order(
            vendor=vendor, client='Crate & Barrel', total_value=50000,
            status='Shipped', shipment_status='Late',
        )
        TestDataFactory.create_purchase_order(
            vendor=vendor, client='Crate & Barrel', total_value=25000,
            original_ship_date=today - timedelta(days=5),
        )
        TestDataFactory.create_purchase_order(vendor=vendor, client='Other Client', total_value=99)

    def test_client_kpis(self):
        kpis = client_kpis(self.client_obj)
        self.assertEqual(kpis['total_pos'], 3)
        self.assertEqual(kpis['total_value'], 175000)
        self.assertEqual(kpis['open_pos'], 1)
        self.assertEqual(kpis['shipped_pos'], 2)
        self.assertEqual(kpis['otd_pct'], 50.0)
        self.assertEqual(kpis['at_risk_pos'], 1)
        self.assertEqual(kpis['vendor_count'], 1)


class PartiesAPITests(TestCase):
    """Test client, staff and vendor endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/vendors/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_vendor_is_audited(self):
        response = self.client.post('/api/v1/vendors/', {'name': 'Golden Hill Products'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        log = AuditLog.objects.get(model_name='Vendor')
        self.assertEqual(log.action, 'create')
        self.assertEqual(log.user, self.user)

    def test_vendor_search_matches_alias(self):
        vendor = TestDataFactory.create_vendor(name='Golden Hill Products')
        TestDataFactory.create_vendor_alias(vendor, alias='GHP')
        TestDataFactory.create_vendor(name='Another Vendor')
        response = self.client.get('/api/v1/vendors/?search=ghp')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['aliases'], ['GHP'])

    def test_vendor_filter_by_merchandiser(self):
        merch = TestDataFactory.create_staff(name='Ana')
        TestDataFactory.create_vendor(name='V1', merchandiser=merch)
        TestDataFactory.create_vendor(name='V2')
        response = self.client.get('/api/v1/vendors/?merchandiser=ana')
        self.assertEqual([v['name'] for v in response.data], ['V1'])
        response = self.client.get(f'/api/v1/vendors/?merchandiser={merch.id}')
        self.assertEqual([v['name'] for v in response.data], ['V1'])

    def test_blank_alias_rejected(self):
        vendor = TestDataFactory.create_vendor()
        response = self.client.post('/api/v1/vendor-aliases/', {'alias': '   ', 'vendor': vendor.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_assign_staff_to_client_twice_updates(self):
        client_obj = TestDataFactory.create_client(code='CB2')
        staff = TestDataFactory.create_staff()
        url = f'/api/v1/clients/{client_obj.id}/staff/'

        response = self.client.post(url, {'staff': staff.id, 'role': 'merchandiser'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post(url, {'staff': staff.id, 'role': 'backup', 'is_primary': 'true'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        assignment = StaffClientAssignment.objects.get(staff=staff, client=client_obj)
        self.assertEqual(assignment.role, 'backup')
        self.assertTrue(assignment.is_primary)

        response = self.client.get(f'/api/v1/staff/{staff.id}/clients/')
        self.assertEqual(response.data[0]['client_code'], 'CB2')

    def test_assign_unknown_staff(self):
        client_obj = TestDataFactory.create_client()
        response = self.client.post(f'/api/v1/clients/{client_obj.id}/staff/', {'staff': 9999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_remove_staff_from_client(self):
        client_obj = TestDataFactory.create_client()
        staff = TestDataFactory.create_staff()
        StaffClientAssignment.objects.create(client=client_obj, staff=staff)
        response = self.client.delete(f'/api/v1/clients/{client_obj.id}/staff/{staff.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(StaffClientAssignment.objects.exists())
        self.assertTrue(AuditLog.objects.filter(action='unassign').exists())

    def test_client_kpis_endpoint(self):
        client_obj = TestDataFactory.create_client(name='CB2')
        response = self.client.get(f'/api/v1/clients/{client_obj.id}/kpis/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_pos'], 0)
        self.assertEqual(response.data['otd_pct'], 0)


class VendorPerformanceTests(TestCase):
    """Test vendor detail performance reports"""

    def setUp(self):
        self.today = date(2026, 6, 1)
        self.vendor = TestDataFactory.create_vendor(name='Alpha')
        TestDataFactory.create_vendor_alias(self.vendor, alias='ALP')

    def delivered(self, delivered_on, **kwargs):
        po = TestDataFactory.create_purchase_order(**kwargs)
        TestDataFactory.create_shipment(
            purchase_order=po, actual_sailing_date=delivered_on, delivery_to_consolidator=delivered_on,
        )
        return po

    def test_detail_performance(self):
        on_time = self.delivered(
            date(2026, 3, 25), vendor=self.vendor, po_date=date(2026, 2, 1), original_cancel_date=date(2026, 3, 31),
            lines=[{'sku': 'SKU-A', 'order_quantity': 1, 'line_total': 1000}],
        )
        late = self.delivered(
            date(2026, 3, 5), vendor='ALP', po_date=date(2026, 2, 10), total_value=500,
            original_cancel_date=date(2026, 3, 1),
        )
        TestDataFactory.create_purchase_order(
            vendor=self.vendor, po_date=date(2026, 3, 1), total_value=300, original_cancel_date=date(2026, 5, 1),
        )
        TestDataFactory.create_purchase_order(
            vendor=self.vendor, po_date=date(2026, 3, 1), total_value=300, original_cancel_date=date(2026, 5, 1),
            status='Closed',
        )
        self.delivered(
            date(2026, 3, 5), vendor=self.vendor, po_date=date(2026, 3, 1), total_value=300,
            original_cancel_date=date(2026, 4, 1), program_description='SMP trial',
        )
        self.delivered(
            date(2026, 3, 5), vendor='Beta', po_date=date(2026, 3, 1), total_value=300,
            original_cancel_date=date(2026, 4, 1),
        )
        self.delivered(
            date(2025, 6, 5), vendor=self.vendor, po_date=date(2025, 5, 1), total_value=300,
            original_cancel_date=date(2025, 6, 1),
        )

        TestDataFactory.create_inspection(purchase_order=on_time, inspection_type='Final', result='Passed')
        TestDataFactory.create_inspection(purchase_order=late, inspection_type='Inline', result='Failed')
        TestDataFactory.create_inspection(purchase_order=late, inspection_type='Re-Final', result='Passed')
        TestDataFactory.create_inspection(po_number='X9', sku='SKU-A', inspection_type='Initial', result='Passed')
        TestDataFactory.create_inspection(po_number='Y1', sku='OTHER', inspection_type='Final', result='Failed')

        data = vendor_detail_performance(self.vendor, today=self.today)
        self.assertEqual(data['shipped_total'], 2)
        self.assertEqual(data['on_time_orders'], 1)
        self.assertEqual(data['late_orders'], 1)
        self.assertEqual(data['overdue_unshipped'], 1)
        self.assertEqual(data['total_orders'], 3)
        self.assertEqual(data['otd_pct'], 33.3)
        self.assertEqual(data['total_inspections'], 3)
        self.assertEqual(data['passed_first_time'], 2)
        self.assertEqual(data['failed_first_time'], 1)
        self.assertEqual(data['first_time_right_pct'], 66.7)

    def test_ytd_performance(self):
        def po(cancel, **kwargs):
            return TestDataFactory.create_purchase_order(
                vendor=self.vendor, total_value=100, original_cancel_date=cancel, **kwargs
            )

        po(date(2026, 2, 15), shipment_status='On-Time')
        po(date(2026, 2, 20), shipment_status='Late')
        po(date(2026, 4, 10))
        po(date(2026, 4, 20), status='Shipped')
        failed = po(date(2026, 5, 25))
        TestDataFactory.create_inspection(purchase_order=failed, inspection_type='Final', result='Failed - Critical Failure')
        po(date(2026, 6, 1), revised_ship_date=date(2026, 6, 5))

        data = vendor_ytd_performance(self.vendor, today=self.today)
        self.assertEqual(
            [(m['month_name'], m['total_orders'], m['late_orders'], m['at_risk_orders'], m['cumulative_otd_pct'])
             for m in data['monthly']],
            [('Feb', 2, 1, 0, 50.0), ('Apr', 1, 1, 0, 33.3), ('May', 1, 1, 1, 25.0), ('Jun', 0, 0, 1, 25.0)],
        )
        self.assertEqual(data['summary'], {
            'total_orders': 4, 'on_time_orders': 1, 'late_orders': 3, 'at_risk_orders': 2, 'otd_pct': 25.0,
        })

    def test_yoy_sales(self):
        for po_date, value in ((date(2025, 3, 10), 100), (date(2025, 3, 20), 200), (date(2026, 1, 5), 50), (date(2023, 12, 1), 999)):
            TestDataFactory.create_purchase_order(vendor=self.vendor, po_date=po_date, total_value=value)
        TestDataFactory.create_purchase_order(vendor='Beta', po_date=date(2025, 3, 10), total_value=70)

        rows = vendor_yoy_sales(self.vendor, today=self.today)
        self.assertEqual(
            [(r['year'], r['month'], r['month_name'], r['total_sales'], r['order_count']) for r in rows],
            [(2025, 3, 'Mar', 300, 2), (2026, 1, 'Jan', 50, 1)],
        )

    def test_otd_yoy(self):
        self.delivered(date(2025, 3, 25), vendor=self.vendor, total_value=1000, original_cancel_date=date(2025, 3, 31))
        self.delivered(date(2025, 3, 5), vendor=self.vendor, total_value=500, original_cancel_date=date(2025, 3, 1))
        TestDataFactory.create_purchase_order(vendor=self.vendor, total_value=200, original_cancel_date=date(2026, 4, 1))
        self.delivered(date(2023, 5, 1), vendor=self.vendor, total_value=100, original_cancel_date=date(2023, 5, 1))
        TestDataFactory.create_purchase_order(
            vendor=self.vendor, total_value=200, original_cancel_date=date(2026, 4, 10), status='Cancelled',
        )

        march, april = vendor_otd_yoy(self.vendor, today=self.today)
        self.assertEqual((march['year'], march['month'], march['month_name']), (2025, 3, 'Mar'))
        self.assertEqual(march['total_shipped'], 2)
        self.assertEqual(march['otd_pct'], 50.0)
        self.assertEqual(march['otd_value_pct'], 66.7)
        self.assertEqual((april['year'], april['month']), (2026, 4))
        self.assertEqual(april['overdue_unshipped'], 1)
        self.assertEqual(april['overdue_backlog_value'], 200)
        self.assertEqual(april['revised_otd_pct'], 0)

    def test_otd_years(self):
        self.assertEqual(otd_years(date(2022, 5, 1), date(2025, 2, 1), self.today), [2024, 2025])
        self.assertEqual(otd_years(None, None, date(2025, 1, 1)), [2024, 2025])
        self.assertEqual(otd_years(date(2020, 1, 1), date(2021, 1, 1), self.today), [2026])


class VendorPerformanceAPITests(TestCase):
    """Test vendor performance endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.vendor = TestDataFactory.create_vendor(name='Alpha')

    def test_performance_endpoints(self):
        for path in ('performance', 'ytd-performance', 'yoy-sales', 'otd-yoy'):
            response = self.client.get(f'/api/v1/vendors/{self.vendor.id}/{path}/')
            self.assertEqual(response.status_code, status.HTTP_200_OK, path)

        response = self.client.get(f'/api/v1/vendors/{self.vendor.id}/performance/?start_date=2026-01-01&end_date=2026-03-31')
        self.assertEqual(response.data['vendor'], 'Alpha')
        self.assertEqual(response.data['period'], {'start_date': '2026-01-01', 'end_date': '2026-03-31'})

    def test_unknown_vendor(self):
        response = self.client.get('/api/v1/vendors/999999/performance/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_bad_date(self):
        response = self.client.get(f'/api/v1/vendors/{self.vendor.id}/yoy-sales/?start_date=June')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
