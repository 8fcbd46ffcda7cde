"""
Test suite for Capacity module
Tests: brand mapping, year locking, summaries, reserved capacity edits and reconciliation
"""
from datetime import date

from django.test import TestCase
from rest_framework import status

from backend.capacity import services
from backend.capacity.models import VendorCapacityData, VendorCapacitySummary
from backend.capacity.reconciliation import build_reconciliation, parse_brands, recovery_month
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class BrandTests(TestCase):
    """Test client and brand label mapping"""

    def test_brand_for(self):
        self.assertEqual(services.brand_for('Crate & Barrel'), 'CB')
        self.assertEqual(services.brand_for('cb'), 'CB')
        self.assertEqual(services.brand_for('CB2'), 'CB2')
        self.assertEqual(services.brand_for('Crate & Kids'), 'C&K')
        self.assertEqual(services.brand_for('ck'), 'C&K')
        self.assertEqual(services.brand_for(None), 'CAPACITY_DATA')
        self.assertEqual(services.brand_for('Hospitality'), 'CAPACITY_DATA')

    def test_parse_brands(self):
        self.assertEqual(parse_brands(None), ['CB', 'CB2', 'C&K'])
        self.assertEqual(parse_brands('cb2, C&K,cb2'), ['CB2', 'C&K'])
        with self.assertRaises(ValueError):
            parse_brands('CB,Wholesale')

    def test_recovery_month(self):
        self.assertEqual(recovery_month([-1, -2, 3, 4]), 3)
        self.assertEqual(recovery_month([1, 2, 3]), None)
        self.assertEqual(recovery_month([-1, -1]), None)
        self.assertEqual(recovery_month([-5, 0]), 2)


class CapacityMaintenanceTests(TestCase):
    """Test locking, summaries and reserved capacity edits"""

    def setUp(self):
        self.vendor = TestDataFactory.create_vendor(name='Riches')

    def test_lock_and_unlock_year(self):
        TestDataFactory.create_capacity_data('Riches', 2025, 1)
        TestDataFactory.create_capacity_data('Riches', 2025, 2)
        TestDataFactory.create_capacity_data('Riches', 2026, 1)
        VendorCapacitySummary.objects.create(vendor_code='Riches', vendor_name='Riches', year=2025)

        result = services.set_year_locked(2025, True)
        self.assertEqual(result, {'year': 2025, 'data_rows': 2, 'summary_rows': 1})
        self.assertEqual(services.locked_years(), [2025])

        cleared = services.clear_unlocked([2025, 2026])
        self.assertEqual(cleared, {'data_rows': 1, 'summary_rows': 0})

        services.set_year_locked(2025, False)
        self.assertEqual(services.locked_years(), [])

    def test_bulk_create_resolves_vendor_by_alias(self):
        TestDataFactory.create_vendor_alias(self.vendor, alias='RCH')
        created = services.bulk_create_capacity_data([
            {'vendor_code': 'RCH', 'vendor_name': 'RCH', 'client': 'CB', 'year': 2026, 'month': 1, 'total_shipment': 10},
        ])
        self.assertEqual(created, 1)
        row = VendorCapacityData.objects.get()
        self.assertEqual(row.vendor_ref, self.vendor)
        self.assertEqual(row.reserved_capacity, 0)

    def test_rebuild_summaries(self):
        TestDataFactory.create_capacity_data('Riches', 2026, 1, client='CB', total_shipment=100, total_projection=10)
        TestDataFactory.create_capacity_data('Riches', 2026, 1, client='CB2', total_shipment=200)
        TestDataFactory.create_capacity_data('Riches', 2026, 1, reserved_capacity=1000, utilized_capacity_pct=50)
        TestDataFactory.create_capacity_data('Riches', 2026, 2, reserved_capacity=1000, utilized_capacity_pct=70)

        self.assertEqual(services.rebuild_summaries([2026]), 1)
        summary = VendorCapacitySummary.objects.get()
        self.assertEqual(summary.total_shipment_annual, 300)
        self.assertEqual(summary.cb_shipment_annual, 100)
        self.assertEqual(summary.cb2_shipment_annual, 200)
        self.assertEqual(summary.total_projection_annual, 10)
        self.assertEqual(summary.total_reserved_capacity_annual, 2000)
        self.assertEqual(summary.avg_utilization_pct, 60)

    def test_update_reserved_capacity(self):
        TestDataFactory.create_capacity_data('Riches', 2026, 1, office='Shanghai')
        row = services.update_reserved_capacity('Riches', 2026, 5, 250000)
        self.assertEqual(row.reserved_capacity, 250000)
        self.assertEqual(row.office, 'Shanghai')
        self.assertEqual(row.client, 'CAPACITY_DATA')

        services.update_reserved_capacity('Riches', 2026, 1, 1)
        self.assertEqual(VendorCapacityData.objects.get(month=1).reserved_capacity, 1)

    def test_update_reserved_capacity_errors(self):
        with self.assertRaises(LookupError):
            services.update_reserved_capacity('Nobody', 2026, 1, 100)

        TestDataFactory.create_capacity_data('Riches', 2025, 1, is_locked=True)
        with self.assertRaises(ValueError):
            services.update_reserved_capacity('Riches', 2025, 1, 100)
        with self.assertRaises(ValueError):
            services.update_reserved_capacity('Riches', 2025, 2, 100)


class ReconciliationTests(TestCase):
    """Test the twelve-month reconciliation"""

    def setUp(self):
        self.vendor = TestDataFactory.create_vendor(name='Riches')
        for month in (1, 2, 3):
            TestDataFactory.create_capacity_data('Riches', 2026, month, reserved_capacity=1000)
        TestDataFactory.create_purchase_order(
            vendor=self.vendor, client='Crate & Barrel', original_ship_date=date(2026, 1, 15),
            total_value=1500, shipped_value=0, balance_quantity=10,
        )
        TestDataFactory.create_projection(self.vendor, sku='P1', year=2026, month=2, brand='CB2', projection_value=400, vendor_code='Riches')
        TestDataFactory.create_projection(
            self.vendor, sku='P2', year=2026, month=3, brand='CB', projection_value=200, order_type='mto', vendor_code='Riches',
        )

    def test_rolling_balance_and_recovery(self):
        report = build_reconciliation('Riches', 2026)
        self.assertEqual(report['vendor_id'], self.vendor.id)
        self.assertEqual(len(report['months']), 12)

        january, february, march = report['months'][:3]
        self.assertEqual(january['on_hand'], 1500)
        self.assertEqual(january['shipped'], 1500)
        self.assertEqual(january['balance'], -500)
        self.assertEqual(january['utilization'], 150.0)
        self.assertEqual(february['projection'], 400)
        self.assertEqual(march['mto_projection'], 200)

        self.assertEqual(report['rolling_balance'][:3], [-500, 100, 900])
        self.assertEqual(report['rolling_balance'][-1], 900)
        self.assertEqual(report['recovery_month'], 2)
        self.assertEqual(report['totals']['reserved'], 3000)
        self.assertEqual(report['totals']['total_committed'], 2100)
        self.assertEqual(report['totals']['balance'], 900)

    def test_brand_filter(self):
        report = build_reconciliation('Riches', 2026, ['CB2'])
        self.assertEqual(report['brands'], ['CB2'])
        self.assertEqual(report['months'][0]['on_hand'], 0)
        self.assertEqual(report['months'][1]['projection'], 400)
        self.assertEqual(list(report['months'][1]['by_brand']), ['CB2'])

    def test_capacity_sheet_projection_fallback(self):
        TestDataFactory.create_capacity_data('Riches', 2026, 4, total_projection=300)
        report = build_reconciliation('Riches', 2026)
        self.assertEqual(report['months'][3]['projection'], 300)

        report = build_reconciliation('Riches', 2026, ['CB'])
        self.assertEqual(report['months'][3]['projection'], 0)

    def test_expired_projection_excludes_restored(self):
        TestDataFactory.create_expired_projection(self.vendor, year=2026, month=5, projection_value=70, vendor_code='Riches')
        TestDataFactory.create_expired_projection(
            self.vendor, year=2026, month=5, projection_value=30, vendor_code='Riches', verification_status='restored',
        )
        report = build_reconciliation('Riches', 2026)
        self.assertEqual(report['months'][4]['expired_projection'], 70)


class CapacityAPITests(TestCase):
    """Test capacity endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.vendor = TestDataFactory.create_vendor(name='Riches Furniture')
        TestDataFactory.create_vendor_alias(self.vendor, alias='Riches')
        TestDataFactory.create_capacity_data('Riches', 2026, 1, reserved_capacity=1000)

    def test_capacity_list_and_summaries(self):
        VendorCapacitySummary.objects.create(vendor_code='Riches', vendor_name='Riches', year=2026)
        response = self.client.get('/api/v1/vendor-capacity/?vendor_code=riches&year=2026')
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/vendor-capacity/summaries/?year=2026')
        self.assertEqual(response.data[0]['canonical_vendor_name'], 'Riches Furniture')

        response = self.client.get('/api/v1/vendor-capacity/?year=soon')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_lock_year_is_audited(self):
        response = self.client.post('/api/v1/vendor-capacity/lock-year/', {'year': 2026}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data_rows'], 1)
        self.assertTrue(AuditLog.objects.filter(action='lock', object_id='2026').exists())

        response = self.client.get('/api/v1/vendor-capacity/locked-years/')
        self.assertEqual(response.data, {'locked_years': [2026]})

        response = self.client.post('/api/v1/vendor-capacity/unlock-year/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_reserved_capacity_endpoint(self):
        url = '/api/v1/vendor-capacity/Riches/2026/1/'
        response = self.client.patch(url, {'reserved_capacity': 'lots'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(url, {'reserved_capacity': 5000}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['reserved_capacity'], 5000)

        response = self.client.patch('/api/v1/vendor-capacity/Nobody/2026/1/', {'reserved_capacity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.patch('/api/v1/vendor-capacity/Riches/2026/13/', {'reserved_capacity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        services.set_year_locked(2026, True)
        response = self.client.patch(url, {'reserved_capacity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reconciliation_endpoint(self):
        response = self.client.get('/api/v1/vendor-capacity/Riches/reconciliation/?year=2026')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['vendor_name'], 'Riches Furniture')
        self.assertEqual(response.data['months'][0]['reserved'], 1000)

        response = self.client.get('/api/v1/vendor-capacity/Riches/reconciliation/?brands=XL')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
