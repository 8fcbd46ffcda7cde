"""
Test suite for Reports module
Tests: OTD dashboard KPIs, header KPIs, OTD by vendor and filter options
"""
from datetime import date
from unittest import mock

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.utils import add_months


class ReportsTestCase(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.alpha = TestDataFactory.create_vendor(name='Alpha')
        self.beta = TestDataFactory.create_vendor(name='Beta')

    def create_delivered_po(self, vendor, delivered_on, total_value, **kwargs):
        po = TestDataFactory.create_purchase_order(vendor=vendor, total_value=total_value, **kwargs)
        TestDataFactory.create_shipment(
            purchase_order=po, actual_sailing_date=delivered_on, delivery_to_consolidator=delivered_on,
        )
        return po


class DashboardKPITests(ReportsTestCase):
    """Test the OTD dashboard KPIs"""

    def setUp(self):
        super().setUp()
        self.create_delivered_po(self.alpha, date(2026, 3, 25), 1000, original_cancel_date=date(2026, 3, 31))
        self.create_delivered_po(
            self.beta, date(2026, 3, 15), 2000,
            original_cancel_date=date(2026, 3, 10), revised_cancel_date=date(2026, 3, 20),
        )
        self.create_delivered_po(self.alpha, date(2026, 3, 5), 500, original_cancel_date=date(2026, 3, 1))
        self.create_delivered_po(
            self.alpha, date(2026, 3, 5), 9000, original_cancel_date=date(2026, 3, 1), program_description='SMP samples',
        )
        self.create_delivered_po(self.alpha, date(2026, 3, 5), 9000, po_number='089555', original_cancel_date=date(2026, 3, 1))
        TestDataFactory.create_purchase_order(vendor=self.beta, total_value=700, original_ship_date=date(2020, 1, 1))

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/dashboard/kpis/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_otd_kpis(self):
        response = self.client.get('/api/v1/dashboard/kpis/?start_date=2026-03-01&end_date=2026-03-31')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data
        self.assertEqual(data['total_orders'], 3)
        self.assertEqual(data['on_time_orders'], 2)
        self.assertEqual(data['late_orders'], 1)
        self.assertEqual(data['otd_percentage'], 66.7)
        self.assertEqual(data['otd_original_percentage'], 33.3)
        self.assertEqual(data['avg_late_days'], 4.0)
        self.assertEqual(data['on_time_value'], 3000)
        self.assertEqual(data['late_value'], 500)
        self.assertEqual(data['at_risk_orders'], 1)
        self.assertEqual(data['at_risk_value'], 700)

    def test_vendor_scope(self):
        response = self.client.get('/api/v1/dashboard/kpis/?start_date=2026-03-01&end_date=2026-03-31&vendor=Beta')
        self.assertEqual(response.data['total_orders'], 1)
        self.assertEqual(response.data['otd_percentage'], 100.0)

    def test_invalid_dates(self):
        response = self.client.get('/api/v1/dashboard/kpis/?start_date=March')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unexpected_error_hides_exception_text(self):
        with mock.patch('backend.reports.views._otd_queryset', side_effect=RuntimeError('password=hunter2')):
            response = self.client.get('/api/v1/dashboard/kpis/')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'Failed to compute dashboard KPIs'})


class OTDByVendorTests(ReportsTestCase):
    """Test OTD per vendor and cancel month"""

    def setUp(self):
        super().setUp()
        self.create_delivered_po(self.alpha, date(2026, 3, 25), 1000, original_cancel_date=date(2026, 3, 31))
        self.create_delivered_po(self.alpha, date(2026, 3, 5), 500, original_cancel_date=date(2026, 3, 1))
        TestDataFactory.create_purchase_order(vendor=self.alpha, total_value=300, original_cancel_date=date(2026, 3, 15))
        TestDataFactory.create_purchase_order(
            vendor=self.alpha, total_value=800, original_cancel_date=date(2026, 3, 15), status='Cancelled',
        )
        self.create_delivered_po(self.beta, date(2026, 4, 2), 2000, original_cancel_date=date(2026, 4, 20))

    def test_otd_by_vendor(self):
        response = self.client.get('/api/v1/dashboard/otd-by-vendor/?year=2026')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['period'], {'start_date': '2026-01-01', 'end_date': '2026-12-31'})

        alpha, beta = response.data['results']
        self.assertEqual(alpha['vendor'], 'Alpha')
        self.assertEqual(alpha['cancel_month'], '2026-03')
        self.assertEqual(alpha['total_shipped'], 2)
        self.assertEqual(alpha['shipped_on_time'], 1)
        self.assertEqual(alpha['overdue_unshipped'], 1)
        self.assertEqual(alpha['otd_pct'], 50.0)
        self.assertEqual(alpha['revised_otd_pct'], 33.3)
        self.assertEqual(alpha['otd_value_pct'], 66.7)
        self.assertEqual(alpha['revised_otd_value_pct'], 55.6)
        self.assertEqual(beta['otd_pct'], 100.0)

    def test_invalid_year(self):
        response = self.client.get('/api/v1/dashboard/otd-by-vendor/?year=last')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class HeaderKPITests(ReportsTestCase):
    """Test year to date header KPIs"""

    def test_header_kpis_compare_with_last_year(self):
        today = timezone.localdate()
        TestDataFactory.create_purchase_order(
            vendor=self.alpha, po_date=add_months(today, -12), shipped_value=400,
            lines=[{'sku': 'OLD1', 'order_quantity': 1, 'line_total': 400}],
        )
        TestDataFactory.create_purchase_order(
            vendor=self.alpha, po_date=today, shipped_value=600, balance_quantity=5,
            lines=[{'sku': 'OLD1', 'order_quantity': 1, 'line_total': 300}, {'sku': 'NEW1', 'order_quantity': 1, 'line_total': 300}],
        )
        TestDataFactory.create_projection(self.alpha, year=today.year, projection_value=500)

        response = self.client.get('/api/v1/dashboard/header-kpis/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data
        self.assertEqual(data['as_of'], today.isoformat())
        self.assertEqual(data['ytd_total_pos'], {'current': 1, 'previous': 1, 'change_pct': 0.0})
        self.assertEqual(data['ytd_total_sales']['current'], 600)
        self.assertEqual(data['ytd_total_sales']['change_pct'], 50.0)
        self.assertEqual(data['total_skus']['current'], 2)
        self.assertEqual(data['new_skus_ytd']['current'], 1)
        self.assertEqual(data['ytd_pos_unshipped']['current'], 1)
        self.assertEqual(data['ytd_projections']['current'], 500)
        self.assertEqual(data['ytd_projections']['previous'], 0)


class FilterOptionTests(ReportsTestCase):
    """Test dashboard filter options"""

    def test_filter_options(self):
        merch = TestDataFactory.create_staff(name='Ana')
        manager = TestDataFactory.create_staff(name='Kim', role='merchandising_manager')
        TestDataFactory.create_staff(name='Unassigned')
        self.alpha.merchandiser = merch
        self.alpha.merchandising_manager = manager
        self.alpha.save()
        TestDataFactory.create_client(name='Crate & Barrel', code='CB')
        TestDataFactory.create_purchase_order(vendor=self.alpha, office='Shanghai')
        TestDataFactory.create_purchase_order(vendor=' loose vendor ', office='Ningbo')

        response = self.client.get('/api/v1/dashboard/filter-options/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['merchandisers'], ['Ana'])
        self.assertEqual(response.data['merchandising_managers'], ['Kim'])
        self.assertEqual(response.data['vendors'], ['Alpha', 'loose vendor'])
        self.assertEqual(response.data['clients'], [{'code': 'CB', 'name': 'Crate & Barrel'}])
        self.assertEqual(response.data['offices'], ['Ningbo', 'Shanghai'])
