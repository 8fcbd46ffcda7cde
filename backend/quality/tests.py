"""
Test suite for Quality module
Tests: quality KPIs, compliance alert lists, vendor performance and upserts
"""
from datetime import date, timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.quality import services
from backend.quality.models import Inspection, QualityTest


class QualityKPITests(TestCase):
    """Test the quality dashboard KPIs"""

    def setUp(self):
        self.today = date(2026, 4, 15)
        self.po = TestDataFactory.create_purchase_order(
            po_number='PO1', revised_ship_date=date(2026, 4, 20), revised_cancel_date=date(2026, 4, 30),
        )
        TestDataFactory.create_purchase_order(po_number='PO2', revised_ship_date=date(2026, 6, 1))
        TestDataFactory.create_purchase_order(po_number='PO3', status='Closed', revised_ship_date=date(2026, 4, 18))

    def test_due_and_scheduled(self):
        kpis = services.quality_kpis(today=self.today)
        self.assertEqual(kpis['pos_due_next_2_weeks'], 1)
        self.assertEqual(kpis['scheduled_inspections'], 2)

    def test_failed_and_outside_window_finals(self):
        TestDataFactory.create_inspection(
            purchase_order=self.po, inspection_date=date(2026, 4, 10), result='Failed - Critical Failure',
            inspector='Lee',
        )
        TestDataFactory.create_inspection(
            purchase_order=self.po, inspection_type='Inline', inspection_date=date(2026, 4, 2), result='Passed',
            inspector='Kim',
        )
        kpis = services.quality_kpis(today=self.today)
        self.assertEqual(kpis['failed_final_inspections'], 1)
        self.assertEqual(kpis['inspections_outside_window'], 1)
        self.assertEqual(kpis['completed_inspections_this_month'], 2)
        self.assertEqual(kpis['scheduled_inspections'], 1)

        kpis = services.quality_kpis(inspector='Kim', today=self.today)
        self.assertEqual(kpis['failed_final_inspections'], 0)
        self.assertEqual(kpis['completed_inspections_this_month'], 1)

    def test_pending_qa_and_expiring(self):
        TestDataFactory.create_quality_test(purchase_order=self.po, report_date=date(2026, 2, 1))
        TestDataFactory.create_quality_test(purchase_order=self.po, report_date=date(2026, 4, 1))
        TestDataFactory.create_quality_test(
            purchase_order=self.po, sku='S1', result='Pass', expiry_date=date(2026, 6, 1), report_number='R1',
        )
        kpis = services.quality_kpis(today=self.today)
        self.assertEqual(kpis['pending_qa_beyond_45_days'], 1)
        self.assertEqual(kpis['expiring_certifications'], 1)

    def test_at_risk_purchase_orders(self):
        TestDataFactory.create_inspection(purchase_order=self.po, inspection_date=date(2026, 4, 21), result='Failed')
        rows = services.at_risk_purchase_orders(today=self.today)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['po_number'], 'PO1')
        self.assertEqual(rows[0]['reasons'], [services.FAILED_FINAL])
        self.assertEqual(rows[0]['days_until_hod'], 5)


class ComplianceAlertTests(TestCase):
    """Test compliance alert lists"""

    def setUp(self):
        self.today = date(2026, 4, 15)

    def test_booking_confirmed_needs_inspection(self):
        TestDataFactory.create_purchase_order(po_number='A', original_cancel_date=date(2026, 5, 1))
        inspected = TestDataFactory.create_purchase_order(po_number='B', original_cancel_date=date(2026, 5, 1))
        TestDataFactory.create_inspection(purchase_order=inspected, inspection_type='Inline')
        TestDataFactory.create_purchase_order(po_number='C', original_cancel_date=date(2026, 4, 1))
        TestDataFactory.create_purchase_order(po_number='D', original_cancel_date=date(2026, 5, 1), shipment_status='On-Time')

        rows = services.booking_confirmed_needing_inspection(today=self.today)
        self.assertEqual([r['po_number'] for r in rows], ['A'])
        self.assertEqual(rows[0]['days_until_ship'], 16)

    def test_missing_inline_and_final(self):
        TestDataFactory.create_purchase_order(po_number='NOINLINE', revised_ship_date=date(2026, 4, 20))
        inline_only = TestDataFactory.create_purchase_order(po_number='INLINE', revised_ship_date=date(2026, 4, 18))
        TestDataFactory.create_inspection(purchase_order=inline_only, inspection_type='Inline')
        TestDataFactory.create_purchase_order(po_number='FAR', revised_ship_date=date(2026, 5, 30))
        shipped = TestDataFactory.create_purchase_order(po_number='SHIPPED', revised_ship_date=date(2026, 4, 20))
        TestDataFactory.create_shipment(purchase_order=shipped, hod_status='Shipped')

        self.assertEqual([r['po_number'] for r in services.missing_inline_inspections(today=self.today)], ['NOINLINE'])
        self.assertEqual([r['po_number'] for r in services.missing_final_inspections(today=self.today)], ['INLINE'])

    def test_failed_inspections_in_last_30_days(self):
        po = TestDataFactory.create_purchase_order(po_number='F1')
        TestDataFactory.create_inspection(purchase_order=po, inspection_date=date(2026, 4, 1), result='Abort')
        TestDataFactory.create_inspection(purchase_order=po, inspection_date=date(2026, 1, 1), result='Failed')
        TestDataFactory.create_inspection(purchase_order=po, inspection_date=date(2026, 4, 2), result='Passed')

        rows = services.failed_inspections(today=self.today)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['result'], 'Abort')

    def test_expiring_certificates_grouped_by_sku(self):
        po1 = TestDataFactory.create_purchase_order(po_number='E1')
        po2 = TestDataFactory.create_purchase_order(po_number='E2')
        for po in (po1, po2):
            TestDataFactory.create_quality_test(purchase_order=po, sku='S1', expiry_date=date(2026, 5, 1))
        TestDataFactory.create_quality_test(purchase_order=po1, sku='S2', expiry_date=date(2026, 12, 1))

        rows = services.expiring_certificates(today=self.today)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['po_numbers'], ['E1', 'E2'])
        self.assertEqual(rows[0]['po_count'], 2)
        self.assertEqual(rows[0]['days_until_expiry'], 16)

        counts = services.alert_counts(today=self.today)
        self.assertEqual(counts['expiring_certificates'], 1)

    def test_vendor_performance(self):
        for index in range(5):
            TestDataFactory.create_inspection(
                po_number=f'P{index}', vendor_name='Alpha', inspection_date=date(2026, 3, 1),
                result='Passed' if index < 4 else 'Failed',
            )
        TestDataFactory.create_inspection(po_number='Q1', vendor_name='Beta', inspection_date=date(2026, 3, 1), result='Failed')

        rows = services.vendor_performance(min_inspections=5, today=self.today)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['vendor_name'], 'Alpha')
        self.assertEqual(rows[0]['pass_rate'], 80.0)

        rows = services.vendor_performance(min_inspections=1, today=self.today)
        self.assertEqual(rows[0]['vendor_name'], 'Beta')


class QualityUpsertTests(TestCase):
    """Test inspection and quality test upserts"""

    def test_inspection_upsert_links_po_and_vendor(self):
        vendor = TestDataFactory.create_vendor(name='Golden Hill')
        po = TestDataFactory.create_purchase_order(po_number='U1')
        row = {
            'po_number': 'U1', 'sku': 'S1', 'inspection_type': 'Final',
            'inspection_date': date(2026, 3, 3), 'result': 'Passed', 'vendor_name': 'golden hill',
        }
        self.assertEqual(services.bulk_upsert_inspections([row]), {'inserted': 1, 'updated': 0})
        row['result'] = 'Failed'
        self.assertEqual(services.bulk_upsert_inspections([row]), {'inserted': 0, 'updated': 1})

        inspection = Inspection.objects.get()
        self.assertEqual(inspection.result, 'Failed')
        self.assertEqual(inspection.purchase_order, po)
        self.assertEqual(inspection.vendor_ref, vendor)

    def test_quality_test_upsert(self):
        row = {'po_number': 'U2', 'sku': 'S1', 'test_type': 'Transit', 'report_number': 'R-1', 'result': 'Pass'}
        services.bulk_upsert_quality_tests([row])
        services.bulk_upsert_quality_tests([dict(row, report_number='R-2')])
        self.assertEqual(QualityTest.objects.count(), 2)
        self.assertIsNone(QualityTest.objects.first().purchase_order)


class QualityAPITests(TestCase):
    """Test quality endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_inspection_list_filters(self):
        po = TestDataFactory.create_purchase_order(po_number='L1', vendor='Alpha')
        TestDataFactory.create_inspection(purchase_order=po, result='Failed', inspector='Lee')
        TestDataFactory.create_inspection(po_number='L2', result='Passed', inspector='Kim')

        response = self.client.get('/api/v1/inspections/?result=failed')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/inspections/?vendor=alpha')
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/inspections/inspectors/')
        self.assertEqual(response.data, ['Kim', 'Lee'])

    def test_kpis_and_alert_counts(self):
        response = self.client.get('/api/v1/quality/kpis/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('pending_qa_beyond_45_days', response.data)

        response = self.client.get('/api/v1/quality-compliance/alert-counts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['failed_inspections'], 0)

    def test_failed_inspections_limit_must_be_integer(self):
        response = self.client.get('/api/v1/quality-compliance/failed-inspections/?limit=ten')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_failed_inspections_endpoint(self):
        today = timezone.localdate()
        TestDataFactory.create_inspection(po_number='X1', inspection_date=today - timedelta(days=1), result='Failed')
        response = self.client.get('/api/v1/quality-compliance/failed-inspections/?limit=5')
        self.assertEqual(len(response.data), 1)
