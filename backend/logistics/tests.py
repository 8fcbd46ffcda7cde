"""
Test suite for Logistics module
Tests: derived shipment status, at-risk reasons, upsert and shipment endpoints
"""
from datetime import date, timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.logistics.models import Shipment
from backend.logistics.services import (
    FINAL_NOT_BOOKED, INLINE_NOT_BOOKED, QA_NOT_AVAILABLE,
    at_risk_reasons, bulk_upsert_shipments, clear_outside_retention, derive_shipment_status, enrich_shipments,
    passed_qa_po_numbers,
)


class ShipmentStatusTests(TestCase):
    """Test status derivation"""

    def setUp(self):
        self.today = date(2026, 3, 1)
        self.po = TestDataFactory.create_purchase_order(po_number='PO1', revised_ship_date=self.today + timedelta(days=5))

    def test_hod_on_time_or_delivered(self):
        shipment = Shipment(po_number='PO1', hod_status='On Time')
        self.assertEqual(derive_shipment_status(shipment, self.po, []), 'on-time')
        shipment = Shipment(po_number='PO1', logistic_status='Delivered')
        self.assertEqual(derive_shipment_status(shipment, self.po, []), 'on-time')

    def test_hod_late(self):
        shipment = Shipment(po_number='PO1', hod_status='Late')
        self.assertEqual(derive_shipment_status(shipment, self.po, []), 'late')

    def test_shipped_uses_po_shipment_status(self):
        shipment = Shipment(po_number='PO1', hod_status='Shipped')
        self.assertEqual(derive_shipment_status(shipment, self.po, []), 'on-time')
        self.po.shipment_status = 'Late'
        self.assertEqual(derive_shipment_status(shipment, self.po, []), 'late')

    def test_reasons_make_at_risk_otherwise_pending(self):
        shipment = Shipment(po_number='PO1')
        self.assertEqual(derive_shipment_status(shipment, self.po, ['x']), 'at-risk')
        self.assertEqual(derive_shipment_status(shipment, self.po, []), 'pending')


class AtRiskReasonTests(TestCase):
    """Test inspection and QA deadlines before the HOD"""

    def setUp(self):
        self.today = date(2026, 3, 1)

    def _po(self, days):
        return TestDataFactory.create_purchase_order(revised_ship_date=self.today + timedelta(days=days))

    def test_all_reasons_inside_a_week(self):
        shipment = Shipment(po_number='X')
        reasons = at_risk_reasons(shipment, self._po(5), {}, False, self.today)
        self.assertEqual(reasons, [INLINE_NOT_BOOKED, FINAL_NOT_BOOKED, QA_NOT_AVAILABLE])

    def test_only_qa_at_thirty_days(self):
        shipment = Shipment(po_number='X')
        reasons = at_risk_reasons(shipment, self._po(30), {}, False, self.today)
        self.assertEqual(reasons, [QA_NOT_AVAILABLE])

    def test_booked_inspections_and_passed_qa(self):
        shipment = Shipment(po_number='X')
        reasons = at_risk_reasons(shipment, self._po(5), {'inline': True, 'final': True}, True, self.today)
        self.assertEqual(reasons, [])

    def test_shipped_or_past_hod_has_no_reasons(self):
        shipped = Shipment(po_number='X', actual_sailing_date=self.today)
        self.assertEqual(at_risk_reasons(shipped, self._po(5), {}, False, self.today), [])
        self.assertEqual(at_risk_reasons(Shipment(po_number='X'), self._po(0), {}, False, self.today), [])
        self.assertEqual(at_risk_reasons(Shipment(po_number='X'), None, {}, False, self.today), [])

    def test_enrich_reads_inspections_and_tests(self):
        today = timezone.localdate()
        po = TestDataFactory.create_purchase_order(po_number='PO9', revised_ship_date=today + timedelta(days=3))
        TestDataFactory.create_inspection(purchase_order=po, inspection_type='Inline')
        TestDataFactory.create_quality_test(purchase_order=po, result='Pass')
        TestDataFactory.create_shipment(purchase_order=po)

        (shipment, shipment_status, reasons), = enrich_shipments(Shipment.objects.all(), today=today)
        self.assertEqual(reasons, [FINAL_NOT_BOOKED])
        self.assertEqual(shipment_status, 'at-risk')

    def test_passed_qa_for_sku_on_another_po(self):
        older = TestDataFactory.create_purchase_order(po_number='PO1', lines=[{'sku': 'SKU-7', 'order_quantity': 1}])
        TestDataFactory.create_quality_test(purchase_order=older, sku='SKU-7', result='Pass')
        TestDataFactory.create_quality_test(po_number='PO3', sku='SKU-8', result='Fail')
        TestDataFactory.create_purchase_order(po_number='PO2', lines=[{'sku': 'SKU-7', 'order_quantity': 2}])
        TestDataFactory.create_purchase_order(po_number='PO3', lines=[{'sku': 'SKU-8', 'order_quantity': 2}])

        self.assertEqual(passed_qa_po_numbers({'PO2', 'PO3'}), {'PO2'})


class ShipmentUpsertTests(TestCase):
    """Test shipment upsert and retention"""

    def test_upsert_by_po_style_and_cargo_ready_date(self):
        po = TestDataFactory.create_purchase_order(po_number='PO7')
        row = {'po_number': 'PO7', 'style': 'ST1', 'cargo_ready_date': date(2026, 2, 1), 'qty_shipped': 10}
        self.assertEqual(bulk_upsert_shipments([row]), {'inserted': 1, 'updated': 0})

        row['qty_shipped'] = 12
        self.assertEqual(bulk_upsert_shipments([row]), {'inserted': 0, 'updated': 1})

        shipment = Shipment.objects.get()
        self.assertEqual(shipment.qty_shipped, 12)
        self.assertEqual(shipment.purchase_order, po)

    def test_unknown_po_is_kept_unlinked(self):
        bulk_upsert_shipments([{'po_number': 'GHOST', 'style': None, 'cargo_ready_date': None}])
        self.assertIsNone(Shipment.objects.get().purchase_order)

    def test_clear_outside_retention(self):
        TestDataFactory.create_shipment(po_number='OLD', cargo_ready_date=date(2023, 6, 1))
        TestDataFactory.create_shipment(po_number='NEW', cargo_ready_date=date(2025, 6, 1))
        self.assertEqual(clear_outside_retention(today=date(2026, 1, 10)), 1)
        self.assertEqual(list(Shipment.objects.values_list('po_number', flat=True)), ['NEW'])


class ShipmentAPITests(TestCase):
    """Test shipment list, summary and detail endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

        today = timezone.localdate()
        vendor = TestDataFactory.create_vendor(name='Golden Hill')
        self.po = TestDataFactory.create_purchase_order(
            po_number='PO42', vendor=vendor, revised_ship_date=today + timedelta(days=5),
        )
        self.pending = TestDataFactory.create_shipment(purchase_order=self.po, style='A', cargo_ready_date=today)
        self.shipped = TestDataFactory.create_shipment(
            purchase_order=self.po, style='B', cargo_ready_date=today, hod_status='On Time',
            actual_sailing_date=today,
        )
        other_po = TestDataFactory.create_purchase_order(po_number='PO43', vendor='Other')
        TestDataFactory.create_shipment(purchase_order=other_po, style='C', cargo_ready_date=today)

    def test_list_excludes_shipped_by_default(self):
        response = self.client.get('/api/v1/shipments/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/shipments/?include_shipped=true')
        self.assertEqual(response.data['count'], 3)

    def test_filter_by_status_and_vendor(self):
        response = self.client.get('/api/v1/shipments/?status=at-risk&vendor=golden hill')
        self.assertEqual(response.data['count'], 1)
        row = response.data['results'][0]
        self.assertTrue(row['is_at_risk'])
        self.assertEqual(row['vendor'], 'Golden Hill')
        self.assertIn(INLINE_NOT_BOOKED, row['at_risk_reasons'])

    def test_invalid_status(self):
        response = self.client.get('/api/v1/shipments/?status=lost')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_date(self):
        response = self.client.get('/api/v1/shipments/?start_date=03-01-2026')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_summary_counts(self):
        response = self.client.get('/api/v1/shipments/summary/?include_shipped=1')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 3)
        self.assertEqual(response.data['on-time'], 1)
        self.assertEqual(response.data['at-risk'], 1)
        self.assertEqual(response.data['pending'], 1)

    def test_detail_lists_related_shipments(self):
        response = self.client.get(f'/api/v1/shipments/{self.pending.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['purchase_order_detail']['po_number'], 'PO42')
        self.assertEqual([s['id'] for s in response.data['related_shipments']], [self.shipped.id])
