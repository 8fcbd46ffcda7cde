"""
Test suite for Purchasing module
Tests: PO upsert with content hashing, retention, matching entries and the PO endpoints
"""
from datetime import date

from django.test import TestCase
from rest_framework import status

from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.purchasing.models import PurchaseOrder, PurchaseOrderLine
from backend.purchasing.services import (
    bulk_upsert_purchase_orders, clear_outside_retention, compute_content_hash, match_entries_for,
)


def po_row(po_number='PO100001', vendor='Yung Chang Furniture', **overrides):
    row = {
        'po_number': po_number,
        'vendor': vendor,
        'client': 'Crate & Barrel',
        'po_date': date(2026, 2, 1),
        'original_ship_date': date(2026, 5, 15),
        'total_quantity': 30,
        'total_value': 300000,
        'status': 'Booked-to-ship',
        'lines': [
            {'sku': '100200', 'order_quantity': 10, 'unit_price': 10000, 'line_total': 100000},
            {'sku': '100201', 'order_quantity': 20, 'unit_price': 10000, 'line_total': 200000},
        ],
    }
    row.update(overrides)
    return row


class PurchaseOrderUpsertTests(TestCase):
    """Test bulk upsert of PO headers and lines"""

    def setUp(self):
        self.vendor = TestDataFactory.create_vendor(name='Yung Chang Furniture')
        TestDataFactory.create_vendor_alias(self.vendor, alias='YC')

    def test_insert_links_vendor_and_lines(self):
        stats = bulk_upsert_purchase_orders([po_row(vendor='YC')])
        self.assertEqual(stats, {'inserted': 1, 'updated': 0, 'skipped': 0})

        po = PurchaseOrder.objects.get(po_number='PO100001')
        self.assertEqual(po.vendor_ref, self.vendor)
        self.assertEqual(po.vendor, 'YC')
        self.assertEqual(list(po.lines.values_list('line_sequence', 'sku')), [(1, '100200'), (2, '100201')])

    def test_unchanged_po_is_skipped(self):
        bulk_upsert_purchase_orders([po_row()])
        stats = bulk_upsert_purchase_orders([po_row()])
        self.assertEqual(stats, {'inserted': 0, 'updated': 0, 'skipped': 1})
        self.assertEqual(PurchaseOrderLine.objects.count(), 2)

    def test_changed_po_replaces_lines(self):
        bulk_upsert_purchase_orders([po_row()])
        changed = po_row(total_quantity=5, total_value=50000, lines=[
            {'sku': '100999', 'order_quantity': 5, 'unit_price': 10000, 'line_total': 50000},
        ])
        stats = bulk_upsert_purchase_orders([changed])
        self.assertEqual(stats['updated'], 1)

        po = PurchaseOrder.objects.get(po_number='PO100001')
        self.assertEqual(po.total_value, 50000)
        self.assertEqual(list(po.lines.values_list('sku', flat=True)), ['100999'])

    def test_reimport_clears_blanked_fields(self):
        bulk_upsert_purchase_orders([po_row(
            revised_ship_date=date(2026, 5, 1), shipment_status='Late', status='Shipped',
        )])
        stats = bulk_upsert_purchase_orders([po_row(status=None)])
        self.assertEqual(stats['updated'], 1)

        po = PurchaseOrder.objects.get(po_number='PO100001')
        self.assertIsNone(po.revised_ship_date)
        self.assertIsNone(po.shipment_status)
        self.assertEqual(po.status, 'Booked-to-ship')
        self.assertEqual(po.original_ship_date, date(2026, 5, 15))

    def test_content_hash_depends_on_lines(self):
        first = po_row()
        second = po_row()
        second['lines'][0]['order_quantity'] = 11
        self.assertNotEqual(compute_content_hash(first), compute_content_hash(second))
        self.assertEqual(compute_content_hash(first), compute_content_hash(po_row()))

    def test_empty_rows(self):
        self.assertEqual(bulk_upsert_purchase_orders([]), {'inserted': 0, 'updated': 0, 'skipped': 0})


class RetentionTests(TestCase):
    """Test the two-year retention window"""

    def test_clear_outside_retention(self):
        old = TestDataFactory.create_purchase_order(po_date=date(2023, 12, 31))
        kept = TestDataFactory.create_purchase_order(po_date=date(2024, 1, 1))
        undated = TestDataFactory.create_purchase_order(po_date=None)

        deleted = clear_outside_retention(today=date(2026, 6, 30))
        self.assertEqual(deleted, 1)
        self.assertFalse(PurchaseOrder.objects.filter(pk=old.pk).exists())
        self.assertTrue(PurchaseOrder.objects.filter(pk__in=[kept.pk, undated.pk]).count() == 2)


class MatchEntryTests(TestCase):
    """Test flattening POs for projection matching"""

    def test_one_entry_per_line(self):
        po = TestDataFactory.create_purchase_order(
            po_number='PO2', vendor='V', original_ship_date=date(2026, 3, 1),
            lines=[{'sku': 'A', 'order_quantity': 1, 'line_total': 100}, {'sku': 'B', 'order_quantity': 2, 'line_total': 200}],
        )
        entries = match_entries_for([po])
        self.assertEqual([e['sku'] for e in entries], ['A', 'B'])
        self.assertEqual(entries[1]['total_value'], 200)
        self.assertEqual(entries[0]['original_ship_date'], date(2026, 3, 1))

    def test_header_entry_without_lines(self):
        po = TestDataFactory.create_purchase_order(po_number='PO3', vendor='V', total_quantity=7, total_value=700)
        entries = match_entries_for([po])
        self.assertEqual(len(entries), 1)
        self.assertIsNone(entries[0]['sku'])
        self.assertEqual(entries[0]['order_quantity'], 7)


class PurchaseOrderAPITests(TestCase):
    """Test PO list and detail endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

        self.merch = TestDataFactory.create_staff(name='Ana')
        self.vendor = TestDataFactory.create_vendor(name='Yung Chang Furniture', merchandiser=self.merch)
        TestDataFactory.create_vendor_alias(self.vendor, alias='YC')
        TestDataFactory.create_client(name='Crate & Barrel', code='CB')

        self.po = TestDataFactory.create_purchase_order(
            po_number='PO500', vendor='YC', vendor_ref=self.vendor, client='Crate & Barrel',
            lines=[{'sku': 'SKU-1', 'order_quantity': 4, 'line_total': 4000}],
        )
        TestDataFactory.create_purchase_order(po_number='PO501', vendor='Other Vendor', client='CB2')

    def test_list_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/purchase-orders/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_envelope(self):
        response = self.client.get('/api/v1/purchase-orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertIn('total_pages', response.data)

    def test_pagination(self):
        response = self.client.get('/api/v1/purchase-orders/?limit=1&page=2')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['page'], 2)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(len(response.data['results']), 1)

    def test_bad_pagination_params(self):
        for query in ('limit=0', 'limit=501', 'page=abc', 'page=0', 'limit=-3'):
            response = self.client.get(f'/api/v1/purchase-orders/?{query}')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, query)
            self.assertIn('error', response.data)

    def test_filter_by_vendor_canonical_name_matches_alias(self):
        response = self.client.get('/api/v1/purchase-orders/?vendor=Yung Chang Furniture')
        self.assertEqual([r['po_number'] for r in response.data['results']], ['PO500'])

    def test_filter_by_client_code(self):
        response = self.client.get('/api/v1/purchase-orders/?client=cb')
        self.assertEqual([r['po_number'] for r in response.data['results']], ['PO500'])

    def test_filter_by_merchandiser(self):
        response = self.client.get('/api/v1/purchase-orders/?merchandiser=Ana')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['merchandiser'], 'Ana')

    def test_search_by_line_sku(self):
        response = self.client.get('/api/v1/purchase-orders/?search=sku-1')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['line_quantity'], 4)

    def test_invalid_date_filter(self):
        response = self.client.get('/api/v1/purchase-orders/?start_date=not-a-date')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_detail_includes_related_records(self):
        TestDataFactory.create_shipment(purchase_order=self.po, actual_sailing_date=date(2026, 1, 5))
        TestDataFactory.create_inspection(purchase_order=self.po, result='Pass')
        response = self.client.get(f'/api/v1/purchase-orders/{self.po.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['lines']), 1)
        self.assertEqual(len(response.data['shipments']), 1)
        self.assertEqual(len(response.data['inspections']), 1)
        self.assertEqual(response.data['quality_tests'], [])
        self.assertTrue(response.data['has_actual_ship_date'])

    def test_by_number(self):
        response = self.client.get('/api/v1/purchase-orders/by-number/PO500/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['vendor_name'], 'Yung Chang Furniture')

        response = self.client.get('/api/v1/purchase-orders/by-number/NOPE/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
