"""
Test suite for SKU module
Tests: SKU metrics, SKU KPIs, order history, QA compliance and the SKU endpoints
"""
from datetime import date

from django.test import TestCase
from rest_framework import status

from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.skus.services import (
    COMPLIANCE_EXPIRED, COMPLIANCE_EXPIRING, COMPLIANCE_FAILED, COMPLIANCE_PENDING, COMPLIANCE_VALID,
    compliance_status, sku_compliance, sku_metrics, sku_order_history, sku_summary,
)


def line(sku, total, unit_price=0, quantity=1):
    return {'sku': sku, 'order_quantity': quantity, 'unit_price': unit_price, 'line_total': total}


class SkuMetricTests(TestCase):
    """Test per-SKU metrics"""

    def setUp(self):
        self.today = date(2026, 6, 1)
        alpha = TestDataFactory.create_vendor(name='Alpha')
        TestDataFactory.create_purchase_order(
            po_number='PO1', vendor=alpha, po_date=date(2026, 3, 1), shipment_status='On-Time', shipped_value=500,
            lines=[line('SKU-A', 300, unit_price=100), line('SKU-A', 200, unit_price=100)],
        )
        TestDataFactory.create_purchase_order(
            po_number='PO2', vendor='Beta', po_date=date(2026, 5, 1), program_description='Summer Outdoor',
            lines=[line('SKU-A', 120, unit_price=120)],
        )
        TestDataFactory.create_purchase_order(
            po_number='PO3', vendor=alpha, po_date=date(2025, 12, 1), shipment_status='On-Time', shipped_value=900,
            lines=[line('SKU-B', 900, unit_price=90)],
        )
        TestDataFactory.create_purchase_order(
            po_number='PO4', vendor=alpha, po_date=date(2026, 3, 1), program_description='SMP spring',
            lines=[line('SKU-C', 100)],
        )

    def test_latest_order_and_sales_this_year(self):
        sku_a, sku_b = sku_metrics(today=self.today)

        self.assertEqual(sku_a['sku'], 'SKU-A')
        self.assertEqual(sku_a['supplier'], 'Beta')
        self.assertEqual(sku_a['description'], 'Summer Outdoor')
        self.assertEqual(sku_a['last_order_fob_price'], 120)
        self.assertEqual(sku_a['last_order_date'], date(2026, 5, 1))
        self.assertEqual(sku_a['total_sales_ytd'], 500)
        self.assertEqual(sku_a['total_orders_ytd'], 1)

        self.assertEqual(sku_b['sku'], 'SKU-B')
        self.assertEqual(sku_b['supplier'], 'Alpha')
        self.assertEqual(sku_b['total_sales_ytd'], 0)

    def test_search_and_vendor_scope(self):
        self.assertEqual([r['sku'] for r in sku_metrics({'search': 'sku-b'}, today=self.today)], ['SKU-B'])
        rows = sku_metrics({'vendor': 'Beta'}, today=self.today)
        self.assertEqual([r['sku'] for r in rows], ['SKU-A'])
        self.assertEqual(rows[0]['total_sales_ytd'], 0)


class SkuSummaryTests(TestCase):
    """Test SKU KPIs for the current year"""

    def test_new_and_existing_sku_sales(self):
        TestDataFactory.create_purchase_order(po_number='S1', po_date=date(2025, 10, 1), lines=[line('SKU-OLD', 100)])
        TestDataFactory.create_purchase_order(
            po_number='S2', po_date=date(2026, 2, 1), original_ship_date=date(2026, 3, 1),
            shipment_status='Late', shipped_value=400, lines=[line('SKU-OLD', 400)],
        )
        TestDataFactory.create_purchase_order(
            po_number='S3', po_date=date(2026, 3, 1), revised_ship_date=date(2026, 4, 1),
            shipment_status='On-Time', shipped_value=250, lines=[line('SKU-NEW', 250)],
        )
        TestDataFactory.create_purchase_order(
            po_number='089123', po_date=date(2026, 3, 1), original_ship_date=date(2026, 4, 1),
            shipment_status='On-Time', shipped_value=999, lines=[line('SKU-NEW', 999)],
        )
        TestDataFactory.create_purchase_order(po_number='S4', po_date=date(2026, 5, 1), lines=[line('SKU-NEW2', 100)])

        summary = sku_summary(today=date(2026, 6, 1))
        self.assertEqual(summary, {
            'total_skus': 3,
            'new_skus_ytd': 2,
            'ytd_total_sales': 650,
            'ytd_sales_new_skus': 250,
            'ytd_sales_existing_skus': 400,
            'ytd_total_orders': 2,
        })


class SkuHistoryTests(TestCase):
    """Test order history and QA compliance for one SKU"""

    def setUp(self):
        self.today = date(2026, 6, 1)
        self.first = TestDataFactory.create_purchase_order(
            po_number='C1', vendor='Alpha', po_date=date(2026, 1, 5), lines=[line('SKU-X', 300, quantity=3)],
        )
        self.second = TestDataFactory.create_purchase_order(
            po_number='C2', vendor='Alpha', po_date=date(2026, 2, 5), shipment_status='On-Time',
            lines=[line('SKU-X', 200, quantity=2), line('SKU-Y', 50)],
        )

    def test_order_history_newest_first(self):
        history = sku_order_history('SKU-X')
        self.assertEqual([row['po_number'] for row in history], ['C2', 'C1'])
        self.assertEqual(history[0]['order_quantity'], 2)
        self.assertEqual(history[0]['total_value'], 250)
        self.assertEqual(history[0]['shipment_status'], 'On-Time')

    def test_compliance_merges_tests_across_pos(self):
        for po in (self.first, self.second):
            TestDataFactory.create_quality_test(
                purchase_order=po, test_type='Mandatory', report_date=date(2026, 1, 10),
                result='Pass', expiry_date=date(2027, 1, 10),
            )
        TestDataFactory.create_quality_test(
            purchase_order=self.first, test_type='Transit', report_date=date(2026, 2, 1), result='Fail',
        )
        TestDataFactory.create_quality_test(
            po_number='ZZ', sku='SKU-X', test_type='Performance', report_date=date(2025, 5, 1),
            result='Pass', expiry_date=date(2026, 6, 20),
        )
        TestDataFactory.create_quality_test(purchase_order=self.second, test_type='Retest')
        TestDataFactory.create_quality_test(po_number='OTHER', sku='SKU-Z', test_type='Mandatory', result='Fail')

        rows = sku_compliance('SKU-X', today=self.today)
        self.assertEqual(
            [(row['test_type'], row['status'], row['po_count']) for row in rows],
            [
                ('Transit', COMPLIANCE_FAILED, 1),
                ('Mandatory', COMPLIANCE_VALID, 2),
                ('Performance', COMPLIANCE_EXPIRING, 1),
                ('Retest', COMPLIANCE_PENDING, 1),
            ],
        )

    def test_compliance_status(self):
        self.assertEqual(compliance_status('Passed', date(2026, 5, 31), self.today), COMPLIANCE_EXPIRED)
        self.assertEqual(compliance_status('failed', date(2027, 1, 1), self.today), COMPLIANCE_FAILED)
        self.assertEqual(compliance_status('Pass', None, self.today), COMPLIANCE_VALID)
        self.assertEqual(compliance_status('', date(2027, 1, 1), self.today), COMPLIANCE_PENDING)
        self.assertEqual(compliance_status('Pass', date(2026, 7, 1), self.today), COMPLIANCE_EXPIRING)


class SkuAPITests(TestCase):
    """Test the SKU endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        TestDataFactory.create_purchase_order(po_number='PO1', vendor='Alpha', lines=[line('SKU-1', 100)])
        TestDataFactory.create_purchase_order(po_number='PO2', vendor='Alpha', lines=[line('SKU-2', 200)])

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/skus/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_is_paginated(self):
        response = self.client.get('/api/v1/skus/?limit=1')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(len(response.data['results']), 1)

    def test_summary(self):
        response = self.client.get('/api/v1/skus/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_skus'], 2)
        self.assertEqual(response.data['new_skus_ytd'], 2)

    def test_history_and_compliance(self):
        response = self.client.get('/api/v1/skus/SKU-1/shipments/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['po_number'] for row in response.data], ['PO1'])

        response = self.client.get('/api/v1/skus/SKU-1/compliance/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])

    def test_unknown_sku(self):
        response = self.client.get('/api/v1/skus/NOPE/shipments/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.get('/api/v1/skus/NOPE/compliance/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
