"""
Test suite for Imports module
Tests: file parsing, the five importers, import history and the upload endpoints
"""
import os
import tempfile
from datetime import date, datetime
from io import BytesIO, StringIO

from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from openpyxl import Workbook
from rest_framework import status

from backend.capacity.models import VendorCapacityData, VendorCapacitySummary
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.imports.importers import parse_month, run_import
from backend.imports.models import ImportHistory
from backend.imports.parsers import (
    ImportFileError, check_file_size, clean_row, detect_file_type, field, normalize_header, parse_date, parse_int,
    read_table,
)
from backend.logistics.models import Shipment
from backend.projections.models import ActiveProjection, ProjectionSnapshot
from backend.purchasing.models import PurchaseOrder
from backend.quality.models import Inspection, QualityTest


class ParserTests(TestCase):
    """Test header normalization and value parsers"""

    def test_normalize_header(self):
        self.assertEqual(normalize_header('PO #'), 'po_number')
        self.assertEqual(normalize_header(' Revised Ship Date '), 'revised_ship_date')
        self.assertEqual(normalize_header('Utilized %'), 'utilized_pct')
        self.assertEqual(normalize_header('C&K Value'), 'c_and_k_value')
        self.assertEqual(normalize_header(None), '')

    def test_parse_int(self):
        self.assertEqual(parse_int('1,200'), 1200)
        self.assertEqual(parse_int('(250)'), -250)
        self.assertEqual(parse_int('$12.6'), 13)
        self.assertEqual(parse_int(7.0), 7)
        self.assertIsNone(parse_int(' '))
        with self.assertRaises(ValueError):
            parse_int('many')

    def test_parse_date(self):
        self.assertEqual(parse_date('2026-03-15'), date(2026, 3, 15))
        self.assertEqual(parse_date('03/15/2026'), date(2026, 3, 15))
        self.assertEqual(parse_date('15-Mar-2026'), date(2026, 3, 15))
        self.assertEqual(parse_date(datetime(2026, 3, 15, 8, 30)), date(2026, 3, 15))
        self.assertIsNone(parse_date(''))
        with self.assertRaises(ValueError):
            parse_date('next week')

    def test_parse_month(self):
        self.assertEqual(parse_month('Jan'), 1)
        self.assertEqual(parse_month('september'), 9)
        self.assertEqual(parse_month('12'), 12)
        with self.assertRaises(ValueError):
            parse_month('13')

    def test_clean_row(self):
        fields = [field('po_number', required=True), field('qty', parse_int)]
        self.assertEqual(clean_row({'po_number': ' PO1 ', 'qty': ''}, fields), {'po_number': 'PO1'})
        with self.assertRaises(ValueError):
            clean_row({'qty': '1'}, fields)
        with self.assertRaises(ValueError):
            clean_row({'po_number': 'PO1', 'qty': 'x'}, fields)

    def test_detect_file_type(self):
        self.assertEqual(detect_file_type('Report.XLSX'), 'xlsx')
        self.assertEqual(detect_file_type('report.csv'), 'csv')
        with self.assertRaises(ImportFileError):
            detect_file_type('report.pdf')

    @override_settings(IMPORT_MAX_UPLOAD_MB=1)
    def test_check_file_size(self):
        self.assertEqual(check_file_size(BytesIO(b'a' * 10)), 10)
        with self.assertRaises(ImportFileError):
            check_file_size(BytesIO(b'a' * (1024 * 1024 + 1)))

    def test_read_csv_skips_blank_lines_and_maps_synonyms(self):
        upload = TestDataFactory.csv_upload([['PO #', 'Supplier'], ['', ''], ['PO1', 'Alpha']])
        rows = read_table(upload, upload.name, {'supplier': 'vendor'})
        self.assertEqual(rows, [(3, {'po_number': 'PO1', 'vendor': 'Alpha'})])

    def test_read_empty_file(self):
        upload = TestDataFactory.csv_upload([])
        with self.assertRaises(ImportFileError):
            read_table(upload, upload.name)

    def test_read_xlsx(self):
        workbook = Workbook()
        sheet = workbook.active
        sheet.append(['PO #', 'CRD', 'Qty'])
        sheet.append(['PO9', datetime(2026, 2, 1), 12])
        buffer = BytesIO()
        workbook.save(buffer)
        upload = SimpleUploadedFile('shipments.xlsx', buffer.getvalue())

        (row_number, row), = read_table(upload, upload.name, {'crd': 'cargo_ready_date'})
        self.assertEqual(row_number, 2)
        self.assertEqual(row['po_number'], 'PO9')
        self.assertEqual(parse_date(row['cargo_ready_date']), date(2026, 2, 1))
        self.assertEqual(row['qty'], 12)

    def test_corrupt_xlsx(self):
        upload = SimpleUploadedFile('broken.xlsx', b'not a workbook')
        with self.assertRaises(ImportFileError):
            read_table(upload, upload.name)


class ImporterTests(TestCase):
    """Test the importers through run_import"""

    def setUp(self):
        self.today = timezone.localdate()
        self.vendor = TestDataFactory.create_vendor(name='Alpha')

    def test_purchase_orders_grouped_by_po_and_matched(self):
        projection = TestDataFactory.create_projection(self.vendor, sku='SKU1', year=2026, month=5, quantity=10)
        upload = TestDataFactory.csv_upload([
            ['PO #', 'Supplier', 'Client', 'PO Date', 'Ship Date', 'Item Number', 'Qty', 'Balance Qty', 'Price'],
            ['PO1', 'Alpha', 'CB2', self.today.isoformat(), '2026-05-10', 'SKU1', '10', '10', '1000'],
            ['PO1', 'Alpha', 'CB2', self.today.isoformat(), '2026-05-10', 'SKU2', '5', '0', '2000'],
            ['PO2', 'Alpha', 'CB2', self.today.isoformat(), '2026-06-10', 'SKU3', '1', '1', '500'],
            ['', 'Alpha', 'CB2', self.today.isoformat(), '2026-06-10', 'SKU4', '1', '1', '500'],
        ])
        result = run_import('purchase-orders', upload, upload.name, imported_by='ana')

        self.assertEqual(result['status'], 'partial')
        self.assertEqual(result['records_imported'], 3)
        self.assertEqual(result['records_skipped'], 1)
        self.assertEqual(result['purchase_orders'], 2)
        self.assertEqual(result['warnings'], ["Row 5: missing required field 'po_number'"])
        self.assertEqual(result['matching']['matched'], 1)

        po = PurchaseOrder.objects.get(po_number='PO1')
        self.assertEqual(po.total_quantity, 15)
        self.assertEqual(po.balance_quantity, 10)
        self.assertEqual(po.total_value, 20000)
        self.assertEqual(po.vendor_ref, self.vendor)
        self.assertEqual(po.lines.count(), 2)

        projection.refresh_from_db()
        self.assertEqual(projection.matched_po_number, 'PO1')

        history = ImportHistory.objects.get(id=result['import_id'])
        self.assertEqual(history.file_type, 'purchase_orders')
        self.assertEqual(history.pre_import_count, 0)
        self.assertEqual(history.post_import_count, 2)
        self.assertEqual(history.file_row_count, 4)

    def test_reimport_of_unchanged_pos(self):
        rows = [
            ['PO #', 'Supplier', 'PO Date', 'Item Number', 'Qty', 'Price'],
            ['PO1', 'Alpha', self.today.isoformat(), 'SKU1', '10', '1000'],
        ]
        run_import('purchase-orders', TestDataFactory.csv_upload(rows), 'po.csv')
        result = run_import('purchase-orders', TestDataFactory.csv_upload(rows), 'po.csv')
        self.assertEqual(result['unchanged'], 1)
        self.assertEqual(result['status'], 'success')

    def test_shipments(self):
        TestDataFactory.create_purchase_order(po_number='PO1', vendor=self.vendor)
        upload = TestDataFactory.csv_upload([
            ['PO', 'Style', 'CRD', 'Sailing Date', 'Qty'],
            ['PO1', 'ST1', self.today.isoformat(), self.today.isoformat(), '12'],
            ['PO1', 'ST2', 'someday', '', '1'],
        ])
        result = run_import('shipments', upload, upload.name)
        self.assertEqual(result['records_imported'], 1)
        self.assertIn('Row 3: cargo_ready_date', result['warnings'][0])

        shipment = Shipment.objects.get()
        self.assertEqual(shipment.qty_shipped, 12)
        self.assertEqual(shipment.purchase_order.po_number, 'PO1')

    def test_quality_data_split(self):
        upload = TestDataFactory.csv_upload([
            ['PO #', 'Vendor', 'Inspection Type', 'Inspection Date', 'Result', 'Test Type', 'Report No'],
            ['PO1', 'Alpha', 'Final', '2026-03-01', 'Passed', '', ''],
            ['PO1', 'Alpha', '', '', 'Pass', 'Transit', 'R-1'],
            ['PO1', 'Alpha', '', '', '', '', ''],
        ])
        result = run_import('quality-data', upload, upload.name)
        self.assertEqual(result['records_imported'], 2)
        self.assertEqual(result['records_skipped'], 1)
        self.assertEqual(result['warnings'], ['Row 4: needs an inspection_type or a test_type'])
        self.assertEqual(Inspection.objects.get().vendor_ref, self.vendor)
        self.assertEqual(QualityTest.objects.get().report_number, 'R-1')

    def test_vendor_capacity_locked_and_duplicate_rows(self):
        TestDataFactory.create_capacity_data('Riches', 2025, 1, is_locked=True, reserved_capacity=77)
        TestDataFactory.create_capacity_data('Riches', 2026, 3, reserved_capacity=5)
        upload = TestDataFactory.csv_upload([
            ['Vendor Code', 'Vendor', 'Brand', 'Year', 'Month', 'Reserved', 'Shipment Confirmed', 'Shipment Unconfirmed'],
            ['Riches', 'Riches', 'CAPACITY_DATA', '2026', 'Jan', '1000', '', ''],
            ['Riches', 'Riches', 'Crate & Barrel', '2026', '1', '0', '300', '200'],
            ['Riches', 'Riches', 'CB', '2026', '1', '0', '400', '0'],
            ['Riches', 'Riches', 'CB', '2025', '1', '0', '1', '1'],
        ])
        result = run_import('vendor-capacity', upload, upload.name)

        self.assertEqual(result['records_imported'], 2)
        self.assertEqual(result['records_skipped'], 2)
        self.assertEqual(result['years'], [2026])
        self.assertEqual(result['locked_years'], [2025])
        self.assertEqual(len(result['warnings']), 2)
        self.assertIn('later row kept', result['warnings'][0])
        self.assertEqual(result['warnings'][1], 'Row 5: year 2025 is locked')

        cb = VendorCapacityData.objects.get(year=2026, client='CB')
        self.assertEqual(cb.total_shipment, 400)
        self.assertEqual(VendorCapacityData.objects.get(year=2026, client='CAPACITY_DATA').reserved_capacity, 1000)
        self.assertFalse(VendorCapacityData.objects.filter(year=2026, month=3).exists())
        self.assertEqual(VendorCapacityData.objects.get(year=2025).reserved_capacity, 77)
        self.assertEqual(VendorCapacitySummary.objects.get(year=2026).total_reserved_capacity_annual, 1000)

    def test_projections_require_import_date(self):
        upload = TestDataFactory.csv_upload([['Vendor', 'SKU', 'Brand', 'Year', 'Month'], ['Alpha', 'S1', 'CB', '2026', '1']])
        with self.assertRaises(ImportFileError):
            run_import('projections', upload, upload.name)
        self.assertEqual(ImportHistory.objects.get().status, 'failed')

    def test_projections(self):
        upload = TestDataFactory.csv_upload([
            ['Vendor', 'SKU', 'Brand', 'Year', 'Month', 'Value', 'Qty', 'Type'],
            ['Alpha', 'S1', 'CK', '2026', 'Mar', '50000', '50', ''],
            ['Alpha', 'S2', 'CB', '2026', '4', '100', '1', 'SPO'],
            ['Nobody', 'S3', 'CB', '2026', '4', '100', '1', ''],
            ['Alpha', 'S4', 'CB', '2026', '4', '100', '1', 'bulk'],
        ])
        result = run_import('projections', upload, upload.name, imported_by='ana', import_date=date(2026, 1, 5))
        self.assertEqual(result['records_imported'], 2)
        self.assertEqual(result['created'], 2)
        self.assertEqual(result['import_date'], '2026-01-05')
        self.assertEqual(result['warnings'], ["Row 4: unknown vendor 'Nobody'", "Row 5: invalid order_type 'bulk'"])

        s1 = ActiveProjection.objects.get(sku='S1')
        self.assertEqual(s1.brand, 'C&K')
        self.assertEqual(s1.month, 3)
        self.assertEqual(s1.vendor_code, 'Alpha')
        self.assertEqual(ActiveProjection.objects.get(sku='S2').order_type, 'spo')
        self.assertEqual(ProjectionSnapshot.objects.filter(imported_by='ana').count(), 2)


class ImportAPITests(TestCase):
    """Test upload endpoints and import history"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='kim')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        TestDataFactory.create_vendor(name='Alpha')

    def test_upload_requires_file(self):
        response = self.client.post('/api/v1/import/shipments/', {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unsupported_file_type(self):
        upload = SimpleUploadedFile('shipments.pdf', b'%PDF-1.4')
        response = self.client.post('/api/v1/import/shipments/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Unsupported file type', response.data['error'])
        history = ImportHistory.objects.get()
        self.assertEqual(history.status, 'failed')
        self.assertEqual(history.imported_by, 'kim')

    @override_settings(IMPORT_MAX_UPLOAD_MB=0)
    def test_oversize_upload_rejected(self):
        upload = TestDataFactory.csv_upload([['PO', 'Style'], ['PO1', 'ST1']])
        response = self.client.post('/api/v1/import/shipments/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('upload limit', response.data['error'])
        self.assertFalse(Shipment.objects.exists())
        history = ImportHistory.objects.get()
        self.assertEqual(history.status, 'failed')
        self.assertEqual(history.file_type, 'shipments')

    def test_upload_is_audited(self):
        upload = TestDataFactory.csv_upload([['PO', 'Style'], ['PO1', 'ST1']], name='os650.csv')
        response = self.client.post('/api/v1/import/shipments/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'success')
        log = AuditLog.objects.get(action='import')
        self.assertEqual(log.object_name, 'os650.csv')
        self.assertEqual(log.object_reference, 'shipments')

    def test_projection_upload_import_date(self):
        rows = [['Vendor', 'SKU', 'Brand', 'Year', 'Month'], ['Alpha', 'S1', 'CB', '2026', '1']]
        response = self.client.post(
            '/api/v1/import/projections/', {'file': TestDataFactory.csv_upload(rows)}, format='multipart',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(
            '/api/v1/import/projections/?import_date=01/05/2026', {'file': TestDataFactory.csv_upload(rows)}, format='multipart',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(
            '/api/v1/import/projections/?import_date=2026-01-05', {'file': TestDataFactory.csv_upload(rows)}, format='multipart',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['snapshots'], 1)

    def test_history_filter(self):
        ImportHistory.objects.create(file_name='a.csv', file_type='shipments')
        ImportHistory.objects.create(file_name='b.csv', file_type='projections')
        response = self.client.get('/api/v1/import/history/?file_type=projections')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['file_name'], 'b.csv')


class ImportCommandTests(TestCase):
    """Test the import_file management command"""

    def test_import_file_command(self):
        handle, path = tempfile.mkstemp(suffix='.csv')
        with os.fdopen(handle, 'w') as f:
            f.write('PO,Style\nPO1,ST1\n')
        self.addCleanup(os.remove, path)

        out = StringIO()
        call_command('import_file', path, '--type', 'shipments', stdout=out)
        self.assertIn('Imported 1 rows, skipped 0 (success)', out.getvalue())
        self.assertEqual(ImportHistory.objects.get().imported_by, 'manage.py')
