"""
The five spreadsheet importers and the run_import wrapper that records
ImportHistory.

Every importer takes the rows produced by parsers.read_table, skips rows that
fail validation with a "Row N: ..." warning and returns
{records_imported, records_skipped, warnings, ...details}.
"""
import calendar
import logging
from collections import OrderedDict, namedtuple

from django.db import transaction

from backend.capacity import services as capacity_services
from backend.capacity.models import VendorCapacityData
from backend.logistics import services as logistics_services
from backend.logistics.models import Shipment
from backend.parties.services import normalize_name, vendor_name_map
from backend.projections import services as projection_services
from backend.projections.matching import match_projections_to_pos
from backend.projections.models import ActiveProjection
from backend.purchasing import services as purchasing_services
from backend.purchasing.models import PurchaseOrder
from backend.quality import services as quality_services
from backend.quality.models import Inspection, QualityTest
from .models import ImportHistory
from .parsers import (
    ImportFileError, check_file_size, clean_row, field, parse_date, parse_int, parse_money, read_table,
)

logger = logging.getLogger('backend.imports')

MONTH_NAMES = {name.lower(): index for index, name in enumerate(calendar.month_abbr) if name}
MONTH_NAMES.update({name.lower(): index for index, name in enumerate(calendar.month_name) if name})


def parse_month(value):
    if isinstance(value, str) and value.strip().lower() in MONTH_NAMES:
        return MONTH_NAMES[value.strip().lower()]
    month = parse_int(value)
    if month is not None and not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    return month


def _result(imported=0, skipped=0, warnings=None, **details):
    return {'records_imported': imported, 'records_skipped': skipped, 'warnings': warnings or [], **details}


def _clean_rows(rows, fields, warnings):
    """Yield (row_number, cleaned) for valid rows, adding a warning for each invalid one"""
    for row_number, raw in rows:
        try:
            yield row_number, clean_row(raw, fields)
        except ValueError as e:
            warnings.append(f"Row {row_number}: {str(e)}")


# Purchase orders
PO_HEADER_COLUMNS = [
    field('po_number', required=True),
    field('cop_number'), field('client'), field('client_division'), field('client_department'),
    field('buyer'), field('vendor'), field('factory'), field('product_group'), field('product_category'),
    field('season'), field('program_description'), field('office'),
    field('po_date', parse_date), field('original_ship_date', parse_date),
    field('original_cancel_date', parse_date), field('revised_ship_date', parse_date),
    field('revised_cancel_date', parse_date), field('revised_reason'), field('confirmation_date', parse_date),
    field('shipped_value', parse_money), field('status'), field('shipment_status'),
    field('pts_number'), field('pts_date', parse_date), field('pts_status'), field('logistic_status'),
]
PO_LINE_COLUMNS = [
    field('line_sequence', parse_int), field('sku'), field('style'), field('seller_style'),
    field('order_quantity', parse_int), field('balance_quantity', parse_int),
    field('unit_price', parse_money), field('line_total', parse_money),
]
PO_SYNONYMS = {
    'po': 'po_number', 'po_no': 'po_number', 'purchase_order': 'po_number', 'purchase_order_number': 'po_number',
    'supplier': 'vendor', 'vendor_name': 'vendor',
    'qty': 'order_quantity', 'quantity': 'order_quantity', 'order_qty': 'order_quantity',
    'balance_qty': 'balance_quantity',
    'ship_date': 'original_ship_date', 'cancel_date': 'original_cancel_date',
    'hod': 'revised_ship_date', 'revised_hod': 'revised_ship_date',
    'price': 'unit_price', 'fob': 'unit_price', 'extended_value': 'line_total', 'total': 'line_total',
    'item_number': 'sku', 'sku_number': 'sku', 'line': 'line_sequence', 'line_number': 'line_sequence',
}


def import_purchase_orders(rows):
    """One row per line item; rows are grouped by PO number into header plus lines"""
    warnings = []
    grouped = OrderedDict()
    skipped = 0
    for row_number, raw in rows:
        try:
            header = clean_row(raw, PO_HEADER_COLUMNS)
            line = clean_row(raw, PO_LINE_COLUMNS)
        except ValueError as e:
            warnings.append(f"Row {row_number}: {str(e)}")
            skipped += 1
            continue
        if 'line_total' not in line:
            line['line_total'] = (line.get('unit_price') or 0) * (line.get('order_quantity') or 0)
        po = grouped.setdefault(header['po_number'], {**header, 'lines': []})
        po['lines'].append(line)

    for po in grouped.values():
        lines = po['lines']
        po['total_quantity'] = sum(line.get('order_quantity') or 0 for line in lines)
        po['balance_quantity'] = sum(line.get('balance_quantity') or 0 for line in lines)
        po['total_value'] = sum(line.get('line_total') or 0 for line in lines)

    stats = purchasing_services.bulk_upsert_purchase_orders(list(grouped.values()))
    removed = purchasing_services.clear_outside_retention()

    purchase_orders = PurchaseOrder.objects.filter(po_number__in=list(grouped)).prefetch_related('lines')
    matching = match_projections_to_pos(purchasing_services.match_entries_for(purchase_orders))

    return _result(
        imported=sum(len(po['lines']) for po in grouped.values()),
        skipped=skipped,
        warnings=warnings,
        purchase_orders=len(grouped),
        inserted=stats['inserted'],
        updated=stats['updated'],
        unchanged=stats['skipped'],
        removed_outside_retention=removed,
        matching=matching,
    )


# Shipments
SHIPMENT_COLUMNS = [
    field('po_number', required=True), field('line_item_id', parse_int), field('style'),
    field('shipment_number'), field('delivery_to_consolidator', parse_date),
    field('qty_shipped', parse_int), field('shipped_value', parse_money),
    field('actual_port_of_loading'), field('actual_sailing_date', parse_date), field('eta', parse_date),
    field('actual_ship_mode'), field('poe'), field('vessel_flight'), field('cargo_ready_date', parse_date),
    field('load_type'), field('pts_number'), field('logistic_status'), field('late_reason_code'),
    field('reason'), field('hod_status'), field('so_first_submission_date', parse_date),
    field('pts_status'), field('cargo_receipt_status'), field('estimated_vessel_etd', parse_date),
]
SHIPMENT_SYNONYMS = {
    'po': 'po_number', 'po_no': 'po_number', 'purchase_order': 'po_number',
    'crd': 'cargo_ready_date', 'etd': 'estimated_vessel_etd', 'sailing_date': 'actual_sailing_date',
    'ship_mode': 'actual_ship_mode', 'port_of_loading': 'actual_port_of_loading', 'pol': 'actual_port_of_loading',
    'qty': 'qty_shipped', 'shipped_qty': 'qty_shipped', 'delivery_date': 'delivery_to_consolidator',
}


def import_shipments(rows):
    warnings = []
    cleaned = [row for _, row in _clean_rows(rows, SHIPMENT_COLUMNS, warnings)]
    stats = logistics_services.bulk_upsert_shipments(cleaned)
    removed = logistics_services.clear_outside_retention()
    return _result(
        imported=len(cleaned),
        skipped=len(rows) - len(cleaned),
        warnings=warnings,
        inserted=stats['inserted'],
        updated=stats['updated'],
        removed_outside_retention=removed,
    )


# Inspections and quality tests
QUALITY_COLUMNS = [
    field('po_number', required=True), field('sku'), field('style'), field('vendor_name'),
    field('inspection_type'), field('inspection_date', parse_date), field('inspector'),
    field('inspection_company'), field('notes'),
    field('test_type'), field('report_date', parse_date), field('report_number'),
    field('expiry_date', parse_date), field('status'), field('corrective_action_plan'), field('report_link'),
    field('result'),
]
QUALITY_SYNONYMS = {
    'po': 'po_number', 'po_no': 'po_number', 'purchase_order': 'po_number',
    'vendor': 'vendor_name', 'supplier': 'vendor_name',
    'inspection_result': 'result', 'test_result': 'result',
    'report_no': 'report_number', 'report_url': 'report_link', 'cap': 'corrective_action_plan',
}
INSPECTION_KEYS = {column.name for column in QUALITY_COLUMNS} & set(quality_services.INSPECTION_FIELDS) | {'po_number'}
QUALITY_TEST_KEYS = {column.name for column in QUALITY_COLUMNS} & set(quality_services.QUALITY_TEST_FIELDS) | {'po_number'}


def import_quality_data(rows):
    """Rows with inspection_type are inspections, rows with test_type are quality tests"""
    warnings = []
    inspections = []
    tests = []
    for row_number, row in _clean_rows(rows, QUALITY_COLUMNS, warnings):
        if row.get('inspection_type'):
            inspections.append({key: value for key, value in row.items() if key in INSPECTION_KEYS})
        elif row.get('test_type'):
            tests.append({key: value for key, value in row.items() if key in QUALITY_TEST_KEYS})
        else:
            warnings.append(f"Row {row_number}: needs an inspection_type or a test_type")

    inspection_stats = quality_services.bulk_upsert_inspections(inspections)
    test_stats = quality_services.bulk_upsert_quality_tests(tests)
    imported = len(inspections) + len(tests)
    return _result(
        imported=imported,
        skipped=len(rows) - imported,
        warnings=warnings,
        inspections=inspection_stats,
        quality_tests=test_stats,
    )


# Vendor capacity
CAPACITY_COLUMNS = [
    field('vendor_code', required=True), field('vendor_name'), field('office'),
    field('client', required=True), field('year', parse_int, required=True), field('month', parse_month, required=True),
    field('remarks'), field('utilized_capacity_pct', parse_int),
] + [
    field(name, parse_money) for name in capacity_services.CAPACITY_VALUE_FIELDS if name != 'utilized_capacity_pct'
]
CAPACITY_SYNONYMS = {
    'vendor': 'vendor_name', 'brand': 'client', 'reserved': 'reserved_capacity',
    'utilization_pct': 'utilized_capacity_pct', 'utilized_pct': 'utilized_capacity_pct',
    'utilized_capacity': 'utilized_capacity_pct', 'factory_capacity': 'factory_overall_capacity',
}


def _fill_capacity_totals(row):
    """Derive totals the sheet left empty"""
    if 'total_shipment' not in row:
        row['total_shipment'] = row.get('shipment_confirmed', 0) + row.get('shipment_unconfirmed', 0)
    if 'total_projection' not in row:
        row['total_projection'] = row.get('projection_rebuy', 0) + row.get('projection_new', 0)
    if 'total_shipment_plus_projection' not in row:
        row['total_shipment_plus_projection'] = row['total_shipment'] + row['total_projection']
    reserved = row.get('reserved_capacity', 0)
    if 'balance' not in row:
        row['balance'] = reserved - row['total_shipment_plus_projection']
    if 'utilized_capacity_pct' not in row:
        row['utilized_capacity_pct'] = round(row['total_shipment_plus_projection'] / reserved * 100) if reserved else 0
    return row


def import_vendor_capacity(rows):
    """Replace the unlocked capacity rows for the years in the file and rebuild summaries"""
    warnings = []
    locked = set(capacity_services.locked_years())
    by_key = OrderedDict()
    for row_number, row in _clean_rows(rows, CAPACITY_COLUMNS, warnings):
        if row['year'] in locked:
            warnings.append(f"Row {row_number}: year {row['year']} is locked")
            continue
        row['client'] = capacity_services.brand_for(row['client'])
        row.setdefault('vendor_name', row['vendor_code'])
        key = (row['vendor_code'], row['year'], row['month'], row['client'])
        if key in by_key:
            warnings.append(f"Row {row_number}: duplicate of an earlier row for {row['vendor_code']} {row['client']} {row['year']}-{row['month']:02d}, later row kept")
        by_key[key] = _fill_capacity_totals(row)

    years = sorted({row['year'] for row in by_key.values()})
    with transaction.atomic():
        cleared = capacity_services.clear_unlocked(years) if years else {'data_rows': 0, 'summary_rows': 0}
        created = capacity_services.bulk_create_capacity_data(list(by_key.values()))
        summaries = capacity_services.rebuild_summaries(years) if years else 0

    return _result(
        imported=created,
        skipped=len(rows) - created,
        warnings=warnings,
        years=years,
        locked_years=sorted(locked),
        cleared=cleared,
        summaries=summaries,
    )


# Projections
PROJECTION_COLUMNS = [
    field('vendor', required=True), field('vendor_code'), field('sku', required=True),
    field('sku_description'), field('brand', required=True), field('product_class'), field('collection'),
    field('year', parse_int, required=True), field('month', parse_month, required=True),
    field('projection_value', parse_money), field('quantity', parse_int), field('order_type'),
]
PROJECTION_SYNONYMS = {
    'vendor_name': 'vendor', 'supplier': 'vendor', 'item_number': 'sku', 'sku_number': 'sku',
    'description': 'sku_description', 'class': 'product_class',
    'value': 'projection_value', 'projection': 'projection_value', 'projected_value': 'projection_value',
    'amount': 'projection_value', 'qty': 'quantity', 'units': 'quantity', 'projected_quantity': 'quantity',
    'type': 'order_type',
}


def import_projections(rows, import_date=None, imported_by=None):
    """Snapshot every row, archive replaced active rows and reset them to unmatched"""
    if import_date is None:
        raise ImportFileError('import_date is required for projection imports')

    warnings = []
    vendor_ids = vendor_name_map()
    resolved = []
    for row_number, row in _clean_rows(rows, PROJECTION_COLUMNS, warnings):
        vendor_id = vendor_ids.get(normalize_name(row['vendor']))
        if not vendor_id:
            warnings.append(f"Row {row_number}: unknown vendor '{row['vendor']}'")
            continue
        order_type = (row.get('order_type') or 'regular').strip().lower()
        if order_type not in projection_services.ORDER_TYPES:
            warnings.append(f"Row {row_number}: invalid order_type '{row['order_type']}'")
            continue
        resolved.append({
            'vendor_ref_id': vendor_id,
            'vendor_code': (row.get('vendor_code') or row['vendor'])[:64],
            'sku': row['sku'],
            'sku_description': row.get('sku_description'),
            'brand': projection_services.normalize_brand(row['brand']),
            'product_class': row.get('product_class'),
            'collection': row.get('collection'),
            'year': row['year'],
            'month': row['month'],
            'projection_value': row.get('projection_value', 0),
            'quantity': row.get('quantity', 0),
            'order_type': order_type,
        })

    stats = projection_services.import_projections(resolved, import_date, imported_by)
    return _result(
        imported=len(resolved),
        skipped=len(rows) - len(resolved),
        warnings=warnings,
        import_date=import_date.isoformat(),
        **stats,
    )


ImportKind = namedtuple('ImportKind', ['file_type', 'importer', 'synonyms', 'count_model'])

IMPORT_KINDS = {
    'purchase-orders': ImportKind('purchase_orders', import_purchase_orders, PO_SYNONYMS, PurchaseOrder),
    'shipments': ImportKind('shipments', import_shipments, SHIPMENT_SYNONYMS, Shipment),
    'quality-data': ImportKind('quality_data', import_quality_data, QUALITY_SYNONYMS, None),
    'vendor-capacity': ImportKind('vendor_capacity', import_vendor_capacity, CAPACITY_SYNONYMS, VendorCapacityData),
    'projections': ImportKind('projections', import_projections, PROJECTION_SYNONYMS, ActiveProjection),
}


def _count(kind):
    if kind.count_model is None:
        return Inspection.objects.count() + QualityTest.objects.count()
    return kind.count_model.objects.count()


def run_import(kind_name, file_obj, file_name, imported_by=None, **options):
    """
    Read the file, run the importer for kind_name and record an ImportHistory
    row. ImportFileError and unexpected errors are recorded as failed imports
    and re-raised.
    """
    kind = IMPORT_KINDS[kind_name]
    pre_count = _count(kind)
    rows = None
    try:
        check_file_size(file_obj)
        rows = read_table(file_obj, file_name, kind.synonyms)
        if kind_name == 'projections':
            options.setdefault('imported_by', imported_by)
        result = kind.importer(rows, **options)
    except Exception as e:
        ImportHistory.objects.create(
            file_name=file_name,
            file_type=kind.file_type,
            imported_by=imported_by,
            status='failed',
            error_message=str(e),
            pre_import_count=pre_count,
            post_import_count=_count(kind),
            file_row_count=len(rows) if rows is not None else None,
        )
        if not isinstance(e, ImportFileError):
            logger.error(f"{kind.file_type} import of {file_name} failed: {str(e)}", exc_info=True)
        raise

    if not result['records_skipped']:
        import_status = 'success'
    elif result['records_imported']:
        import_status = 'partial'
    else:
        import_status = 'failed'

    history = ImportHistory.objects.create(
        file_name=file_name,
        file_type=kind.file_type,
        records_imported=result['records_imported'],
        records_skipped=result['records_skipped'],
        imported_by=imported_by,
        status=import_status,
        warnings=result['warnings'],
        pre_import_count=pre_count,
        post_import_count=_count(kind),
        file_row_count=len(rows),
    )
    logger.info(
        f"{kind.file_type} import of {file_name}: {result['records_imported']} imported, "
        f"{result['records_skipped']} skipped ({import_status})"
    )
    return {'file_type': kind.file_type, 'import_id': history.id, 'status': import_status, **result}
