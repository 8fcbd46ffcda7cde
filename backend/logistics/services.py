"""
Shipment status derivation and bulk loading.

Status is never stored: every read recomputes on-time/late/at-risk/pending
from the shipment, its PO and the PO's inspections and QA tests.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from backend.core.utils import parse_date_param, retention_cutoff
from backend.purchasing.filters import apply_scope_filters
from backend.purchasing.models import PurchaseOrder, PurchaseOrderLine
from backend.quality.models import Inspection, QualityTest
from .models import Shipment

logger = logging.getLogger('backend.logistics')

INLINE_NOT_BOOKED = 'Inline inspection not booked (due 2 weeks before HOD)'
FINAL_NOT_BOOKED = 'Final inspection not booked (due 1 week before HOD)'
QA_NOT_AVAILABLE = 'QA test report not available (due 45 days before HOD)'

INLINE_DUE_DAYS = 14
FINAL_DUE_DAYS = 7
QA_DUE_DAYS = 45

STATUS_ON_TIME = 'on-time'
STATUS_LATE = 'late'
STATUS_AT_RISK = 'at-risk'
STATUS_PENDING = 'pending'
STATUSES = [STATUS_ON_TIME, STATUS_LATE, STATUS_AT_RISK, STATUS_PENDING]

SHIPMENT_FIELDS = [
    'line_item_id', 'shipment_number', 'delivery_to_consolidator', 'qty_shipped', 'shipped_value',
    'actual_port_of_loading', 'actual_sailing_date', 'eta', 'actual_ship_mode', 'poe',
    'vessel_flight', 'load_type', 'pts_number', 'logistic_status', 'late_reason_code',
    'reason', 'hod_status', 'so_first_submission_date', 'pts_status', 'cargo_receipt_status',
    'estimated_vessel_etd',
]


def is_shipped(shipment):
    return bool(shipment.actual_sailing_date or shipment.delivery_to_consolidator)


def inspection_flags(po_numbers):
    """po_number -> {'inline': bool, 'final': bool}"""
    flags = {}
    rows = Inspection.objects.filter(po_number__in=po_numbers).values_list('po_number', 'inspection_type').order_by().distinct()
    for po_number, inspection_type in rows:
        entry = flags.setdefault(po_number, {'inline': False, 'final': False})
        kind = (inspection_type or '').lower()
        if 'inline' in kind:
            entry['inline'] = True
        if 'final' in kind:
            entry['final'] = True
    return flags


def passed_qa_po_numbers(po_numbers):
    """
    POs with a passed QA test for at least one of their line SKUs. Test
    certificates belong to the SKU, so a pass filed under another PO counts.
    """
    po_skus = (
        PurchaseOrderLine.objects.filter(po_number__in=po_numbers)
        .exclude(sku__isnull=True).exclude(sku='')
        .values_list('po_number', 'sku').order_by().distinct()
    )
    skus_by_po = {}
    for po_number, sku in po_skus:
        skus_by_po.setdefault(po_number, set()).add(sku)

    all_skus = set().union(*skus_by_po.values()) if skus_by_po else set()
    passed_skus = set(
        QualityTest.objects.filter(sku__in=all_skus, result__iexact='Pass').values_list('sku', flat=True)
    )
    passed = {po_number for po_number, skus in skus_by_po.items() if skus & passed_skus}
    # Tests filed under the PO itself count too
    passed.update(
        QualityTest.objects.filter(po_number__in=po_numbers, result__iexact='Pass')
        .values_list('po_number', flat=True)
    )
    return passed


def at_risk_reasons(shipment, po, flags, has_passed_qa, today):
    """Reasons an unshipped shipment is at risk of missing its HOD"""
    if is_shipped(shipment):
        return []
    return po_at_risk_reasons(po, flags, has_passed_qa, today)


def po_at_risk_reasons(po, flags, has_passed_qa, today):
    """Inspections or QA still missing inside their deadline before the PO's HOD"""
    reasons = []
    if po is None or po.revised_ship_date is None:
        return reasons
    hod = po.revised_ship_date
    if hod <= today:
        return reasons

    days_until_hod = (hod - today).days
    flags = flags or {}
    if days_until_hod <= INLINE_DUE_DAYS and not flags.get('inline'):
        reasons.append(INLINE_NOT_BOOKED)
    if days_until_hod <= FINAL_DUE_DAYS and not flags.get('final'):
        reasons.append(FINAL_NOT_BOOKED)
    if days_until_hod <= QA_DUE_DAYS and not has_passed_qa:
        reasons.append(QA_NOT_AVAILABLE)
    return reasons


def derive_shipment_status(shipment, po, reasons):
    hod_status = (shipment.hod_status or '').strip()
    if hod_status in ('On Time', 'On-Time') or (shipment.logistic_status or '').strip() == 'Delivered':
        return STATUS_ON_TIME
    if hod_status == 'Late':
        return STATUS_LATE
    if hod_status == 'Shipped':
        po_status = (po.shipment_status if po else None) or ''
        if po_status == 'Late':
            return STATUS_LATE
        return STATUS_ON_TIME
    if reasons:
        return STATUS_AT_RISK
    return STATUS_PENDING


def filter_shipments(queryset, params):
    """Scope filters shared by the list and summary endpoints"""
    po_number = params.get('po_number')
    if po_number:
        queryset = queryset.filter(po_number__icontains=po_number.strip())
    queryset = apply_scope_filters(queryset, params, prefix='purchase_order__')

    start_date = parse_date_param(params.get('start_date'))
    end_date = parse_date_param(params.get('end_date'))
    if start_date:
        queryset = queryset.filter(cargo_ready_date__gte=start_date)
    if end_date:
        queryset = queryset.filter(cargo_ready_date__lte=end_date)
    return queryset


def enrich_shipments(shipments, today=None):
    """
    Pair each shipment with its derived status. Returns a list of
    (shipment, status, reasons) tuples.
    """
    today = today or timezone.localdate()
    shipments = list(shipments)
    po_numbers = {s.po_number for s in shipments if s.po_number}
    flags = inspection_flags(po_numbers)
    passed = passed_qa_po_numbers(po_numbers)

    enriched = []
    for shipment in shipments:
        po = shipment.purchase_order
        reasons = at_risk_reasons(shipment, po, flags.get(shipment.po_number), shipment.po_number in passed, today)
        enriched.append((shipment, derive_shipment_status(shipment, po, reasons), reasons))
    return enriched


def status_counts(enriched):
    counts = {name: 0 for name in STATUSES}
    for _, shipment_status, _ in enriched:
        counts[shipment_status] += 1
    counts['total'] = len(enriched)
    return counts


def bulk_upsert_shipments(rows):
    """
    Upsert shipment rows keyed on (po_number, style, cargo_ready_date) and link
    them to their PO by number. Returns {'inserted', 'updated'}.
    """
    stats = {'inserted': 0, 'updated': 0}
    if not rows:
        return stats

    po_ids = dict(
        PurchaseOrder.objects.filter(po_number__in={r['po_number'] for r in rows})
        .values_list('po_number', 'id')
    )
    with transaction.atomic():
        for row in rows:
            defaults = {field: row[field] for field in SHIPMENT_FIELDS if field in row}
            defaults['purchase_order_id'] = po_ids.get(row['po_number'])
            _, created = Shipment.objects.update_or_create(
                po_number=row['po_number'],
                style=row.get('style'),
                cargo_ready_date=row.get('cargo_ready_date'),
                defaults=defaults,
            )
            stats['inserted' if created else 'updated'] += 1

    logger.info(f"Shipment upsert: {stats['inserted']} inserted, {stats['updated']} updated")
    return stats


def clear_outside_retention(today=None):
    """Delete shipments whose cargo ready date is before the retention cutoff"""
    today = today or timezone.localdate()
    cutoff = retention_cutoff(today, settings.RETENTION_YEARS)
    deleted, _ = Shipment.objects.filter(cargo_ready_date__lt=cutoff).delete()
    if deleted:
        logger.info(f"Removed {deleted} shipments with cargo ready date before {cutoff}")
    return deleted
