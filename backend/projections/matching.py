"""
Projection to PO matching.

A PO line matches an unmatched active projection for the same vendor and
target month (taken from the PO's original ship date). MTO projections are
keyed on the collection named in the PO's program description and are tried
first; everything else is keyed on SKU. Each projection matches at most once.
"""
import logging
import re

from django.db import transaction
from django.utils import timezone

from backend.core.utils import parse_date_param
from backend.parties.services import normalize_name, vendor_name_map
from .models import ActiveProjection

logger = logging.getLogger('backend.projections')

KNOWN_COLLECTIONS = [
    'ambroise', 'forte', 'hoxton', 'pm symmetric', 'vera', 'aviator', 'lowe',
    'emile', 'laura/tiff', 'laura', 'tiff', 'blume', 'soma', 'edendale',
]

MTO_PATTERN = re.compile(r'mto[\s:_-]+([a-z\s/]+)')
MONTH_PATTERN = re.compile(
    r'\b(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec|january|february|march|april|june|'
    r'july|august|september|october|november|december)\b'
)
YEAR_PATTERN = re.compile(r'\b(20\d{2})\b')

VARIANCE_THRESHOLD_PCT = 10


class ProjectionMatchError(Exception):
    """Raised when a manual match cannot be made"""

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.status_code = status_code


def extract_mto_collection(description):
    """Collection name from an MTO program description, or None"""
    if not description:
        return None
    text = str(description).lower()
    if 'mto' not in text:
        return None

    for collection in KNOWN_COLLECTIONS:
        if collection in text:
            return collection

    match = MTO_PATTERN.search(text)
    if not match:
        return None
    collection = match.group(1).strip()
    for pattern in (MONTH_PATTERN, YEAR_PATTERN):
        cut = pattern.search(collection)
        if cut and cut.start() > 0:
            collection = collection[:cut.start()]
    collection = re.sub(r'[\s,]+$', '', collection)
    return collection or None


def variance_pct(actual_quantity, projected_quantity):
    if not projected_quantity:
        return 0
    return round((actual_quantity - projected_quantity) / projected_quantity * 100)


def apply_match(projection, po_number, actual_quantity, actual_value):
    """Record a PO match on the projection and return its variance %"""
    actual_quantity = actual_quantity or 0
    actual_value = actual_value or 0
    projection.match_status = 'matched'
    projection.matched_po_number = po_number
    projection.matched_at = timezone.now()
    projection.actual_quantity = actual_quantity
    projection.actual_value = actual_value
    projection.quantity_variance = actual_quantity - (projection.quantity or 0)
    projection.value_variance = actual_value - (projection.projection_value or 0)
    projection.variance_pct = variance_pct(actual_quantity, projection.quantity or 0)
    projection.save(update_fields=[
        'match_status', 'matched_po_number', 'matched_at', 'actual_quantity', 'actual_value',
        'quantity_variance', 'value_variance', 'variance_pct', 'updated_at',
    ])
    return projection.variance_pct


def _mto_key(vendor_id, collection, year, month):
    return f"{vendor_id}|{collection.strip().lower()}|{year}|{month}"


def _sku_key(vendor_id, sku, year, month):
    return f"{vendor_id}|{sku.strip().lower()}|{year}|{month}"


def match_projections_to_pos(pos):
    """
    Match PO entries (dicts with po_number, vendor, sku, order_quantity,
    total_value, original_ship_date, program_description) against unmatched
    active projections. Returns {'matched', 'variances', 'errors'}.
    """
    result = {'matched': 0, 'variances': 0, 'errors': []}
    vendor_ids = vendor_name_map()

    mto_map = {}
    sku_map = {}
    for projection in ActiveProjection.objects.filter(match_status='unmatched'):
        if projection.is_mto and projection.collection:
            mto_map.setdefault(_mto_key(projection.vendor_ref_id, projection.collection, projection.year, projection.month), projection)
        elif projection.sku:
            sku_map.setdefault(_sku_key(projection.vendor_ref_id, projection.sku, projection.year, projection.month), projection)

    with transaction.atomic():
        for po in pos:
            po_number = po.get('po_number')
            try:
                vendor_id = vendor_ids.get(normalize_name(po.get('vendor')))
                ship_date = parse_date_param(po.get('original_ship_date'))
                if not vendor_id or not ship_date:
                    continue

                projection = None
                collection = extract_mto_collection(po.get('program_description'))
                if collection:
                    projection = mto_map.pop(_mto_key(vendor_id, collection, ship_date.year, ship_date.month), None)
                if projection is None and po.get('sku'):
                    projection = sku_map.pop(_sku_key(vendor_id, po['sku'], ship_date.year, ship_date.month), None)
                if projection is None:
                    continue

                with transaction.atomic():
                    pct = apply_match(projection, po_number, po.get('order_quantity'), po.get('total_value'))
                result['matched'] += 1
                if abs(pct) > VARIANCE_THRESHOLD_PCT:
                    result['variances'] += 1
            except Exception as e:
                result['errors'].append(f"Failed to match PO {po_number} to projection: {str(e)}")

    logger.info(
        f"Projection matching: {result['matched']} matched, {result['variances']} with variance, "
        f"{len(result['errors'])} errors"
    )
    return result


def manual_match(projection_id, po_number):
    """Match a projection to a PO by hand using the PO header totals"""
    from backend.purchasing.models import PurchaseOrder

    projection = ActiveProjection.objects.filter(pk=projection_id).first()
    if projection is None:
        raise ProjectionMatchError(f"Projection {projection_id} not found", status_code=404)
    po_number = (po_number or '').strip()
    if not po_number:
        raise ProjectionMatchError('po_number is required')
    po = PurchaseOrder.objects.filter(po_number=po_number).first()
    if po is None:
        raise ProjectionMatchError(f"PO {po_number} not found", status_code=404)

    apply_match(projection, po.po_number, po.total_quantity, po.total_value)
    logger.info(f"Projection {projection.id} manually matched to PO {po.po_number}")
    return projection
