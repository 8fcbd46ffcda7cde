"""Capacity table maintenance and the live order/projection buckets behind reconciliation"""
import logging
from collections import defaultdict

from django.db import transaction
from django.db.models import F, Sum

from backend.parties.services import vendor_name_map
from .models import CAPACITY_DATA, VendorCapacityData, VendorCapacitySummary

logger = logging.getLogger('backend.capacity')

BRANDS = ['CB', 'CB2', 'C&K']

CAPACITY_VALUE_FIELDS = [
    'shipment_confirmed', 'shipment_unconfirmed', 'total_shipment', 'projection_rebuy',
    'projection_new', 'total_projection', 'total_shipment_plus_projection', 'reserved_capacity',
    'balance', 'utilized_capacity_pct', 'factory_overall_capacity',
]


def brand_for(client):
    """Map a client or brand label onto CB, CB2, C&K or CAPACITY_DATA"""
    label = (client or '').strip().upper()
    if label == 'CB' or ('CRATE' in label and 'KIDS' not in label):
        return 'CB'
    if label == 'CB2':
        return 'CB2'
    if label in ('C&K', 'CK') or 'KIDS' in label:
        return 'C&K'
    return CAPACITY_DATA


def _buckets():
    return defaultdict(lambda: defaultdict(lambda: defaultdict(int)))


def _plain(buckets):
    return {vendor: {brand: dict(months) for brand, months in brands.items()} for vendor, brands in buckets.items()}


# Year locking
def set_year_locked(year, locked):
    data_rows = VendorCapacityData.objects.filter(year=year).update(is_locked=locked)
    summary_rows = VendorCapacitySummary.objects.filter(year=year).update(is_locked=locked)
    logger.info(f"{'Locked' if locked else 'Unlocked'} capacity year {year}: {data_rows} data rows, {summary_rows} summaries")
    return {'year': year, 'data_rows': data_rows, 'summary_rows': summary_rows}


def locked_years():
    years = set(VendorCapacityData.objects.filter(is_locked=True).values_list('year', flat=True))
    years.update(VendorCapacitySummary.objects.filter(is_locked=True).values_list('year', flat=True))
    return sorted(years)


def clear_unlocked(years):
    """Delete unlocked data and summary rows for the given years"""
    data_deleted, _ = VendorCapacityData.objects.filter(year__in=years, is_locked=False).delete()
    summaries_deleted, _ = VendorCapacitySummary.objects.filter(year__in=years, is_locked=False).delete()
    logger.info(f"Cleared unlocked capacity rows for {sorted(years)}: {data_deleted} data, {summaries_deleted} summaries")
    return {'data_rows': data_deleted, 'summary_rows': summaries_deleted}


def bulk_create_capacity_data(rows):
    vendor_ids = vendor_name_map()
    objects = []
    for row in rows:
        objects.append(VendorCapacityData(
            vendor_ref_id=row.get('vendor_ref_id') or vendor_ids.get((row['vendor_name'] or '').strip().lower())
            or vendor_ids.get(row['vendor_code'].strip().lower()),
            vendor_code=row['vendor_code'],
            vendor_name=row['vendor_name'],
            office=row.get('office'),
            client=row['client'],
            year=row['year'],
            month=row['month'],
            remarks=row.get('remarks'),
            **{field: row.get(field) or 0 for field in CAPACITY_VALUE_FIELDS},
        ))
    created = VendorCapacityData.objects.bulk_create(objects, batch_size=500)
    return len(created)


def bulk_create_summaries(rows):
    created = VendorCapacitySummary.objects.bulk_create(
        [VendorCapacitySummary(**row) for row in rows], batch_size=500
    )
    return len(created)


def build_summary_rows(years):
    """Annual summary rows computed from the unlocked data rows of the given years"""
    summaries = {}
    utilization = defaultdict(list)
    queryset = VendorCapacityData.objects.filter(year__in=years, is_locked=False).order_by('vendor_code', 'year', 'month')
    for row in queryset:
        key = (row.vendor_code, row.year)
        summary = summaries.setdefault(key, {
            'vendor_ref_id': row.vendor_ref_id,
            'vendor_code': row.vendor_code,
            'vendor_name': row.vendor_name,
            'office': row.office,
            'year': row.year,
            'total_shipment_annual': 0,
            'total_projection_annual': 0,
            'total_reserved_capacity_annual': 0,
            'cb_shipment_annual': 0,
            'cb2_shipment_annual': 0,
            'ck_shipment_annual': 0,
        })
        summary['total_shipment_annual'] += row.total_shipment
        summary['total_projection_annual'] += row.total_projection
        summary['total_reserved_capacity_annual'] += row.reserved_capacity
        brand = brand_for(row.client)
        if brand == 'CB':
            summary['cb_shipment_annual'] += row.total_shipment
        elif brand == 'CB2':
            summary['cb2_shipment_annual'] += row.total_shipment
        elif brand == 'C&K':
            summary['ck_shipment_annual'] += row.total_shipment
        if row.reserved_capacity:
            utilization[key].append(row.utilized_capacity_pct)

    for key, summary in summaries.items():
        values = utilization.get(key)
        summary['avg_utilization_pct'] = round(sum(values) / len(values)) if values else 0
    return list(summaries.values())


def rebuild_summaries(years):
    """Replace the unlocked summaries for the given years"""
    locked = set(VendorCapacitySummary.objects.filter(year__in=years, is_locked=True).values_list('vendor_code', 'year'))
    with transaction.atomic():
        VendorCapacitySummary.objects.filter(year__in=years, is_locked=False).delete()
        rows = [row for row in build_summary_rows(years) if (row['vendor_code'], row['year']) not in locked]
        return bulk_create_summaries(rows)


def update_reserved_capacity(vendor_code, year, month, reserved_capacity):
    """Set the lump sum reserved capacity for one month. Raises ValueError for a locked year."""
    row = VendorCapacityData.objects.filter(vendor_code=vendor_code, year=year, month=month, client=CAPACITY_DATA).first()
    if row is None:
        template = VendorCapacityData.objects.filter(vendor_code=vendor_code).order_by('-year').first()
        if template is None:
            raise LookupError(f"No capacity data for vendor {vendor_code}")
        row = VendorCapacityData(
            vendor_ref_id=template.vendor_ref_id, vendor_code=vendor_code, vendor_name=template.vendor_name,
            office=template.office, client=CAPACITY_DATA, year=year, month=month,
            is_locked=VendorCapacityData.objects.filter(year=year, is_locked=True).exists(),
        )
    if row.is_locked:
        raise ValueError(f"Capacity year {year} is locked")
    row.reserved_capacity = reserved_capacity
    row.save()
    return row


# Live buckets
def _vendor_label(vendor_ref_name, vendor):
    return vendor_ref_name or (vendor or '').strip()


def shipped_values_by_vendor(year):
    """Shipped value per vendor for POs dated in the year"""
    from backend.purchasing.models import PurchaseOrder

    totals = defaultdict(int)
    rows = (
        PurchaseOrder.objects.filter(po_date__year=year)
        .values('vendor_ref__name', 'vendor')
        .annotate(total=Sum('shipped_value'))
    )
    for row in rows:
        label = _vendor_label(row['vendor_ref__name'], row['vendor'])
        if label:
            totals[label] += row['total'] or 0
    return dict(totals)


def orders_on_hand(year):
    """
    Unshipped value of open POs shipping in the year, keyed
    vendor -> brand -> month, plus per-vendor totals.
    """
    from backend.purchasing.models import PurchaseOrder

    buckets = _buckets()
    by_vendor = defaultdict(int)
    rows = (
        PurchaseOrder.objects.filter(original_ship_date__year=year, balance_quantity__gt=0)
        .values('vendor_ref__name', 'vendor', 'client', 'original_ship_date__month')
        .annotate(open_value=Sum(F('total_value') - F('shipped_value')))
    )
    for row in rows:
        label = _vendor_label(row['vendor_ref__name'], row['vendor'])
        value = max(row['open_value'] or 0, 0)
        if not label or not value:
            continue
        buckets[label][brand_for(row['client'])][row['original_ship_date__month']] += value
        by_vendor[label] += value
    return {'buckets': _plain(buckets), 'by_vendor': dict(by_vendor)}


def all_orders(year):
    """Total and shipped PO value for the year, keyed vendor -> brand -> month"""
    from backend.purchasing.models import PurchaseOrder

    total = _buckets()
    shipped = _buckets()
    rows = (
        PurchaseOrder.objects.filter(original_ship_date__year=year)
        .values('vendor_ref__name', 'vendor', 'client', 'original_ship_date__month')
        .annotate(total=Sum('total_value'), shipped=Sum('shipped_value'))
    )
    for row in rows:
        label = _vendor_label(row['vendor_ref__name'], row['vendor'])
        if not label:
            continue
        brand = brand_for(row['client'])
        month = row['original_ship_date__month']
        total[label][brand][month] += row['total'] or 0
        shipped[label][brand][month] += row['shipped'] or 0
    return {'total_value': _plain(total), 'shipped_value': _plain(shipped)}


def projection_buckets(year, mto=False):
    """Active projection value keyed vendor_code -> brand -> month, regular or MTO/SPO"""
    from backend.projections.models import ActiveProjection, MTO_ORDER_TYPES

    queryset = ActiveProjection.objects.filter(year=year).exclude(match_status='expired')
    if mto:
        queryset = queryset.filter(order_type__in=MTO_ORDER_TYPES)
    else:
        queryset = queryset.exclude(order_type__in=MTO_ORDER_TYPES)

    buckets = _buckets()
    for row in queryset.values('vendor_code', 'brand', 'month').annotate(total=Sum('projection_value')):
        buckets[row['vendor_code']][brand_for(row['brand'])][row['month']] += row['total'] or 0
    return _plain(buckets)


def expired_projection_buckets(year):
    """Expired (not restored) projection value keyed vendor_code -> brand -> month"""
    from backend.projections.models import ExpiredProjection

    buckets = _buckets()
    rows = (
        ExpiredProjection.objects.filter(year=year).exclude(verification_status='restored')
        .values('vendor_code', 'brand', 'month').annotate(total=Sum('projection_value'))
    )
    for row in rows:
        buckets[row['vendor_code']][brand_for(row['brand'])][row['month']] += row['total'] or 0
    return _plain(buckets)
