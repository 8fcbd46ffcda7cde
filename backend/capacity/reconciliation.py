"""
Twelve-month capacity reconciliation for one vendor.

Reserved capacity comes from the vendor's CAPACITY_DATA rows. Demand is the
live order book (orders on hand plus shipped orders) and the active
projections, split by brand. Projections fall back to the capacity sheet's
CAPACITY_DATA values when every brand is selected and the live figure is 0.
"""
import logging

from backend.core.utils import pct
from backend.parties.services import resolve_vendor
from . import services
from .models import CAPACITY_DATA, VendorCapacityData

logger = logging.getLogger('backend.capacity')

MONTHS = range(1, 13)
MEASURES = ['on_hand', 'shipped_orders', 'shipped', 'projection', 'mto_projection', 'expired_projection']


def parse_brands(value):
    """Comma separated brand list; empty means every brand"""
    if not value:
        return list(services.BRANDS)
    brands = []
    for item in str(value).split(','):
        brand = services.brand_for(item)
        if brand == CAPACITY_DATA:
            raise ValueError(f"Unknown brand '{item.strip()}'. Must be one of: {', '.join(services.BRANDS)}")
        if brand not in brands:
            brands.append(brand)
    return brands


def _lookup(buckets, keys, brand, month):
    return sum(buckets.get(key, {}).get(brand, {}).get(month, 0) for key in keys)


def recovery_month(rolling_balance):
    """First month (1-12) whose rolling balance is back to >= 0 after going negative"""
    was_negative = False
    for index, value in enumerate(rolling_balance):
        if value < 0:
            was_negative = True
        elif was_negative:
            return index + 1
    return None


def build_reconciliation(vendor_code, year, brands=None):
    brands = brands or list(services.BRANDS)
    all_brands = set(brands) == set(services.BRANDS)

    capacity_rows = list(VendorCapacityData.objects.filter(vendor_code=vendor_code, year=year))
    vendor = resolve_vendor(vendor_code)
    if vendor is None and capacity_rows:
        vendor = capacity_rows[0].vendor_ref or resolve_vendor(capacity_rows[0].vendor_name)

    vendor_labels = {vendor.name} if vendor else {row.vendor_name for row in capacity_rows} or {vendor_code}
    projection_codes = {vendor_code}
    if vendor:
        projection_codes.update(vendor.activeprojection_rows.values_list('vendor_code', flat=True).order_by().distinct())
        projection_codes.update(vendor.expiredprojection_rows.values_list('vendor_code', flat=True).order_by().distinct())

    on_hand = services.orders_on_hand(year)['buckets']
    shipped_orders = services.all_orders(year)['shipped_value']
    regular = services.projection_buckets(year)
    mto = services.projection_buckets(year, mto=True)
    expired = services.expired_projection_buckets(year)

    reserved = {month: 0 for month in MONTHS}
    sheet_projection = {month: 0 for month in MONTHS}
    for row in capacity_rows:
        if row.client == CAPACITY_DATA:
            reserved[row.month] += row.reserved_capacity or 0
            sheet_projection[row.month] += row.total_projection or 0

    months = []
    rolling = []
    running = 0
    for month in MONTHS:
        by_brand = {}
        for brand in services.BRANDS + [CAPACITY_DATA]:
            values = {
                'on_hand': _lookup(on_hand, vendor_labels, brand, month),
                'shipped_orders': _lookup(shipped_orders, vendor_labels, brand, month),
                'projection': _lookup(regular, projection_codes, brand, month),
                'mto_projection': _lookup(mto, projection_codes, brand, month),
                'expired_projection': _lookup(expired, projection_codes, brand, month),
            }
            values['shipped'] = values['on_hand'] + values['shipped_orders']
            by_brand[brand] = values

        row = {measure: sum(by_brand[brand][measure] for brand in brands) for measure in MEASURES}
        if all_brands:
            fallback = by_brand[CAPACITY_DATA]
            if row['projection'] == 0:
                row['projection'] = fallback['projection'] + sheet_projection[month]
            if row['mto_projection'] == 0:
                row['mto_projection'] = fallback['mto_projection']
            if row['expired_projection'] == 0:
                row['expired_projection'] = fallback['expired_projection']

        committed = row['shipped'] + row['projection'] + row['mto_projection']
        row.update({
            'month': month,
            'reserved': reserved[month],
            'total_committed': committed,
            'balance': reserved[month] - committed,
            'utilization': pct(committed, reserved[month]),
            'by_brand': {brand: by_brand[brand] for brand in brands},
        })
        running += row['balance']
        row['rolling_balance'] = running
        rolling.append(running)
        months.append(row)

    totals = {measure: sum(m[measure] for m in months) for measure in MEASURES + ['reserved', 'total_committed']}
    totals['balance'] = totals['reserved'] - totals['total_committed']
    totals['utilization'] = pct(totals['total_committed'], totals['reserved'])

    return {
        'vendor_code': vendor_code,
        'vendor_id': vendor.id if vendor else None,
        'vendor_name': vendor.name if vendor else (capacity_rows[0].vendor_name if capacity_rows else vendor_code),
        'year': year,
        'brands': brands,
        'months': months,
        'rolling_balance': rolling,
        'recovery_month': recovery_month(rolling),
        'totals': totals,
    }
