"""
SKU views over PO lines: per-SKU metrics, SKU KPIs, order history and QA
compliance. There is no SKU master table; a SKU exists once a PO line names it.
"""
import logging
from datetime import date, timedelta

from django.db.models import Count, F, Min, OuterRef, Q, Subquery
from django.db.models.functions import Coalesce
from django.utils import timezone

from backend.purchasing.filters import apply_scope_filters
from backend.purchasing.models import PurchaseOrder, PurchaseOrderLine
from backend.purchasing.services import EXCLUDED_PO_PREFIX, SHIPPED_STATUSES, exclude_samples
from backend.quality.models import QualityTest

logger = logging.getLogger('backend.skus')

HISTORY_LIMIT = 100
EXPIRING_SOON_DAYS = 30

COMPLIANCE_VALID = 'Valid'
COMPLIANCE_FAILED = 'Failed'
COMPLIANCE_EXPIRED = 'Expired'
COMPLIANCE_EXPIRING = 'Expiring Soon'
COMPLIANCE_PENDING = 'Pending'


def sku_lines():
    return PurchaseOrderLine.objects.exclude(sku__isnull=True).exclude(sku='')


def sku_exists(sku):
    return PurchaseOrderLine.objects.filter(sku=sku).exists()


def sku_metrics(params=None, today=None):
    """
    One row per SKU: supplier, FOB price and date of its latest order, plus
    shipped sales and shipped PO count for POs dated this year. A PO counts
    once per SKU however many lines carry it.
    """
    params = params or {}
    today = today or timezone.localdate()
    year_start = date(today.year, 1, 1)

    lines = sku_lines().filter(Q(purchase_order__total_value__gt=0) | Q(purchase_order__shipped_value__gt=0))
    lines = apply_scope_filters(exclude_samples(lines, prefix='purchase_order__'), params, prefix='purchase_order__')
    brand = params.get('brand')
    if brand:
        lines = lines.filter(purchase_order__client_division__iexact=brand.strip())
    search = params.get('search')
    if search:
        lines = lines.filter(sku__icontains=search.strip())

    rows = lines.order_by(F('purchase_order__po_date').desc(nulls_last=True), '-id').values(
        'sku', 'unit_price', 'purchase_order__po_number', 'purchase_order__vendor',
        'purchase_order__vendor_ref__name', 'purchase_order__po_date', 'purchase_order__shipped_value',
        'purchase_order__shipment_status', 'purchase_order__program_description',
    )

    metrics = {}
    counted = set()
    for row in rows:
        sku = row['sku']
        entry = metrics.get(sku)
        if entry is None:
            # Newest first, so the first line seen is the last order
            entry = metrics[sku] = {
                'sku': sku,
                'description': row['purchase_order__program_description'],
                'supplier': row['purchase_order__vendor_ref__name'] or row['purchase_order__vendor'],
                'last_order_fob_price': row['unit_price'] or 0,
                'last_order_date': row['purchase_order__po_date'],
                'total_sales_ytd': 0,
                'total_orders_ytd': 0,
            }

        po_date = row['purchase_order__po_date']
        key = (sku, row['purchase_order__po_number'])
        if key in counted or not po_date or po_date < year_start:
            continue
        if row['purchase_order__shipment_status'] not in SHIPPED_STATUSES:
            continue
        counted.add(key)
        entry['total_sales_ytd'] += row['purchase_order__shipped_value'] or 0
        entry['total_orders_ytd'] += 1

    return sorted(metrics.values(), key=lambda r: (-r['total_sales_ytd'], r['sku']))


def sku_summary(params=None, today=None):
    """SKUs ordered this year, how many are new, and shipped sales split by new vs existing SKUs"""
    params = params or {}
    today = today or timezone.localdate()
    year_start = date(today.year, 1, 1)

    ordered = sku_lines().filter(
        purchase_order__po_date__gte=year_start,
        purchase_order__po_date__lte=today,
        purchase_order__total_value__gt=0,
    )
    ordered = apply_scope_filters(exclude_samples(ordered, prefix='purchase_order__'), params, prefix='purchase_order__')
    ordered_skus = set(ordered.values_list('sku', flat=True))
    seen_before = set(
        sku_lines().filter(sku__in=ordered_skus, purchase_order__po_date__lt=year_start).values_list('sku', flat=True)
    )
    new_skus = ordered_skus - seen_before

    # A shipped PO is attributed to the SKU on its first line
    first_sku = sku_lines().filter(purchase_order=OuterRef('pk')).order_by('line_sequence', 'id').values('sku')[:1]
    shipped = apply_scope_filters(
        exclude_samples(PurchaseOrder.objects.filter(shipped_value__gt=0, shipment_status__in=SHIPPED_STATUSES)),
        params,
    ).exclude(po_number__startswith=EXCLUDED_PO_PREFIX).annotate(
        ship_date=Coalesce('revised_ship_date', 'original_ship_date'),
        first_sku=Subquery(first_sku),
    ).filter(
        ship_date__gte=year_start, ship_date__lte=date(today.year, 12, 31), first_sku__isnull=False,
    ).values('shipped_value', 'first_sku')

    total_sales = new_sales = orders = 0
    for row in shipped:
        orders += 1
        total_sales += row['shipped_value']
        if row['first_sku'] in new_skus:
            new_sales += row['shipped_value']

    return {
        'total_skus': len(ordered_skus),
        'new_skus_ytd': len(new_skus),
        'ytd_total_sales': total_sales,
        'ytd_sales_new_skus': new_sales,
        'ytd_sales_existing_skus': total_sales - new_sales,
        'ytd_total_orders': orders,
    }


def sku_order_history(sku):
    """The latest POs carrying the SKU, newest first"""
    lines = PurchaseOrderLine.objects.filter(sku=sku).select_related('purchase_order').order_by(
        F('purchase_order__po_date').desc(nulls_last=True), '-purchase_order_id', 'line_sequence',
    )[:HISTORY_LIMIT]
    return [{
        'id': line.purchase_order.id,
        'po_number': line.purchase_order.po_number,
        'vendor': line.purchase_order.vendor,
        'order_quantity': line.order_quantity,
        'unit_price': line.unit_price,
        'line_total': line.line_total,
        'total_value': line.purchase_order.total_value,
        'po_date': line.purchase_order.po_date,
        'revised_ship_date': line.purchase_order.revised_ship_date,
        'status': line.purchase_order.status,
        'shipment_status': line.purchase_order.shipment_status,
    } for line in lines]


def compliance_status(result, expiry_date, today):
    outcome = (result or '').strip().lower()
    if outcome in ('fail', 'failed'):
        return COMPLIANCE_FAILED
    if expiry_date:
        if expiry_date < today:
            return COMPLIANCE_EXPIRED
        if expiry_date <= today + timedelta(days=EXPIRING_SOON_DAYS):
            return COMPLIANCE_EXPIRING
    if outcome in ('pass', 'passed'):
        return COMPLIANCE_VALID
    return COMPLIANCE_PENDING


def sku_compliance(sku, today=None):
    """
    QA tests belong to the product, so tests filed against any PO that carries
    the SKU (or naming the SKU directly) are merged into one row per
    (test_type, report_date, result, expiry_date).
    """
    today = today or timezone.localdate()
    po_numbers = PurchaseOrderLine.objects.filter(sku=sku).values('po_number')
    rows = QualityTest.objects.filter(
        Q(sku=sku) | Q(po_number__in=po_numbers)
    ).values('test_type', 'report_date', 'result', 'expiry_date').annotate(
        first_id=Min('id'),
        po_count=Count('po_number', distinct=True),
    ).order_by(F('report_date').desc(nulls_last=True), 'test_type')

    return [{
        'id': row['first_id'],
        'test_type': row['test_type'],
        'report_date': row['report_date'],
        'result': row['result'],
        'expiry_date': row['expiry_date'],
        'po_count': row['po_count'],
        'status': compliance_status(row['result'], row['expiry_date'], today),
    } for row in rows]
