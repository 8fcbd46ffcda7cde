"""
Vendor detail performance: OTD and first-time-right, the year to date OTD
chart with at-risk counts, sales by month and OTD by cancel month across years.

A vendor's POs are those linked to it or whose vendor name matches its
canonical name or one of its aliases.
"""
import calendar
import logging
from collections import defaultdict
from datetime import date

from django.db.models import Count, Q, Sum
from django.db.models.functions import ExtractMonth, ExtractYear
from django.utils import timezone

from backend.core.utils import pct
from backend.logistics.services import inspection_flags, passed_qa_po_numbers, po_at_risk_reasons
from backend.purchasing.filters import vendor_q
from backend.purchasing.models import PurchaseOrder, PurchaseOrderLine
from backend.purchasing.services import SHIPPED_STATUSES, otd_buckets, otd_eligible, otd_rates
from backend.quality.models import Inspection

logger = logging.getLogger('backend.parties')

CLOSED_STATUSES = ['Closed', 'Cancelled']
INACTIVE_STATUSES = ['Closed', 'Shipped', 'Cancelled']
MIN_OTD_YEAR = 2024


def vendor_purchase_orders(vendor):
    return PurchaseOrder.objects.filter(Q(vendor_ref=vendor) | vendor_q(vendor.name))


def first_time_inspections(vendor):
    """Inspections on the vendor's POs or SKUs, re-inspections excluded"""
    pos = vendor_purchase_orders(vendor)
    skus = PurchaseOrderLine.objects.filter(purchase_order__in=pos).exclude(sku__isnull=True).exclude(sku='').values('sku')
    return Inspection.objects.filter(Q(purchase_order__in=pos) | Q(sku__in=skus)).exclude(inspection_type__istartswith='Re-')


def vendor_detail_performance(vendor, start=None, end=None, today=None):
    """
    OTD over POs dated in the window (default: this year to date), counting
    overdue unshipped POs against it, plus first-time-right inspection rate.
    """
    today = today or timezone.localdate()
    start = start or date(today.year, 1, 1)
    end = end or today

    rows = otd_eligible(
        vendor_purchase_orders(vendor).filter(po_date__gte=start, po_date__lte=end, total_value__gt=0)
    ).filter(effective_cancel__isnull=False).values('delivered_on', 'effective_cancel', 'status')

    shipped = on_time = overdue = 0
    for row in rows:
        if row['delivered_on']:
            shipped += 1
            if row['delivered_on'] <= row['effective_cancel']:
                on_time += 1
        elif row['effective_cancel'] < today and row['status'] not in CLOSED_STATUSES:
            overdue += 1

    inspections = first_time_inspections(vendor).aggregate(
        total=Count('id'),
        passed=Count('id', filter=Q(result__iexact='Passed')),
        failed=Count('id', filter=Q(result__istartswith='Failed')),
    )
    total_orders = shipped + overdue

    return {
        'vendor_id': vendor.id,
        'vendor': vendor.name,
        'period': {'start_date': start.isoformat(), 'end_date': end.isoformat()},
        'otd_pct': pct(on_time, total_orders),
        'total_orders': total_orders,
        'on_time_orders': on_time,
        'late_orders': shipped - on_time,
        'overdue_unshipped': overdue,
        'shipped_total': shipped,
        'first_time_right_pct': pct(inspections['passed'], inspections['total']),
        'total_inspections': inspections['total'],
        'passed_first_time': inspections['passed'],
        'failed_first_time': inspections['failed'],
    }


def _at_risk_po_numbers(open_pos, today):
    """Open POs with a failed final inspection or a missing inspection/QA before HOD"""
    po_numbers = {po.po_number for po in open_pos}
    flags = inspection_flags(po_numbers)
    passed = passed_qa_po_numbers(po_numbers)
    failed_final = set(
        Inspection.objects.filter(
            po_number__in=po_numbers, inspection_type__iexact='Final', result__istartswith='Failed',
        ).values_list('po_number', flat=True)
    )
    return {
        po.po_number for po in open_pos
        if po.po_number in failed_final
        or po_at_risk_reasons(po, flags.get(po.po_number), po.po_number in passed, today)
    }


def vendor_ytd_performance(vendor, start=None, end=None, today=None):
    """
    Monthly OTD by cancel month as reported on the PO (shipment status), with
    open POs past their cancel date counted late, and running totals.
    """
    today = today or timezone.localdate()
    start = start or date(today.year, 1, 1)
    end = end or today

    pos = otd_eligible(vendor_purchase_orders(vendor).filter(total_value__gt=0)).filter(
        effective_cancel__gte=start, effective_cancel__lte=end,
    )

    monthly = defaultdict(lambda: {'total_orders': 0, 'on_time_orders': 0, 'late_orders': 0, 'at_risk_orders': 0})
    open_pos = []
    for po in pos:
        bucket = monthly[(po.effective_cancel.year, po.effective_cancel.month)]
        if po.shipment_status in SHIPPED_STATUSES:
            bucket['total_orders'] += 1
            if po.shipment_status == 'On-Time':
                bucket['on_time_orders'] += 1
            else:
                bucket['late_orders'] += 1
        elif po.status not in INACTIVE_STATUSES:
            if po.effective_cancel < today:
                bucket['total_orders'] += 1
                bucket['late_orders'] += 1
            open_pos.append(po)

    at_risk = _at_risk_po_numbers(open_pos, today)
    for po in open_pos:
        if po.po_number in at_risk:
            monthly[(po.effective_cancel.year, po.effective_cancel.month)]['at_risk_orders'] += 1

    months = []
    cumulative_total = cumulative_on_time = cumulative_late = 0
    for (year, month), bucket in sorted(monthly.items()):
        cumulative_total += bucket['total_orders']
        cumulative_on_time += bucket['on_time_orders']
        cumulative_late += bucket['late_orders']
        months.append({
            'year': year,
            'month': month,
            'month_name': calendar.month_abbr[month],
            **bucket,
            'cumulative_total': cumulative_total,
            'cumulative_on_time': cumulative_on_time,
            'cumulative_late': cumulative_late,
            'cumulative_otd_pct': pct(cumulative_on_time, cumulative_total),
        })

    return {
        'summary': {
            'total_orders': cumulative_total,
            'on_time_orders': cumulative_on_time,
            'late_orders': cumulative_late,
            'at_risk_orders': sum(m['at_risk_orders'] for m in months),
            'otd_pct': pct(cumulative_on_time, cumulative_total),
        },
        'monthly': months,
    }


def vendor_yoy_sales(vendor, start=None, end=None, today=None):
    """PO value and count per PO month, default from two years back to today"""
    today = today or timezone.localdate()
    start = start or date(today.year - 2, 1, 1)
    end = end or today

    rows = vendor_purchase_orders(vendor).filter(po_date__gte=start, po_date__lte=end).annotate(
        year=ExtractYear('po_date'), month=ExtractMonth('po_date'),
    ).values('year', 'month').annotate(
        total_sales=Sum('total_value'), order_count=Count('id'),
    ).order_by('year', 'month')

    return [{
        'year': row['year'],
        'month': row['month'],
        'month_name': calendar.month_abbr[row['month']],
        'total_sales': row['total_sales'] or 0,
        'order_count': row['order_count'],
    } for row in rows]


def otd_years(start, end, today):
    """Cancel years to chart: the window's years, or the last three, never before MIN_OTD_YEAR"""
    if start and end:
        years = list(range(max(start.year, MIN_OTD_YEAR), end.year + 1))
    else:
        years = [year for year in (today.year - 2, today.year - 1, today.year) if year >= MIN_OTD_YEAR]
    return years or [today.year]


def vendor_otd_yoy(vendor, start=None, end=None, today=None):
    """OTD per cancel month for each charted year"""
    today = today or timezone.localdate()
    years = otd_years(start, end, today)

    rows = otd_eligible(vendor_purchase_orders(vendor).filter(total_value__gt=0)).filter(
        effective_cancel__year__in=years,
    ).exclude(status='Cancelled').values('total_value', 'delivered_on', 'effective_cancel')

    buckets = otd_buckets(rows, lambda row: (row['effective_cancel'].year, row['effective_cancel'].month), today)
    return [{
        'year': year,
        'month': month,
        'month_name': calendar.month_abbr[month],
        **otd_rates(bucket),
    } for (year, month), bucket in sorted(buckets.items())]
