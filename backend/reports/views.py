"""
Operations dashboard: OTD KPIs, year-to-date header KPIs, OTD by vendor and
the dashboard filter options.

OTD rules shared by every endpoint:
- sample programs ("SMP ", "8X8 ") and 089 PO numbers are excluded
- a PO is delivered on the latest consolidator delivery among its sailed shipments
- it is on time when that delivery is on or before COALESCE(revised, original) cancel date
"""
import logging
from datetime import date

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Count, Min, Sum
from django.utils import timezone

from backend.core.utils import add_months, parse_date_param, parse_int_param, pct
from backend.logistics.models import Shipment
from backend.parties.models import Client, Staff
from backend.projections.models import ActiveProjection
from backend.purchasing.filters import apply_scope_filters
from backend.purchasing.models import PurchaseOrder, PurchaseOrderLine
from backend.purchasing.services import otd_buckets, otd_eligible, otd_rates

logger = logging.getLogger('backend.reports')


def _otd_queryset(params):
    """Scoped POs eligible for OTD with delivered_on and effective_cancel annotations"""
    return otd_eligible(apply_scope_filters(PurchaseOrder.objects.all(), params))


def _date_range(params, default_start, default_end):
    start = parse_date_param(params.get('start_date')) or default_start
    end = parse_date_param(params.get('end_date')) or default_end
    return start, end


def _vendor_label(row):
    return row.get('vendor_ref__name') or (row.get('vendor') or '').strip() or 'Unknown'


def _error(label, e):
    logger.error(f"Error computing {label}: {str(e)}", exc_info=True)
    return Response({'error': f'Failed to compute {label}'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_kpis(request):
    """On-time delivery KPIs for shipped POs whose cancel date falls in the range"""
    today = timezone.localdate()
    try:
        start, end = _date_range(request.query_params, date(today.year, 1, 1), date(today.year, 12, 31))
    except ValueError:
        return Response({'error': 'Dates must be YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        queryset = _otd_queryset(request.query_params)
        shipped = queryset.filter(
            delivered_on__isnull=False, effective_cancel__gte=start, effective_cancel__lte=end,
        ).values('total_value', 'delivered_on', 'effective_cancel', 'original_cancel_date')

        on_time = late = original_on_time = 0
        on_time_value = late_value = 0
        late_days = []
        for row in shipped:
            if row['delivered_on'] <= row['effective_cancel']:
                on_time += 1
                on_time_value += row['total_value'] or 0
            else:
                late += 1
                late_value += row['total_value'] or 0
                late_days.append((row['delivered_on'] - row['effective_cancel']).days)
            if row['original_cancel_date'] and row['delivered_on'] <= row['original_cancel_date']:
                original_on_time += 1

        at_risk = queryset.filter(
            status='Booked-to-ship', delivered_on__isnull=True, original_ship_date__lt=today,
        ).aggregate(count=Count('id'), value=Sum('total_value'))
        total = on_time + late

        return Response({
            'period': {'start_date': start.isoformat(), 'end_date': end.isoformat()},
            'total_orders': total,
            'on_time_orders': on_time,
            'late_orders': late,
            'otd_percentage': pct(on_time, total),
            'otd_original_percentage': pct(original_on_time, total),
            'avg_late_days': round(sum(late_days) / len(late_days), 1) if late_days else 0,
            'at_risk_orders': at_risk['count'] or 0,
            'on_time_value': on_time_value,
            'late_value': late_value,
            'at_risk_value': at_risk['value'] or 0,
        })
    except Exception as e:
        return _error('dashboard KPIs', e)


def _compare(current, previous):
    return {
        'current': current,
        'previous': previous,
        'change_pct': pct(current - previous, previous),
    }


def _header_period(params, start, end, year):
    pos = apply_scope_filters(PurchaseOrder.objects.filter(po_date__gte=start, po_date__lte=end), params)
    lines = PurchaseOrderLine.objects.filter(purchase_order__in=pos).exclude(sku__isnull=True).exclude(sku='')

    first_seen = (
        PurchaseOrderLine.objects.exclude(sku__isnull=True).exclude(sku='')
        .values('sku').annotate(first_po_date=Min('purchase_order__po_date'))
        .filter(first_po_date__gte=start, first_po_date__lte=end)
    )
    projections = ActiveProjection.objects.filter(year=year).exclude(match_status='expired')
    vendor = params.get('vendor')
    if vendor:
        vendor_ids = set(pos.exclude(vendor_ref__isnull=True).values_list('vendor_ref_id', flat=True))
        projections = projections.filter(vendor_ref_id__in=vendor_ids)

    return {
        'total_skus': lines.values('sku').order_by().distinct().count(),
        'ytd_total_sales': pos.aggregate(total=Sum('shipped_value'))['total'] or 0,
        'ytd_total_pos': pos.count(),
        'total_active_pos': pos.filter(status='Booked-to-ship').count(),
        'ytd_pos_unshipped': pos.filter(balance_quantity__gt=0).exclude(
            id__in=Shipment.objects.filter(
                actual_sailing_date__isnull=False, delivery_to_consolidator__isnull=False, purchase_order__isnull=False,
            ).values('purchase_order_id')
        ).count(),
        'ytd_projections': projections.aggregate(total=Sum('projection_value'))['total'] or 0,
        'new_skus_ytd': first_seen.filter(sku__in=lines.values('sku')).count(),
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def header_kpis(request):
    """Year to date KPIs compared with the same point last year"""
    today = timezone.localdate()
    last_year_today = add_months(today, -12)
    try:
        current = _header_period(request.query_params, date(today.year, 1, 1), today, today.year)
        previous = _header_period(request.query_params, date(today.year - 1, 1, 1), last_year_today, today.year - 1)
        return Response({
            'as_of': today.isoformat(),
            **{key: _compare(current[key], previous[key]) for key in current},
        })
    except Exception as e:
        return _error('header KPIs', e)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def otd_by_vendor(request):
    """OTD per vendor and cancel month, including the overdue unshipped backlog"""
    today = timezone.localdate()
    try:
        year = parse_int_param(request.query_params.get('year'))
        if year:
            default_start, default_end = date(year, 1, 1), date(year, 12, 31)
        else:
            default_start, default_end = date(today.year - 1, 1, 1), date(today.year, 12, 31)
        start, end = _date_range(request.query_params, default_start, default_end)
    except ValueError:
        return Response({'error': 'year must be an integer and dates YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        queryset = _otd_queryset(request.query_params).filter(
            effective_cancel__gte=start, effective_cancel__lte=end,
        ).exclude(status='Cancelled').values(
            'vendor', 'vendor_ref__name', 'total_value', 'delivered_on', 'effective_cancel',
        )

        buckets = otd_buckets(
            queryset,
            lambda row: (_vendor_label(row), row['effective_cancel'].year, row['effective_cancel'].month),
            today,
        )

        rows = []
        for (vendor, year_value, month), bucket in sorted(buckets.items()):
            rows.append({
                'vendor': vendor,
                'year': year_value,
                'month': month,
                'cancel_month': f'{year_value}-{month:02d}',
                **otd_rates(bucket),
            })

        return Response({
            'period': {'start_date': start.isoformat(), 'end_date': end.isoformat()},
            'results': rows,
        })
    except Exception as e:
        return _error('OTD by vendor', e)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def filter_options(request):
    """Distinct values for the dashboard filter bar"""
    try:
        merchandisers = Staff.objects.filter(merchandised_vendors__isnull=False).values_list('name', flat=True).order_by().distinct()
        managers = Staff.objects.filter(managed_vendors__isnull=False).values_list('name', flat=True).order_by().distinct()
        vendors = set(PurchaseOrder.objects.exclude(vendor_ref__isnull=True).values_list('vendor_ref__name', flat=True))
        vendors.update(
            name.strip() for name in
            PurchaseOrder.objects.filter(vendor_ref__isnull=True).exclude(vendor__isnull=True).values_list('vendor', flat=True)
            if name and name.strip()
        )
        offices = PurchaseOrder.objects.exclude(office__isnull=True).exclude(office='').values_list('office', flat=True).order_by().distinct()

        return Response({
            'merchandisers': sorted(merchandisers),
            'merchandising_managers': sorted(managers),
            'vendors': sorted(vendors, key=str.lower),
            'clients': [{'code': code, 'name': name} for code, name in Client.objects.order_by('name').values_list('code', 'name')],
            'offices': sorted(offices),
        })
    except Exception as e:
        return _error('filter options', e)
