"""Forecast drift across imports and projection accuracy against matched POs"""
import logging
from collections import defaultdict

from django.db.models import Sum

from backend.core.utils import pct
from .models import ActiveProjection, ProjectionSnapshot

logger = logging.getLogger('backend.projections')


def projection_drift(target_year, target_month):
    """
    How each vendor's projection for one target month moved between imports.
    Drift compares the first and last import that covered the month.
    """
    rows = (
        ProjectionSnapshot.objects.filter(year=target_year, month=target_month)
        .values('vendor_ref_id', 'vendor_ref__name', 'import_date')
        .annotate(total=Sum('projection_value'))
        .order_by('vendor_ref_id', 'import_date')
    )
    codes = defaultdict(set)
    for vendor_id, code in (
        ProjectionSnapshot.objects.filter(year=target_year, month=target_month)
        .order_by().values_list('vendor_ref_id', 'vendor_code').distinct()
    ):
        codes[vendor_id].add(code)

    by_vendor = {}
    import_dates = set()
    for row in rows:
        import_dates.add(row['import_date'])
        vendor_codes = sorted(codes[row['vendor_ref_id']])
        entry = by_vendor.setdefault(row['vendor_ref_id'], {
            'vendor_id': row['vendor_ref_id'],
            'vendor_name': row['vendor_ref__name'] or (vendor_codes[0] if vendor_codes else None),
            'vendor_codes': vendor_codes,
            'series': [],
        })
        entry['series'].append({'import_date': row['import_date'], 'projected_value': row['total'] or 0})

    vendors = []
    for entry in by_vendor.values():
        series = entry['series']
        first = series[0]['projected_value']
        last = series[-1]['projected_value']
        entry.update({
            'upload_count': len(series),
            'first_projected_value': first,
            'last_projected_value': last,
            'drift_dollar': last - first,
            'drift_pct': pct(last - first, first),
        })
        vendors.append(entry)

    vendors.sort(key=lambda v: abs(v['drift_pct']), reverse=True)
    return {
        'target_year': target_year,
        'target_month': target_month,
        'vendors': vendors,
        'total_uploads': len(import_dates),
        'vendor_count': len(vendors),
    }


def _measures():
    return {'total_projected': 0, 'total_actual': 0, 'matched_count': 0, 'partial_count': 0, 'unmatched_count': 0}


def _finish(measures):
    measures['variance'] = measures['total_actual'] - measures['total_projected']
    measures['variance_pct'] = pct(measures['variance'], measures['total_projected'])
    return measures


def accuracy_report(year):
    """Projected versus actual (matched PO) value for a target year"""
    overall = {**_measures(), 'partial_value': 0}
    vendors = {}
    months = {m: {'month': m, 'projected': 0, 'projected_regular': 0, 'projected_mto': 0, 'actual': 0} for m in range(1, 13)}

    queryset = ActiveProjection.objects.select_related('vendor_ref').filter(year=year).exclude(match_status='expired')
    for projection in queryset:
        value = projection.projection_value or 0
        actual = (projection.actual_value or 0) if projection.match_status in ('matched', 'partial') else 0

        vendor = vendors.get(projection.vendor_ref_id)
        if vendor is None:
            vendor = vendors[projection.vendor_ref_id] = {
                'vendor_id': projection.vendor_ref_id,
                'vendor_name': projection.vendor_ref.name,
                'vendor_code': projection.vendor_code,
                **_measures(),
                'by_month': defaultdict(lambda: {'projected': 0, 'actual': 0}),
                'by_brand': defaultdict(lambda: {'projected': 0, 'actual': 0}),
            }

        status_key = {'matched': 'matched_count', 'partial': 'partial_count'}.get(projection.match_status, 'unmatched_count')
        for measures in (overall, vendor):
            measures['total_projected'] += value
            measures['total_actual'] += actual
            measures[status_key] += 1
        if projection.match_status == 'partial':
            overall['partial_value'] += value

        vendor['by_month'][projection.month]['projected'] += value
        vendor['by_month'][projection.month]['actual'] += actual
        brand = projection.brand or 'Unknown'
        vendor['by_brand'][brand]['projected'] += value
        vendor['by_brand'][brand]['actual'] += actual

        bucket = months[projection.month]
        bucket['projected'] += value
        bucket['projected_mto' if projection.is_mto else 'projected_regular'] += value
        bucket['actual'] += actual

    overall = _finish(overall)
    overall['overall_variance_pct'] = overall.pop('variance_pct')

    by_vendor = []
    for vendor in vendors.values():
        vendor['by_month'] = dict(vendor['by_month'])
        vendor['by_brand'] = dict(vendor['by_brand'])
        by_vendor.append(_finish(vendor))
    by_vendor.sort(key=lambda v: v['total_projected'], reverse=True)

    monthly_trend = []
    for bucket in months.values():
        bucket['variance'] = bucket['actual'] - bucket['projected']
        bucket['variance_pct'] = pct(bucket['variance'], bucket['projected'])
        monthly_trend.append(bucket)

    return {'year': year, 'overall': overall, 'by_vendor': by_vendor, 'monthly_trend': monthly_trend}
