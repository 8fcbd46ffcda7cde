"""Quality KPIs, compliance alert lists and bulk loading of inspections/tests"""
import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import CharField, Count, Exists, F, OuterRef, Q, Value
from django.db.models.functions import Coalesce, NullIf
from django.utils import timezone

from backend.core.utils import add_months, pct
from backend.logistics.models import Shipment
from backend.parties.services import normalize_name, vendor_name_map
from backend.purchasing.filters import apply_scope_filters
from backend.purchasing.models import PurchaseOrder
from .models import Inspection, QualityTest

logger = logging.getLogger('backend.quality')

CLOSED_STATUSES = ['Closed', 'Cancelled']
INACTIVE_STATUSES = ['Closed', 'Cancelled', 'Shipped']
SHIPPED_PO_STATUSES = ['On-Time', 'Late']
PENDING_QA_DAYS = 45
HOD_ALERT_DAYS = 7
FAILED_LOOKBACK_DAYS = 30
CERTIFICATE_WINDOW_DAYS = 90

FAILED_FINAL = 'Failed final inspection'
OUTSIDE_WINDOW = 'Final inspection outside HOD/cancel window'
PENDING_QA = 'QA test pending beyond 45 days'

INSPECTION_FIELDS = [
    'sku', 'style', 'vendor_name', 'inspection_type', 'inspection_date', 'result',
    'inspector', 'inspection_company', 'notes',
]
QUALITY_TEST_FIELDS = [
    'sku', 'style', 'test_type', 'report_date', 'report_number', 'result', 'expiry_date',
    'status', 'corrective_action_plan', 'report_link',
]


def failed_q(prefix=''):
    return Q(**{f'{prefix}result__istartswith': 'Failed'}) | Q(**{f'{prefix}result__istartswith': 'Abort'})


def pending_qa_q(today):
    return (Q(result__isnull=True) | Q(result='')) & Q(report_date__lt=today - timedelta(days=PENDING_QA_DAYS))


def final_outside_window_q():
    return Q(inspection_type__iexact='Final') & (
        Q(inspection_date__lt=F('purchase_order__revised_ship_date')) |
        Q(inspection_date__gt=F('purchase_order__revised_cancel_date'))
    )


def shipped_shipment_exists(po_number_ref='po_number'):
    return Exists(
        Shipment.objects.filter(po_number=OuterRef(po_number_ref)).filter(
            Q(hod_status__iexact='Shipped') | Q(delivery_to_consolidator__isnull=False)
        )
    )


def unshipped_pos(queryset):
    """POs that have not shipped by status or by any shipment record"""
    return queryset.exclude(shipment_status__in=SHIPPED_PO_STATUSES).exclude(shipped_shipment_exists())


# KPIs

def quality_kpis(inspector=None, today=None):
    today = today or timezone.localdate()
    month_start = today.replace(day=1)

    inspections = Inspection.objects.all()
    if inspector:
        inspections = inspections.filter(inspector=inspector)

    open_pos = PurchaseOrder.objects.exclude(status__in=CLOSED_STATUSES)
    finals = Inspection.objects.filter(po_number=OuterRef('po_number'), inspection_type__iexact='Final')
    if inspector:
        finals = finals.filter(inspector=inspector)

    return {
        'pos_due_next_2_weeks': open_pos.filter(
            revised_ship_date__gte=today, revised_ship_date__lte=today + timedelta(days=14)
        ).values('po_number').order_by().distinct().count(),
        'scheduled_inspections': open_pos.exclude(Exists(finals)).values('po_number').order_by().distinct().count(),
        'completed_inspections_this_month': inspections.filter(inspection_date__gte=month_start).count(),
        'expiring_certifications': QualityTest.objects.filter(
            expiry_date__gte=today, expiry_date__lte=add_months(today, 3)
        ).exclude(sku__isnull=True).values('sku').order_by().distinct().count(),
        'failed_final_inspections': inspections.filter(
            inspection_type__iexact='Final', result__istartswith='Failed'
        ).count(),
        'inspections_outside_window': inspections.filter(final_outside_window_q()).count(),
        'pending_qa_beyond_45_days': QualityTest.objects.filter(pending_qa_q(today)).count(),
    }


def at_risk_purchase_orders(inspector=None, today=None, limit=100):
    """Open POs with a failed final, an out-of-window final or a stale pending QA test"""
    today = today or timezone.localdate()

    inspections = Inspection.objects.filter(po_number=OuterRef('po_number'))
    if inspector:
        inspections = inspections.filter(inspector=inspector)
    failed_final = inspections.filter(inspection_type__iexact='Final').filter(failed_q())
    outside_window = inspections.filter(inspection_type__iexact='Final').filter(
        Q(inspection_date__lt=OuterRef('revised_ship_date')) | Q(inspection_date__gt=OuterRef('revised_cancel_date'))
    )
    pending = QualityTest.objects.filter(po_number=OuterRef('po_number')).filter(pending_qa_q(today))

    queryset = PurchaseOrder.objects.exclude(status__in=INACTIVE_STATUSES).filter(
        revised_ship_date__gte=today - timedelta(days=30)
    ).annotate(
        has_failed_final=Exists(failed_final),
        has_outside_window=Exists(outside_window),
        has_pending_qa=Exists(pending),
    ).filter(
        Q(has_failed_final=True) | Q(has_outside_window=True) | Q(has_pending_qa=True)
    ).order_by('revised_ship_date', 'po_number')[:limit]

    rows = []
    for po in queryset:
        reasons = []
        if po.has_failed_final:
            reasons.append(FAILED_FINAL)
        if po.has_outside_window:
            reasons.append(OUTSIDE_WINDOW)
        if po.has_pending_qa:
            reasons.append(PENDING_QA)
        rows.append({
            'id': po.id,
            'po_number': po.po_number,
            'vendor': po.vendor,
            'status': po.status,
            'revised_ship_date': po.revised_ship_date,
            'days_until_hod': (po.revised_ship_date - today).days if po.revised_ship_date else None,
            'reasons': reasons,
        })
    return rows


# Compliance alerts

def _scoped_pos(params):
    return apply_scope_filters(PurchaseOrder.objects.all(), params or {})


def booking_confirmed_needing_inspection(params=None, today=None):
    """Booked POs still inside their cancel date with no inspection of any kind"""
    today = today or timezone.localdate()
    any_inspection = Inspection.objects.filter(po_number=OuterRef('po_number'))
    queryset = unshipped_pos(_scoped_pos(params)).filter(status='Booked-to-ship').annotate(
        effective_cancel=Coalesce('revised_cancel_date', 'original_cancel_date'),
    ).filter(effective_cancel__gte=today).exclude(Exists(any_inspection)).order_by('effective_cancel', 'po_number')

    return [{
        'id': po.id,
        'po_number': po.po_number,
        'vendor': po.vendor,
        'revised_cancel_date': po.effective_cancel,
        'status': po.status,
        'days_until_ship': (po.effective_cancel - today).days,
        'needed_inspections': ['Inline', 'Final'],
    } for po in queryset]


def _hod_window_pos(params, today):
    return unshipped_pos(_scoped_pos(params)).exclude(status__in=INACTIVE_STATUSES).annotate(
        hod=Coalesce('revised_ship_date', 'original_ship_date'),
    ).filter(hod__gt=today, hod__lte=today + timedelta(days=HOD_ALERT_DAYS))


def _hod_row(po, today):
    return {
        'id': po.id,
        'po_number': po.po_number,
        'vendor': po.vendor,
        'revised_ship_date': po.hod,
        'days_until_ship': (po.hod - today).days,
        'status': po.status,
    }


def missing_inline_inspections(params=None, today=None):
    """HOD within 7 days and no inline inspection (nor a passed final)"""
    today = today or timezone.localdate()
    inline = Inspection.objects.filter(po_number=OuterRef('po_number'), inspection_type__icontains='inline')
    passed_final = Inspection.objects.filter(
        po_number=OuterRef('po_number'), inspection_type__icontains='final', result__icontains='pass'
    )
    queryset = _hod_window_pos(params, today).exclude(Exists(inline)).exclude(Exists(passed_final))
    return [_hod_row(po, today) for po in queryset.order_by('hod', 'po_number')]


def missing_final_inspections(params=None, today=None):
    """HOD within 7 days, inline done, no final booked"""
    today = today or timezone.localdate()
    inline = Inspection.objects.filter(po_number=OuterRef('po_number'), inspection_type__icontains='inline')
    final = Inspection.objects.filter(po_number=OuterRef('po_number'), inspection_type__icontains='final')
    queryset = _hod_window_pos(params, today).filter(Exists(inline)).exclude(Exists(final))
    return [_hod_row(po, today) for po in queryset.order_by('hod', 'po_number')]


def _failed_inspections_queryset(params, today):
    queryset = Inspection.objects.filter(failed_q()).filter(
        inspection_date__gte=today - timedelta(days=FAILED_LOOKBACK_DAYS)
    ).exclude(
        purchase_order__shipment_status__in=SHIPPED_PO_STATUSES
    ).exclude(shipped_shipment_exists())
    return apply_scope_filters(queryset, params or {}, prefix='purchase_order__')


def failed_inspections(params=None, limit=50, today=None):
    today = today or timezone.localdate()
    queryset = _failed_inspections_queryset(params, today).select_related('purchase_order').order_by('-inspection_date', '-id')
    return [{
        'id': inspection.id,
        'po_id': inspection.purchase_order_id,
        'po_number': inspection.po_number,
        'vendor_name': inspection.vendor_name or (inspection.purchase_order.vendor if inspection.purchase_order else None),
        'sku': inspection.sku,
        'inspection_type': inspection.inspection_type,
        'result': inspection.result,
        'inspection_date': inspection.inspection_date,
        'notes': inspection.notes,
    } for inspection in queryset[:limit]]


def _expiring_tests_queryset(params, today):
    queryset = QualityTest.objects.filter(
        expiry_date__gt=today, expiry_date__lte=today + timedelta(days=CERTIFICATE_WINDOW_DAYS),
        purchase_order__isnull=False,
    ).exclude(
        purchase_order__status__in=INACTIVE_STATUSES
    ).exclude(
        purchase_order__shipment_status__in=SHIPPED_PO_STATUSES
    ).exclude(shipped_shipment_exists())
    return apply_scope_filters(queryset, params or {}, prefix='purchase_order__')


def expiring_certificates(params=None, today=None):
    """Tests expiring in the next 90 days, one row per (sku, test_type, expiry_date)"""
    today = today or timezone.localdate()
    grouped = {}
    queryset = _expiring_tests_queryset(params, today).select_related('purchase_order').order_by('expiry_date', 'id')
    for test in queryset:
        key = (test.sku, test.test_type, test.expiry_date)
        row = grouped.get(key)
        if row is None:
            row = grouped[key] = {
                'id': test.id,
                'sku': test.sku,
                'test_type': test.test_type,
                'result': test.result,
                'status': test.status,
                'expiry_date': test.expiry_date,
                'days_until_expiry': (test.expiry_date - today).days,
                'po_numbers': [],
            }
        if test.po_number not in row['po_numbers']:
            row['po_numbers'].append(test.po_number)
    rows = list(grouped.values())
    for row in rows:
        row['po_count'] = len(row['po_numbers'])
    return rows


def alert_counts(params=None, today=None):
    today = today or timezone.localdate()
    return {
        'booking_confirmed_needing_inspection': len(booking_confirmed_needing_inspection(params, today)),
        'missing_inline_inspections': len(missing_inline_inspections(params, today)),
        'missing_final_inspections': len(missing_final_inspections(params, today)),
        'failed_inspections': _failed_inspections_queryset(params, today).count(),
        'expiring_certificates': len(expiring_certificates(params, today)),
    }


def vendor_performance(min_inspections=5, today=None):
    """Pass rate per vendor over the last 12 months, worst first"""
    today = today or timezone.localdate()
    rows = Inspection.objects.filter(
        inspection_date__gte=add_months(today, -12)
    ).annotate(
        vendor_label=Coalesce(
            NullIf('vendor_name', Value('')), 'purchase_order__vendor', Value('Unknown'),
            output_field=CharField(),
        )
    ).values('vendor_label').annotate(
        total_inspections=Count('id'),
        passed_count=Count('id', filter=Q(result='Passed')),
        failed_count=Count('id', filter=Q(result__startswith='Failed')),
    ).filter(total_inspections__gte=min_inspections)

    results = [{
        'vendor_name': row['vendor_label'],
        'total_inspections': row['total_inspections'],
        'passed_count': row['passed_count'],
        'failed_count': row['failed_count'],
        'pass_rate': pct(row['passed_count'], row['total_inspections']),
    } for row in rows]
    results.sort(key=lambda r: (r['pass_rate'], -r['total_inspections']))
    return results


def inspector_names():
    names = Inspection.objects.exclude(inspector__isnull=True).exclude(inspector='').values_list('inspector', flat=True).order_by().distinct()
    return sorted(set(name.strip() for name in names if name and name.strip()))


# Bulk loading

def _po_ids(rows):
    return dict(
        PurchaseOrder.objects.filter(po_number__in={r['po_number'] for r in rows}).values_list('po_number', 'id')
    )


def bulk_upsert_inspections(rows):
    """Upsert on (sku, inspection_type, inspection_date, po_number)"""
    stats = {'inserted': 0, 'updated': 0}
    if not rows:
        return stats
    po_ids = _po_ids(rows)
    names = vendor_name_map()

    with transaction.atomic():
        for row in rows:
            defaults = {field: row[field] for field in INSPECTION_FIELDS if field in row}
            defaults['purchase_order_id'] = po_ids.get(row['po_number'])
            defaults['vendor_ref_id'] = names.get(normalize_name(row.get('vendor_name')))
            _, created = Inspection.objects.update_or_create(
                po_number=row['po_number'],
                sku=row.get('sku'),
                inspection_type=row['inspection_type'],
                inspection_date=row.get('inspection_date'),
                defaults=defaults,
            )
            stats['inserted' if created else 'updated'] += 1

    logger.info(f"Inspection upsert: {stats['inserted']} inserted, {stats['updated']} updated")
    return stats


def bulk_upsert_quality_tests(rows):
    """Upsert on (po_number, sku, test_type, report_number)"""
    stats = {'inserted': 0, 'updated': 0}
    if not rows:
        return stats
    po_ids = _po_ids(rows)

    with transaction.atomic():
        for row in rows:
            defaults = {field: row[field] for field in QUALITY_TEST_FIELDS if field in row}
            defaults['purchase_order_id'] = po_ids.get(row['po_number'])
            _, created = QualityTest.objects.update_or_create(
                po_number=row['po_number'],
                sku=row.get('sku'),
                test_type=row['test_type'],
                report_number=row.get('report_number'),
                defaults=defaults,
            )
            stats['inserted' if created else 'updated'] += 1

    logger.info(f"Quality test upsert: {stats['inserted']} inserted, {stats['updated']} updated")
    return stats
