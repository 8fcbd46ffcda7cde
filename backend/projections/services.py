"""Projection queries, manual maintenance and import archival"""
import logging
from datetime import date

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from .models import (
    ActiveProjection, ProjectionHistory, ProjectionSnapshot, MTO_ORDER_TYPES, ORDER_TYPE_CHOICES,
)

logger = logging.getLogger('backend.projections')

AT_RISK_DAYS = 90
EXCLUDED_BRANDS = {'CBH'}
ORDER_TYPES = [value for value, _ in ORDER_TYPE_CHOICES]

PROJECTION_FIELDS = [
    'vendor_ref_id', 'vendor_code', 'sku', 'sku_description', 'brand', 'product_class',
    'collection', 'year', 'month', 'projection_value', 'quantity', 'order_type',
]
MATCH_FIELDS = [
    'matched_po_number', 'matched_at', 'actual_quantity', 'actual_value',
    'quantity_variance', 'value_variance', 'variance_pct',
]


def days_until_due(projection, today):
    """Days from today to the first day of the projection's target month"""
    return (date(projection.year, projection.month, 1) - today).days


def normalize_brand(brand):
    brand = (brand or '').strip().upper()
    return 'C&K' if brand == 'CK' else brand


def _row(projection, today=None):
    row = {
        'id': projection.id,
        'vendor_id': projection.vendor_ref_id,
        'vendor_code': projection.vendor_code,
        'vendor_name': projection.vendor_ref.name if projection.vendor_ref_id else None,
        'sku': projection.sku,
        'sku_description': projection.sku_description,
        'brand': projection.brand,
        'collection': projection.collection,
        'year': projection.year,
        'month': projection.month,
        'projection_value': projection.projection_value,
        'quantity': projection.quantity,
        'order_type': projection.order_type,
        'match_status': projection.match_status,
        'matched_po_number': projection.matched_po_number,
        'actual_quantity': projection.actual_quantity,
        'actual_value': projection.actual_value,
        'quantity_variance': projection.quantity_variance,
        'value_variance': projection.value_variance,
        'variance_pct': projection.variance_pct,
        'comment': projection.comment,
    }
    if today is not None:
        days = days_until_due(projection, today)
        row['days_until_due'] = days
        row['is_overdue'] = days < 0
    return row


def overdue_projections(threshold_days=AT_RISK_DAYS, today=None):
    """Unmatched regular projections due within threshold_days (or already overdue)"""
    today = today or timezone.localdate()
    queryset = (
        ActiveProjection.objects.select_related('vendor_ref')
        .filter(match_status='unmatched')
        .exclude(order_type__in=MTO_ORDER_TYPES)
    )
    rows = [_row(p, today) for p in queryset]
    rows = [row for row in rows if row['days_until_due'] <= threshold_days]
    rows.sort(key=lambda row: row['days_until_due'])
    return rows


def variance_projections(min_variance_pct=10):
    """Matched regular projections whose quantity variance exceeds min_variance_pct"""
    queryset = (
        ActiveProjection.objects.select_related('vendor_ref')
        .filter(match_status='matched', variance_pct__isnull=False)
        .exclude(order_type__in=MTO_ORDER_TYPES)
        .filter(Q(variance_pct__gt=min_variance_pct) | Q(variance_pct__lt=-min_variance_pct))
    )
    rows = [_row(p) for p in queryset]
    rows.sort(key=lambda row: abs(row['variance_pct']), reverse=True)
    return rows


def spo_projections(today=None):
    """MTO/SPO projections, newest target month first"""
    today = today or timezone.localdate()
    queryset = (
        ActiveProjection.objects.select_related('vendor_ref')
        .filter(order_type__in=MTO_ORDER_TYPES)
        .order_by('-year', '-month', 'vendor_code', 'sku')
    )
    rows = []
    for projection in queryset:
        rows.append(_row(projection, today if projection.match_status == 'unmatched' else None))
    return rows


def filter_options():
    vendors = {}
    for vendor_id, name, vendor_code in (
        ActiveProjection.objects.values_list('vendor_ref_id', 'vendor_ref__name', 'vendor_code').order_by().distinct()
    ):
        vendors.setdefault(vendor_id, {'id': vendor_id, 'name': name or vendor_code, 'vendor_code': vendor_code})

    brands = set()
    for brand in ActiveProjection.objects.values_list('brand', flat=True).order_by().distinct():
        brand = normalize_brand(brand)
        if brand and brand not in EXCLUDED_BRANDS:
            brands.add(brand)

    return {
        'vendors': sorted(vendors.values(), key=lambda v: (v['name'] or '').lower()),
        'brands': sorted(brands),
    }


def remove_projection(projection, reason, user_label=None):
    """Mark a projection as removed (expired) with the reason as its comment"""
    projection.match_status = 'expired'
    projection.comment = reason
    projection.commented_at = timezone.now()
    projection.commented_by = user_label
    projection.save(update_fields=['match_status', 'comment', 'commented_at', 'commented_by', 'updated_at'])
    logger.info(f"Projection {projection.id} removed: {reason}")
    return projection


def unmatch_projection(projection):
    previous_po = projection.matched_po_number
    projection.match_status = 'unmatched'
    for field in MATCH_FIELDS:
        setattr(projection, field, None)
    projection.save(update_fields=['match_status', *MATCH_FIELDS, 'updated_at'])
    logger.info(f"Projection {projection.id} unmatched from PO {previous_po}")
    return projection


def set_order_type(projection, order_type):
    order_type = (order_type or '').strip().lower()
    if order_type not in ORDER_TYPES:
        raise ValueError(f"Invalid order_type '{order_type}'. Must be one of: {', '.join(ORDER_TYPES)}")
    projection.order_type = order_type
    projection.save(update_fields=['order_type', 'updated_at'])
    return projection


def set_comment(projection, comment, user_label=None):
    projection.comment = comment
    projection.commented_at = timezone.now()
    projection.commented_by = user_label
    projection.save(update_fields=['comment', 'commented_at', 'commented_by', 'updated_at'])
    return projection


def validation_summary(today=None):
    today = today or timezone.localdate()
    summary = {
        'total': 0, 'unmatched': 0, 'matched': 0, 'removed': 0,
        'overdue': 0, 'at_risk': 0, 'with_variance': 0,
        'spo_total': 0, 'spo_matched': 0, 'spo_unmatched': 0,
    }
    for projection in ActiveProjection.objects.only('year', 'month', 'match_status', 'order_type', 'variance_pct'):
        summary['total'] += 1
        status = projection.match_status
        if status == 'matched':
            summary['matched'] += 1
        elif status == 'expired':
            summary['removed'] += 1
        elif status == 'unmatched':
            summary['unmatched'] += 1
            if not projection.is_mto:
                days = days_until_due(projection, today)
                if days < 0:
                    summary['overdue'] += 1
                elif days <= AT_RISK_DAYS:
                    summary['at_risk'] += 1

        if status == 'matched' and not projection.is_mto and abs(projection.variance_pct or 0) > 10:
            summary['with_variance'] += 1

        if projection.is_mto:
            summary['spo_total'] += 1
            if status == 'matched':
                summary['spo_matched'] += 1
            elif status == 'unmatched':
                summary['spo_unmatched'] += 1
    return summary


def _archive(projection):
    values = {field: getattr(projection, field) for field in PROJECTION_FIELDS}
    values.update({field: getattr(projection, field) for field in MATCH_FIELDS})
    return ProjectionHistory(
        **values,
        match_status=projection.match_status,
        original_import_date=projection.last_snapshot_date,
        original_imported_by=projection.snapshot.imported_by if projection.snapshot_id else None,
    )


def import_projections(rows, import_date, imported_by=None):
    """
    Load resolved projection rows (vendor_ref_id already set) for one import date.

    Every row is written to the snapshot table. The matching active row, if
    any, is archived to history and replaced by the new values, unmatched.
    Returns counts of snapshots, created, updated and archived rows.
    """
    stats = {'snapshots': 0, 'created': 0, 'updated': 0, 'archived': 0}
    if not rows:
        return stats

    with transaction.atomic():
        existing = {
            (p.vendor_code, p.sku, p.year, p.month): p
            for p in ActiveProjection.objects.select_related('snapshot').filter(
                vendor_code__in={r['vendor_code'] for r in rows}
            )
        }
        history = []
        for row in rows:
            values = {field: row.get(field) for field in PROJECTION_FIELDS if row.get(field) is not None}
            snapshot, _ = ProjectionSnapshot.objects.update_or_create(
                vendor_code=row['vendor_code'], sku=row['sku'], year=row['year'], month=row['month'],
                import_date=import_date,
                defaults={**values, 'imported_by': imported_by},
            )
            stats['snapshots'] += 1

            key = (row['vendor_code'], row['sku'], row['year'], row['month'])
            active = existing.get(key)
            if active is not None:
                history.append(_archive(active))
                for field, value in values.items():
                    setattr(active, field, value)
                for field in MATCH_FIELDS:
                    setattr(active, field, None)
                active.match_status = 'unmatched'
                active.snapshot = snapshot
                active.last_snapshot_date = import_date
                active.save()
                stats['updated'] += 1
            else:
                existing[key] = ActiveProjection.objects.create(
                    **values, snapshot=snapshot, last_snapshot_date=import_date,
                )
                stats['created'] += 1

        ProjectionHistory.objects.bulk_create(history)
        stats['archived'] = len(history)

    logger.info(
        f"Projection import {import_date}: {stats['snapshots']} snapshot rows, {stats['created']} created, "
        f"{stats['updated']} updated, {stats['archived']} archived"
    )
    return stats
