"""
Expiry of unmatched projections whose order window has closed.

A projection for month M is expected to be covered by a PO some days before
the end of M: 90 days for regular orders, 30 for MTO/SPO. Once today passes
that point the unmatched projection moves to the expired table, where it can
be verified, cancelled or restored.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from backend.core.utils import month_bounds
from .models import ActiveProjection, ExpiredProjection
from .services import PROJECTION_FIELDS

logger = logging.getLogger('backend.projections')

VERIFY_STATUSES = ('verified', 'cancelled')


def expiration_window(projection):
    """(threshold_days, reason) for the projection's order type"""
    if projection.is_mto:
        days = settings.PROJECTION_SPO_WINDOW_DAYS
    else:
        days = settings.PROJECTION_REGULAR_WINDOW_DAYS
    return days, f'past_{days}_day_window'


def check_expired_projections(today=None):
    """Move every unmatched projection past its window into ExpiredProjection"""
    today = today or timezone.localdate()
    result = {'expired_count': 0, 'regular_expired': 0, 'spo_expired': 0}

    with transaction.atomic():
        expired_ids = []
        for projection in ActiveProjection.objects.select_related('snapshot').filter(match_status='unmatched'):
            threshold_days, reason = expiration_window(projection)
            _, target_month_end = month_bounds(projection.year, projection.month)
            deadline = target_month_end - timedelta(days=threshold_days)
            if today <= deadline:
                continue

            ExpiredProjection.objects.create(
                **{field: getattr(projection, field) for field in PROJECTION_FIELDS},
                original_projection_id=projection.id,
                expiration_reason=reason,
                threshold_days=threshold_days,
                target_month_end=target_month_end,
                days_overdue=(today - deadline).days,
                original_import_date=projection.last_snapshot_date,
                original_imported_by=projection.snapshot.imported_by if projection.snapshot_id else None,
            )
            expired_ids.append(projection.id)
            result['spo_expired' if projection.is_mto else 'regular_expired'] += 1

        ActiveProjection.objects.filter(id__in=expired_ids).delete()
        result['expired_count'] = len(expired_ids)

    logger.info(
        f"Projection expiry: {result['expired_count']} expired "
        f"({result['regular_expired']} regular, {result['spo_expired']} MTO/SPO)"
    )
    return result


def restore_expired(expired, user_label=None):
    """
    Put an expired projection back in the active table as unmatched. Refused
    when a later import already created an active row for the same key.
    """
    if expired.verification_status == 'restored':
        raise ValueError('Projection has already been restored')

    with transaction.atomic():
        values = {field: getattr(expired, field) for field in PROJECTION_FIELDS}
        key = {field: values.pop(field) for field in ('vendor_code', 'sku', 'year', 'month')}
        if ActiveProjection.objects.filter(**key).exists():
            raise ValueError(
                f"An active projection already exists for {key['vendor_code']} {key['sku']} "
                f"{key['year']}-{key['month']:02d}"
            )
        active = ActiveProjection.objects.create(
            **key,
            **values,
            match_status='unmatched',
            last_snapshot_date=expired.original_import_date,
        )
        expired.verification_status = 'restored'
        expired.restored_at = timezone.now()
        expired.restored_by = user_label
        expired.save(update_fields=['verification_status', 'restored_at', 'restored_by'])

    logger.info(f"Expired projection {expired.id} restored as active projection {active.id}")
    return active


def verify_expired(expired, verification_status, notes=None, user_label=None):
    if expired.verification_status == 'restored':
        raise ValueError('Projection has been restored and can no longer be verified')
    verification_status = (verification_status or '').strip().lower()
    if verification_status not in VERIFY_STATUSES:
        raise ValueError(f"status must be one of: {', '.join(VERIFY_STATUSES)}")
    expired.verification_status = verification_status
    expired.verification_notes = notes
    expired.verified_at = timezone.now()
    expired.verified_by = user_label
    expired.save(update_fields=['verification_status', 'verification_notes', 'verified_at', 'verified_by'])
    return expired


def expired_summary():
    counts = ExpiredProjection.objects.aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(verification_status='pending')),
        verified=Count('id', filter=Q(verification_status='verified')),
        cancelled=Count('id', filter=Q(verification_status='cancelled')),
        restored=Count('id', filter=Q(verification_status='restored')),
    )
    return {key: value or 0 for key, value in counts.items()}
