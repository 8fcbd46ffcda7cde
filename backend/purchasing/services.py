"""PO list annotations, bulk upsert and retention"""
import hashlib
import json
import logging
from collections import defaultdict

from django.conf import settings
from django.db import transaction
from django.db.models import BigIntegerField, Exists, IntegerField, OuterRef, Q, Subquery, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from backend.core.utils import pct, retention_cutoff
from backend.logistics.models import Shipment
from backend.parties.services import normalize_name, vendor_name_map
from .models import PurchaseOrder, PurchaseOrderLine

logger = logging.getLogger('backend.purchasing')

HEADER_FIELDS = [
    'cop_number', 'client', 'client_division', 'client_department', 'buyer', 'vendor', 'factory',
    'product_group', 'product_category', 'season', 'program_description', 'office',
    'po_date', 'original_ship_date', 'original_cancel_date', 'revised_ship_date',
    'revised_cancel_date', 'revised_reason', 'confirmation_date',
    'total_quantity', 'balance_quantity', 'total_value', 'shipped_value',
    'status', 'shipment_status', 'pts_number', 'pts_date', 'pts_status', 'logistic_status',
]

LINE_FIELDS = [
    'line_sequence', 'sku', 'style', 'seller_style', 'order_quantity',
    'balance_quantity', 'unit_price', 'line_total',
]

# Sample programs and 089 POs never count toward OTD or sales
EXCLUDED_PROGRAM_PREFIXES = ('SMP ', '8X8 ')
EXCLUDED_PO_PREFIX = '089'
SHIPPED_STATUSES = ['On-Time', 'Late']


def exclude_samples(queryset, prefix=''):
    for program in EXCLUDED_PROGRAM_PREFIXES:
        queryset = queryset.exclude(**{f'{prefix}program_description__istartswith': program})
    return queryset


def otd_eligible(queryset):
    """
    Drop samples and 089 POs, then annotate delivered_on (latest consolidator
    delivery among sailed shipments) and effective_cancel.
    """
    latest_delivery = (
        Shipment.objects.filter(
            purchase_order_id=OuterRef('pk'),
            actual_sailing_date__isnull=False,
            delivery_to_consolidator__isnull=False,
        )
        .order_by('-delivery_to_consolidator')
        .values('delivery_to_consolidator')[:1]
    )
    return exclude_samples(queryset).exclude(po_number__startswith=EXCLUDED_PO_PREFIX).annotate(
        delivered_on=Subquery(latest_delivery),
        effective_cancel=Coalesce('revised_cancel_date', 'original_cancel_date'),
    )


def otd_buckets(rows, key, today):
    """
    Count OTD rows (total_value, delivered_on, effective_cancel) into buckets
    keyed by key(row). Delivered POs split into on time and late; undelivered
    POs past their cancel date make up the overdue backlog.
    """
    buckets = defaultdict(lambda: {
        'shipped_on_time': 0, 'total_shipped': 0, 'on_time_value': 0, 'total_value': 0,
        'overdue_unshipped': 0, 'overdue_backlog_value': 0,
    })
    for row in rows:
        cancel = row['effective_cancel']
        bucket = buckets[key(row)]
        value = row['total_value'] or 0
        if row['delivered_on']:
            bucket['total_shipped'] += 1
            bucket['total_value'] += value
            if row['delivered_on'] <= cancel:
                bucket['shipped_on_time'] += 1
                bucket['on_time_value'] += value
        elif cancel < today and value > 0:
            bucket['overdue_unshipped'] += 1
            bucket['overdue_backlog_value'] += value
    return buckets


def otd_rates(bucket):
    """OTD by count and value, and the revised rates that treat the backlog as late"""
    return {
        **bucket,
        'otd_pct': pct(bucket['shipped_on_time'], bucket['total_shipped']),
        'otd_value_pct': pct(bucket['on_time_value'], bucket['total_value']),
        'revised_otd_pct': pct(bucket['shipped_on_time'], bucket['total_shipped'] + bucket['overdue_unshipped']),
        'revised_otd_value_pct': pct(bucket['on_time_value'], bucket['total_value'] + bucket['overdue_backlog_value']),
    }


def annotate_po_list(queryset):
    """
    Add line_quantity / line_value (summed from lines, header totals when the PO
    has none) and has_actual_ship_date.
    """
    line_totals = PurchaseOrderLine.objects.filter(
        purchase_order=OuterRef('pk')
    ).order_by().values('purchase_order')
    shipped = Shipment.objects.filter(purchase_order=OuterRef('pk')).filter(
        Q(delivery_to_consolidator__isnull=False) | Q(actual_sailing_date__isnull=False)
    )
    return queryset.annotate(
        line_quantity=Coalesce(
            Subquery(line_totals.annotate(q=Sum('order_quantity')).values('q'), output_field=IntegerField()),
            'total_quantity',
            output_field=IntegerField(),
        ),
        line_value=Coalesce(
            Subquery(line_totals.annotate(v=Sum('line_total')).values('v'), output_field=BigIntegerField()),
            'total_value',
            output_field=BigIntegerField(),
        ),
        has_actual_ship_date=Exists(shipped),
    )


def _hash_value(value):
    if value is None:
        return None
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return value


def compute_content_hash(row):
    """md5 over the header fields and lines so unchanged POs can be skipped"""
    payload = {field: _hash_value(row.get(field)) for field in HEADER_FIELDS}
    payload['lines'] = [
        {field: _hash_value(line.get(field)) for field in LINE_FIELDS}
        for line in row.get('lines') or []
    ]
    encoded = json.dumps(payload, sort_keys=True, default=str).encode('utf-8')
    return hashlib.md5(encoded).hexdigest()


def _header_values(row):
    """Every header field from the row; blank cells reset the field to its model default"""
    values = {}
    for field in HEADER_FIELDS:
        value = row.get(field)
        if value is None:
            value = PurchaseOrder._meta.get_field(field).get_default()
        values[field] = value
    return values


def _build_lines(po, lines):
    objs = []
    for index, line in enumerate(lines or [], start=1):
        objs.append(PurchaseOrderLine(
            purchase_order=po,
            po_number=po.po_number,
            line_sequence=line.get('line_sequence') or index,
            sku=line.get('sku'),
            style=line.get('style'),
            seller_style=line.get('seller_style'),
            order_quantity=line.get('order_quantity') or 0,
            balance_quantity=line.get('balance_quantity') or 0,
            unit_price=line.get('unit_price') or 0,
            line_total=line.get('line_total') or 0,
        ))
    return objs


def bulk_upsert_purchase_orders(rows):
    """
    Upsert PO headers on po_number and replace their line items.

    Each row is a dict of header fields plus a `lines` list. Returns
    {'inserted', 'updated', 'skipped'}; headers whose content hash did not
    change are skipped without touching their lines.
    """
    stats = {'inserted': 0, 'updated': 0, 'skipped': 0}
    if not rows:
        return stats

    names = vendor_name_map()
    po_numbers = [row['po_number'] for row in rows]
    existing = {po.po_number: po for po in PurchaseOrder.objects.filter(po_number__in=po_numbers)}

    with transaction.atomic():
        for row in rows:
            po_number = row['po_number']
            content_hash = compute_content_hash(row)
            defaults = _header_values(row)
            defaults['content_hash'] = content_hash
            defaults['vendor_ref_id'] = names.get(normalize_name(row.get('vendor')))

            po = existing.get(po_number)
            if po is None:
                po = PurchaseOrder.objects.create(po_number=po_number, **defaults)
                existing[po_number] = po
                stats['inserted'] += 1
            elif po.content_hash == content_hash:
                stats['skipped'] += 1
                continue
            else:
                for field, value in defaults.items():
                    setattr(po, field, value)
                po.save()
                po.lines.all().delete()
                stats['updated'] += 1

            PurchaseOrderLine.objects.bulk_create(_build_lines(po, row.get('lines')))

    logger.info(f"PO upsert: {stats['inserted']} inserted, {stats['updated']} updated, {stats['skipped']} unchanged")
    return stats


def clear_outside_retention(today=None):
    """Delete POs dated before Jan 1 of (current year - RETENTION_YEARS)"""
    today = today or timezone.localdate()
    cutoff = retention_cutoff(today, settings.RETENTION_YEARS)
    _, per_model = PurchaseOrder.objects.filter(po_date__lt=cutoff).delete()
    deleted = per_model.get(PurchaseOrder._meta.label, 0)
    if deleted:
        logger.info(f"Removed {deleted} PO rows dated before {cutoff}")
    return deleted


def match_entries_for(purchase_orders):
    """
    Flatten POs into the dicts projection matching expects: one entry per line
    item, or a single header entry for a PO without lines.
    """
    entries = []
    for po in purchase_orders:
        lines = list(po.lines.all())
        base = {
            'po_number': po.po_number,
            'vendor': po.vendor,
            'original_ship_date': po.original_ship_date,
            'program_description': po.program_description,
        }
        if not lines:
            entries.append({**base, 'sku': None, 'order_quantity': po.total_quantity, 'total_value': po.total_value})
            continue
        for line in lines:
            entries.append({
                **base,
                'sku': line.sku,
                'order_quantity': line.order_quantity,
                'total_value': line.line_total,
            })
    return entries
