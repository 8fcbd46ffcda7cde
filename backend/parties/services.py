"""Vendor name resolution and client level aggregates"""
import logging

from django.db.models import Count, Exists, OuterRef, Q, Sum
from django.utils import timezone

from backend.core.utils import pct
from .models import StaffClientAssignment, Vendor, VendorCapacityAlias

logger = logging.getLogger('backend.parties')


def normalize_name(value):
    if value is None:
        return ''
    return str(value).strip().lower()


def resolve_vendor(name):
    """Find a vendor by exact (case-insensitive, trimmed) name, then by alias"""
    key = normalize_name(name)
    if not key:
        return None
    vendor = Vendor.objects.filter(name__iexact=key).first()
    if vendor:
        return vendor
    alias = VendorCapacityAlias.objects.select_related('vendor').filter(alias__iexact=key).first()
    return alias.vendor if alias else None


def vendor_name_map():
    """Map of lower-cased vendor name and every alias to the vendor id"""
    mapping = {}
    for vendor_id, name in Vendor.objects.values_list('id', 'name'):
        mapping[normalize_name(name)] = vendor_id
    for vendor_id, alias in VendorCapacityAlias.objects.values_list('vendor_id', 'alias'):
        # Canonical names win over aliases
        mapping.setdefault(normalize_name(alias), vendor_id)
    return mapping


def vendor_names_for(name):
    """All names a vendor is known by (canonical + aliases) for the given name or alias"""
    vendor = resolve_vendor(name)
    if not vendor:
        return [name.strip()] if name and name.strip() else []
    names = [vendor.name]
    names.extend(vendor.aliases.values_list('alias', flat=True))
    return names


def assign_staff_to_client(client, staff, role=None, is_primary=False):
    """Create or update the (staff, client) assignment"""
    assignment, created = StaffClientAssignment.objects.update_or_create(
        staff=staff,
        client=client,
        defaults={'role': role, 'is_primary': bool(is_primary)},
    )
    logger.info(f"{'Assigned' if created else 'Updated assignment of'} {staff.name} to {client.name}")
    return assignment, created


def client_kpis(client, today=None):
    """PO level KPIs for one client"""
    from backend.purchasing.models import PurchaseOrder
    from backend.logistics.models import Shipment

    today = today or timezone.localdate()
    pos = PurchaseOrder.objects.filter(client=client.name)

    shipped_exists = Shipment.objects.filter(
        purchase_order_id=OuterRef('pk')
    ).filter(Q(actual_sailing_date__isnull=False) | Q(delivery_to_consolidator__isnull=False))

    totals = pos.aggregate(
        total_pos=Count('id'),
        total_value=Sum('total_value'),
        open_pos=Count('id', filter=Q(status='Booked-to-ship')),
        shipped_pos=Count('id', filter=Q(shipment_status__isnull=False) & ~Q(shipment_status='')),
        on_time_pos=Count('id', filter=Q(shipment_status='On-Time')),
        vendor_count=Count('vendor', distinct=True),
    )
    at_risk_pos = pos.filter(
        status='Booked-to-ship',
        original_ship_date__lt=today,
    ).exclude(Exists(shipped_exists)).count()

    return {
        'client_id': client.id,
        'client': client.name,
        'total_pos': totals['total_pos'] or 0,
        'total_value': totals['total_value'] or 0,
        'open_pos': totals['open_pos'] or 0,
        'shipped_pos': totals['shipped_pos'] or 0,
        'otd_pct': pct(totals['on_time_pos'] or 0, totals['shipped_pos'] or 0),
        'at_risk_pos': at_risk_pos,
        'vendor_count': totals['vendor_count'] or 0,
    }
