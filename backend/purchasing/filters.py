import django_filters
from django.db.models import Q

from backend.parties.models import Client
from backend.parties.services import vendor_names_for
from .models import PurchaseOrder


def client_names_for(value):
    """Client filter values are codes ("CB2") or names; POs store the name"""
    value = (value or '').strip()
    if not value:
        return []
    client = Client.objects.filter(Q(code__iexact=value) | Q(name__iexact=value)).first()
    if client:
        return [client.name]
    return [value]


def vendor_q(value, field='vendor'):
    """Match the PO vendor name against the vendor's canonical name and aliases"""
    names = vendor_names_for(value)
    q = Q()
    for name in names:
        q |= Q(**{f'{field}__iexact': name.strip()})
    return q


def client_q(value, field='client'):
    q = Q()
    for name in client_names_for(value):
        q |= Q(**{f'{field}__iexact': name})
    return q


def apply_scope_filters(queryset, params, prefix=''):
    """
    Apply the dashboard scope filters (vendor, client, merchandiser,
    merchandising_manager, office) to any queryset that reaches a PO through
    `prefix` (e.g. 'purchase_order__' for shipments).
    """
    vendor = params.get('vendor')
    client = params.get('client')
    merchandiser = params.get('merchandiser')
    manager = params.get('merchandising_manager')
    office = params.get('office')

    if vendor:
        queryset = queryset.filter(vendor_q(vendor, f'{prefix}vendor'))
    if client:
        queryset = queryset.filter(client_q(client, f'{prefix}client'))
    if merchandiser:
        queryset = queryset.filter(**{f'{prefix}vendor_ref__merchandiser__name__iexact': merchandiser.strip()})
    if manager:
        queryset = queryset.filter(**{f'{prefix}vendor_ref__merchandising_manager__name__iexact': manager.strip()})
    if office:
        queryset = queryset.filter(**{f'{prefix}office__iexact': office.strip()})
    return queryset


class PurchaseOrderFilter(django_filters.FilterSet):
    """Filters for the purchase order list"""

    vendor = django_filters.CharFilter(method='filter_vendor', label='Vendor')
    client = django_filters.CharFilter(method='filter_client', label='Client code or name')
    merchandiser = django_filters.CharFilter(field_name='vendor_ref__merchandiser__name', lookup_expr='iexact')
    merchandising_manager = django_filters.CharFilter(field_name='vendor_ref__merchandising_manager__name', lookup_expr='iexact')
    office = django_filters.CharFilter(field_name='office', lookup_expr='iexact')
    status = django_filters.CharFilter(field_name='status', lookup_expr='iexact')
    start_date = django_filters.DateFilter(field_name='po_date', lookup_expr='gte')
    end_date = django_filters.DateFilter(field_name='po_date', lookup_expr='lte')
    search = django_filters.CharFilter(method='filter_search', label='Search')

    class Meta:
        model = PurchaseOrder
        fields = ['vendor', 'client', 'merchandiser', 'merchandising_manager', 'office',
                  'status', 'start_date', 'end_date', 'search']

    def filter_vendor(self, queryset, name, value):
        if not value or not value.strip():
            return queryset
        return queryset.filter(vendor_q(value))

    def filter_client(self, queryset, name, value):
        if not value or not value.strip():
            return queryset
        return queryset.filter(client_q(value))

    def filter_search(self, queryset, name, value):
        """PO number, line SKU or line style"""
        search = (value or '').strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(po_number__icontains=search) |
            Q(lines__sku__icontains=search) |
            Q(lines__style__icontains=search)
        ).distinct()
