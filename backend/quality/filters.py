import django_filters
from django.db.models import Q

from backend.purchasing.filters import vendor_q
from .models import Inspection, QualityTest


class InspectionFilter(django_filters.FilterSet):
    po_number = django_filters.CharFilter(field_name='po_number', lookup_expr='icontains')
    sku = django_filters.CharFilter(field_name='sku', lookup_expr='icontains')
    vendor = django_filters.CharFilter(method='filter_vendor', label='Vendor')
    inspection_type = django_filters.CharFilter(field_name='inspection_type', lookup_expr='iexact')
    result = django_filters.CharFilter(field_name='result', lookup_expr='istartswith')
    inspector = django_filters.CharFilter(field_name='inspector', lookup_expr='iexact')
    start_date = django_filters.DateFilter(field_name='inspection_date', lookup_expr='gte')
    end_date = django_filters.DateFilter(field_name='inspection_date', lookup_expr='lte')

    class Meta:
        model = Inspection
        fields = ['po_number', 'sku', 'vendor', 'inspection_type', 'result', 'inspector', 'start_date', 'end_date']

    def filter_vendor(self, queryset, name, value):
        """Inspection vendor name, or the vendor on the linked PO"""
        if not value or not value.strip():
            return queryset
        return queryset.filter(
            vendor_q(value, 'vendor_name') | vendor_q(value, 'purchase_order__vendor') | Q(vendor_ref__name__iexact=value.strip())
        )


class QualityTestFilter(django_filters.FilterSet):
    po_number = django_filters.CharFilter(field_name='po_number', lookup_expr='icontains')
    sku = django_filters.CharFilter(field_name='sku', lookup_expr='icontains')
    test_type = django_filters.CharFilter(field_name='test_type', lookup_expr='iexact')
    result = django_filters.CharFilter(field_name='result', lookup_expr='iexact')

    class Meta:
        model = QualityTest
        fields = ['po_number', 'sku', 'test_type', 'result']
