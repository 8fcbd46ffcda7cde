import django_filters

from .models import ActiveProjection, ExpiredProjection, ORDER_TYPE_CHOICES


class ActiveProjectionFilter(django_filters.FilterSet):
    vendor_id = django_filters.NumberFilter(field_name='vendor_ref_id')
    brand = django_filters.CharFilter(field_name='brand', lookup_expr='iexact')
    year = django_filters.NumberFilter(field_name='year')
    month = django_filters.NumberFilter(field_name='month')
    match_status = django_filters.ChoiceFilter(choices=ActiveProjection.MATCH_STATUS_CHOICES)
    order_type = django_filters.ChoiceFilter(choices=ORDER_TYPE_CHOICES)
    sku = django_filters.CharFilter(field_name='sku', lookup_expr='icontains')

    class Meta:
        model = ActiveProjection
        fields = ['vendor_id', 'brand', 'year', 'month', 'match_status', 'order_type', 'sku']


class ExpiredProjectionFilter(django_filters.FilterSet):
    vendor_id = django_filters.NumberFilter(field_name='vendor_ref_id')
    brand = django_filters.CharFilter(field_name='brand', lookup_expr='iexact')
    year = django_filters.NumberFilter(field_name='year')
    month = django_filters.NumberFilter(field_name='month')
    status = django_filters.ChoiceFilter(field_name='verification_status', choices=ExpiredProjection.VERIFICATION_STATUS_CHOICES)

    class Meta:
        model = ExpiredProjection
        fields = ['vendor_id', 'brand', 'year', 'month', 'status']
