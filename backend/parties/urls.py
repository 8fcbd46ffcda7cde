from django.urls import path
from .views import (
    client_list_create, client_detail, client_kpis_view, client_staff, client_staff_remove,
    staff_list_create, staff_detail, staff_clients,
    vendor_list_create, vendor_detail,
    vendor_performance_view, vendor_ytd_performance_view, vendor_yoy_sales_view, vendor_otd_yoy_view,
    vendor_alias_list_create, vendor_alias_delete
)

urlpatterns = [
    # Client endpoints
    path('clients/', client_list_create, name='client-list-create'),
    path('clients/<int:pk>/', client_detail, name='client-detail'),
    path('clients/<int:pk>/kpis/', client_kpis_view, name='client-kpis'),
    path('clients/<int:pk>/staff/', client_staff, name='client-staff'),
    path('clients/<int:pk>/staff/<int:staff_id>/', client_staff_remove, name='client-staff-remove'),

    # Staff endpoints
    path('staff/', staff_list_create, name='staff-list-create'),
    path('staff/<int:pk>/', staff_detail, name='staff-detail'),
    path('staff/<int:pk>/clients/', staff_clients, name='staff-clients'),

    # Vendor endpoints
    path('vendors/', vendor_list_create, name='vendor-list-create'),
    path('vendors/<int:pk>/', vendor_detail, name='vendor-detail'),
    path('vendors/<int:pk>/performance/', vendor_performance_view, name='vendor-performance'),
    path('vendors/<int:pk>/ytd-performance/', vendor_ytd_performance_view, name='vendor-ytd-performance'),
    path('vendors/<int:pk>/yoy-sales/', vendor_yoy_sales_view, name='vendor-yoy-sales'),
    path('vendors/<int:pk>/otd-yoy/', vendor_otd_yoy_view, name='vendor-otd-yoy'),
    path('vendor-aliases/', vendor_alias_list_create, name='vendor-alias-list-create'),
    path('vendor-aliases/<int:pk>/', vendor_alias_delete, name='vendor-alias-delete'),
]
