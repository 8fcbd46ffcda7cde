from django.urls import path
from . import views

urlpatterns = [
    path('vendor-capacity/', views.capacity_data_list, name='vendor-capacity-list'),
    path('vendor-capacity/summaries/', views.capacity_summary_list, name='vendor-capacity-summaries'),
    path('vendor-capacity/locked-years/', views.locked_years, name='vendor-capacity-locked-years'),
    path('vendor-capacity/lock-year/', views.lock_year, name='vendor-capacity-lock-year'),
    path('vendor-capacity/unlock-year/', views.unlock_year, name='vendor-capacity-unlock-year'),
    path('vendor-capacity/<str:vendor_code>/reconciliation/', views.vendor_reconciliation, name='vendor-capacity-reconciliation'),
    path('vendor-capacity/<str:vendor_code>/<int:year>/<int:month>/', views.update_reserved_capacity, name='vendor-capacity-reserved'),
]
