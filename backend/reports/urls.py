from django.urls import path
from . import views

urlpatterns = [
    path('dashboard/kpis/', views.dashboard_kpis, name='dashboard-kpis'),
    path('dashboard/header-kpis/', views.header_kpis, name='dashboard-header-kpis'),
    path('dashboard/otd-by-vendor/', views.otd_by_vendor, name='dashboard-otd-by-vendor'),
    path('dashboard/filter-options/', views.filter_options, name='dashboard-filter-options'),
]
