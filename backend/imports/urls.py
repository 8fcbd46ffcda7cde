from django.urls import path
from . import views

urlpatterns = [
    path('import/purchase-orders/', views.import_purchase_orders, name='import-purchase-orders'),
    path('import/shipments/', views.import_shipments, name='import-shipments'),
    path('import/quality-data/', views.import_quality_data, name='import-quality-data'),
    path('import/vendor-capacity/', views.import_vendor_capacity, name='import-vendor-capacity'),
    path('import/projections/', views.import_projections, name='import-projections'),
    path('import/history/', views.import_history, name='import-history'),
]
