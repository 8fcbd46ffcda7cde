from django.urls import path
from .views import shipment_list, shipment_summary, shipment_detail

urlpatterns = [
    path('shipments/', shipment_list, name='shipment-list'),
    path('shipments/summary/', shipment_summary, name='shipment-summary'),
    path('shipments/<int:pk>/', shipment_detail, name='shipment-detail'),
]
