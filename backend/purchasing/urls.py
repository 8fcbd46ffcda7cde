from django.urls import path
from .views import purchase_order_list, purchase_order_detail, purchase_order_by_number

urlpatterns = [
    path('purchase-orders/', purchase_order_list, name='purchase-order-list'),
    path('purchase-orders/<int:pk>/', purchase_order_detail, name='purchase-order-detail'),
    path('purchase-orders/by-number/<str:po_number>/', purchase_order_by_number, name='purchase-order-by-number'),
]
