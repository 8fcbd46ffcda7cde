from django.urls import path
from . import views

urlpatterns = [
    path('skus/', views.sku_list, name='sku-list'),
    path('skus/summary/', views.sku_summary, name='sku-summary'),
    path('skus/<str:sku>/shipments/', views.sku_order_history, name='sku-order-history'),
    path('skus/<str:sku>/compliance/', views.sku_compliance, name='sku-compliance'),
]
