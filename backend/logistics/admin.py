from django.contrib import admin
from .models import Shipment


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    list_display = ['po_number', 'style', 'cargo_ready_date', 'actual_sailing_date', 'delivery_to_consolidator', 'hod_status', 'logistic_status']
    list_filter = ['hod_status', 'logistic_status', 'actual_ship_mode']
    search_fields = ['po_number', 'style', 'shipment_number', 'pts_number']
    ordering = ['-cargo_ready_date']
    date_hierarchy = 'cargo_ready_date'
