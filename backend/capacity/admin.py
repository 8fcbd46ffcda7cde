from django.contrib import admin
from .models import VendorCapacityData, VendorCapacitySummary


@admin.register(VendorCapacityData)
class VendorCapacityDataAdmin(admin.ModelAdmin):
    list_display = ['vendor_code', 'client', 'year', 'month', 'total_shipment', 'total_projection', 'reserved_capacity', 'is_locked']
    list_filter = ['client', 'year', 'is_locked', 'office']
    search_fields = ['vendor_code', 'vendor_name']


@admin.register(VendorCapacitySummary)
class VendorCapacitySummaryAdmin(admin.ModelAdmin):
    list_display = ['vendor_code', 'vendor_name', 'year', 'total_shipment_annual', 'total_reserved_capacity_annual', 'avg_utilization_pct', 'is_locked']
    list_filter = ['year', 'is_locked', 'office']
    search_fields = ['vendor_code', 'vendor_name']
