from django.contrib import admin
from .models import Inspection, QualityTest


@admin.register(Inspection)
class InspectionAdmin(admin.ModelAdmin):
    list_display = ['po_number', 'sku', 'inspection_type', 'inspection_date', 'result', 'inspector', 'vendor_name']
    list_filter = ['inspection_type', 'result', 'inspection_company']
    search_fields = ['po_number', 'sku', 'style', 'inspector', 'vendor_name']
    ordering = ['-inspection_date']
    date_hierarchy = 'inspection_date'


@admin.register(QualityTest)
class QualityTestAdmin(admin.ModelAdmin):
    list_display = ['po_number', 'sku', 'test_type', 'report_number', 'report_date', 'result', 'expiry_date']
    list_filter = ['test_type', 'result', 'status']
    search_fields = ['po_number', 'sku', 'report_number']
    ordering = ['-report_date']
