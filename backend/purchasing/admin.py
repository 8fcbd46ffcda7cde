from django.contrib import admin
from .models import PurchaseOrder, PurchaseOrderLine


class PurchaseOrderLineInline(admin.TabularInline):
    model = PurchaseOrderLine
    extra = 0
    fields = ['line_sequence', 'sku', 'style', 'order_quantity', 'balance_quantity', 'unit_price', 'line_total']


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ['po_number', 'client', 'vendor', 'po_date', 'revised_ship_date', 'get_total', 'status', 'shipment_status']
    list_filter = ['status', 'client', 'office']
    search_fields = ['po_number', 'vendor', 'program_description']
    ordering = ['-po_date']
    inlines = [PurchaseOrderLineInline]
    readonly_fields = ['content_hash', 'created_at', 'updated_at']

    def get_total(self, obj):
        return f"${obj.total_value / 100:,.2f}"
    get_total.short_description = 'Total'
