from django.contrib import admin
from .models import ActiveProjection, ExpiredProjection, ProjectionHistory, ProjectionSnapshot


@admin.register(ProjectionSnapshot)
class ProjectionSnapshotAdmin(admin.ModelAdmin):
    list_display = ['vendor_code', 'sku', 'brand', 'year', 'month', 'projection_value', 'quantity', 'import_date']
    list_filter = ['brand', 'order_type', 'import_date']
    search_fields = ['vendor_code', 'sku', 'collection']
    date_hierarchy = 'import_date'


@admin.register(ActiveProjection)
class ActiveProjectionAdmin(admin.ModelAdmin):
    list_display = ['vendor_code', 'sku', 'brand', 'year', 'month', 'order_type', 'match_status', 'matched_po_number', 'variance_pct']
    list_filter = ['match_status', 'order_type', 'brand', 'year']
    search_fields = ['vendor_code', 'sku', 'collection', 'matched_po_number']
    ordering = ['year', 'month']


@admin.register(ProjectionHistory)
class ProjectionHistoryAdmin(admin.ModelAdmin):
    list_display = ['vendor_code', 'sku', 'year', 'month', 'projection_value', 'match_status', 'original_import_date', 'archived_at']
    list_filter = ['match_status', 'year']
    search_fields = ['vendor_code', 'sku']


@admin.register(ExpiredProjection)
class ExpiredProjectionAdmin(admin.ModelAdmin):
    list_display = ['vendor_code', 'sku', 'year', 'month', 'order_type', 'expiration_reason', 'days_overdue', 'verification_status']
    list_filter = ['verification_status', 'expiration_reason', 'order_type']
    search_fields = ['vendor_code', 'sku']
