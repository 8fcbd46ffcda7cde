from django.contrib import admin
from .models import ImportHistory


@admin.register(ImportHistory)
class ImportHistoryAdmin(admin.ModelAdmin):
    list_display = ['file_name', 'file_type', 'status', 'records_imported', 'records_skipped', 'imported_by', 'created_at']
    list_filter = ['file_type', 'status']
    search_fields = ['file_name', 'imported_by']
    readonly_fields = ['warnings', 'created_at']
