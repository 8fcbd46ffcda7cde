from rest_framework import serializers
from .models import ImportHistory


class ImportHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ImportHistory
        fields = [
            'id', 'file_name', 'file_type', 'records_imported', 'records_skipped', 'imported_by',
            'status', 'error_message', 'warnings', 'pre_import_count', 'post_import_count',
            'file_row_count', 'created_at'
        ]
        read_only_fields = fields
