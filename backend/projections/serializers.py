from rest_framework import serializers
from .models import ActiveProjection, ExpiredProjection, ProjectionHistory, ProjectionSnapshot

PROJECTION_DATA_FIELDS = [
    'vendor_ref', 'vendor_name', 'vendor_code', 'sku', 'sku_description', 'brand', 'product_class',
    'collection', 'year', 'month', 'projection_value', 'quantity', 'order_type',
]


class ProjectionSnapshotSerializer(serializers.ModelSerializer):
    vendor_name = serializers.CharField(source='vendor_ref.name', read_only=True)

    class Meta:
        model = ProjectionSnapshot
        fields = ['id', *PROJECTION_DATA_FIELDS, 'import_date', 'imported_by', 'created_at']


class ActiveProjectionSerializer(serializers.ModelSerializer):
    vendor_name = serializers.CharField(source='vendor_ref.name', read_only=True)

    class Meta:
        model = ActiveProjection
        fields = [
            'id', 'snapshot', *PROJECTION_DATA_FIELDS,
            'match_status', 'matched_po_number', 'matched_at', 'actual_quantity', 'actual_value',
            'quantity_variance', 'value_variance', 'variance_pct',
            'comment', 'commented_at', 'commented_by', 'last_snapshot_date', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ProjectionHistorySerializer(serializers.ModelSerializer):
    vendor_name = serializers.CharField(source='vendor_ref.name', read_only=True)

    class Meta:
        model = ProjectionHistory
        fields = [
            'id', *PROJECTION_DATA_FIELDS, 'match_status', 'matched_po_number', 'actual_quantity',
            'actual_value', 'variance_pct', 'original_import_date', 'original_imported_by', 'archived_at'
        ]


class ExpiredProjectionSerializer(serializers.ModelSerializer):
    vendor_name = serializers.CharField(source='vendor_ref.name', read_only=True)

    class Meta:
        model = ExpiredProjection
        fields = [
            'id', 'original_projection_id', *PROJECTION_DATA_FIELDS,
            'expired_at', 'expiration_reason', 'threshold_days', 'target_month_end', 'days_overdue',
            'verification_status', 'verified_at', 'verified_by', 'verification_notes',
            'restored_at', 'restored_by', 'original_import_date', 'original_imported_by'
        ]
        read_only_fields = fields
