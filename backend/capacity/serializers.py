from rest_framework import serializers
from .models import VendorCapacityData, VendorCapacitySummary


class VendorCapacityDataSerializer(serializers.ModelSerializer):
    class Meta:
        model = VendorCapacityData
        fields = [
            'id', 'vendor_ref', 'vendor_code', 'vendor_name', 'office', 'client', 'year', 'month',
            'shipment_confirmed', 'shipment_unconfirmed', 'total_shipment', 'projection_rebuy',
            'projection_new', 'total_projection', 'total_shipment_plus_projection', 'reserved_capacity',
            'balance', 'utilized_capacity_pct', 'factory_overall_capacity', 'remarks',
            'is_locked', 'import_date'
        ]


class VendorCapacitySummarySerializer(serializers.ModelSerializer):
    canonical_vendor_name = serializers.SerializerMethodField()

    class Meta:
        model = VendorCapacitySummary
        fields = [
            'id', 'vendor_ref', 'vendor_code', 'vendor_name', 'canonical_vendor_name', 'office', 'year',
            'total_shipment_annual', 'total_projection_annual', 'total_reserved_capacity_annual',
            'avg_utilization_pct', 'cb_shipment_annual', 'cb2_shipment_annual', 'ck_shipment_annual',
            'is_locked', 'import_date'
        ]

    def get_canonical_vendor_name(self, obj):
        vendor_names = self.context.get('vendor_names') or {}
        if obj.vendor_ref_id:
            return obj.vendor_ref.name
        return vendor_names.get(obj.vendor_code.strip().lower())
