from rest_framework import serializers
from .models import Inspection, QualityTest


class InspectionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Inspection
        fields = [
            'id', 'purchase_order', 'po_number', 'sku', 'style', 'vendor_ref', 'vendor_name',
            'inspection_type', 'inspection_date', 'result', 'inspector', 'inspection_company',
            'notes', 'created_at', 'updated_at'
        ]


class QualityTestSerializer(serializers.ModelSerializer):
    class Meta:
        model = QualityTest
        fields = [
            'id', 'purchase_order', 'po_number', 'sku', 'style', 'test_type', 'report_date',
            'report_number', 'result', 'expiry_date', 'status', 'corrective_action_plan',
            'report_link', 'created_at', 'updated_at'
        ]
