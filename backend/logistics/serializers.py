from rest_framework import serializers
from .models import Shipment


class ShipmentSerializer(serializers.ModelSerializer):
    is_shipped = serializers.BooleanField(read_only=True)

    class Meta:
        model = Shipment
        fields = [
            'id', 'purchase_order', 'po_number', 'line_item_id', 'style', 'shipment_number',
            'delivery_to_consolidator', 'qty_shipped', 'shipped_value', 'actual_port_of_loading',
            'actual_sailing_date', 'eta', 'actual_ship_mode', 'poe', 'vessel_flight',
            'cargo_ready_date', 'load_type', 'pts_number', 'logistic_status', 'late_reason_code',
            'reason', 'hod_status', 'so_first_submission_date', 'pts_status', 'cargo_receipt_status',
            'estimated_vessel_etd', 'is_shipped', 'created_at', 'updated_at'
        ]
