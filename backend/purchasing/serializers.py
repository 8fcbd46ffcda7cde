from rest_framework import serializers
from .models import PurchaseOrder, PurchaseOrderLine


class PurchaseOrderLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = PurchaseOrderLine
        fields = [
            'id', 'purchase_order', 'po_number', 'line_sequence', 'sku', 'style', 'seller_style',
            'order_quantity', 'balance_quantity', 'unit_price', 'line_total'
        ]


class PurchaseOrderSerializer(serializers.ModelSerializer):
    vendor_name = serializers.CharField(source='vendor_ref.name', read_only=True, default=None)
    merchandiser = serializers.CharField(source='vendor_ref.merchandiser.name', read_only=True, default=None)
    merchandising_manager = serializers.CharField(source='vendor_ref.merchandising_manager.name', read_only=True, default=None)
    line_quantity = serializers.SerializerMethodField()
    line_value = serializers.SerializerMethodField()
    has_actual_ship_date = serializers.SerializerMethodField()

    class Meta:
        model = PurchaseOrder
        fields = [
            'id', 'po_number', 'cop_number', 'client', 'client_division', 'client_department', 'buyer',
            'vendor', 'vendor_ref', 'vendor_name', 'merchandiser', 'merchandising_manager', 'factory',
            'product_group', 'product_category', 'season', 'program_description', 'office',
            'po_date', 'original_ship_date', 'original_cancel_date', 'revised_ship_date',
            'revised_cancel_date', 'revised_reason', 'confirmation_date',
            'total_quantity', 'balance_quantity', 'total_value', 'shipped_value',
            'line_quantity', 'line_value', 'has_actual_ship_date',
            'status', 'shipment_status', 'pts_number', 'pts_date', 'pts_status', 'logistic_status',
            'created_at', 'updated_at'
        ]

    # Annotated by annotate_po_list(); fall back to header values on plain instances
    def get_line_quantity(self, obj):
        return getattr(obj, 'line_quantity', obj.total_quantity)

    def get_line_value(self, obj):
        return getattr(obj, 'line_value', obj.total_value)

    def get_has_actual_ship_date(self, obj):
        value = getattr(obj, 'has_actual_ship_date', None)
        if value is None:
            return obj.shipments.filter(delivery_to_consolidator__isnull=False).exists() or \
                obj.shipments.filter(actual_sailing_date__isnull=False).exists()
        return bool(value)


class PurchaseOrderDetailSerializer(PurchaseOrderSerializer):
    lines = PurchaseOrderLineSerializer(many=True, read_only=True)

    class Meta(PurchaseOrderSerializer.Meta):
        fields = PurchaseOrderSerializer.Meta.fields + ['lines']
