from django.db import models
from backend.purchasing.models import PurchaseOrder


class Shipment(models.Model):
    """Shipment line from the logistics (OS650) report. Status is derived at read time."""
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.SET_NULL, null=True, blank=True, related_name='shipments')
    po_number = models.CharField(max_length=100)
    line_item_id = models.IntegerField(blank=True, null=True)
    style = models.CharField(max_length=100, blank=True, null=True)
    shipment_number = models.CharField(max_length=100, blank=True, null=True)

    delivery_to_consolidator = models.DateField(blank=True, null=True)
    qty_shipped = models.IntegerField(default=0)
    shipped_value = models.BigIntegerField(default=0)
    actual_port_of_loading = models.CharField(max_length=255, blank=True, null=True)
    actual_sailing_date = models.DateField(blank=True, null=True)

    eta = models.DateField(blank=True, null=True)
    actual_ship_mode = models.CharField(max_length=100, blank=True, null=True)
    poe = models.CharField(max_length=255, blank=True, null=True)
    vessel_flight = models.CharField(max_length=255, blank=True, null=True)
    cargo_ready_date = models.DateField(blank=True, null=True)
    load_type = models.CharField(max_length=100, blank=True, null=True)

    pts_number = models.CharField(max_length=100, blank=True, null=True)
    logistic_status = models.CharField(max_length=100, blank=True, null=True)
    late_reason_code = models.CharField(max_length=100, blank=True, null=True)
    reason = models.TextField(blank=True, null=True)
    hod_status = models.CharField(max_length=100, blank=True, null=True)
    so_first_submission_date = models.DateField(blank=True, null=True)
    pts_status = models.CharField(max_length=100, blank=True, null=True)
    cargo_receipt_status = models.CharField(max_length=100, blank=True, null=True)
    estimated_vessel_etd = models.DateField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.po_number} / {self.style or '-'}"

    @property
    def is_shipped(self):
        return bool(self.actual_sailing_date or self.delivery_to_consolidator)

    class Meta:
        db_table = 'shipments'
        ordering = ['-cargo_ready_date', '-created_at']
        indexes = [
            models.Index(fields=['po_number'], name='idx_shipment_po_number'),
            models.Index(fields=['cargo_ready_date'], name='idx_shipment_cargo_ready'),
        ]
