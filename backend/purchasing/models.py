from django.db import models
from backend.parties.models import Vendor


class PurchaseOrder(models.Model):
    """PO header as imported from the client PO report. Money is stored in cents."""
    STATUS_CHOICES = [
        ('Booked-to-ship', 'Booked-to-ship'),
        ('Shipped', 'Shipped'),
        ('Closed', 'Closed'),
        ('Cancelled', 'Cancelled'),
    ]

    po_number = models.CharField(max_length=100, unique=True)
    cop_number = models.CharField(max_length=100, blank=True, null=True)
    client = models.CharField(max_length=255, blank=True, null=True)
    client_division = models.CharField(max_length=255, blank=True, null=True)
    client_department = models.CharField(max_length=255, blank=True, null=True)
    buyer = models.CharField(max_length=255, blank=True, null=True)
    vendor = models.CharField(max_length=255, blank=True, null=True)  # Name as it appears in the import
    vendor_ref = models.ForeignKey(Vendor, on_delete=models.SET_NULL, null=True, blank=True, related_name='purchase_orders')
    factory = models.CharField(max_length=255, blank=True, null=True)
    product_group = models.CharField(max_length=255, blank=True, null=True)
    product_category = models.CharField(max_length=255, blank=True, null=True)
    season = models.CharField(max_length=100, blank=True, null=True)
    program_description = models.CharField(max_length=500, blank=True, null=True)
    office = models.CharField(max_length=100, blank=True, null=True)

    po_date = models.DateField(blank=True, null=True)
    original_ship_date = models.DateField(blank=True, null=True)
    original_cancel_date = models.DateField(blank=True, null=True)
    revised_ship_date = models.DateField(blank=True, null=True)  # HOD
    revised_cancel_date = models.DateField(blank=True, null=True)
    revised_reason = models.CharField(max_length=500, blank=True, null=True)
    confirmation_date = models.DateField(blank=True, null=True)

    total_quantity = models.IntegerField(default=0)
    balance_quantity = models.IntegerField(default=0)
    total_value = models.BigIntegerField(default=0)
    shipped_value = models.BigIntegerField(default=0)

    status = models.CharField(max_length=50, choices=STATUS_CHOICES, default='Booked-to-ship')
    shipment_status = models.CharField(max_length=50, blank=True, null=True)  # On-Time / Late once shipped
    content_hash = models.CharField(max_length=32, blank=True, null=True)

    pts_number = models.CharField(max_length=100, blank=True, null=True)
    pts_date = models.DateField(blank=True, null=True)
    pts_status = models.CharField(max_length=100, blank=True, null=True)
    logistic_status = models.CharField(max_length=100, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.po_number

    @property
    def cancel_date(self):
        return self.revised_cancel_date or self.original_cancel_date

    class Meta:
        db_table = 'po_headers'
        ordering = ['-po_date', '-id']
        indexes = [
            models.Index(fields=['vendor'], name='idx_po_vendor'),
            models.Index(fields=['client'], name='idx_po_client'),
            models.Index(fields=['status'], name='idx_po_status'),
            models.Index(fields=['po_date'], name='idx_po_date'),
            models.Index(fields=['revised_ship_date'], name='idx_po_revised_ship'),
        ]


class PurchaseOrderLine(models.Model):
    """PO line items"""
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name='lines')
    po_number = models.CharField(max_length=100)
    line_sequence = models.IntegerField(default=1)
    sku = models.CharField(max_length=100, blank=True, null=True)
    style = models.CharField(max_length=100, blank=True, null=True)
    seller_style = models.CharField(max_length=100, blank=True, null=True)
    order_quantity = models.IntegerField(default=0)
    balance_quantity = models.IntegerField(default=0)
    unit_price = models.BigIntegerField(default=0)
    line_total = models.BigIntegerField(default=0)

    def __str__(self):
        return f"{self.po_number} #{self.line_sequence}"

    class Meta:
        db_table = 'po_line_items'
        ordering = ['purchase_order', 'line_sequence']
        indexes = [
            models.Index(fields=['po_number'], name='idx_poline_po_number'),
            models.Index(fields=['sku'], name='idx_poline_sku'),
        ]
