from django.db import models
from backend.parties.models import Vendor

ORDER_TYPE_CHOICES = [
    ('regular', 'Regular'),
    ('mto', 'MTO'),
    ('spo', 'SPO'),
]
MTO_ORDER_TYPES = ('mto', 'spo')


class ProjectionData(models.Model):
    """Fields every projection table carries. Values are in cents."""
    vendor_ref = models.ForeignKey(Vendor, on_delete=models.CASCADE, related_name='%(class)s_rows')
    vendor_code = models.CharField(max_length=64)
    sku = models.CharField(max_length=64)
    sku_description = models.TextField(blank=True, null=True)
    brand = models.CharField(max_length=64)  # CB, CB2, C&K
    product_class = models.CharField(max_length=100, blank=True, null=True)
    collection = models.CharField(max_length=100, blank=True, null=True)
    year = models.IntegerField()
    month = models.IntegerField()  # 1-12
    projection_value = models.BigIntegerField(default=0)
    quantity = models.IntegerField(default=0)
    order_type = models.CharField(max_length=20, choices=ORDER_TYPE_CHOICES, default='regular')

    @property
    def is_mto(self):
        return self.order_type in MTO_ORDER_TYPES

    class Meta:
        abstract = True


class ProjectionSnapshot(ProjectionData):
    """Immutable copy of every projection row as imported"""
    import_date = models.DateField()
    imported_by = models.CharField(max_length=255, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.vendor_code} {self.sku} {self.year}-{self.month:02d} @ {self.import_date}"

    class Meta:
        db_table = 'projection_snapshots'
        ordering = ['-import_date', 'vendor_code', 'sku']
        unique_together = [('vendor_code', 'sku', 'year', 'month', 'import_date')]


class ActiveProjection(ProjectionData):
    """Working copy of the latest projection per vendor/SKU/month, matched against POs"""
    MATCH_STATUS_CHOICES = [
        ('unmatched', 'Unmatched'),
        ('matched', 'Matched'),
        ('partial', 'Partial'),
        ('expired', 'Expired'),
    ]

    snapshot = models.ForeignKey(ProjectionSnapshot, on_delete=models.SET_NULL, null=True, blank=True, related_name='active_projections')
    match_status = models.CharField(max_length=20, choices=MATCH_STATUS_CHOICES, default='unmatched')
    matched_po_number = models.CharField(max_length=100, blank=True, null=True)
    matched_at = models.DateTimeField(blank=True, null=True)
    actual_quantity = models.IntegerField(blank=True, null=True)
    actual_value = models.BigIntegerField(blank=True, null=True)
    quantity_variance = models.IntegerField(blank=True, null=True)
    value_variance = models.BigIntegerField(blank=True, null=True)
    variance_pct = models.IntegerField(blank=True, null=True)
    comment = models.TextField(blank=True, null=True)
    commented_at = models.DateTimeField(blank=True, null=True)
    commented_by = models.CharField(max_length=255, blank=True, null=True)
    last_snapshot_date = models.DateField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.vendor_code} {self.sku} {self.year}-{self.month:02d} ({self.match_status})"

    class Meta:
        db_table = 'active_projections'
        ordering = ['year', 'month', 'vendor_code', 'sku']
        unique_together = [('vendor_code', 'sku', 'year', 'month')]
        indexes = [
            models.Index(fields=['match_status'], name='idx_active_proj_status'),
            models.Index(fields=['year', 'month'], name='idx_active_proj_period'),
        ]


class ProjectionHistory(ProjectionData):
    """An active projection as it stood before a newer import replaced it"""
    match_status = models.CharField(max_length=20, blank=True, null=True)
    matched_po_number = models.CharField(max_length=100, blank=True, null=True)
    matched_at = models.DateTimeField(blank=True, null=True)
    actual_quantity = models.IntegerField(blank=True, null=True)
    actual_value = models.BigIntegerField(blank=True, null=True)
    quantity_variance = models.IntegerField(blank=True, null=True)
    value_variance = models.BigIntegerField(blank=True, null=True)
    variance_pct = models.IntegerField(blank=True, null=True)
    original_import_date = models.DateField(blank=True, null=True)
    original_imported_by = models.CharField(max_length=255, blank=True, null=True)
    archived_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'vendor_sku_projection_history'
        ordering = ['-archived_at']


class ExpiredProjection(ProjectionData):
    """Unmatched projection moved out of the active table once its order window closed"""
    VERIFICATION_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('verified', 'Verified'),
        ('cancelled', 'Cancelled'),
        ('restored', 'Restored'),
    ]

    original_projection_id = models.IntegerField()
    expired_at = models.DateTimeField(auto_now_add=True)
    expiration_reason = models.CharField(max_length=50)  # past_90_day_window / past_30_day_window
    threshold_days = models.IntegerField()
    target_month_end = models.DateField()
    days_overdue = models.IntegerField()
    verification_status = models.CharField(max_length=20, choices=VERIFICATION_STATUS_CHOICES, default='pending')
    verified_at = models.DateTimeField(blank=True, null=True)
    verified_by = models.CharField(max_length=255, blank=True, null=True)
    verification_notes = models.TextField(blank=True, null=True)
    restored_at = models.DateTimeField(blank=True, null=True)
    restored_by = models.CharField(max_length=255, blank=True, null=True)
    original_import_date = models.DateField(blank=True, null=True)
    original_imported_by = models.CharField(max_length=255, blank=True, null=True)

    def __str__(self):
        return f"{self.vendor_code} {self.sku} {self.year}-{self.month:02d} expired ({self.verification_status})"

    class Meta:
        db_table = 'expired_projections'
        ordering = ['-expired_at', '-id']
