from django.db import models
from django.utils import timezone
from backend.parties.models import Vendor

CAPACITY_DATA = 'CAPACITY_DATA'


class VendorCapacityData(models.Model):
    """Monthly capacity plan for one vendor and brand. Money is stored in cents."""
    vendor_ref = models.ForeignKey(Vendor, on_delete=models.SET_NULL, null=True, blank=True, related_name='capacity_data')
    vendor_code = models.CharField(max_length=64)  # Sheet name, e.g. "Riches"
    vendor_name = models.CharField(max_length=255)
    office = models.CharField(max_length=100, blank=True, null=True)
    client = models.CharField(max_length=64)  # CB, CB2, C&K or CAPACITY_DATA
    year = models.IntegerField()
    month = models.IntegerField()

    shipment_confirmed = models.BigIntegerField(default=0)
    shipment_unconfirmed = models.BigIntegerField(default=0)
    total_shipment = models.BigIntegerField(default=0)
    projection_rebuy = models.BigIntegerField(default=0)
    projection_new = models.BigIntegerField(default=0)
    total_projection = models.BigIntegerField(default=0)
    total_shipment_plus_projection = models.BigIntegerField(default=0)
    reserved_capacity = models.BigIntegerField(default=0)
    balance = models.BigIntegerField(default=0)
    utilized_capacity_pct = models.IntegerField(default=0)
    factory_overall_capacity = models.BigIntegerField(default=0)
    remarks = models.TextField(blank=True, null=True)

    is_locked = models.BooleanField(default=False)
    import_date = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.vendor_code} {self.client} {self.year}-{self.month:02d}"

    class Meta:
        db_table = 'vendor_capacity_data'
        ordering = ['vendor_code', 'year', 'month', 'client']
        unique_together = [('vendor_code', 'year', 'month', 'client')]
        indexes = [
            models.Index(fields=['year', 'is_locked'], name='idx_capacity_year_locked'),
        ]


class VendorCapacitySummary(models.Model):
    """Annual capacity totals per vendor"""
    vendor_ref = models.ForeignKey(Vendor, on_delete=models.SET_NULL, null=True, blank=True, related_name='capacity_summaries')
    vendor_code = models.CharField(max_length=64)
    vendor_name = models.CharField(max_length=255)
    office = models.CharField(max_length=100, blank=True, null=True)
    year = models.IntegerField()

    total_shipment_annual = models.BigIntegerField(default=0)
    total_projection_annual = models.BigIntegerField(default=0)
    total_reserved_capacity_annual = models.BigIntegerField(default=0)
    avg_utilization_pct = models.IntegerField(default=0)
    cb_shipment_annual = models.BigIntegerField(default=0)
    cb2_shipment_annual = models.BigIntegerField(default=0)
    ck_shipment_annual = models.BigIntegerField(default=0)

    is_locked = models.BooleanField(default=False)
    import_date = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.vendor_code} {self.year}"

    class Meta:
        db_table = 'vendor_capacity_summary'
        ordering = ['vendor_code', 'year']
        unique_together = [('vendor_code', 'year')]
