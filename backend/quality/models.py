from django.db import models
from backend.parties.models import Vendor
from backend.purchasing.models import PurchaseOrder


class Inspection(models.Model):
    """Third-party inspection booked against a PO/SKU"""
    INSPECTION_TYPE_CHOICES = [
        ('Material', 'Material'),
        ('Initial', 'Initial'),
        ('Inline', 'Inline'),
        ('Final', 'Final'),
        ('Re-Final', 'Re-Final'),
    ]

    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.SET_NULL, null=True, blank=True, related_name='inspections')
    po_number = models.CharField(max_length=100)
    sku = models.CharField(max_length=100, blank=True, null=True)
    style = models.CharField(max_length=100, blank=True, null=True)
    vendor_ref = models.ForeignKey(Vendor, on_delete=models.SET_NULL, null=True, blank=True, related_name='inspections')
    vendor_name = models.CharField(max_length=255, blank=True, null=True)
    inspection_type = models.CharField(max_length=100, choices=INSPECTION_TYPE_CHOICES)
    inspection_date = models.DateField(blank=True, null=True)
    result = models.CharField(max_length=100, blank=True, null=True)  # Passed, Failed, Failed - Critical Failure, Abort
    inspector = models.CharField(max_length=255, blank=True, null=True)
    inspection_company = models.CharField(max_length=255, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.inspection_type} {self.po_number} ({self.inspection_date})"

    class Meta:
        db_table = 'inspections'
        ordering = ['-inspection_date', '-id']
        indexes = [
            models.Index(fields=['po_number'], name='idx_inspection_po_number'),
            models.Index(fields=['inspection_type', 'result'], name='idx_inspection_type_result'),
        ]


class QualityTest(models.Model):
    """Lab test report for a SKU shipped on a PO"""
    TEST_TYPE_CHOICES = [
        ('Mandatory', 'Mandatory'),
        ('Performance', 'Performance'),
        ('Transit', 'Transit'),
        ('Retest', 'Retest'),
    ]

    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.SET_NULL, null=True, blank=True, related_name='quality_tests')
    po_number = models.CharField(max_length=100)
    sku = models.CharField(max_length=100, blank=True, null=True)
    style = models.CharField(max_length=100, blank=True, null=True)
    test_type = models.CharField(max_length=100, choices=TEST_TYPE_CHOICES)
    report_date = models.DateField(blank=True, null=True)
    report_number = models.CharField(max_length=100, blank=True, null=True)
    result = models.CharField(max_length=100, blank=True, null=True)  # Pass / Fail; empty while pending
    expiry_date = models.DateField(blank=True, null=True)
    status = models.CharField(max_length=100, blank=True, null=True)
    corrective_action_plan = models.TextField(blank=True, null=True)
    report_link = models.URLField(max_length=1000, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.test_type} {self.sku or self.po_number} ({self.report_number or '-'})"

    class Meta:
        db_table = 'quality_tests'
        ordering = ['-report_date', '-id']
        indexes = [
            models.Index(fields=['po_number'], name='idx_qtest_po_number'),
            models.Index(fields=['expiry_date'], name='idx_qtest_expiry'),
        ]
