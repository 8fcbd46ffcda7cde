from django.db import models


class ImportHistory(models.Model):
    """One row per uploaded file with its outcome and row counts"""
    STATUS_CHOICES = [
        ('success', 'Success'),
        ('partial', 'Partial'),
        ('failed', 'Failed'),
    ]

    file_name = models.CharField(max_length=255)
    file_type = models.CharField(max_length=50)  # purchase_orders, shipments, quality_data, vendor_capacity, projections
    records_imported = models.IntegerField(default=0)
    records_skipped = models.IntegerField(default=0)
    imported_by = models.CharField(max_length=255, blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='success')
    error_message = models.TextField(blank=True, null=True)
    warnings = models.JSONField(default=list, blank=True)
    pre_import_count = models.IntegerField(blank=True, null=True)
    post_import_count = models.IntegerField(blank=True, null=True)
    file_row_count = models.IntegerField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.file_type}: {self.file_name} ({self.status})"

    class Meta:
        db_table = 'import_history'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['file_type', 'created_at'], name='idx_import_type_created'),
        ]
