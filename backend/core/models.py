from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Extended user model with additional fields"""
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'


class AuditLog(models.Model):
    """Audit log for data changes, imports and projection workflow actions"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('import', 'Import'),
        ('match', 'Projection Matched'),
        ('unmatch', 'Projection Unmatched'),
        ('remove', 'Projection Removed'),
        ('expire', 'Projections Expired'),
        ('restore', 'Projection Restored'),
        ('verify', 'Expired Projection Verified'),
        ('lock', 'Capacity Year Locked'),
        ('unlock', 'Capacity Year Unlocked'),
        ('assign', 'Staff Assigned'),
        ('unassign', 'Staff Unassigned'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., vendor name, file name)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., PO number, SKU)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_e9a1b2_idx'),
            models.Index(fields=['action'], name='audit_logs_action_4c7d1e_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_8f2a3c_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__5b6e7d_idx'),
        ]
