from django.conf import settings
from django.db import models


class Client(models.Model):
    """Companies we source for (e.g. Crate & Barrel); POs carry the client name"""
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    name = models.CharField(max_length=255, unique=True)
    code = models.CharField(max_length=50, blank=True, null=True)  # Short code like "CB", "CB2", "C&K"
    region = models.CharField(max_length=100, blank=True, null=True)
    country = models.CharField(max_length=100, blank=True, null=True)
    contact_person = models.CharField(max_length=255, blank=True, null=True)
    email = models.EmailField(max_length=320, blank=True, null=True)
    phone = models.CharField(max_length=50, blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=50, choices=STATUS_CHOICES, default='active')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'clients'
        ordering = ['name']


class Staff(models.Model):
    """Merchandisers, merchandising managers and other team members"""
    ACCESS_LEVEL_CHOICES = [
        ('full_access', 'Full Access'),
        ('level_1', 'Level 1 (team records)'),
        ('level_2', 'Level 2 (own records)'),
    ]
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='staff_profile')
    name = models.CharField(max_length=255, unique=True)
    role = models.CharField(max_length=100)
    email = models.EmailField(max_length=320, blank=True, null=True)
    phone = models.CharField(max_length=50, blank=True, null=True)
    office = models.CharField(max_length=100, blank=True, null=True)
    status = models.CharField(max_length=50, choices=STATUS_CHOICES, default='active')
    access_level = models.CharField(max_length=50, choices=ACCESS_LEVEL_CHOICES, default='level_2')
    hire_date = models.DateField(blank=True, null=True)
    department = models.CharField(max_length=100, blank=True, null=True)
    title = models.CharField(max_length=150, blank=True, null=True)
    manager = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='reports')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'staff'
        ordering = ['name']


class StaffClientAssignment(models.Model):
    """Merchandisers assigned to specific clients"""
    staff = models.ForeignKey(Staff, on_delete=models.CASCADE, related_name='client_assignments')
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name='staff_assignments')
    role = models.CharField(max_length=100, blank=True, null=True)  # merchandiser, manager, backup
    is_primary = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.staff} -> {self.client}"

    class Meta:
        db_table = 'staff_client_assignments'
        unique_together = [('staff', 'client')]


class Vendor(models.Model):
    """Canonical vendor (factory group); imports refer to vendors by name or alias"""
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    name = models.CharField(max_length=255, unique=True)
    cbh_vendor_code = models.CharField(max_length=50, blank=True, null=True)
    contact_person = models.CharField(max_length=255, blank=True, null=True)
    email = models.EmailField(max_length=320, blank=True, null=True)
    phone = models.CharField(max_length=50, blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    country = models.CharField(max_length=100, blank=True, null=True)
    region = models.CharField(max_length=100, blank=True, null=True)
    merchandiser = models.ForeignKey(Staff, on_delete=models.SET_NULL, null=True, blank=True, related_name='merchandised_vendors')
    merchandising_manager = models.ForeignKey(Staff, on_delete=models.SET_NULL, null=True, blank=True, related_name='managed_vendors')
    status = models.CharField(max_length=50, choices=STATUS_CHOICES, default='active')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'vendors'
        ordering = ['name']


class VendorCapacityAlias(models.Model):
    """Alternate vendor names used by import files and capacity sheets (e.g. "YC", "GHP")"""
    alias = models.CharField(max_length=255, unique=True)
    vendor = models.ForeignKey(Vendor, on_delete=models.CASCADE, related_name='aliases')
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.alias} -> {self.vendor}"

    class Meta:
        db_table = 'vendor_capacity_aliases'
        ordering = ['alias']
