from django.contrib import admin
from .models import Client, Staff, StaffClientAssignment, Vendor, VendorCapacityAlias


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'region', 'country', 'status', 'created_at']
    list_filter = ['status', 'region']
    search_fields = ['name', 'code']
    ordering = ['name']


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ['name', 'role', 'office', 'access_level', 'manager', 'status']
    list_filter = ['role', 'access_level', 'status', 'office']
    search_fields = ['name', 'email']
    ordering = ['name']


@admin.register(StaffClientAssignment)
class StaffClientAssignmentAdmin(admin.ModelAdmin):
    list_display = ['staff', 'client', 'role', 'is_primary', 'created_at']
    list_filter = ['is_primary', 'client']
    search_fields = ['staff__name', 'client__name']


class VendorCapacityAliasInline(admin.TabularInline):
    model = VendorCapacityAlias
    extra = 0


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ['name', 'cbh_vendor_code', 'country', 'merchandiser', 'merchandising_manager', 'status']
    list_filter = ['status', 'country', 'region']
    search_fields = ['name', 'cbh_vendor_code', 'aliases__alias']
    ordering = ['name']
    inlines = [VendorCapacityAliasInline]


@admin.register(VendorCapacityAlias)
class VendorCapacityAliasAdmin(admin.ModelAdmin):
    list_display = ['alias', 'vendor', 'created_at']
    search_fields = ['alias', 'vendor__name']
    ordering = ['alias']
