from rest_framework import serializers
from .models import Client, Staff, StaffClientAssignment, Vendor, VendorCapacityAlias


class ClientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Client
        fields = [
            'id', 'name', 'code', 'region', 'country', 'contact_person', 'email', 'phone',
            'address', 'status', 'created_at', 'updated_at'
        ]


class StaffSerializer(serializers.ModelSerializer):
    manager_name = serializers.CharField(source='manager.name', read_only=True)
    username = serializers.CharField(source='user.username', read_only=True)

    class Meta:
        model = Staff
        fields = [
            'id', 'user', 'username', 'name', 'role', 'email', 'phone', 'office', 'status',
            'access_level', 'hire_date', 'department', 'title', 'manager', 'manager_name',
            'created_at', 'updated_at'
        ]


class StaffClientAssignmentSerializer(serializers.ModelSerializer):
    staff_name = serializers.CharField(source='staff.name', read_only=True)
    staff_role = serializers.CharField(source='staff.role', read_only=True)
    client_name = serializers.CharField(source='client.name', read_only=True)
    client_code = serializers.CharField(source='client.code', read_only=True)

    class Meta:
        model = StaffClientAssignment
        fields = [
            'id', 'staff', 'staff_name', 'staff_role', 'client', 'client_name', 'client_code',
            'role', 'is_primary', 'created_at'
        ]
        read_only_fields = ['client']


class VendorSerializer(serializers.ModelSerializer):
    merchandiser_name = serializers.CharField(source='merchandiser.name', read_only=True)
    merchandising_manager_name = serializers.CharField(source='merchandising_manager.name', read_only=True)
    aliases = serializers.SlugRelatedField(many=True, read_only=True, slug_field='alias')

    class Meta:
        model = Vendor
        fields = [
            'id', 'name', 'cbh_vendor_code', 'contact_person', 'email', 'phone', 'address',
            'country', 'region', 'merchandiser', 'merchandiser_name',
            'merchandising_manager', 'merchandising_manager_name', 'aliases',
            'status', 'created_at', 'updated_at'
        ]


class VendorCapacityAliasSerializer(serializers.ModelSerializer):
    vendor_name = serializers.CharField(source='vendor.name', read_only=True)

    class Meta:
        model = VendorCapacityAlias
        fields = ['id', 'alias', 'vendor', 'vendor_name', 'notes', 'created_at']

    def validate_alias(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Alias cannot be blank")
        return value
