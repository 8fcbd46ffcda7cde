"""
Test utilities and factories for creating test data
"""
from datetime import date
import random
import string

from django.contrib.auth import get_user_model
from django.utils import timezone
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from backend.capacity.models import VendorCapacityData
from backend.logistics.models import Shipment
from backend.parties.models import Client, Staff, Vendor, VendorCapacityAlias
from backend.projections.models import ActiveProjection, ExpiredProjection, ProjectionSnapshot
from backend.purchasing.models import PurchaseOrder, PurchaseOrderLine
from backend.quality.models import Inspection, QualityTest

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_client(name=None, code=None, **kwargs):
        if not name:
            name = f'Client_{TestDataFactory.random_string(6)}'
        return Client.objects.create(name=name, code=code, **kwargs)

    @staticmethod
    def create_staff(name=None, role='merchandiser', **kwargs):
        if not name:
            name = f'Staff_{TestDataFactory.random_string(6)}'
        return Staff.objects.create(name=name, role=role, **kwargs)

    @staticmethod
    def create_vendor(name=None, **kwargs):
        """Create a test vendor"""
        if not name:
            name = f'Vendor_{TestDataFactory.random_string(6)}'
        return Vendor.objects.create(name=name, **kwargs)

    @staticmethod
    def create_vendor_alias(vendor, alias=None):
        if not alias:
            alias = f'Alias_{TestDataFactory.random_string(6)}'
        return VendorCapacityAlias.objects.create(vendor=vendor, alias=alias)

    @staticmethod
    def create_purchase_order(po_number=None, vendor=None, lines=None, **kwargs):
        """
        Create a PO header. `vendor` may be a Vendor or a name. `lines` is a
        list of dicts of PurchaseOrderLine fields; header totals default to
        the line sums.
        """
        if not po_number:
            po_number = f'PO{random.randint(100000, 999999)}'
        if isinstance(vendor, Vendor):
            kwargs.setdefault('vendor_ref', vendor)
            vendor = vendor.name
        lines = lines or []
        kwargs.setdefault('total_quantity', sum(line.get('order_quantity', 0) for line in lines))
        kwargs.setdefault('total_value', sum(line.get('line_total', 0) for line in lines))
        kwargs.setdefault('po_date', timezone.localdate())

        po = PurchaseOrder.objects.create(po_number=po_number, vendor=vendor, **kwargs)
        for index, line in enumerate(lines, start=1):
            PurchaseOrderLine.objects.create(
                purchase_order=po,
                po_number=po_number,
                line_sequence=line.pop('line_sequence', index),
                **line
            )
        return po

    @staticmethod
    def create_shipment(purchase_order=None, po_number=None, **kwargs):
        if purchase_order is not None:
            po_number = purchase_order.po_number
        return Shipment.objects.create(purchase_order=purchase_order, po_number=po_number or 'PO000000', **kwargs)

    @staticmethod
    def create_inspection(purchase_order=None, po_number=None, inspection_type='Final', **kwargs):
        if purchase_order is not None:
            po_number = purchase_order.po_number
        return Inspection.objects.create(
            purchase_order=purchase_order,
            po_number=po_number or 'PO000000',
            inspection_type=inspection_type,
            **kwargs
        )

    @staticmethod
    def create_quality_test(purchase_order=None, po_number=None, test_type='Mandatory', **kwargs):
        if purchase_order is not None:
            po_number = purchase_order.po_number
        return QualityTest.objects.create(
            purchase_order=purchase_order,
            po_number=po_number or 'PO000000',
            test_type=test_type,
            **kwargs
        )

    @staticmethod
    def create_projection(vendor, sku=None, year=None, month=1, **kwargs):
        """Create an active projection"""
        if not sku:
            sku = f'SKU{TestDataFactory.random_string(6).upper()}'
        kwargs.setdefault('vendor_code', vendor.name[:64])
        kwargs.setdefault('brand', 'CB')
        return ActiveProjection.objects.create(
            vendor_ref=vendor,
            sku=sku,
            year=year or timezone.localdate().year,
            month=month,
            **kwargs
        )

    @staticmethod
    def create_snapshot(vendor, import_date, sku=None, year=None, month=1, **kwargs):
        if not sku:
            sku = f'SKU{TestDataFactory.random_string(6).upper()}'
        kwargs.setdefault('vendor_code', vendor.name[:64])
        kwargs.setdefault('brand', 'CB')
        return ProjectionSnapshot.objects.create(
            vendor_ref=vendor,
            sku=sku,
            year=year or timezone.localdate().year,
            month=month,
            import_date=import_date,
            **kwargs
        )

    @staticmethod
    def create_expired_projection(vendor, sku=None, year=None, month=1, **kwargs):
        if not sku:
            sku = f'SKU{TestDataFactory.random_string(6).upper()}'
        year = year or timezone.localdate().year
        kwargs.setdefault('vendor_code', vendor.name[:64])
        kwargs.setdefault('brand', 'CB')
        kwargs.setdefault('original_projection_id', random.randint(1, 100000))
        kwargs.setdefault('expiration_reason', 'past_90_day_window')
        kwargs.setdefault('threshold_days', 90)
        kwargs.setdefault('target_month_end', date(year, month, 28))
        kwargs.setdefault('days_overdue', 1)
        return ExpiredProjection.objects.create(vendor_ref=vendor, sku=sku, year=year, month=month, **kwargs)

    @staticmethod
    def create_capacity_data(vendor_code, year, month, client='CAPACITY_DATA', **kwargs):
        kwargs.setdefault('vendor_name', vendor_code)
        return VendorCapacityData.objects.create(
            vendor_code=vendor_code, year=year, month=month, client=client, **kwargs
        )

    @staticmethod
    def csv_upload(rows, name='upload.csv'):
        """Build an uploaded CSV file from a list of rows (first row is the header)"""
        content = '\n'.join(','.join(str(cell) for cell in row) for row in rows)
        return SimpleUploadedFile(name, content.encode('utf-8'), content_type='text/csv')


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
