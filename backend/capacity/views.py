import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.utils import timezone

from backend.core.utils import create_audit_log, paginate, parse_int_param
from backend.parties.models import Vendor
from . import services
from .models import VendorCapacityData, VendorCapacitySummary
from .reconciliation import build_reconciliation, parse_brands
from .serializers import VendorCapacityDataSerializer, VendorCapacitySummarySerializer

logger = logging.getLogger('backend.capacity')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def capacity_data_list(request):
    """List monthly capacity rows"""
    queryset = VendorCapacityData.objects.all()
    vendor_code = request.query_params.get('vendor_code')
    client = request.query_params.get('client')
    try:
        year = parse_int_param(request.query_params.get('year'))
    except ValueError:
        return Response({'error': 'year must be an integer'}, status=status.HTTP_400_BAD_REQUEST)

    if vendor_code:
        queryset = queryset.filter(vendor_code__iexact=vendor_code.strip())
    if year:
        queryset = queryset.filter(year=year)
    if client:
        queryset = queryset.filter(client__iexact=client.strip())
    return paginate(request, queryset.order_by('vendor_code', 'year', 'month', 'client'), VendorCapacityDataSerializer, default_limit=200)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def capacity_summary_list(request):
    """Annual capacity summaries with the canonical vendor name where the code resolves"""
    queryset = VendorCapacitySummary.objects.select_related('vendor_ref')
    try:
        year = parse_int_param(request.query_params.get('year'))
    except ValueError:
        return Response({'error': 'year must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    if year:
        queryset = queryset.filter(year=year)

    vendor_names = {}
    for vendor in Vendor.objects.prefetch_related('aliases'):
        vendor_names.setdefault(vendor.name.strip().lower(), vendor.name)
        for alias in vendor.aliases.all():
            vendor_names.setdefault(alias.alias.strip().lower(), vendor.name)

    serializer = VendorCapacitySummarySerializer(
        queryset.order_by('vendor_code', 'year'), many=True, context={'vendor_names': vendor_names}
    )
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def locked_years(request):
    return Response({'locked_years': services.locked_years()})


def _set_locked(request, locked):
    try:
        year = parse_int_param(request.data.get('year'))
    except (TypeError, ValueError):
        year = None
    if not year:
        return Response({'error': 'year is required'}, status=status.HTTP_400_BAD_REQUEST)

    result = services.set_year_locked(year, locked)
    create_audit_log(
        request=request,
        action='lock' if locked else 'unlock',
        model_name='VendorCapacityData',
        object_id=str(year),
        object_name=f'Capacity year {year}',
        changes=result,
    )
    return Response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def lock_year(request):
    """Lock a capacity year so imports leave it untouched"""
    return _set_locked(request, True)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def unlock_year(request):
    return _set_locked(request, False)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def update_reserved_capacity(request, vendor_code, year, month):
    """Edit the reserved capacity of one month"""
    if not 1 <= month <= 12:
        return Response({'error': 'month must be between 1 and 12'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        reserved = int(request.data.get('reserved_capacity'))
    except (TypeError, ValueError):
        return Response({'error': 'reserved_capacity must be an integer number of cents'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        row = services.update_reserved_capacity(vendor_code, year, month, reserved)
    except LookupError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request,
        action='update',
        model_name='VendorCapacityData',
        object_id=str(row.id),
        object_name=vendor_code,
        object_reference=f'{year}-{month:02d}',
        changes={'reserved_capacity': reserved},
    )
    return Response(VendorCapacityDataSerializer(row).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def vendor_reconciliation(request, vendor_code):
    """Twelve-month reserved capacity versus orders and projections"""
    try:
        year = parse_int_param(request.query_params.get('year'), timezone.localdate().year)
        brands = parse_brands(request.query_params.get('brands'))
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    try:
        return Response(build_reconciliation(vendor_code, year, brands))
    except Exception as e:
        logger.error(f"Error building reconciliation for {vendor_code}: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to build capacity reconciliation'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
