import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404

from backend.core.utils import create_audit_log, parse_date_param
from .models import Client, Staff, StaffClientAssignment, Vendor, VendorCapacityAlias
from .serializers import (
    ClientSerializer, StaffSerializer, StaffClientAssignmentSerializer,
    VendorSerializer, VendorCapacityAliasSerializer
)
from .services import assign_staff_to_client, client_kpis
from . import performance

logger = logging.getLogger('backend.parties')


def _update(request, instance, serializer_class, partial):
    serializer = serializer_class(instance, data=request.data, partial=partial)
    if serializer.is_valid():
        obj = serializer.save()
        create_audit_log(
            request=request,
            action='update',
            model_name=instance.__class__.__name__,
            object_id=str(obj.id),
            object_name=str(obj),
            changes=dict(request.data),
        )
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


def _create(request, serializer_class):
    serializer = serializer_class(data=request.data)
    if serializer.is_valid():
        obj = serializer.save()
        create_audit_log(
            request=request,
            action='create',
            model_name=obj.__class__.__name__,
            object_id=str(obj.id),
            object_name=str(obj),
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Client views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def client_list_create(request):
    """List all clients or create a new client"""
    if request.method == 'GET':
        queryset = Client.objects.all()
        search = request.query_params.get('search', None)
        status_filter = request.query_params.get('status', None)
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(code__icontains=search))
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        serializer = ClientSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        return _create(request, ClientSerializer)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def client_detail(request, pk):
    """Retrieve or update a client"""
    client = get_object_or_404(Client, pk=pk)

    if request.method == 'GET':
        serializer = ClientSerializer(client)
        return Response(serializer.data)
    return _update(request, client, ClientSerializer, partial=request.method == 'PATCH')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def client_kpis_view(request, pk):
    """PO, OTD and at-risk counts for a client"""
    client = get_object_or_404(Client, pk=pk)
    try:
        return Response(client_kpis(client))
    except Exception as e:
        logger.error(f"Error computing KPIs for client {client.name}: {str(e)}", exc_info=True)
        return Response(
            {'error': 'Failed to compute client KPIs'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def client_staff(request, pk):
    """List staff assigned to a client or assign a staff member"""
    client = get_object_or_404(Client, pk=pk)

    if request.method == 'GET':
        assignments = StaffClientAssignment.objects.filter(client=client).select_related('staff', 'client')
        serializer = StaffClientAssignmentSerializer(assignments, many=True)
        return Response(serializer.data)

    staff_id = request.data.get('staff') or request.data.get('staff_id')
    if not staff_id:
        return Response({'error': 'staff is required'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        staff = Staff.objects.get(pk=staff_id)
    except (Staff.DoesNotExist, ValueError):
        return Response({'error': f'Staff {staff_id} not found'}, status=status.HTTP_404_NOT_FOUND)

    is_primary = request.data.get('is_primary', False)
    if isinstance(is_primary, str):
        is_primary = is_primary.strip().lower() in ('1', 'true', 'yes')

    assignment, created = assign_staff_to_client(client, staff, role=request.data.get('role'), is_primary=is_primary)
    create_audit_log(
        request=request,
        action='assign',
        model_name='StaffClientAssignment',
        object_id=str(assignment.id),
        object_name=f"{staff.name} -> {client.name}",
        changes={'role': assignment.role, 'is_primary': assignment.is_primary},
    )
    serializer = StaffClientAssignmentSerializer(assignment)
    return Response(serializer.data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def client_staff_remove(request, pk, staff_id):
    """Remove a staff member from a client"""
    assignment = get_object_or_404(StaffClientAssignment, client_id=pk, staff_id=staff_id)
    assignment_id = assignment.id
    name = str(assignment)
    assignment.delete()
    create_audit_log(
        request=request,
        action='unassign',
        model_name='StaffClientAssignment',
        object_id=str(assignment_id),
        object_name=name,
    )
    return Response(status=status.HTTP_204_NO_CONTENT)


# Staff views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def staff_list_create(request):
    """List staff (filter by role/status) or create a staff member"""
    if request.method == 'GET':
        queryset = Staff.objects.select_related('manager', 'user')
        role = request.query_params.get('role', None)
        status_filter = request.query_params.get('status', None)
        search = request.query_params.get('search', None)
        if role:
            queryset = queryset.filter(role__iexact=role)
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(email__icontains=search))
        serializer = StaffSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        return _create(request, StaffSerializer)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def staff_detail(request, pk):
    """Retrieve or update a staff member"""
    staff = get_object_or_404(Staff, pk=pk)

    if request.method == 'GET':
        serializer = StaffSerializer(staff)
        return Response(serializer.data)
    return _update(request, staff, StaffSerializer, partial=request.method == 'PATCH')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def staff_clients(request, pk):
    """Clients a staff member is assigned to"""
    staff = get_object_or_404(Staff, pk=pk)
    assignments = StaffClientAssignment.objects.filter(staff=staff).select_related('staff', 'client')
    serializer = StaffClientAssignmentSerializer(assignments, many=True)
    return Response(serializer.data)


# Vendor views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def vendor_list_create(request):
    """List vendors or create a vendor"""
    if request.method == 'GET':
        queryset = Vendor.objects.select_related('merchandiser', 'merchandising_manager').prefetch_related('aliases')
        merchandiser = request.query_params.get('merchandiser', None)
        manager = request.query_params.get('merchandising_manager', None)
        status_filter = request.query_params.get('status', None)
        search = request.query_params.get('search', None)

        if merchandiser:
            if merchandiser.isdigit():
                queryset = queryset.filter(merchandiser_id=merchandiser)
            else:
                queryset = queryset.filter(merchandiser__name__iexact=merchandiser)
        if manager:
            if manager.isdigit():
                queryset = queryset.filter(merchandising_manager_id=manager)
            else:
                queryset = queryset.filter(merchandising_manager__name__iexact=manager)
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(cbh_vendor_code__icontains=search) |
                Q(aliases__alias__icontains=search)
            ).distinct()

        serializer = VendorSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        return _create(request, VendorSerializer)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def vendor_detail(request, pk):
    """Retrieve or update a vendor"""
    vendor = get_object_or_404(Vendor, pk=pk)

    if request.method == 'GET':
        serializer = VendorSerializer(vendor)
        return Response(serializer.data)
    return _update(request, vendor, VendorSerializer, partial=request.method == 'PATCH')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def vendor_alias_list_create(request):
    """List vendor aliases or add one"""
    if request.method == 'GET':
        queryset = VendorCapacityAlias.objects.select_related('vendor')
        vendor_id = request.query_params.get('vendor', None)
        if vendor_id:
            queryset = queryset.filter(vendor_id=vendor_id)
        serializer = VendorCapacityAliasSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        return _create(request, VendorCapacityAliasSerializer)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def vendor_alias_delete(request, pk):
    alias = get_object_or_404(VendorCapacityAlias, pk=pk)
    alias_id = alias.id
    name = str(alias)
    alias.delete()
    create_audit_log(
        request=request,
        action='delete',
        model_name='VendorCapacityAlias',
        object_id=str(alias_id),
        object_name=name,
    )
    return Response(status=status.HTTP_204_NO_CONTENT)


def _vendor_report(request, pk, label, report):
    vendor = get_object_or_404(Vendor, pk=pk)
    try:
        start = parse_date_param(request.query_params.get('start_date'))
        end = parse_date_param(request.query_params.get('end_date'))
    except ValueError:
        return Response({'error': 'Dates must be YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        return Response(report(vendor, start=start, end=end))
    except Exception as e:
        logger.error(f"Error computing {label} for vendor {vendor.name}: {str(e)}", exc_info=True)
        return Response(
            {'error': f'Failed to compute vendor {label}'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def vendor_performance_view(request, pk):
    """OTD and first-time-right for a vendor"""
    return _vendor_report(request, pk, 'performance', performance.vendor_detail_performance)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def vendor_ytd_performance_view(request, pk):
    """Monthly OTD chart with running totals and at-risk POs"""
    return _vendor_report(request, pk, 'YTD performance', performance.vendor_ytd_performance)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def vendor_yoy_sales_view(request, pk):
    return _vendor_report(request, pk, 'YoY sales', performance.vendor_yoy_sales)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def vendor_otd_yoy_view(request, pk):
    return _vendor_report(request, pk, 'OTD YoY', performance.vendor_otd_yoy)
