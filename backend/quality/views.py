import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from backend.core.utils import paginate, parse_int_param
from .filters import InspectionFilter, QualityTestFilter
from .models import Inspection, QualityTest
from .serializers import InspectionSerializer, QualityTestSerializer
from . import services

logger = logging.getLogger('backend.quality')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inspection_list(request):
    """List inspections"""
    filterset = InspectionFilter(request.query_params, queryset=Inspection.objects.all())
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    return paginate(request, filterset.qs.order_by('-inspection_date', '-id'), InspectionSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inspector_list(request):
    """Distinct inspector names"""
    return Response(services.inspector_names())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def quality_test_list(request):
    """List quality tests"""
    filterset = QualityTestFilter(request.query_params, queryset=QualityTest.objects.all())
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    return paginate(request, filterset.qs.order_by('-report_date', '-id'), QualityTestSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def quality_kpis(request):
    """Quality dashboard KPIs, optionally for one inspector"""
    try:
        return Response(services.quality_kpis(inspector=request.query_params.get('inspector') or None))
    except Exception as e:
        logger.error(f"Error computing quality KPIs: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to compute quality KPIs'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def quality_at_risk_pos(request):
    try:
        return Response(services.at_risk_purchase_orders(inspector=request.query_params.get('inspector') or None))
    except Exception as e:
        logger.error(f"Error listing at-risk POs: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to list at-risk POs'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _compliance_response(label, func, *args, **kwargs):
    try:
        return Response(func(*args, **kwargs))
    except Exception as e:
        logger.error(f"Error fetching {label}: {str(e)}", exc_info=True)
        return Response({'error': f'Failed to fetch {label}'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def booking_confirmed(request):
    """Booked POs that have no inspection yet"""
    return _compliance_response('booking confirmed POs', services.booking_confirmed_needing_inspection, request.query_params)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def missing_inline(request):
    return _compliance_response('missing inline inspections', services.missing_inline_inspections, request.query_params)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def missing_final(request):
    return _compliance_response('missing final inspections', services.missing_final_inspections, request.query_params)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def failed_inspections(request):
    """Failed or aborted inspections in the last 30 days"""
    try:
        limit = parse_int_param(request.query_params.get('limit'), 50)
    except ValueError:
        return Response({'error': 'limit must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    return _compliance_response('failed inspections', services.failed_inspections, request.query_params, limit=limit)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def expiring_certificates(request):
    return _compliance_response('expiring certificates', services.expiring_certificates, request.query_params)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def compliance_alert_counts(request):
    return _compliance_response('compliance alert counts', services.alert_counts, request.query_params)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def vendor_performance(request):
    """Inspection pass rate per vendor over the last 12 months"""
    try:
        min_inspections = parse_int_param(request.query_params.get('min_inspections'), 5)
    except ValueError:
        return Response({'error': 'min_inspections must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    return _compliance_response('vendor performance', services.vendor_performance, min_inspections=min_inspections)
