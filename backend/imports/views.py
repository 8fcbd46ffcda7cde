import logging

from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from backend.core.utils import create_audit_log, paginate, parse_date_param
from .importers import run_import
from .models import ImportHistory
from .parsers import ImportFileError
from .serializers import ImportHistorySerializer

logger = logging.getLogger('backend.imports')


def _upload(request, kind_name, **options):
    uploaded = request.FILES.get('file')
    if uploaded is None:
        return Response({'error': 'No file uploaded. Send the spreadsheet as multipart field "file"'}, status=status.HTTP_400_BAD_REQUEST)

    user = request.user
    try:
        result = run_import(kind_name, uploaded, uploaded.name, imported_by=user.username, **options)
    except ImportFileError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except Exception:
        return Response({'error': f'Failed to import {uploaded.name}'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    create_audit_log(
        request=request,
        action='import',
        model_name='ImportHistory',
        object_id=str(result['import_id']),
        object_name=uploaded.name,
        object_reference=result['file_type'],
        changes={'records_imported': result['records_imported'], 'records_skipped': result['records_skipped']},
    )
    return Response(result, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def import_purchase_orders(request):
    """Upload the PO report (one row per line item)"""
    return _upload(request, 'purchase-orders')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def import_shipments(request):
    return _upload(request, 'shipments')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def import_quality_data(request):
    """Upload inspections and quality test reports"""
    return _upload(request, 'quality-data')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def import_vendor_capacity(request):
    return _upload(request, 'vendor-capacity')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def import_projections(request):
    """Upload a projection file for the given import_date"""
    raw_date = request.query_params.get('import_date') or request.data.get('import_date')
    try:
        import_date = parse_date_param(raw_date)
    except ValueError:
        return Response({'error': 'import_date must be YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    if import_date is None:
        return Response({'error': 'import_date is required'}, status=status.HTTP_400_BAD_REQUEST)
    return _upload(request, 'projections', import_date=import_date)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def import_history(request):
    """Import history, newest first"""
    queryset = ImportHistory.objects.all()
    file_type = request.query_params.get('file_type')
    if file_type:
        queryset = queryset.filter(file_type=file_type)
    return paginate(request, queryset.order_by('-created_at', '-id'), ImportHistorySerializer)
