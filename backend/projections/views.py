import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.utils import timezone

from backend.core.utils import create_audit_log, paginate, parse_int_param
from backend.purchasing.models import PurchaseOrder
from backend.purchasing.services import match_entries_for
from . import analytics, expiry, services
from .filters import ActiveProjectionFilter, ExpiredProjectionFilter
from .matching import ProjectionMatchError, manual_match, match_projections_to_pos
from .models import ActiveProjection, ExpiredProjection
from .serializers import ActiveProjectionSerializer, ExpiredProjectionSerializer

logger = logging.getLogger('backend.projections')


def _user_label(request):
    user = request.user
    return user.get_full_name() or user.username


def _audit(request, action, projection, changes=None):
    create_audit_log(
        request=request,
        action=action,
        model_name=projection.__class__.__name__,
        object_id=str(projection.id),
        object_name=projection.vendor_code,
        object_reference=projection.sku,
        changes=changes,
    )


def _int_params(request, *names, **defaults):
    """Parse integer query params; raises ValueError on bad input"""
    return [parse_int_param(request.query_params.get(name), defaults.get(name)) for name in names]


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def projection_list(request):
    """List active projections"""
    filterset = ActiveProjectionFilter(request.query_params, queryset=ActiveProjection.objects.select_related('vendor_ref'))
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    return paginate(request, filterset.qs.order_by('year', 'month', 'vendor_code', 'sku'), ActiveProjectionSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def overdue_projections(request):
    """Unmatched regular projections due within threshold_days"""
    try:
        threshold_days, = _int_params(request, 'threshold_days', threshold_days=services.AT_RISK_DAYS)
    except ValueError:
        return Response({'error': 'threshold_days must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(services.overdue_projections(threshold_days))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def variance_projections(request):
    try:
        min_variance_pct, = _int_params(request, 'min_variance_pct', min_variance_pct=10)
    except ValueError:
        return Response({'error': 'min_variance_pct must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(services.variance_projections(min_variance_pct))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def spo_projections(request):
    """MTO and SPO projections"""
    return Response(services.spo_projections())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def projection_filter_options(request):
    return Response(services.filter_options())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def validation_summary(request):
    try:
        return Response(services.validation_summary())
    except Exception as e:
        logger.error(f"Error computing projection validation summary: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to compute validation summary'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def run_matching(request):
    """Match every PO line against unmatched projections"""
    try:
        purchase_orders = PurchaseOrder.objects.prefetch_related('lines').order_by('po_date', 'id')
        result = match_projections_to_pos(match_entries_for(purchase_orders))
    except Exception as e:
        logger.error(f"Error running projection matching: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to run projection matching'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    create_audit_log(
        request=request,
        action='match',
        model_name='ActiveProjection',
        object_id='all',
        object_name='Projection matching run',
        changes={'matched': result['matched'], 'variances': result['variances']},
    )
    return Response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def remove_projection(request, pk):
    """Mark a projection as removed with a reason"""
    projection = get_object_or_404(ActiveProjection, pk=pk)
    reason = (request.data.get('reason') or '').strip()
    if not reason:
        return Response({'error': 'reason is required'}, status=status.HTTP_400_BAD_REQUEST)
    services.remove_projection(projection, reason, _user_label(request))
    _audit(request, 'remove', projection, {'reason': reason})
    return Response(ActiveProjectionSerializer(projection).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def unmatch_projection(request, pk):
    projection = get_object_or_404(ActiveProjection, pk=pk)
    previous_po = projection.matched_po_number
    services.unmatch_projection(projection)
    _audit(request, 'unmatch', projection, {'matched_po_number': previous_po})
    return Response(ActiveProjectionSerializer(projection).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def match_projection(request, pk):
    """Manually match a projection to a PO"""
    try:
        projection = manual_match(pk, request.data.get('po_number'))
    except ProjectionMatchError as e:
        return Response({'error': str(e)}, status=e.status_code)
    _audit(request, 'match', projection, {'matched_po_number': projection.matched_po_number})
    return Response(ActiveProjectionSerializer(projection).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def update_order_type(request, pk):
    projection = get_object_or_404(ActiveProjection, pk=pk)
    previous = projection.order_type
    try:
        services.set_order_type(projection, request.data.get('order_type'))
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    _audit(request, 'update', projection, {'order_type': {'old': previous, 'new': projection.order_type}})
    return Response(ActiveProjectionSerializer(projection).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def update_comment(request, pk):
    projection = get_object_or_404(ActiveProjection, pk=pk)
    services.set_comment(projection, request.data.get('comment'), _user_label(request))
    _audit(request, 'update', projection, {'comment': projection.comment})
    return Response(ActiveProjectionSerializer(projection).data)


# Expiry views
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def check_expired(request):
    """Move unmatched projections past their order window to the expired table"""
    try:
        result = expiry.check_expired_projections()
    except Exception as e:
        logger.error(f"Error checking expired projections: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to check expired projections'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    if result['expired_count']:
        create_audit_log(
            request=request,
            action='expire',
            model_name='ActiveProjection',
            object_id='all',
            object_name='Projection expiry check',
            changes=result,
        )
    return Response(result)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def expired_projection_list(request):
    filterset = ExpiredProjectionFilter(request.query_params, queryset=ExpiredProjection.objects.select_related('vendor_ref'))
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    return paginate(request, filterset.qs.order_by('-expired_at', '-id'), ExpiredProjectionSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def expired_projection_summary(request):
    return Response(expiry.expired_summary())


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def restore_expired_projection(request, pk):
    """Restore an expired projection to the active table"""
    expired = get_object_or_404(ExpiredProjection, pk=pk)
    try:
        active = expiry.restore_expired(expired, _user_label(request))
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    _audit(request, 'restore', expired, {'active_projection_id': active.id})
    return Response({
        'expired': ExpiredProjectionSerializer(expired).data,
        'projection': ActiveProjectionSerializer(active).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def verify_expired_projection(request, pk):
    expired = get_object_or_404(ExpiredProjection, pk=pk)
    try:
        expiry.verify_expired(expired, request.data.get('status'), request.data.get('notes'), _user_label(request))
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    _audit(request, 'verify', expired, {'status': expired.verification_status, 'notes': expired.verification_notes})
    return Response(ExpiredProjectionSerializer(expired).data)


# Reporting views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def projection_drift(request):
    """Change in each vendor's projection for a target month across imports"""
    today = timezone.localdate()
    try:
        target_year, target_month = _int_params(request, 'target_year', 'target_month', target_year=today.year, target_month=today.month)
    except ValueError:
        return Response({'error': 'target_year and target_month must be integers'}, status=status.HTTP_400_BAD_REQUEST)
    if not 1 <= target_month <= 12:
        return Response({'error': 'target_month must be between 1 and 12'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        return Response(analytics.projection_drift(target_year, target_month))
    except Exception as e:
        logger.error(f"Error computing projection drift: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to compute projection drift'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def accuracy_report(request):
    try:
        year, = _int_params(request, 'year', year=timezone.localdate().year)
    except ValueError:
        return Response({'error': 'year must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        return Response(analytics.accuracy_report(year))
    except Exception as e:
        logger.error(f"Error building projection accuracy report: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to build accuracy report'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
