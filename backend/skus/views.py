import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from backend.core.utils import paginate_rows
from . import services

logger = logging.getLogger('backend.skus')


def _error(label, e):
    logger.error(f"Error computing {label}: {str(e)}", exc_info=True)
    return Response({'error': f'Failed to compute {label}'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _not_found(sku):
    return Response({'error': f'SKU {sku} not found'}, status=status.HTTP_404_NOT_FOUND)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sku_list(request):
    """SKUs with last order details and shipped sales this year"""
    try:
        rows = services.sku_metrics(request.query_params)
    except Exception as e:
        return _error('SKU metrics', e)
    return paginate_rows(request, rows)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sku_summary(request):
    try:
        return Response(services.sku_summary(request.query_params))
    except Exception as e:
        return _error('SKU summary', e)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sku_order_history(request, sku):
    """POs that ordered the SKU"""
    if not services.sku_exists(sku):
        return _not_found(sku)
    try:
        return Response(services.sku_order_history(sku))
    except Exception as e:
        return _error(f'order history for {sku}', e)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sku_compliance(request, sku):
    """QA test status for the SKU"""
    if not services.sku_exists(sku):
        return _not_found(sku)
    try:
        return Response(services.sku_compliance(sku))
    except Exception as e:
        return _error(f'compliance for {sku}', e)
