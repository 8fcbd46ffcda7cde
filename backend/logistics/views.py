import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404

from backend.core.utils import paginate_rows, parse_bool_param
from backend.purchasing.serializers import PurchaseOrderSerializer
from .models import Shipment
from .serializers import ShipmentSerializer
from .services import STATUSES, enrich_shipments, filter_shipments, status_counts

logger = logging.getLogger('backend.logistics')


def _shipment_row(shipment, shipment_status, reasons):
    data = ShipmentSerializer(shipment).data
    po = shipment.purchase_order
    data['shipment_status'] = shipment_status
    data['at_risk_reasons'] = reasons
    data['is_at_risk'] = bool(reasons)
    data['vendor'] = po.vendor if po else None
    data['client'] = po.client if po else None
    data['office'] = po.office if po else None
    data['revised_reason'] = po.revised_reason if po else None
    data['latest_ship_date'] = (po.revised_ship_date or po.original_ship_date) if po else None
    return data


def _scoped_queryset(request):
    queryset = Shipment.objects.select_related('purchase_order')
    queryset = filter_shipments(queryset, request.query_params)
    if not parse_bool_param(request.query_params.get('include_shipped', 'false')):
        queryset = queryset.filter(actual_sailing_date__isnull=True, delivery_to_consolidator__isnull=True)
    return queryset


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def shipment_list(request):
    """Shipments with derived status and at-risk reasons"""
    status_filter = request.query_params.get('status', None)
    if status_filter and status_filter not in STATUSES:
        return Response(
            {'error': f"Invalid status '{status_filter}'. Expected one of: {', '.join(STATUSES)}"},
            status=status.HTTP_400_BAD_REQUEST
        )
    try:
        queryset = _scoped_queryset(request)
    except ValueError as e:
        return Response({'error': f'Invalid date: {str(e)}'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        queryset = queryset.order_by('-cargo_ready_date', '-created_at')
        rows = [
            _shipment_row(shipment, shipment_status, reasons)
            for shipment, shipment_status, reasons in enrich_shipments(queryset)
            if not status_filter or shipment_status == status_filter
        ]
        return paginate_rows(request, rows)
    except Exception as e:
        logger.error(f"Error listing shipments: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to list shipments'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def shipment_summary(request):
    """Counts per derived status for the filtered shipments"""
    try:
        queryset = _scoped_queryset(request)
    except ValueError as e:
        return Response({'error': f'Invalid date: {str(e)}'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        return Response(status_counts(enrich_shipments(queryset)))
    except Exception as e:
        logger.error(f"Error summarising shipments: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to summarise shipments'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def shipment_detail(request, pk):
    """A shipment with its PO and every shipment on the same PO"""
    shipment = get_object_or_404(Shipment.objects.select_related('purchase_order'), pk=pk)
    siblings = Shipment.objects.select_related('purchase_order').filter(
        po_number=shipment.po_number
    ).order_by('cargo_ready_date', 'id')

    enriched = enrich_shipments(siblings)
    current = next((row for row in enriched if row[0].id == shipment.id), None)
    data = _shipment_row(*current)
    data['purchase_order_detail'] = PurchaseOrderSerializer(shipment.purchase_order).data if shipment.purchase_order else None
    data['related_shipments'] = [_shipment_row(*row) for row in enriched if row[0].id != shipment.id]
    return Response(data)
