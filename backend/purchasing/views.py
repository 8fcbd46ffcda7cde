import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404

from backend.core.utils import paginate
from backend.logistics.serializers import ShipmentSerializer
from backend.quality.serializers import InspectionSerializer, QualityTestSerializer
from .filters import PurchaseOrderFilter
from .models import PurchaseOrder
from .serializers import PurchaseOrderSerializer, PurchaseOrderDetailSerializer
from .services import annotate_po_list

logger = logging.getLogger('backend.purchasing')


def _po_detail_payload(po):
    data = PurchaseOrderDetailSerializer(po).data
    data['shipments'] = ShipmentSerializer(po.shipments.all().order_by('cargo_ready_date', 'id'), many=True).data
    data['inspections'] = InspectionSerializer(po.inspections.all().order_by('-inspection_date', '-id'), many=True).data
    data['quality_tests'] = QualityTestSerializer(po.quality_tests.all().order_by('-report_date', '-id'), many=True).data
    return data


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def purchase_order_list(request):
    """List purchase orders with line totals and shipped flag"""
    queryset = PurchaseOrder.objects.select_related(
        'vendor_ref', 'vendor_ref__merchandiser', 'vendor_ref__merchandising_manager'
    )
    filterset = PurchaseOrderFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)

    queryset = annotate_po_list(filterset.qs).order_by('-po_date', '-id')
    return paginate(request, queryset, PurchaseOrderSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def purchase_order_detail(request, pk):
    """PO header with line items, shipments, inspections and quality tests"""
    po = get_object_or_404(annotate_po_list(PurchaseOrder.objects.all()), pk=pk)
    return Response(_po_detail_payload(po))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def purchase_order_by_number(request, po_number):
    po = annotate_po_list(PurchaseOrder.objects.filter(po_number=po_number.strip())).first()
    if not po:
        return Response({'error': f'Purchase order {po_number} not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(_po_detail_payload(po))
