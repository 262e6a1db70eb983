"""Inventory API views."""

from datetime import date

from django.db.models import Q
from django.http import HttpResponse
from rest_framework import viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..models import Inventory
from ..report_exports import generate_inventory_report_workbook
from ..serializers import InventorySerializer, InventoryTransactionSerializer
from .utils import EnvelopeViewSetMixin, envelope, query_bool, query_int

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def _filtered_inventory(request):
    queryset = Inventory.objects.select_related('thread_type').order_by('item_code')
    product_type = request.query_params.get('productType')
    if product_type:
        queryset = queryset.filter(product_type=product_type)
    search = request.query_params.get('search')
    if search:
        queryset = queryset.filter(
            Q(item_code__icontains=search)
            | Q(description__icontains=search)
            | Q(thread_type__name__icontains=search)
        )
    return queryset


class InventoryViewSet(EnvelopeViewSetMixin, viewsets.ReadOnlyModelViewSet):
    """Read-only stock listing; stock only moves through purchases, dyeing and sales."""

    serializer_class = InventorySerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = _filtered_inventory(self.request)
        if self.action == 'list' and query_bool(self.request, 'lowStock'):
            return [item for item in queryset if item.is_below_min_stock]
        return queryset

    @action(detail=True, methods=['get'])
    def transactions(self, request, pk=None):
        item = self.get_object()
        queryset = item.transactions.select_related('inventory')
        limit = query_int(request, 'limit', None)
        if limit is not None:
            queryset = queryset[:limit]
        serializer = InventoryTransactionSerializer(queryset, many=True)
        return envelope(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_report(request):
    """Provide the current stock, optionally as an Excel workbook."""

    export_format = request.query_params.get('export_format') or request.query_params.get('format')
    export_format = (export_format or '').lower()

    items = list(_filtered_inventory(request))

    if export_format in {'xlsx', 'excel'}:
        workbook_bytes = generate_inventory_report_workbook(items)
        response = HttpResponse(workbook_bytes, content_type=XLSX_CONTENT_TYPE)
        response['Content-Disposition'] = f'attachment; filename="inventory-report-{date.today():%Y-%m-%d}.xlsx"'
        return response

    serializer = InventorySerializer(items, many=True)
    return envelope(serializer.data)
