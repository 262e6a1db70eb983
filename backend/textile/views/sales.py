"""Sales order API views."""

from datetime import date

from django.db import transaction
from django.http import HttpResponse
from rest_framework import status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated

from ..activity_logger import log_activity
from ..conf import inventory_setting
from ..exceptions import ValidationFailed
from ..models import Payment, SalesOrder
from ..report_exports import generate_sales_report_workbook
from ..serializers import (
    LegacySaleSerializer,
    PaymentSerializer,
    SalesOrderReadSerializer,
    SalesSubmissionSerializer,
)
from ..services.analytics import sales_analytics
from ..services.sales import submit_sales_order
from .inventory import XLSX_CONTENT_TYPE
from .utils import EnvelopeViewSetMixin, envelope, query_int


def _order_queryset():
    return (
        SalesOrder.objects.select_related('customer')
        .prefetch_related(
            'items__thread_purchase',
            'items__fabric_production',
            'payments__cheque_transaction',
        )
        .order_by('-order_date', '-id')
    )


class SalesOrderViewSet(EnvelopeViewSetMixin, viewsets.ModelViewSet):
    """Sales orders, their submission workflow and analytics."""

    serializer_class = SalesOrderReadSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ['get', 'post', 'delete', 'head', 'options']
    deleted_message = 'Sales order deleted successfully'

    def get_queryset(self):
        return _order_queryset()

    def list(self, request, *args, **kwargs):
        queryset = self.get_queryset()
        params = request.query_params

        if params.get('customerId'):
            queryset = queryset.filter(customer_id=params['customerId'])
        if params.get('paymentStatus'):
            queryset = queryset.filter(payment_status=params['paymentStatus'])
        if params.get('startDate'):
            queryset = queryset.filter(order_date__date__gte=params['startDate'])
        if params.get('endDate'):
            queryset = queryset.filter(order_date__date__lte=params['endDate'])
        if params.get('productType'):
            queryset = queryset.filter(items__product_type=params['productType']).distinct()

        limit = query_int(request, 'limit', inventory_setting('SALES_PAGE_SIZE'), minimum=1)
        offset = query_int(request, 'offset', 0)
        total = queryset.count()
        serializer = self.get_serializer(queryset[offset:offset + limit], many=True)
        return envelope({
            'items': serializer.data,
            'total': total,
            'page': offset // limit + 1,
            'limit': limit,
        })

    def _submit(self, payload):
        serializer = SalesSubmissionSerializer(data=payload)
        serializer.is_valid(raise_exception=True)
        order = submit_sales_order(serializer.validated_data, user=self.request.user)
        log_activity(self.request.user, 'created', order)
        order = self.get_queryset().get(pk=order.pk)
        return envelope(
            SalesOrderReadSerializer(order).data,
            message='Sales order created successfully',
            status=status.HTTP_201_CREATED,
        )

    def create(self, request, *args, **kwargs):
        """Single-product sale kept for older clients."""

        payload = LegacySaleSerializer(data=request.data).to_submission()
        return self._submit(payload)

    @action(detail=False, methods=['post'])
    def submit(self, request):
        return self._submit(request.data)

    @action(detail=False, methods=['get'], url_path='check-order-number')
    def check_order_number(self, request):
        order_number = (request.query_params.get('orderNumber') or '').strip()
        if not order_number:
            raise ValidationFailed('Order number parameter is required')

        order = SalesOrder.objects.filter(order_number=order_number).first()
        summary = None
        if order is not None:
            summary = {
                'id': order.pk,
                'orderNumber': order.order_number,
                'orderDate': order.order_date.isoformat(),
            }
        return envelope({'exists': order is not None, 'order': summary})

    @action(detail=False, methods=['get'])
    def analytics(self, request):
        return envelope(sales_analytics(request.query_params.get('range', '30days')))

    @transaction.atomic
    def perform_destroy(self, instance):
        log_activity(self.request.user, 'deleted', instance)
        instance.delete()


class SalesPaymentViewSet(EnvelopeViewSetMixin, viewsets.ModelViewSet):
    """Payments recorded against a single sales order."""

    serializer_class = PaymentSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ['get', 'post', 'delete', 'head', 'options']

    def _sales_order(self):
        try:
            return SalesOrder.objects.get(pk=self.kwargs.get('sales_order_pk'))
        except SalesOrder.DoesNotExist:
            raise NotFound(detail='Sales order not found.')

    def get_queryset(self):
        return Payment.objects.filter(sales_order_id=self.kwargs.get('sales_order_pk')).select_related(
            'cheque_transaction'
        )

    def perform_create(self, serializer):
        instance = serializer.save(sales_order=self._sales_order())
        log_activity(self.request.user, 'created', instance)

    def perform_destroy(self, instance):
        log_activity(self.request.user, 'deleted', instance)
        instance.delete()


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_report(request):
    """Provide a sales report for a given date range."""

    start_date_str = request.query_params.get('start_date', '2000-01-01')
    end_date_str = request.query_params.get('end_date', date.today().strftime('%Y-%m-%d'))

    export_format = request.query_params.get('export_format') or request.query_params.get('format')
    export_format = (export_format or '').lower()

    orders = list(
        _order_queryset().filter(
            order_date__date__gte=start_date_str,
            order_date__date__lte=end_date_str,
        )
    )

    if export_format in {'xlsx', 'excel'}:
        workbook_bytes = generate_sales_report_workbook(orders, start_date_str, end_date_str)
        response = HttpResponse(workbook_bytes, content_type=XLSX_CONTENT_TYPE)
        filename_stub = f"sales-report-{start_date_str}-to-{end_date_str}".replace(' ', '_')
        response['Content-Disposition'] = f'attachment; filename="{filename_stub}.xlsx"'
        return response

    serializer = SalesOrderReadSerializer(orders, many=True)
    return envelope(serializer.data)
