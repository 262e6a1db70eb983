"""Thread purchase API views."""

from django.db import transaction
from django.db.models import Q
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from ..activity_logger import log_activity
from ..conf import inventory_setting
from ..models import ThreadPurchase, Vendor
from ..serializers import (
    ThreadPurchaseDetailSerializer,
    ThreadPurchaseReadSerializer,
    ThreadPurchaseWriteSerializer,
    VendorSerializer,
)
from ..services.deletion import delete_thread_purchase
from .utils import EnvelopeViewSetMixin, envelope, query_bool, query_int


class VendorViewSet(EnvelopeViewSetMixin, viewsets.ModelViewSet):
    """CRUD operations for thread vendors."""

    serializer_class = VendorSerializer
    permission_classes = [IsAuthenticated]
    queryset = Vendor.objects.order_by('name')

    def perform_create(self, serializer):
        instance = serializer.save()
        log_activity(self.request.user, 'created', instance)

    def perform_update(self, serializer):
        instance = serializer.save()
        log_activity(self.request.user, 'updated', instance)

    def perform_destroy(self, instance):
        log_activity(self.request.user, 'deleted', instance)
        instance.delete()


class ThreadPurchaseViewSet(EnvelopeViewSetMixin, viewsets.ModelViewSet):
    """Thread purchases with their inventory, dyeing and payment side effects."""

    permission_classes = [IsAuthenticated]
    read_serializer_class = ThreadPurchaseDetailSerializer
    deleted_message = 'Thread purchase deleted successfully'

    def get_serializer_class(self):
        if self.action in ['create', 'update', 'partial_update']:
            return ThreadPurchaseWriteSerializer
        if self.action == 'retrieve':
            return ThreadPurchaseDetailSerializer
        return ThreadPurchaseReadSerializer

    def get_queryset(self):
        return (
            ThreadPurchase.objects.select_related('vendor')
            .prefetch_related('dyeing_processes')
            .order_by('-order_date', '-id')
        )

    def list(self, request, *args, **kwargs):
        queryset = self.get_queryset()

        color_status = request.query_params.get('colorStatus')
        if color_status:
            queryset = queryset.filter(color_status=color_status)
        received = query_bool(request, 'received')
        if received is not None:
            queryset = queryset.filter(received=received)
        vendor_id = request.query_params.get('vendorId')
        if vendor_id:
            queryset = queryset.filter(vendor_id=vendor_id)
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(thread_type__icontains=search)
                | Q(color__icontains=search)
                | Q(vendor__name__icontains=search)
            )

        page = query_int(request, 'page', 1, minimum=1)
        limit = query_int(request, 'limit', inventory_setting('THREAD_PAGE_SIZE'), minimum=1)
        total = queryset.count()
        offset = (page - 1) * limit
        serializer = ThreadPurchaseReadSerializer(
            queryset[offset:offset + limit], many=True, context=self.get_serializer_context()
        )
        return envelope(serializer.data, total=total, page=page, limit=limit)

    def perform_create(self, serializer):
        instance = serializer.save(created_by=self.request.user)
        log_activity(self.request.user, 'created', instance)

    def perform_update(self, serializer):
        instance = serializer.save()
        log_activity(self.request.user, 'updated', instance)

    @transaction.atomic
    def perform_destroy(self, instance):
        log_activity(self.request.user, 'deleted', instance)
        delete_thread_purchase(instance)
