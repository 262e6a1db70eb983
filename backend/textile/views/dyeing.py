"""Dyeing process API views."""

from decimal import Decimal

from django.db import transaction
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated

from ..activity_logger import log_activity
from ..models import DyeingProcess
from ..serializers import (
    DyeingProcessCreateSerializer,
    DyeingProcessDetailSerializer,
    DyeingProcessReadSerializer,
    DyeingProcessUpdateSerializer,
)
from ..services.deletion import delete_dyeing_process
from .utils import EnvelopeViewSetMixin, envelope


def wastage_summary(process):
    dye_quantity = Decimal(process.dye_quantity or 0)
    amount = process.wastage
    percentage = (amount / dye_quantity * 100) if dye_quantity else Decimal('0')
    return {'amount': float(amount), 'percentage': round(float(percentage), 2)}


class DyeingProcessViewSet(EnvelopeViewSetMixin, viewsets.ModelViewSet):
    """Dyeing processes drawn from received raw thread."""

    permission_classes = [IsAuthenticated]
    read_serializer_class = DyeingProcessDetailSerializer
    deleted_message = 'Dyeing process deleted successfully'

    def get_serializer_class(self):
        if self.action == 'create':
            return DyeingProcessCreateSerializer
        if self.action in ['update', 'partial_update']:
            return DyeingProcessUpdateSerializer
        if self.action == 'retrieve':
            return DyeingProcessDetailSerializer
        return DyeingProcessReadSerializer

    def get_queryset(self):
        queryset = DyeingProcess.objects.select_related('thread_purchase__vendor').order_by('-dye_date', '-id')
        thread_purchase_id = self.request.query_params.get('threadPurchaseId')
        if thread_purchase_id:
            queryset = queryset.filter(thread_purchase_id=thread_purchase_id)
        result_status = self.request.query_params.get('resultStatus')
        if result_status:
            queryset = queryset.filter(result_status=result_status)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)

        process = serializer.instance
        summary = serializer.inventory_summary
        data = {
            'process': DyeingProcessDetailSerializer(process, context=self.get_serializer_context()).data,
            'wastage': wastage_summary(process),
            'inventory': {key: float(value) for key, value in summary.items()},
        }
        return envelope(data, status=status.HTTP_201_CREATED)

    def perform_create(self, serializer):
        instance = serializer.save()
        log_activity(self.request.user, 'created', instance)

    def perform_update(self, serializer):
        instance = serializer.save()
        log_activity(self.request.user, 'updated', instance)

    @transaction.atomic
    def perform_destroy(self, instance):
        log_activity(self.request.user, 'deleted', instance)
        delete_dyeing_process(instance)
