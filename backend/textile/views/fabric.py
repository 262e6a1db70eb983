"""Fabric production API views."""

from django.db import transaction
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from ..activity_logger import log_activity
from ..models import FabricProduction
from ..serializers import FabricProductionSerializer
from ..services.deletion import delete_fabric_production
from .utils import EnvelopeViewSetMixin


class FabricProductionViewSet(EnvelopeViewSetMixin, viewsets.ModelViewSet):
    """CRUD operations for fabric production batches."""

    serializer_class = FabricProductionSerializer
    permission_classes = [IsAuthenticated]
    deleted_message = 'Fabric production deleted successfully'

    def get_queryset(self):
        queryset = FabricProduction.objects.select_related('source_thread', 'dyeing_process').order_by(
            '-production_date', '-id'
        )
        source_thread_id = self.request.query_params.get('sourceThreadId')
        if source_thread_id:
            queryset = queryset.filter(source_thread_id=source_thread_id)
        production_status = self.request.query_params.get('status')
        if production_status:
            queryset = queryset.filter(status=production_status)
        return queryset

    def perform_create(self, serializer):
        instance = serializer.save()
        log_activity(self.request.user, 'created', instance)

    def perform_update(self, serializer):
        instance = serializer.save()
        log_activity(self.request.user, 'updated', instance)

    @transaction.atomic
    def perform_destroy(self, instance):
        log_activity(self.request.user, 'deleted', instance)
        delete_fabric_production(instance)
