"""Utility helpers shared across API view modules."""

from rest_framework import status as http_status
from rest_framework.response import Response

from ..exceptions import ValidationFailed

TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def envelope(data=None, *, message=None, status=http_status.HTTP_200_OK, **extra):
    """Return ``{"success": true, ...}`` with optional ``data`` and ``message``."""

    body = {'success': True}
    if data is not None:
        body['data'] = data
    if message:
        body['message'] = message
    body.update(extra)
    return Response(body, status=status)


def query_int(request, name, default, *, minimum=0):
    raw = request.query_params.get(name)
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationFailed(f"{name} must be an integer")
    return max(minimum, value)


def query_bool(request, name):
    """Return ``None`` when the parameter is absent, otherwise its truthiness."""

    raw = request.query_params.get(name)
    if raw in (None, ''):
        return None
    return raw.strip().lower() in TRUE_VALUES


class EnvelopeViewSetMixin:
    """Wrap the stock ``ModelViewSet`` responses in the API envelope.

    ``read_serializer_class`` renders records after create and update so write
    serializers only need to accept input.
    """

    read_serializer_class = None
    deleted_message = 'Deleted successfully'

    def get_read_serializer(self, instance, **kwargs):
        serializer_class = self.read_serializer_class or self.get_serializer_class()
        kwargs.setdefault('context', self.get_serializer_context())
        return serializer_class(instance, **kwargs)

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        serializer = self.get_serializer(queryset, many=True)
        return envelope(serializer.data)

    def retrieve(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_object())
        return envelope(serializer.data)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        read_serializer = self.get_read_serializer(serializer.instance)
        return envelope(read_serializer.data, status=http_status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)
        read_serializer = self.get_read_serializer(serializer.instance)
        return envelope(read_serializer.data)

    def destroy(self, request, *args, **kwargs):
        self.perform_destroy(self.get_object())
        return envelope(message=self.deleted_message)
