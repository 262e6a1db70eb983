"""Domain exceptions and the DRF handler that renders them as envelopes."""

import logging

from django.core.exceptions import ObjectDoesNotExist
from django.db.models import ProtectedError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class TextileError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Unexpected error"

    def __init__(self, message=None, *, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationFailed(TextileError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class DependencyError(TextileError):
    """Raised when a record cannot be removed because others depend on it."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Record has dependent records"


class NotFoundError(TextileError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class LedgerError(TextileError):
    """Failure inside a ledger store operation."""

    def __init__(self, message=None, *, operation=None, entity_type=None, entity_id=None, **kwargs):
        self.operation = operation
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message, **kwargs)


def first_error_message(detail) -> str:
    """Return the first human readable message inside a DRF error ``detail``."""

    if isinstance(detail, dict):
        for key, value in detail.items():
            message = first_error_message(value)
            if key in ("non_field_errors", "detail"):
                return message
            return f"{key}: {message}"
        return ""
    if isinstance(detail, (list, tuple)):
        return first_error_message(detail[0]) if detail else ""
    return str(detail)


def envelope_exception_handler(exc, context):
    """Render every API error as ``{"success": false, "error": ...}``."""

    if isinstance(exc, TextileError):
        body = {"success": False, "error": exc.message}
        if exc.details is not None:
            body["details"] = exc.details
        if exc.status_code >= 500:
            logger.error("Request failed: %s", exc.message)
        return Response(body, status=exc.status_code)

    if isinstance(exc, ProtectedError):
        return Response(
            {"success": False, "error": "Cannot delete a record that other records still reference"},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, ObjectDoesNotExist):
        exc = Http404(str(exc))

    response = exception_handler(exc, context)
    if response is not None:
        detail = exc.detail if isinstance(exc, APIException) else response.data
        body = {"success": False, "error": first_error_message(detail)}
        if isinstance(exc, ValidationError):
            body["details"] = response.data
        response.data = body
        return response

    logger.exception("Unhandled error while processing %s", context.get("view").__class__.__name__)
    return Response(
        {"success": False, "error": str(exc) or exc.__class__.__name__},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
