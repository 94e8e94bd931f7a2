"""
Domain error taxonomy shared by every app, plus the DRF exception handler
that maps it onto HTTP responses.

Services raise these; views never build error responses for them by hand.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base class for business-rule failures surfaced to the caller."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Operation rejected"
    code = "domain_error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"
    code = "not_found"

    def __init__(self, resource, identifier=None, message=None):
        self.resource = resource
        self.identifier = identifier
        if message is None:
            message = f"{resource} not found"
            if identifier is not None:
                message = f"{resource} '{identifier}' not found"
        super().__init__(message)


class InvalidOperationError(DomainError):
    """Bad input to a ledger operation (negative restock, non-physical item...)."""

    code = "invalid_operation"


class InvalidTransitionError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Invalid state transition"
    code = "invalid_transition"


class InsufficientStockError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "insufficient_stock"

    def __init__(self, ingredient, requested, available, message=None):
        self.ingredient = ingredient
        self.requested = requested
        self.available = available
        if message is None:
            message = (
                f"Insufficient stock for {ingredient.name}. "
                f"Available: {available}, Requested: {requested}"
            )
        super().__init__(message)


class ConsistencyViolationError(DomainError):
    """Ledger invariants would be broken (double deduction, duplicate shift...)."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Consistency violation"
    code = "consistency_violation"


class DeletionForbiddenError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Cannot delete a paid or completed order"
    code = "deletion_forbidden"


def domain_exception_handler(exc, context):
    """
    REST_FRAMEWORK['EXCEPTION_HANDLER'].

    DomainError subclasses become {"error", "code"} bodies with their status.
    DRF's own exceptions keep the default handling. Anything else is logged
    with its traceback and answered with a generic 500 so internals never
    reach the client.
    """
    if isinstance(exc, DomainError):
        return Response(
            {"error": exc.message, "code": exc.code},
            status=exc.status_code,
        )

    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    logger.error(
        f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
        exc_info=exc,
    )
    return Response(
        {"error": "Internal server error", "code": "server_error"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
