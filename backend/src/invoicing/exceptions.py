"""Domain exceptions raised by the invoicing services.

Each exception maps to one HTTP status in ``invoicing.main``; none of them is
fatal to the process and all are scoped to the failing request.
"""
from typing import Any

from invoicing.schemas.error import ErrorCode


class InvoicingError(Exception):
    """Base class for request-scoped invoicing errors."""

    status_code = 500
    error = "InternalServerError"
    default_code = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        field: str | None = None,
        value: Any | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.field = field
        self.value = value


class ValidationError(InvoicingError):
    """Malformed or missing input, rejected before any computation or write."""

    status_code = 422
    error = "ValidationError"
    default_code = ErrorCode.VALIDATION_ERROR


class NotFoundError(InvoicingError):
    """Referenced business, customer, invoice or payment does not exist."""

    status_code = 404
    error = "NotFound"
    default_code = ErrorCode.NOT_FOUND


class ForbiddenError(InvoicingError):
    """Resource belongs to another business."""

    status_code = 403
    error = "Forbidden"
    default_code = ErrorCode.FORBIDDEN


class ConflictError(InvoicingError):
    """Concurrent writers won every retry; safe for the caller to retry."""

    status_code = 409
    error = "Conflict"
    default_code = ErrorCode.CONFLICT
