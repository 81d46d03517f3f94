"""Structured error response schemas."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    field: str | None = Field(default=None, description="Field that caused the error (for validation errors)")
    value: Any | None = Field(default=None, description="Invalid value (for validation errors)")


class ErrorResponse(BaseModel):
    """Standard error response structure.

    This provides consistent error responses across the API with:
    - Machine-readable error codes
    - Human-readable messages
    - Remediation hints
    - Request tracing information
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "ValidationError",
                "message": "Invoice must have at least one item",
                "details": [
                    {
                        "code": "missing_required_field",
                        "message": "Invoice must have at least one item",
                        "field": "items",
                        "value": [],
                    }
                ],
                "remediation": "Check the API documentation for correct request format at /docs",
                "request_id": "req_1234567890",
                "timestamp": "2025-01-15T10:30:00Z",
            }
        }
    )

    error: str = Field(..., description="Error type (e.g., 'ValidationError', 'NotFound', 'Forbidden')")
    message: str = Field(..., description="Primary error message")
    details: list[ErrorDetail] | None = Field(
        default=None, description="Detailed error information (for validation errors)"
    )
    remediation: str | None = Field(default=None, description="Suggestion for fixing the error")
    request_id: str | None = Field(default=None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")


# Error codes enum for consistency
class ErrorCode:
    """Standard error codes used across the API."""

    # Validation errors (422)
    VALIDATION_ERROR = "validation_error"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_QUANTITY = "invalid_quantity"
    INVALID_RATE = "invalid_rate"
    INVALID_ENUM_VALUE = "invalid_enum_value"
    INVALID_UUID = "invalid_uuid"
    INVALID_DATE = "invalid_date"

    # Not found errors (404)
    NOT_FOUND = "not_found"
    BUSINESS_NOT_FOUND = "business_not_found"
    CUSTOMER_NOT_FOUND = "customer_not_found"
    INVOICE_NOT_FOUND = "invoice_not_found"
    PAYMENT_NOT_FOUND = "payment_not_found"

    # Authorization errors (403)
    FORBIDDEN = "forbidden"

    # Concurrency conflicts (409)
    CONFLICT = "conflict"
    INVOICE_NUMBER_CONFLICT = "invoice_number_conflict"
    LEDGER_CONFLICT = "ledger_conflict"

    # External service errors (503)
    DATABASE_ERROR = "database_error"

    # Internal errors (500)
    INTERNAL_ERROR = "internal_error"


# Remediation hints for common errors
REMEDIATION_HINTS = {
    ErrorCode.MISSING_REQUIRED_FIELD: "Provide every required field; an invoice needs at least one item.",
    ErrorCode.INVALID_AMOUNT: "Provide a positive decimal amount with at most two fractional digits (e.g., 100.00).",
    ErrorCode.INVALID_QUANTITY: "Quantity must be a whole number of at least 1.",
    ErrorCode.INVALID_RATE: "GST rate is a percentage and must be 0 or greater (e.g., 18).",
    ErrorCode.INVALID_ENUM_VALUE: "Use one of the documented values (payment method: CASH, BANK, UPI, CARD, CHEQUE, OTHER).",
    ErrorCode.BUSINESS_NOT_FOUND: "Create a business profile before issuing invoices.",
    ErrorCode.CUSTOMER_NOT_FOUND: "Verify the customer ID is correct and the customer exists.",
    ErrorCode.INVOICE_NOT_FOUND: "Verify the invoice ID is correct and the invoice exists.",
    ErrorCode.PAYMENT_NOT_FOUND: "Verify the payment ID is correct and the payment exists.",
    ErrorCode.INVOICE_NUMBER_CONFLICT: "Invoice numbering is busy. Please retry the request.",
    ErrorCode.LEDGER_CONFLICT: "The invoice was updated concurrently. Please retry the request.",
    ErrorCode.DATABASE_ERROR: "Database temporarily unavailable. Please try again in a few moments.",
}
