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
    """Standard error response structure."""

    error: str = Field(..., description="Error type (e.g., 'ValidationError', 'NotFound', 'PaymentGatewayError')")
    message: str = Field(..., description="Primary error message")
    details: list[ErrorDetail] | None = Field(default=None, description="Detailed error information")
    remediation: str | None = Field(default=None, description="Suggestion for fixing the error")
    request_id: str | None = Field(default=None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "NotFound",
                "message": "Account 3f0c... not found",
                "details": [{"code": "not_found", "message": "Account 3f0c... not found"}],
                "remediation": "Verify the account ID is correct and the account exists",
                "request_id": "req_1234567890",
                "timestamp": "2024-01-15T10:30:00Z",
            }
        }
    )


# Error codes enum for consistency
class ErrorCode:
    """Standard error codes used across the API."""

    # Request validation errors (422)
    VALIDATION_ERROR = "validation_error"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    INVALID_UUID = "invalid_uuid"
    INVALID_AMOUNT = "invalid_amount"

    # Action rejected for the subscription or account state (400)
    ACTION_NOT_APPLICABLE = "action_not_applicable"

    # Not found errors (404)
    NOT_FOUND = "not_found"

    # External service errors (502, 503)
    STRIPE_API_ERROR = "stripe_api_error"
    DATABASE_ERROR = "database_error"

    # Internal errors (500)
    INTERNAL_ERROR = "internal_error"


# Remediation hints for common errors
REMEDIATION_HINTS = {
    ErrorCode.VALIDATION_ERROR: "Check the request against the API documentation at /docs",
    ErrorCode.INVALID_UUID: "Provide a valid UUID identifier",
    ErrorCode.INVALID_AMOUNT: "Provide a positive amount in cents (e.g., 1000 for $10.00)",
    ErrorCode.ACTION_NOT_APPLICABLE: "Reload the account view; the subscription state may have changed since it was displayed",
    ErrorCode.NOT_FOUND: "Verify the account and subscription IDs are correct and belong together",
    ErrorCode.STRIPE_API_ERROR: "Stripe is temporarily unavailable or rejected the request. Please try again later.",
    ErrorCode.DATABASE_ERROR: "Database temporarily unavailable. Please try again in a few moments.",
}
