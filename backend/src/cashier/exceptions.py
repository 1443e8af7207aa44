"""Error taxonomy shared by the services, the Stripe adapter and the API layer."""
from typing import Any


class CashierError(Exception):
    """Base class for all errors raised by the cashier core."""

    code = "cashier_error"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class NotFoundError(CashierError):
    """An account or subscription id did not resolve locally."""

    code = "not_found"


class ValidationError(CashierError):
    """A mutation request is malformed or not applicable to the subscription."""

    code = "validation_error"


class RemoteUnavailableError(CashierError):
    """A call to Stripe failed or timed out."""

    code = "stripe_api_error"

    def __init__(
        self,
        message: str,
        operation: str,
        stripe_code: str | None = None,
        http_status: int | None = None,
    ):
        super().__init__(message, operation=operation, stripe_code=stripe_code, http_status=http_status)
        self.operation = operation
        self.stripe_code = stripe_code
        self.http_status = http_status
