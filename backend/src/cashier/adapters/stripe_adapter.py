"""Stripe billing adapter."""
from functools import wraps
from typing import Any, Callable, Protocol

import stripe
import structlog

from cashier.config import settings
from cashier.exceptions import RemoteUnavailableError
from cashier.metrics import stripe_requests_total

logger = structlog.get_logger(__name__)


class RemoteBillingClient(Protocol):
    """Read/write access to the remote billing provider."""

    async def get_subscription(self, subscription_id: str) -> Any: ...

    async def list_plans(self, limit: int = 100) -> list[Any]: ...

    async def list_payment_methods(self, customer_id: str) -> list[Any]: ...

    async def get_default_payment_method(self, customer_id: str) -> Any | None: ...

    async def list_invoices(self, customer_id: str) -> list[Any]: ...

    async def list_payment_intents(self, customer_id: str) -> list[Any]: ...

    async def get_dispute(self, dispute_id: str) -> dict[str, Any]: ...

    async def create_refund(self, params: dict[str, Any]) -> Any: ...

    async def cancel_subscription(self, subscription_id: str) -> Any: ...

    async def cancel_subscription_now(self, subscription_id: str) -> Any: ...

    async def create_subscription(
        self, customer_id: str, price_id: str, metadata: dict[str, str] | None = None
    ) -> Any: ...

    async def swap_subscription_plan(self, subscription_id: str, price_id: str) -> Any: ...

    async def resume_subscription(self, subscription_id: str) -> Any: ...


def stripe_call(operation: str):
    """
    Decorator translating Stripe SDK failures into RemoteUnavailableError.

    Every call is counted in ``stripe_requests_total`` by operation and outcome.

    Args:
        operation: Name used in logs and metric labels
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                result = await func(*args, **kwargs)
            except stripe.StripeError as e:
                stripe_requests_total.labels(operation=operation, outcome="error").inc()
                logger.error(
                    "stripe_call_failed",
                    operation=operation,
                    stripe_code=e.code,
                    http_status=e.http_status,
                    error=str(e),
                )
                raise RemoteUnavailableError(
                    f"Stripe {operation} failed: {e.user_message or e}",
                    operation=operation,
                    stripe_code=e.code,
                    http_status=e.http_status,
                ) from e

            stripe_requests_total.labels(operation=operation, outcome="success").inc()
            return result

        return wrapper

    return decorator


class StripeAdapter:
    """
    Adapter for the Stripe API.

    Returns Stripe objects as-is (attribute access, dict-compatible). The API
    version is pinned from settings: the legacy subscription fields
    (``plan``, ``current_period_*``), invoice fields (``subscription``,
    ``charge``) and ``PaymentIntent.charges`` depend on it.
    """

    def __init__(self):
        """Initialize Stripe adapter with API key and pinned version."""
        stripe.api_key = settings.stripe_secret_key
        stripe.api_version = settings.stripe_api_version
        stripe.max_network_retries = settings.stripe_max_network_retries

    @stripe_call("get_subscription")
    async def get_subscription(self, subscription_id: str) -> stripe.Subscription:
        return stripe.Subscription.retrieve(subscription_id)

    @stripe_call("list_plans")
    async def list_plans(self, limit: int = 100) -> list[stripe.Plan]:
        """
        List plans from the catalogue.

        Args:
            limit: Maximum number of plans (Stripe caps a page at 100)

        Returns:
            Plans, most recent first
        """
        return list(stripe.Plan.list(limit=limit).data)

    @stripe_call("list_payment_methods")
    async def list_payment_methods(self, customer_id: str) -> list[stripe.PaymentMethod]:
        return list(stripe.PaymentMethod.list(customer=customer_id, type="card").data)

    @stripe_call("get_default_payment_method")
    async def get_default_payment_method(self, customer_id: str) -> stripe.PaymentMethod | None:
        """
        Get the customer's default payment method.

        Falls back to the legacy ``default_source`` (card or source object)
        for customers set up before payment methods existed.

        Args:
            customer_id: Stripe customer ID

        Returns:
            Default payment method or source, or None when the customer has none
        """
        customer = stripe.Customer.retrieve(
            customer_id,
            expand=["invoice_settings.default_payment_method", "default_source"],
        )
        invoice_settings = getattr(customer, "invoice_settings", None)
        default_payment_method = getattr(invoice_settings, "default_payment_method", None)
        return default_payment_method or getattr(customer, "default_source", None)

    @stripe_call("list_invoices")
    async def list_invoices(self, customer_id: str) -> list[stripe.Invoice]:
        """List the customer's invoices, drafts and open ones included."""
        return list(stripe.Invoice.list(customer=customer_id, limit=100).data)

    @stripe_call("list_payment_intents")
    async def list_payment_intents(self, customer_id: str) -> list[stripe.PaymentIntent]:
        return list(stripe.PaymentIntent.list(customer=customer_id, limit=100).data)

    @stripe_call("get_dispute")
    async def get_dispute(self, dispute_id: str) -> dict[str, Any]:
        return stripe.Dispute.retrieve(dispute_id).to_dict()

    @stripe_call("create_refund")
    async def create_refund(self, params: dict[str, Any]) -> stripe.Refund:
        """
        Create a refund.

        Args:
            params: Refund parameters (charge, amount, metadata)

        Returns:
            Created refund
        """
        return stripe.Refund.create(**params)

    @stripe_call("cancel_subscription")
    async def cancel_subscription(self, subscription_id: str) -> stripe.Subscription:
        """Cancel at the end of the current period."""
        return stripe.Subscription.modify(subscription_id, cancel_at_period_end=True)

    @stripe_call("cancel_subscription_now")
    async def cancel_subscription_now(self, subscription_id: str) -> stripe.Subscription:
        """Cancel immediately, ending access now."""
        return stripe.Subscription.cancel(subscription_id)

    @stripe_call("create_subscription")
    async def create_subscription(
        self, customer_id: str, price_id: str, metadata: dict[str, str] | None = None
    ) -> stripe.Subscription:
        """
        Create a subscription for a customer.

        Args:
            customer_id: Stripe customer ID
            price_id: Stripe price (plan) ID
            metadata: Additional metadata

        Returns:
            Created subscription
        """
        return stripe.Subscription.create(
            customer=customer_id,
            items=[{"price": price_id}],
            metadata=metadata or {},
            expand=["latest_invoice.payment_intent"],
        )

    @stripe_call("swap_subscription_plan")
    async def swap_subscription_plan(self, subscription_id: str, price_id: str) -> stripe.Subscription:
        """
        Move a subscription's single item to another price.

        Args:
            subscription_id: Stripe subscription ID
            price_id: New Stripe price (plan) ID

        Returns:
            Updated subscription
        """
        subscription = stripe.Subscription.retrieve(subscription_id)
        # "items" shadows dict.items on Stripe objects
        item = subscription["items"]["data"][0]

        return stripe.Subscription.modify(
            subscription_id,
            cancel_at_period_end=False,
            proration_behavior="create_prorations",
            items=[{"id": item["id"], "price": price_id}],
        )

    @stripe_call("resume_subscription")
    async def resume_subscription(self, subscription_id: str) -> stripe.Subscription:
        """Lift a pending cancel-at-period-end."""
        return stripe.Subscription.modify(subscription_id, cancel_at_period_end=False)

    @stripe_call("ping")
    async def ping(self) -> str:
        """Retrieve the platform account, proving the key and network work."""
        return stripe.Account.retrieve().id
