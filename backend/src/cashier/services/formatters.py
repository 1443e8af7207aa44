"""Flattening of local and Stripe objects into API-ready dicts.

Stripe objects are read by attribute. Optional fields that Stripe leaves out
are rendered as None rather than omitted.
"""
from typing import Any, Iterable

from cashier.adapters.stripe_adapter import RemoteBillingClient
from cashier.models.subscription import Subscription
from cashier.utils.timestamps import format_date, format_datetime


def format_subscription(subscription: Subscription, stripe_subscription: Any) -> dict[str, Any]:
    """
    Merge a local subscription with its Stripe counterpart.

    Local columns are copied verbatim, then overlaid with the remote plan,
    the local lifecycle flags and the remote billing dates.

    Args:
        subscription: Local subscription row
        stripe_subscription: Stripe subscription object

    Returns:
        Merged subscription view
    """
    plan = stripe_subscription.plan

    return {
        **subscription.to_dict(),
        "plan_amount": plan.amount,
        "plan_interval": plan.interval,
        "plan_currency": plan.currency,
        "plan": subscription.stripe_plan,
        "stripe_plan": plan.id,
        "ended": subscription.ended(),
        "cancelled": subscription.cancelled(),
        "active": subscription.active(),
        "on_trial": subscription.on_trial(),
        "on_grace_period": subscription.on_grace_period(),
        "charges_automatically": stripe_subscription.collection_method == "charge_automatically",
        "created_at": format_datetime(stripe_subscription.billing_cycle_anchor),
        "ended_at": format_datetime(stripe_subscription.ended_at),
        "current_period_start": format_date(stripe_subscription.current_period_start),
        "current_period_end": format_date(stripe_subscription.current_period_end),
        "days_until_due": stripe_subscription.days_until_due,
        "cancel_at_period_end": stripe_subscription.cancel_at_period_end,
        "canceled_at": stripe_subscription.canceled_at,
    }


def format_payment_methods(
    payment_methods: Iterable[Any], default_payment_method_id: str | None = None
) -> list[dict[str, Any]]:
    """
    Format card payment methods.

    Args:
        payment_methods: Stripe payment methods of type card
        default_payment_method_id: ID of the customer's default payment method

    Returns:
        Card views, flagged with is_default
    """
    cards = []
    for payment_method in payment_methods:
        card = payment_method.card
        billing_details = getattr(payment_method, "billing_details", None)

        cards.append(
            {
                "id": payment_method.id,
                "is_default": default_payment_method_id is not None and payment_method.id == default_payment_method_id,
                "name": getattr(card, "name", None) or getattr(billing_details, "name", None),
                "last4": card.last4,
                "country": card.country,
                "brand": card.brand,
                "exp_month": card.exp_month,
                "exp_year": card.exp_year,
            }
        )
    return cards


def format_invoices(invoices: Iterable[Any], subscription_ids: Iterable[str] | None = None) -> list[dict[str, Any]]:
    """
    Format invoices belonging to the given subscriptions.

    Invoices are associated by filter: only those whose subscription is in
    ``subscription_ids`` are kept. Without a set nothing is associated, so
    the result is empty.

    Args:
        invoices: Stripe invoices
        subscription_ids: Stripe subscription IDs of the account

    Returns:
        Invoice views in input order
    """
    allowed = set(subscription_ids or ())

    formatted = []
    for invoice in invoices:
        if invoice.subscription not in allowed:
            continue

        formatted.append(
            {
                "id": invoice.id,
                "subscription_id": invoice.subscription,
                "total": invoice.total,
                "attempted": invoice.attempted,
                "charge_id": invoice.charge,
                "currency": invoice.currency,
                "period_start": format_datetime(invoice.period_start),
                "period_end": format_datetime(invoice.period_end),
                "metadata": invoice.metadata or None,
            }
        )
    return formatted


async def format_payment_intents(payment_intents: Iterable[Any], client: RemoteBillingClient) -> list[dict[str, Any]]:
    """
    Flatten payment intents into their charges.

    Order is payment intent order, then charge order within each intent.
    Disputed charges get the full dispute resolved through ``client``.

    Args:
        payment_intents: Stripe payment intents with their charges
        client: Remote billing client used for dispute lookups

    Returns:
        Charge views
    """
    charges = []
    for payment_intent in payment_intents:
        for charge in payment_intent.charges.data:
            dispute = await client.get_dispute(charge.dispute) if charge.dispute else None

            charges.append(
                {
                    "id": charge.id,
                    "amount": charge.amount,
                    "amount_refunded": charge.amount_refunded,
                    "captured": charge.captured,
                    "paid": charge.paid,
                    "status": charge.status,
                    "currency": charge.currency,
                    "dispute": dispute,
                    "failure_code": charge.failure_code,
                    "failure_message": charge.failure_message,
                    "created": format_datetime(charge.created),
                }
            )
    return charges


def format_plans(plans: Iterable[Any]) -> list[dict[str, Any]]:
    return [
        {
            "id": plan.id,
            "nickname": plan.nickname,
            "price": plan.amount,
            "interval": plan.interval,
            "currency": plan.currency,
            "product": plan.product,
        }
        for plan in plans
    ]
