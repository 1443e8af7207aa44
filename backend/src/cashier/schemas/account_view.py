"""Pydantic schemas for the account view response."""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Card(BaseModel):
    """Card payment method."""

    id: str
    is_default: bool
    name: str | None = None
    last4: str | None = None
    country: str | None = None
    brand: str | None = None
    exp_month: int | None = None
    exp_year: int | None = None


class Invoice(BaseModel):
    """Invoice associated with one of the account's subscriptions."""

    id: str
    subscription_id: str | None
    total: int
    attempted: bool | None = None
    charge_id: str | None = None
    currency: str
    period_start: str | None = Field(default=None, description="YYYY-MM-DD HH:MM:SS")
    period_end: str | None = Field(default=None, description="YYYY-MM-DD HH:MM:SS")
    metadata: dict[str, Any] | None = None


class Charge(BaseModel):
    """Charge flattened out of a payment intent."""

    id: str
    amount: int
    amount_refunded: int = 0
    captured: bool | None = None
    paid: bool | None = None
    status: str | None = None
    currency: str
    dispute: dict[str, Any] | None = Field(default=None, description="Full Stripe dispute when disputed")
    failure_code: str | None = None
    failure_message: str | None = None
    created: str | None = Field(default=None, description="YYYY-MM-DD HH:MM:SS")


class Plan(BaseModel):
    """Plan from the Stripe catalogue."""

    id: str
    nickname: str | None = None
    price: int | None = Field(default=None, description="Amount in cents")
    interval: str | None = None
    currency: str | None = None
    product: str | None = None


class MergedSubscription(BaseModel):
    """
    Subscription view.

    Always carries the local columns. Subscriptions that exist in Stripe
    also carry the plan, lifecycle flags and billing dates.
    """

    id: str
    account_id: str
    name: str
    stripe_id: str | None = None
    stripe_status: str | None = None
    stripe_plan: str | None = None
    quantity: int | None = None
    trial_ends_at: str | None = None
    ends_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    model_config = ConfigDict(extra="allow")


class AccountView(BaseModel):
    """Account with its reconciled subscriptions and Stripe collections."""

    user: dict[str, Any] | None = None
    cards: list[Card] = Field(default_factory=list)
    invoices: list[Invoice] = Field(default_factory=list)
    charges: list[Charge] = Field(default_factory=list)
    subscriptions: list[MergedSubscription] = Field(default_factory=list)
    plans: list[Plan] = Field(default_factory=list)
