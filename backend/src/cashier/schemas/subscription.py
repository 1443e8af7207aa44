"""Pydantic schemas for subscription and refund actions."""
from pydantic import BaseModel, ConfigDict, Field


class PlanSelection(BaseModel):
    """Product grouping and price a new subscription is created for."""

    product_id: str = Field(..., alias="product", min_length=1, description="Stripe product ID (subscription grouping)")
    price_id: str = Field(..., alias="id", min_length=1, description="Stripe price (plan) ID")

    model_config = ConfigDict(populate_by_name=True)


class SubscriptionCreate(BaseModel):
    """Schema for creating a subscription."""

    plan: PlanSelection


class SubscriptionPlanSwap(BaseModel):
    """Schema for moving a subscription to another plan."""

    plan: str = Field(..., min_length=1, description="Stripe price (plan) ID to switch to")


class RefundCreate(BaseModel):
    """Schema for refunding a charge."""

    amount: int | None = Field(default=None, gt=0, description="Amount in cents (defaults to the full charge)")
    notes: str | None = Field(default=None, description="Free-form note stored as refund metadata")
