"""Pydantic schemas for API request/response validation."""

from cashier.schemas.account_view import (
    AccountView,
    Card,
    Charge,
    Invoice,
    MergedSubscription,
    Plan,
)
from cashier.schemas.error import (
    ErrorCode,
    ErrorDetail,
    ErrorResponse,
    REMEDIATION_HINTS,
)
from cashier.schemas.subscription import (
    PlanSelection,
    RefundCreate,
    SubscriptionCreate,
    SubscriptionPlanSwap,
)

__all__ = [
    # Account view
    "AccountView",
    "Card",
    "Charge",
    "Invoice",
    "MergedSubscription",
    "Plan",
    # Errors
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "REMEDIATION_HINTS",
    # Actions
    "PlanSelection",
    "RefundCreate",
    "SubscriptionCreate",
    "SubscriptionPlanSwap",
]
