"""SQLAlchemy ORM models for the cashier admin."""
# Import all models here to ensure they are registered on the metadata

from cashier.models.base import Base
from cashier.models.account import Account
from cashier.models.subscription import Subscription, SubscriptionStatus

__all__ = [
    "Base",
    "Account",
    "Subscription",
    "SubscriptionStatus",
]
