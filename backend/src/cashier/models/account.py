"""Billable account model."""
from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from cashier.models.base import Base


class Account(Base):
    """
    Billable account.

    A customer of the application that may (or may not yet) exist in Stripe.
    A null ``stripe_id`` means the account never became a paying customer.
    """

    __tablename__ = "accounts"

    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    stripe_id = Column(String, nullable=True, index=True)  # Stripe customer ID
    pm_type = Column(String, nullable=True)  # Default payment method brand
    pm_last_four = Column(String(4), nullable=True)
    trial_ends_at = Column(DateTime, nullable=True)  # Generic (subscription-less) trial

    # Relationships
    subscriptions = relationship("Subscription", back_populates="account", order_by="Subscription.created_at")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Account(id={self.id}, email={self.email}, stripe_id={self.stripe_id})>"
