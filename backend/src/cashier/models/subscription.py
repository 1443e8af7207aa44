"""Local subscription rows mirrored from Stripe."""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from cashier.models.base import Base


class SubscriptionStatus:
    """Stripe subscription statuses stored in ``stripe_status``."""

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"

    # Statuses that never grant access, whatever the timestamps say
    INACTIVE = frozenset({INCOMPLETE, INCOMPLETE_EXPIRED, UNPAID})


class Subscription(Base):
    """
    Local record of a customer subscription.

    ``stripe_id`` is null while the subscription only exists locally.
    ``stripe_plan`` holds the plan label, i.e. the last plan id requested for
    the subscription. The lifecycle predicates below are derived from the
    local timestamps only.
    """

    __tablename__ = "subscriptions"

    account_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)  # Product grouping
    stripe_id = Column(String, nullable=True, unique=True)
    stripe_status = Column(String, nullable=True)
    stripe_plan = Column(String, nullable=True)
    quantity = Column(Integer, nullable=True, default=1)
    trial_ends_at = Column(DateTime, nullable=True)
    ends_at = Column(DateTime, nullable=True)

    # Relationships
    account = relationship("Account", back_populates="subscriptions")

    def on_trial(self, now: datetime | None = None) -> bool:
        """Trial end is set and still ahead."""
        now = now or datetime.utcnow()
        return self.trial_ends_at is not None and self.trial_ends_at > now

    def on_grace_period(self, now: datetime | None = None) -> bool:
        """Cancelled, but the paid period has not run out yet."""
        now = now or datetime.utcnow()
        return self.ends_at is not None and self.ends_at > now

    def cancelled(self) -> bool:
        return self.ends_at is not None

    def ended(self, now: datetime | None = None) -> bool:
        return self.cancelled() and not self.on_grace_period(now)

    def active(self, now: datetime | None = None) -> bool:
        """Access is granted: not (fully) cancelled and not stuck in an unpaid state."""
        return (
            (self.ends_at is None or self.on_grace_period(now))
            and self.stripe_status not in SubscriptionStatus.INACTIVE
        )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Subscription(id={self.id}, account_id={self.account_id}, stripe_id={self.stripe_id})>"
