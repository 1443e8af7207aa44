"""Persistence of billable accounts and their local subscription rows."""
from datetime import datetime
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cashier.exceptions import NotFoundError
from cashier.models.account import Account
from cashier.models.subscription import Subscription


class AccountRepository(Protocol):
    """Local account store consumed by the cashier services."""

    async def find_account(self, account_id: UUID) -> Account | None: ...

    async def find_subscriptions(
        self, account_id: UUID, subscription_id: UUID | None = None
    ) -> list[Subscription]: ...

    async def update_subscription_plan_label(self, subscription_id: UUID, label: str) -> Subscription: ...

    async def add_subscription(
        self,
        account_id: UUID,
        name: str,
        stripe_id: str,
        stripe_status: str | None,
        stripe_plan: str,
        quantity: int | None = 1,
        trial_ends_at: datetime | None = None,
    ) -> Subscription: ...

    async def record_cancellation(
        self, subscription_id: UUID, ends_at: datetime | None, stripe_status: str | None = None
    ) -> Subscription: ...

    async def record_resumption(self, subscription_id: UUID, stripe_status: str | None) -> Subscription: ...


class SqlAccountRepository:
    """AccountRepository backed by the application database."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def find_account(self, account_id: UUID) -> Account | None:
        """
        Get account by ID.

        Args:
            account_id: Account UUID

        Returns:
            Account or None if not found
        """
        result = await self.db.execute(select(Account).where(Account.id == account_id))
        return result.scalar_one_or_none()

    async def find_subscriptions(
        self, account_id: UUID, subscription_id: UUID | None = None
    ) -> list[Subscription]:
        """
        Get an account's subscriptions in creation order.

        Args:
            account_id: Account UUID
            subscription_id: Narrow the result to this subscription (optional)

        Returns:
            Matching subscriptions (possibly empty)
        """
        query = select(Subscription).where(Subscription.account_id == account_id)

        if subscription_id:
            query = query.where(Subscription.id == subscription_id)

        result = await self.db.execute(query.order_by(Subscription.created_at))
        return list(result.scalars().all())

    async def update_subscription_plan_label(self, subscription_id: UUID, label: str) -> Subscription:
        """
        Overwrite the plan label of a subscription.

        The label doubles as the last requested plan id; callers that only
        want to rename the plan for display still go through here.
        """
        subscription = await self._get(subscription_id)
        subscription.stripe_plan = label

        await self.db.flush()
        await self.db.refresh(subscription)
        return subscription

    async def add_subscription(
        self,
        account_id: UUID,
        name: str,
        stripe_id: str,
        stripe_status: str | None,
        stripe_plan: str,
        quantity: int | None = 1,
        trial_ends_at: datetime | None = None,
    ) -> Subscription:
        """
        Record a subscription that was just created in Stripe.

        Returns:
            Created subscription
        """
        subscription = Subscription(
            account_id=account_id,
            name=name,
            stripe_id=stripe_id,
            stripe_status=stripe_status,
            stripe_plan=stripe_plan,
            quantity=quantity,
            trial_ends_at=trial_ends_at,
        )

        self.db.add(subscription)
        await self.db.flush()
        await self.db.refresh(subscription)
        return subscription

    async def record_cancellation(
        self, subscription_id: UUID, ends_at: datetime | None, stripe_status: str | None = None
    ) -> Subscription:
        subscription = await self._get(subscription_id)
        subscription.ends_at = ends_at
        if stripe_status:
            subscription.stripe_status = stripe_status

        await self.db.flush()
        await self.db.refresh(subscription)
        return subscription

    async def record_resumption(self, subscription_id: UUID, stripe_status: str | None) -> Subscription:
        subscription = await self._get(subscription_id)
        subscription.ends_at = None
        if stripe_status:
            subscription.stripe_status = stripe_status

        await self.db.flush()
        await self.db.refresh(subscription)
        return subscription

    async def _get(self, subscription_id: UUID) -> Subscription:
        subscription = await self.db.get(Subscription, subscription_id)
        if not subscription:
            raise NotFoundError(f"Subscription {subscription_id} not found", subscription_id=str(subscription_id))
        return subscription
