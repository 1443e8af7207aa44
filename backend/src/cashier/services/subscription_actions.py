"""Subscription and refund actions forwarded to Stripe."""
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog

from cashier.adapters.stripe_adapter import RemoteBillingClient
from cashier.exceptions import NotFoundError, ValidationError
from cashier.metrics import refunds_total, subscription_actions_total
from cashier.models.subscription import Subscription, SubscriptionStatus
from cashier.repositories.account_repository import AccountRepository
from cashier.schemas.subscription import PlanSelection
from cashier.utils.timestamps import to_utc_naive

logger = structlog.get_logger(__name__)


class SubscriptionActions:
    """
    Write operations on an account's subscriptions.

    Each action is a single Stripe operation (a plan swap reads the
    subscription before modifying it). Local rows are only touched after
    Stripe answered, so a Stripe failure leaves nothing to undo.
    """

    def __init__(self, repository: AccountRepository, client: RemoteBillingClient):
        """Initialize subscription actions."""
        self.repository = repository
        self.client = client

    async def cancel_subscription(
        self, account_id: UUID, subscription_id: UUID, immediate: bool = False
    ) -> Subscription:
        """
        Cancel a subscription.

        Args:
            account_id: Account UUID
            subscription_id: Local subscription UUID
            immediate: End access now instead of at the end of the period

        Returns:
            Updated local subscription

        Raises:
            NotFoundError: If the account or subscription does not exist
            ValidationError: If the subscription does not exist in Stripe
        """
        subscription = await self._find_remote_subscription(account_id, subscription_id)

        if immediate:
            await self.client.cancel_subscription_now(subscription.stripe_id)
            subscription_actions_total.labels(action="cancel_now").inc()
            subscription = await self.repository.record_cancellation(
                subscription.id, datetime.utcnow(), SubscriptionStatus.CANCELED
            )
        else:
            stripe_subscription = await self.client.cancel_subscription(subscription.stripe_id)
            subscription_actions_total.labels(action="cancel").inc()
            # Access runs until the trial or the paid period is over
            if subscription.on_trial():
                ends_at = subscription.trial_ends_at
            else:
                ends_at = to_utc_naive(stripe_subscription.current_period_end)
            subscription = await self.repository.record_cancellation(subscription.id, ends_at)

        logger.info(
            "subscription_cancelled",
            account_id=str(account_id),
            subscription_id=str(subscription_id),
            stripe_id=subscription.stripe_id,
            immediate=immediate,
        )
        return subscription

    async def create_subscription(self, account_id: UUID, plan: PlanSelection) -> Subscription:
        """
        Create a subscription in Stripe and record it locally.

        Args:
            account_id: Account UUID
            plan: Product grouping and price

        Returns:
            Created local subscription

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the plan is incomplete or the account is not a Stripe customer
        """
        if not plan.product_id or not plan.price_id:
            raise ValidationError("Both a product and a plan id are required", plan=plan.model_dump())

        account = await self._find_account(account_id)
        if not account.stripe_id:
            raise ValidationError(
                f"Account {account_id} is not a Stripe customer yet",
                account_id=str(account_id),
            )

        stripe_subscription = await self.client.create_subscription(
            account.stripe_id,
            plan.price_id,
            metadata={"name": plan.product_id},
        )
        subscription_actions_total.labels(action="create").inc()

        subscription = await self.repository.add_subscription(
            account_id=account.id,
            name=plan.product_id,
            stripe_id=stripe_subscription.id,
            stripe_status=stripe_subscription.status,
            stripe_plan=plan.price_id,
            quantity=getattr(stripe_subscription, "quantity", 1),
            trial_ends_at=to_utc_naive(getattr(stripe_subscription, "trial_end", None)),
        )

        logger.info(
            "subscription_created",
            account_id=str(account_id),
            stripe_id=stripe_subscription.id,
            product=plan.product_id,
            price=plan.price_id,
        )
        return subscription

    async def update_subscription(self, account_id: UUID, subscription_id: UUID, plan_id: str) -> Subscription:
        """
        Swap a subscription to another plan.

        The local plan label is overwritten with ``plan_id`` once Stripe
        accepted the swap. A swap also lifts a pending cancellation, so a
        subscription on its grace period is recorded as resumed.

        Raises:
            NotFoundError: If the account or subscription does not exist
            ValidationError: If plan_id is empty or the subscription does not exist in Stripe
        """
        if not plan_id:
            raise ValidationError("A plan id is required", subscription_id=str(subscription_id))

        subscription = await self._find_remote_subscription(account_id, subscription_id)

        stripe_subscription = await self.client.swap_subscription_plan(subscription.stripe_id, plan_id)
        subscription_actions_total.labels(action="swap").inc()

        old_plan = subscription.stripe_plan
        was_cancelled = subscription.cancelled()
        subscription = await self.repository.update_subscription_plan_label(subscription.id, plan_id)
        if was_cancelled:
            subscription = await self.repository.record_resumption(subscription.id, stripe_subscription.status)

        logger.info(
            "subscription_plan_swapped",
            account_id=str(account_id),
            subscription_id=str(subscription_id),
            old_plan=old_plan,
            new_plan=plan_id,
            resumed=was_cancelled,
        )
        return subscription

    async def resume_subscription(self, account_id: UUID, subscription_id: UUID) -> Subscription:
        """
        Resume a subscription that is cancelled but still on its grace period.

        Raises:
            NotFoundError: If the account or subscription does not exist
            ValidationError: If the subscription is not on its grace period
        """
        subscription = await self._find_remote_subscription(account_id, subscription_id)

        if not subscription.on_grace_period():
            raise ValidationError(
                "Unable to resume a subscription that is not within its grace period",
                subscription_id=str(subscription_id),
            )

        stripe_subscription = await self.client.resume_subscription(subscription.stripe_id)
        subscription_actions_total.labels(action="resume").inc()

        subscription = await self.repository.record_resumption(subscription.id, stripe_subscription.status)

        logger.info(
            "subscription_resumed",
            account_id=str(account_id),
            subscription_id=str(subscription_id),
            stripe_id=subscription.stripe_id,
        )
        return subscription

    async def refund_charge(self, charge_id: str, amount: int | None = None, note: str | None = None) -> Any:
        """
        Refund a charge.

        Args:
            charge_id: Stripe charge ID
            amount: Amount in cents (omitted: full refund)
            note: Free-form note stored under the ``notes`` metadata key

        Returns:
            Stripe refund
        """
        if not charge_id:
            raise ValidationError("A charge id is required")

        params: dict[str, Any] = {"charge": charge_id}

        if amount:
            params["amount"] = amount

        if note:
            params["metadata"] = {"notes": note}

        refund = await self.client.create_refund(params)
        refunds_total.labels(kind="partial" if amount else "full").inc()

        logger.info("charge_refunded", charge_id=charge_id, amount=amount, has_note=bool(note))
        return refund

    async def _find_account(self, account_id: UUID):
        account = await self.repository.find_account(account_id)
        if not account:
            raise NotFoundError(f"Account {account_id} not found", account_id=str(account_id))
        return account

    async def _find_remote_subscription(self, account_id: UUID, subscription_id: UUID) -> Subscription:
        await self._find_account(account_id)

        subscriptions = await self.repository.find_subscriptions(account_id, subscription_id)
        if not subscriptions:
            raise NotFoundError(
                f"Subscription {subscription_id} not found for account {account_id}",
                account_id=str(account_id),
                subscription_id=str(subscription_id),
            )

        subscription = subscriptions[0]
        if not subscription.stripe_id:
            raise ValidationError(
                f"Subscription {subscription_id} does not exist in Stripe yet",
                subscription_id=str(subscription_id),
            )
        return subscription
