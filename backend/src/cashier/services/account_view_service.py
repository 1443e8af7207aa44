"""Account view service: local account state reconciled with Stripe."""
from typing import Any
from uuid import UUID

import structlog

from cashier.adapters.stripe_adapter import RemoteBillingClient
from cashier.config import settings
from cashier.exceptions import NotFoundError
from cashier.metrics import account_views_total
from cashier.repositories.account_repository import AccountRepository
from cashier.services.formatters import (
    format_invoices,
    format_payment_intents,
    format_payment_methods,
    format_plans,
    format_subscription,
)

logger = structlog.get_logger(__name__)


class AccountViewService:
    """Builds the admin view of a billable account."""

    def __init__(
        self,
        repository: AccountRepository,
        client: RemoteBillingClient,
        plans_limit: int | None = None,
    ):
        """
        Initialize account view service.

        Args:
            repository: Local account store
            client: Remote billing client
            plans_limit: Size of the plan catalogue (defaults to settings.plans_page_limit)
        """
        self.repository = repository
        self.client = client
        self.plans_limit = plans_limit or settings.plans_page_limit

    async def get_account_view(
        self,
        account_id: UUID,
        subscription_id: UUID | None = None,
        brief: bool = False,
    ) -> dict[str, Any]:
        """
        Build the account view.

        Args:
            account_id: Account UUID
            subscription_id: Only include this subscription (optional)
            brief: Skip cards, invoices, charges and plans (no Stripe calls for them)

        Returns:
            View with user, cards, invoices, charges, subscriptions and plans.
            Accounts that are not Stripe customers (or have no matching
            subscription) only get an empty subscriptions list and the plan
            catalogue.

        Raises:
            NotFoundError: If the account does not exist
        """
        account = await self.repository.find_account(account_id)
        if not account:
            raise NotFoundError(f"Account {account_id} not found", account_id=str(account_id))

        subscriptions = await self.repository.find_subscriptions(account_id, subscription_id)

        if not subscriptions or account.stripe_id is None:
            account_views_total.labels(mode="not_customer").inc()
            logger.info(
                "account_view_without_customer",
                account_id=str(account_id),
                has_customer=account.stripe_id is not None,
                subscription_count=len(subscriptions),
            )
            return {
                "subscriptions": [],
                "plans": [] if brief else await self._plans(),
            }

        formatted_subscriptions = []
        for subscription in subscriptions:
            if not subscription.stripe_id:
                # Not created in Stripe yet
                formatted_subscriptions.append(subscription.to_dict())
                continue

            stripe_subscription = await self.client.get_subscription(subscription.stripe_id)
            formatted_subscriptions.append(format_subscription(subscription, stripe_subscription))

        view: dict[str, Any] = {
            "user": account.to_dict(),
            "cards": [],
            "invoices": [],
            "charges": [],
            "subscriptions": formatted_subscriptions,
            "plans": [],
        }

        if not brief:
            subscription_ids = [s.stripe_id for s in subscriptions if s.stripe_id]
            view["cards"] = await self._cards(account.stripe_id)
            view["invoices"] = format_invoices(await self.client.list_invoices(account.stripe_id), subscription_ids)
            view["charges"] = await format_payment_intents(
                await self.client.list_payment_intents(account.stripe_id), self.client
            )
            view["plans"] = await self._plans()

        account_views_total.labels(mode="brief" if brief else "full").inc()
        logger.info(
            "account_view_built",
            account_id=str(account_id),
            brief=brief,
            subscription_count=len(formatted_subscriptions),
            invoice_count=len(view["invoices"]),
            charge_count=len(view["charges"]),
        )

        return view

    async def _cards(self, customer_id: str) -> list[dict[str, Any]]:
        payment_methods = await self.client.list_payment_methods(customer_id)
        default_payment_method = await self.client.get_default_payment_method(customer_id)

        return format_payment_methods(
            payment_methods,
            default_payment_method.id if default_payment_method else None,
        )

    async def _plans(self) -> list[dict[str, Any]]:
        return format_plans(await self.client.list_plans(limit=self.plans_limit))
