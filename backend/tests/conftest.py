"""Pytest configuration and fixtures.

The cashier services only talk to their collaborators through the
AccountRepository and RemoteBillingClient interfaces, so most tests run
against the in-memory fakes below instead of Postgres and Stripe.
"""
from datetime import datetime
from types import SimpleNamespace
from typing import Any, AsyncGenerator, Generator
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cashier.models import Base
from cashier.models.account import Account
from cashier.models.subscription import Subscription
from cashier.services.account_view_service import AccountViewService
from cashier.services.subscription_actions import SubscriptionActions
from tests.utils.factories import AccountFactory, StripeFactory, SubscriptionFactory

# In-memory SQLite shared by every connection of the test engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class InMemoryAccountRepository:
    """AccountRepository keeping accounts and subscriptions in dicts."""

    def __init__(self) -> None:
        self.accounts: dict[UUID, Account] = {}
        self.subscriptions: dict[UUID, Subscription] = {}

    def add_account(self, account: Account, *subscriptions: Subscription) -> Account:
        self.accounts[account.id] = account
        for subscription in subscriptions:
            subscription.account_id = account.id
            self.subscriptions[subscription.id] = subscription
        return account

    async def find_account(self, account_id: UUID) -> Account | None:
        return self.accounts.get(account_id)

    async def find_subscriptions(
        self, account_id: UUID, subscription_id: UUID | None = None
    ) -> list[Subscription]:
        return [
            subscription
            for subscription in self.subscriptions.values()
            if subscription.account_id == account_id
            and (subscription_id is None or subscription.id == subscription_id)
        ]

    async def update_subscription_plan_label(self, subscription_id: UUID, label: str) -> Subscription:
        subscription = self.subscriptions[subscription_id]
        subscription.stripe_plan = label
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
        subscription = SubscriptionFactory.create(
            {
                "account_id": account_id,
                "name": name,
                "stripe_id": stripe_id,
                "stripe_status": stripe_status,
                "stripe_plan": stripe_plan,
                "quantity": quantity,
                "trial_ends_at": trial_ends_at,
            }
        )
        self.subscriptions[subscription.id] = subscription
        return subscription

    async def record_cancellation(
        self, subscription_id: UUID, ends_at: datetime | None, stripe_status: str | None = None
    ) -> Subscription:
        subscription = self.subscriptions[subscription_id]
        subscription.ends_at = ends_at
        if stripe_status:
            subscription.stripe_status = stripe_status
        return subscription

    async def record_resumption(self, subscription_id: UUID, stripe_status: str | None) -> Subscription:
        subscription = self.subscriptions[subscription_id]
        subscription.ends_at = None
        if stripe_status:
            subscription.stripe_status = stripe_status
        return subscription


class FakeStripeClient:
    """
    RemoteBillingClient serving canned Stripe objects.

    Every call is appended to ``calls`` as ``(method, args)``.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.subscriptions: dict[str, SimpleNamespace] = {}
        self.plans: list[SimpleNamespace] = []
        self.payment_methods: list[SimpleNamespace] = []
        self.default_payment_method: SimpleNamespace | None = None
        self.invoices: list[SimpleNamespace] = []
        self.payment_intents: list[SimpleNamespace] = []
        self.disputes: dict[str, dict[str, Any]] = {}

    def called(self, method: str) -> list[tuple[Any, ...]]:
        """Arguments of every call made to ``method``."""
        return [args for name, args in self.calls if name == method]

    async def get_subscription(self, subscription_id: str) -> SimpleNamespace:
        self.calls.append(("get_subscription", (subscription_id,)))
        return self.subscriptions[subscription_id]

    async def list_plans(self, limit: int = 100) -> list[SimpleNamespace]:
        self.calls.append(("list_plans", (limit,)))
        return self.plans[:limit]

    async def list_payment_methods(self, customer_id: str) -> list[SimpleNamespace]:
        self.calls.append(("list_payment_methods", (customer_id,)))
        return self.payment_methods

    async def get_default_payment_method(self, customer_id: str) -> SimpleNamespace | None:
        self.calls.append(("get_default_payment_method", (customer_id,)))
        return self.default_payment_method

    async def list_invoices(self, customer_id: str) -> list[SimpleNamespace]:
        self.calls.append(("list_invoices", (customer_id,)))
        return self.invoices

    async def list_payment_intents(self, customer_id: str) -> list[SimpleNamespace]:
        self.calls.append(("list_payment_intents", (customer_id,)))
        return self.payment_intents

    async def get_dispute(self, dispute_id: str) -> dict[str, Any]:
        self.calls.append(("get_dispute", (dispute_id,)))
        return self.disputes[dispute_id]

    async def create_refund(self, params: dict[str, Any]) -> SimpleNamespace:
        self.calls.append(("create_refund", (params,)))
        return SimpleNamespace(id="re_test", **params)

    async def cancel_subscription(self, subscription_id: str) -> SimpleNamespace:
        self.calls.append(("cancel_subscription", (subscription_id,)))
        subscription = self.subscriptions[subscription_id]
        subscription.cancel_at_period_end = True
        return subscription

    async def cancel_subscription_now(self, subscription_id: str) -> SimpleNamespace:
        self.calls.append(("cancel_subscription_now", (subscription_id,)))
        subscription = self.subscriptions[subscription_id]
        subscription.status = "canceled"
        return subscription

    async def create_subscription(
        self, customer_id: str, price_id: str, metadata: dict[str, str] | None = None
    ) -> SimpleNamespace:
        self.calls.append(("create_subscription", (customer_id, price_id, metadata)))
        subscription = StripeFactory.subscription(plan=StripeFactory.plan(id=price_id))
        self.subscriptions[subscription.id] = subscription
        return subscription

    async def swap_subscription_plan(self, subscription_id: str, price_id: str) -> SimpleNamespace:
        self.calls.append(("swap_subscription_plan", (subscription_id, price_id)))
        subscription = self.subscriptions[subscription_id]
        subscription.plan = StripeFactory.plan(id=price_id)
        subscription.cancel_at_period_end = False
        return subscription

    async def resume_subscription(self, subscription_id: str) -> SimpleNamespace:
        self.calls.append(("resume_subscription", (subscription_id,)))
        subscription = self.subscriptions[subscription_id]
        subscription.cancel_at_period_end = False
        subscription.status = "active"
        return subscription


@pytest.fixture(scope="function")
def repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture(scope="function")
def stripe_client() -> FakeStripeClient:
    return FakeStripeClient()


@pytest.fixture(scope="function")
def account_view_service(repository: InMemoryAccountRepository, stripe_client: FakeStripeClient) -> AccountViewService:
    return AccountViewService(repository, stripe_client, plans_limit=100)


@pytest.fixture(scope="function")
def subscription_actions(repository: InMemoryAccountRepository, stripe_client: FakeStripeClient) -> SubscriptionActions:
    return SubscriptionActions(repository, stripe_client)


@pytest.fixture(scope="function")
def customer(repository: InMemoryAccountRepository, stripe_client: FakeStripeClient) -> SimpleNamespace:
    """
    A Stripe customer with one subscription that exists in Stripe.

    Returns:
        Namespace with account, subscription and stripe_subscription
    """
    stripe_subscription = StripeFactory.subscription(id="sub_1")
    subscription = SubscriptionFactory.create({"stripe_id": "sub_1", "stripe_plan": stripe_subscription.plan.id})
    account = repository.add_account(AccountFactory.create({"stripe_id": "cus_1"}), subscription)
    stripe_client.subscriptions["sub_1"] = stripe_subscription

    return SimpleNamespace(account=account, subscription=subscription, stripe_subscription=stripe_subscription)


@pytest.fixture(scope="function")
def api_client(
    account_view_service: AccountViewService,
    subscription_actions: SubscriptionActions,
) -> Generator:
    """
    FastAPI test client wired to the in-memory collaborators.

    Yields:
        TestClient: Synchronous test client
    """
    from fastapi.testclient import TestClient

    from cashier.api.deps import get_account_view_service, get_subscription_actions
    from cashier.main import app

    app.dependency_overrides[get_account_view_service] = lambda: account_view_service
    app.dependency_overrides[get_subscription_actions] = lambda: subscription_actions

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh in-memory database session for each test.

    Yields:
        AsyncSession: Database session for testing
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()

    await engine.dispose()
