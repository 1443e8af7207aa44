"""Unit tests for the account view service."""
from uuid import uuid4

import pytest

from cashier.exceptions import NotFoundError
from tests.utils.factories import AccountFactory, StripeFactory, SubscriptionFactory

CUSTOMER_CALLS = {
    "get_subscription",
    "list_payment_methods",
    "get_default_payment_method",
    "list_invoices",
    "list_payment_intents",
}


def _called_methods(stripe_client) -> set[str]:
    return {name for name, _ in stripe_client.calls}


def _plan_ids(view: dict) -> list[str]:
    return [plan["id"] for plan in view["plans"]]


@pytest.mark.asyncio
async def test_full_view(account_view_service, stripe_client, customer) -> None:
    """A customer gets subscriptions, cards, invoices, charges and plans."""
    default_card = StripeFactory.payment_method()
    stripe_client.payment_methods = [StripeFactory.payment_method(), default_card]
    stripe_client.default_payment_method = default_card
    stripe_client.invoices = [
        StripeFactory.invoice(id="in_1", subscription="sub_1"),
        StripeFactory.invoice(id="in_foreign", subscription="sub_someone_else"),
    ]
    stripe_client.payment_intents = [StripeFactory.payment_intent([StripeFactory.charge(id="ch_1")])]
    stripe_client.plans = [StripeFactory.plan(id="price_1"), StripeFactory.plan(id="price_2")]

    view = await account_view_service.get_account_view(customer.account.id)

    assert view["user"]["id"] == str(customer.account.id)
    assert view["user"]["stripe_id"] == "cus_1"
    assert [s["stripe_id"] for s in view["subscriptions"]] == ["sub_1"]
    assert view["subscriptions"][0]["plan_amount"] == customer.stripe_subscription.plan.amount
    assert [card["is_default"] for card in view["cards"]] == [False, True]
    assert [invoice["id"] for invoice in view["invoices"]] == ["in_1"]
    assert [charge["id"] for charge in view["charges"]] == ["ch_1"]
    assert [plan["id"] for plan in view["plans"]] == ["price_1", "price_2"]

    assert stripe_client.called("list_invoices") == [("cus_1",)]
    assert stripe_client.called("list_payment_intents") == [("cus_1",)]
    assert stripe_client.called("list_plans") == [(100,)]


@pytest.mark.asyncio
async def test_brief_view_skips_secondary_fetches(account_view_service, stripe_client, customer) -> None:
    stripe_client.plans = [StripeFactory.plan()]
    stripe_client.invoices = [StripeFactory.invoice(subscription="sub_1")]

    view = await account_view_service.get_account_view(customer.account.id, brief=True)

    assert len(view["subscriptions"]) == 1
    assert view["cards"] == []
    assert view["invoices"] == []
    assert view["charges"] == []
    assert view["plans"] == []
    assert _called_methods(stripe_client) == {"get_subscription"}


@pytest.mark.asyncio
async def test_account_without_customer_gets_plans_only(account_view_service, repository, stripe_client) -> None:
    """Never a paying customer: no customer-scoped Stripe calls at all."""
    account = repository.add_account(
        AccountFactory.create({"stripe_id": None}),
        SubscriptionFactory.create({"stripe_id": "sub_orphan"}),
    )
    stripe_client.plans = [StripeFactory.plan(id="price_1")]

    view = await account_view_service.get_account_view(account.id)

    assert view["subscriptions"] == []
    assert _plan_ids(view) == ["price_1"]
    assert "user" not in view
    assert not _called_methods(stripe_client) & CUSTOMER_CALLS


@pytest.mark.asyncio
async def test_account_without_subscriptions_gets_plans_only(account_view_service, repository, stripe_client) -> None:
    account = repository.add_account(AccountFactory.create({"stripe_id": "cus_lonely"}))
    stripe_client.plans = [StripeFactory.plan(id="price_1")]

    view = await account_view_service.get_account_view(account.id)

    assert view["subscriptions"] == []
    assert _plan_ids(view) == ["price_1"]
    assert "user" not in view
    assert _called_methods(stripe_client) == {"list_plans"}


@pytest.mark.asyncio
async def test_brief_view_without_customer_makes_no_calls(account_view_service, repository, stripe_client) -> None:
    account = repository.add_account(AccountFactory.create({"stripe_id": None}))

    view = await account_view_service.get_account_view(account.id, brief=True)

    assert view == {"subscriptions": [], "plans": []}
    assert stripe_client.calls == []


@pytest.mark.asyncio
async def test_local_only_subscription_is_returned_as_is(account_view_service, repository, stripe_client, customer) -> None:
    pending = SubscriptionFactory.create({"stripe_id": None, "stripe_plan": "price_pending"})
    repository.add_account(customer.account, pending)

    view = await account_view_service.get_account_view(customer.account.id, brief=True)

    assert view["subscriptions"][1] == pending.to_dict()
    assert stripe_client.called("get_subscription") == [("sub_1",)]


@pytest.mark.asyncio
async def test_subscriptions_keep_request_order(account_view_service, repository, stripe_client, customer) -> None:
    second = SubscriptionFactory.create({"stripe_id": "sub_2"})
    third = SubscriptionFactory.create({"stripe_id": "sub_3"})
    repository.add_account(customer.account, second, third)
    stripe_client.subscriptions["sub_2"] = StripeFactory.subscription(id="sub_2")
    stripe_client.subscriptions["sub_3"] = StripeFactory.subscription(id="sub_3")

    view = await account_view_service.get_account_view(customer.account.id, brief=True)

    assert [s["stripe_id"] for s in view["subscriptions"]] == ["sub_1", "sub_2", "sub_3"]
    assert stripe_client.called("get_subscription") == [("sub_1",), ("sub_2",), ("sub_3",)]


@pytest.mark.asyncio
async def test_view_narrowed_to_one_subscription(account_view_service, repository, stripe_client, customer) -> None:
    other = SubscriptionFactory.create({"stripe_id": "sub_2"})
    repository.add_account(customer.account, other)
    stripe_client.subscriptions["sub_2"] = StripeFactory.subscription(id="sub_2")
    stripe_client.invoices = [
        StripeFactory.invoice(id="in_1", subscription="sub_1"),
        StripeFactory.invoice(id="in_2", subscription="sub_2"),
    ]

    view = await account_view_service.get_account_view(customer.account.id, other.id)

    assert [s["id"] for s in view["subscriptions"]] == [str(other.id)]
    # Invoices follow the loaded subscriptions only
    assert [invoice["id"] for invoice in view["invoices"]] == ["in_2"]


@pytest.mark.asyncio
async def test_no_default_payment_method(account_view_service, stripe_client, customer) -> None:
    stripe_client.payment_methods = [StripeFactory.payment_method()]
    stripe_client.default_payment_method = None

    view = await account_view_service.get_account_view(customer.account.id)

    assert view["cards"][0]["is_default"] is False


@pytest.mark.asyncio
async def test_unknown_account(account_view_service, stripe_client) -> None:
    with pytest.raises(NotFoundError):
        await account_view_service.get_account_view(uuid4())

    assert stripe_client.calls == []
