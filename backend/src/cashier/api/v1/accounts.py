"""Account view and subscription action endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from cashier.api.deps import get_account_view_service, get_subscription_actions
from cashier.schemas.account_view import AccountView
from cashier.schemas.error import ErrorResponse
from cashier.schemas.subscription import RefundCreate, SubscriptionCreate, SubscriptionPlanSwap
from cashier.services.account_view_service import AccountViewService
from cashier.services.subscription_actions import SubscriptionActions

router = APIRouter(
    prefix="/accounts",
    tags=["Accounts"],
    responses={
        400: {"model": ErrorResponse, "description": "Action not applicable to the subscription"},
        404: {"model": ErrorResponse, "description": "Unknown account or subscription"},
        502: {"model": ErrorResponse, "description": "Stripe call failed"},
    },
)


@router.get("/{account_id}", response_model=AccountView)
async def get_account(
    account_id: UUID,
    brief: bool = Query(False, description="Only return the account and its subscriptions"),
    service: AccountViewService = Depends(get_account_view_service),
) -> dict:
    """
    Get the account reconciled with Stripe.

    Returns the account, its subscriptions merged with their Stripe
    counterparts, cards, invoices, charges and the plan catalogue.

    - **brief**: Skip cards, invoices, charges and plans
    """
    return await service.get_account_view(account_id, brief=brief)


@router.get("/{account_id}/subscriptions/{subscription_id}", response_model=AccountView)
async def get_account_subscription(
    account_id: UUID,
    subscription_id: UUID,
    brief: bool = Query(False, description="Only return the account and the subscription"),
    service: AccountViewService = Depends(get_account_view_service),
) -> dict:
    """Get the account view narrowed to a single subscription."""
    return await service.get_account_view(account_id, subscription_id, brief=brief)


@router.post("/{account_id}/subscriptions", status_code=status.HTTP_201_CREATED)
async def create_subscription(
    account_id: UUID,
    subscription_data: SubscriptionCreate,
    actions: SubscriptionActions = Depends(get_subscription_actions),
) -> dict:
    """
    Create a subscription in Stripe for the account.

    - **plan.product**: Product the subscription is grouped under
    - **plan.id**: Price (plan) ID
    """
    subscription = await actions.create_subscription(account_id, subscription_data.plan)
    return subscription.to_dict()


@router.patch("/{account_id}/subscriptions/{subscription_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_subscription(
    account_id: UUID,
    subscription_id: UUID,
    swap: SubscriptionPlanSwap,
    actions: SubscriptionActions = Depends(get_subscription_actions),
) -> Response:
    """Swap the subscription to another plan."""
    await actions.update_subscription(account_id, subscription_id, swap.plan)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{account_id}/subscriptions/{subscription_id}/cancel", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_subscription(
    account_id: UUID,
    subscription_id: UUID,
    now: bool = Query(False, description="Cancel immediately instead of at period end"),
    actions: SubscriptionActions = Depends(get_subscription_actions),
) -> Response:
    """
    Cancel the subscription.

    - **now**: If true, access ends immediately. Otherwise the subscription
      runs until the end of the current period.
    """
    await actions.cancel_subscription(account_id, subscription_id, immediate=now)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{account_id}/subscriptions/{subscription_id}/resume", status_code=status.HTTP_204_NO_CONTENT)
async def resume_subscription(
    account_id: UUID,
    subscription_id: UUID,
    actions: SubscriptionActions = Depends(get_subscription_actions),
) -> Response:
    """Resume a cancelled subscription that is still on its grace period."""
    await actions.resume_subscription(account_id, subscription_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{account_id}/charges/{charge_id}/refund", status_code=status.HTTP_204_NO_CONTENT)
async def refund_charge(
    account_id: UUID,
    charge_id: str,
    refund_data: RefundCreate | None = None,
    actions: SubscriptionActions = Depends(get_subscription_actions),
) -> Response:
    """
    Refund a charge.

    - **amount**: Amount in cents (optional, defaults to the full charge)
    - **notes**: Note stored on the refund (optional)
    """
    refund_data = refund_data or RefundCreate()
    await actions.refund_charge(charge_id, refund_data.amount, refund_data.notes)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
