"""FastAPI dependencies wiring the cashier services."""
from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cashier.adapters.stripe_adapter import StripeAdapter
from cashier.database import AsyncSessionLocal
from cashier.repositories.account_repository import SqlAccountRepository
from cashier.services.account_view_service import AccountViewService
from cashier.services.subscription_actions import SubscriptionActions


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Yields:
        AsyncSession: Database session for the request lifecycle
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_stripe_adapter() -> StripeAdapter:
    return StripeAdapter()


def get_account_repository(db: AsyncSession = Depends(get_db)) -> SqlAccountRepository:
    return SqlAccountRepository(db)


def get_account_view_service(
    repository: SqlAccountRepository = Depends(get_account_repository),
    stripe_adapter: StripeAdapter = Depends(get_stripe_adapter),
) -> AccountViewService:
    """Account view service bound to the request's session."""
    return AccountViewService(repository, stripe_adapter)


def get_subscription_actions(
    repository: SqlAccountRepository = Depends(get_account_repository),
    stripe_adapter: StripeAdapter = Depends(get_stripe_adapter),
) -> SubscriptionActions:
    """Subscription actions bound to the request's session."""
    return SubscriptionActions(repository, stripe_adapter)
