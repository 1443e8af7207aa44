"""Database engine and session factory for the account store.

The cashier admin reads and writes the ``accounts`` and ``subscriptions``
tables owned by the host application; it never creates or migrates them.
"""
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from cashier.config import settings

engine = create_async_engine(
    str(settings.database_url),
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
)

# One session per request, see cashier.api.deps.get_db
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

Base = declarative_base()


async def ping() -> None:
    """
    Round-trip to the database.

    Raises:
        SQLAlchemyError: If the query fails
        OSError: If the server cannot be reached
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
