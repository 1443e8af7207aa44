"""Liveness and readiness probes."""
from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from cashier import database
from cashier.adapters.stripe_adapter import StripeAdapter
from cashier.api.deps import get_stripe_adapter
from cashier.config import settings
from cashier.exceptions import RemoteUnavailableError

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    """Liveness probe. Does not touch the database or Stripe."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": "0.1.0",
    }


@router.get("/health/ready", tags=["Health"])
async def readiness_check(stripe_adapter: StripeAdapter = Depends(get_stripe_adapter)) -> JSONResponse:
    """
    Readiness probe.

    Every endpoint needs both the account store and Stripe, so the service
    is only ready when both answer.

    Returns:
        JSONResponse: 200 or 503 with one entry per dependency
    """
    checks = {"database": "unknown", "stripe": "unknown"}

    try:
        await database.ping()
        checks["database"] = "connected"
    except (SQLAlchemyError, OSError) as exc:
        logger.error("database_health_check_failed", error=str(exc))
        checks["database"] = "disconnected"

    try:
        await stripe_adapter.ping()
        checks["stripe"] = "reachable"
    except RemoteUnavailableError as exc:
        logger.error("stripe_health_check_failed", stripe_code=exc.stripe_code, http_status=exc.http_status)
        checks["stripe"] = "unreachable"

    ready = checks["database"] == "connected" and checks["stripe"] == "reachable"

    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "ready": ready,
            "checks": checks,
            "stripe_api_version": settings.stripe_api_version,
            "timestamp": datetime.utcnow().isoformat(),
        },
    )
