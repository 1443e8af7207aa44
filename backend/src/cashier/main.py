"""FastAPI application entry point."""
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy.exc import SQLAlchemyError

from cashier.config import settings
from cashier.exceptions import NotFoundError, RemoteUnavailableError, ValidationError
from cashier.middleware.logging import LoggingMiddleware, setup_logging
from cashier.middleware.metrics import MetricsMiddleware
from cashier.schemas.error import REMEDIATION_HINTS, ErrorCode, ErrorDetail

# Setup structured logging
setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    logger.info("application_starting", env=settings.app_env, stripe_api_version=settings.stripe_api_version)
    yield
    logger.info("application_shutting_down")


app = FastAPI(
    title="Cashier Admin",
    description="Administrative view over Stripe subscriptions of billable accounts",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(LoggingMiddleware)

# Mount Prometheus metrics endpoint
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


def _request_id(request: Request) -> str:
    # Set by LoggingMiddleware; missing when the handler runs outside it
    request_id = getattr(request.state, "request_id", None)
    return request_id or request.headers.get("x-request-id", f"req_{uuid.uuid4().hex[:12]}")


def _error_body(
    request_id: str,
    error: str,
    message: str,
    details: list[dict[str, Any]],
    remediation: str | None,
) -> dict[str, Any]:
    return {
        "error": error,
        "message": message,
        "details": details,
        "remediation": remediation,
        "request_id": request_id,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }


@app.exception_handler(NotFoundError)
async def not_found_exception_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Unknown account or subscription: 404."""
    request_id = _request_id(request)
    logger.info("not_found", path=request.url.path, request_id=request_id, **exc.context)

    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=_error_body(
            request_id,
            "NotFound",
            exc.message,
            [ErrorDetail(code=ErrorCode.NOT_FOUND, message=exc.message).model_dump()],
            REMEDIATION_HINTS[ErrorCode.NOT_FOUND],
        ),
    )


@app.exception_handler(ValidationError)
async def action_validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Action not applicable to the subscription or account: 400."""
    request_id = _request_id(request)
    logger.warning("action_rejected", path=request.url.path, request_id=request_id, reason=exc.message)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            request_id,
            "ValidationError",
            exc.message,
            [ErrorDetail(code=ErrorCode.ACTION_NOT_APPLICABLE, message=exc.message).model_dump()],
            REMEDIATION_HINTS[ErrorCode.ACTION_NOT_APPLICABLE],
        ),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle Pydantic validation errors with structured response.

    Returns 422 with detailed field-level validation errors.
    """
    request_id = _request_id(request)

    code_mapping = {
        "missing": ErrorCode.MISSING_REQUIRED_FIELD,
        "uuid_parsing": ErrorCode.INVALID_UUID,
        "greater_than": ErrorCode.INVALID_AMOUNT,
    }

    details = [
        ErrorDetail(
            code=code_mapping.get(error["type"], ErrorCode.VALIDATION_ERROR),
            message=error["msg"],
            field=".".join(str(loc) for loc in error["loc"]),
            value=error.get("input"),
        ).model_dump(mode="json")
        for error in exc.errors()
    ]

    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error_count=len(details),
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            request_id,
            "ValidationError",
            "Request validation failed",
            details,
            REMEDIATION_HINTS[ErrorCode.VALIDATION_ERROR],
        ),
    )


@app.exception_handler(RemoteUnavailableError)
async def stripe_exception_handler(request: Request, exc: RemoteUnavailableError) -> JSONResponse:
    """Stripe failures: 502, never retried."""
    request_id = _request_id(request)

    logger.error(
        "stripe_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        operation=exc.operation,
        stripe_code=exc.stripe_code,
        stripe_status=exc.http_status,
    )

    message = exc.message if settings.app_env != "production" else "Payment gateway error occurred"

    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=_error_body(
            request_id,
            "PaymentGatewayError",
            message,
            [ErrorDetail(code=ErrorCode.STRIPE_API_ERROR, message=message).model_dump()],
            REMEDIATION_HINTS[ErrorCode.STRIPE_API_ERROR],
        ),
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Database errors: 503."""
    request_id = _request_id(request)

    logger.error(
        "database_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error_type=type(exc).__name__,
        error_message=str(exc),
    )

    # Don't expose internal database details in production
    message = "Database temporarily unavailable" if settings.app_env == "production" else str(exc)

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body(
            request_id,
            "DatabaseError",
            message,
            [ErrorDetail(code=ErrorCode.DATABASE_ERROR, message=message).model_dump()],
            REMEDIATION_HINTS[ErrorCode.DATABASE_ERROR],
        ),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else: 500 with a safe message, full stack trace in the logs."""
    request_id = _request_id(request)

    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        exception_type=type(exc).__name__,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request_id,
            "InternalServerError",
            "An unexpected error occurred",
            [
                ErrorDetail(
                    code=ErrorCode.INTERNAL_ERROR,
                    message=str(exc) if settings.debug else "Internal server error",
                ).model_dump()
            ],
            "Please contact support with the request ID",
        ),
    )


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "service": "Cashier Admin",
        "version": "0.1.0",
        "status": "operational",
        "docs": "/docs",
    }


# Include routers
from cashier.api.v1 import accounts, health  # noqa: E402

app.include_router(health.router, tags=["Health"])
app.include_router(accounts.router, prefix="/v1")
