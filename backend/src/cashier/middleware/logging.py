"""Structured logging setup and request context middleware."""
import logging
import re
import sys
import time
import uuid
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from cashier.config import settings

# Secret and restricted Stripe API keys
STRIPE_KEY_PATTERN = re.compile(r"\b(sk|rk)_(test|live)_[0-9A-Za-z]+")


def redact_stripe_keys(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Mask Stripe API keys in string values of a log event.

    Stripe error messages quote the key that was rejected, and those messages
    end up in ``error=str(exc)`` fields.
    """
    for key, value in event_dict.items():
        if isinstance(value, str) and ("sk_" in value or "rk_" in value):
            event_dict[key] = STRIPE_KEY_PATTERN.sub(r"\1_\2_****", value)
    return event_dict


def setup_logging() -> None:
    """Configure structured logging with structlog."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        redact_stripe_keys,
    ]

    if settings.app_env == "production":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    # The Stripe SDK logs every request and response body at INFO
    logging.getLogger("stripe").setLevel(max(log_level, logging.WARNING))


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Binds a request_id to the structlog context vars of each request.

    The id is taken from the caller's X-Request-ID header when present so an
    admin panel can correlate its own logs, and is echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, method=request.method, path=request.url.path)

        logger = structlog.get_logger(__name__)
        logger.info("request_started", query_params=dict(request.query_params))
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception("request_failed", exc_info=exc)
            raise

        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 1),
        )
        response.headers["X-Request-ID"] = request_id
        return response
