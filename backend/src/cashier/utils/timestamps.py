"""Rendering of Stripe epoch timestamps.

Stripe reports every instant as integer seconds since the epoch. The admin
views show them as ``YYYY-MM-DD HH:MM:SS`` (datetimes) or ``YYYY-MM-DD``
(dates) in the configured display timezone. A missing timestamp stays
``None``; Stripe never uses ``0`` as a real value, so it is treated as missing
too.
"""
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from cashier.config import settings

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"


def from_timestamp(timestamp: int | None, tz: str | None = None) -> datetime | None:
    """
    Convert an epoch timestamp to an aware datetime.

    Args:
        timestamp: Seconds since the epoch (None or 0 means absent)
        tz: IANA timezone name, defaults to settings.display_timezone

    Returns:
        Aware datetime in the requested timezone, or None
    """
    if not timestamp:
        return None

    moment = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    return moment.astimezone(ZoneInfo(tz or settings.display_timezone))


def format_datetime(timestamp: int | None, tz: str | None = None) -> str | None:
    """Render an epoch timestamp as ``YYYY-MM-DD HH:MM:SS``."""
    moment = from_timestamp(timestamp, tz)
    return moment.strftime(DATETIME_FORMAT) if moment else None


def format_date(timestamp: int | None, tz: str | None = None) -> str | None:
    """Render an epoch timestamp as ``YYYY-MM-DD``."""
    moment = from_timestamp(timestamp, tz)
    return moment.strftime(DATE_FORMAT) if moment else None


def to_utc_naive(timestamp: int | None) -> datetime | None:
    """Epoch timestamp as a naive UTC datetime, the way local rows store instants."""
    if not timestamp:
        return None
    return datetime.fromtimestamp(int(timestamp), tz=timezone.utc).replace(tzinfo=None)
