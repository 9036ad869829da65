"""Timezone helpers for schedule and delivery timestamps.

Notifications carry aware datetimes in the domain layer. Columns store them
naive, already converted to the school's configured timezone, so the due
sweep compares like with like on every database backend.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from campus_notify.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Return the IANA zone named by ``APP_TIMEZONE`` (UTC when unknown)."""

    name = (get_settings().app_timezone or "").strip()
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown APP_TIMEZONE %r; falling back to UTC", name)
        return timezone.utc


def now_in_app_timezone() -> datetime:
    return datetime.now(tz=get_app_timezone())


def ensure_app_timezone(value: datetime | None) -> datetime | None:
    """Attach or convert ``value`` to the app timezone.

    Naive values are taken to be app-local already.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=get_app_timezone())
    return value.astimezone(get_app_timezone())


def ensure_app_naive_datetime(value: datetime | None) -> datetime | None:
    localized = ensure_app_timezone(value)
    return None if localized is None else localized.replace(tzinfo=None)


def now_in_app_naive_datetime() -> datetime:
    return now_in_app_timezone().replace(tzinfo=None)
