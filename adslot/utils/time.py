"""Time utilities (UTC now, schedule-local calendar date)."""
from __future__ import annotations
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from adslot.config import SCHEDULE_TIMEZONE


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def schedule_tz() -> ZoneInfo:
    return ZoneInfo(SCHEDULE_TIMEZONE)


def today() -> date:
    """Current calendar date in the schedule's timezone."""
    return datetime.now(schedule_tz()).date()


def as_date(value: date | datetime) -> date:
    """Truncate a datetime to its calendar date; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


__all__ = ["utc_now", "schedule_tz", "today", "as_date"]
