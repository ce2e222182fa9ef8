# backend/routine_compliance/utils/time_utils.py
"""
Centralized timezone and time utilities.

CRITICAL: Never use the server timezone for subscriber-facing dates. Every
calendar date ("today", a scheduled date) is computed in the subscriber's
own timezone, and every stored instant is timezone-aware UTC.

Related Files:
- services/scheduling/deadline_calculator.py: deadline anchoring
- services/scheduling/window_generator.py: rolling window boundaries
"""

from datetime import date, datetime, timedelta, timezone
from typing import Iterator
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..exceptions import InvalidInstantError, InvalidTimezoneError

# Constant for UTC timezone to avoid hardcoded timezone.utc references
UTC_TIMEZONE = timezone.utc


def utc_now() -> datetime:
    """
    Get current UTC timestamp (timezone-aware).

    Returns:
        Current UTC datetime object
    """
    return datetime.now(UTC_TIMEZONE)


def resolve_timezone(timezone_name: str) -> ZoneInfo:
    """
    Resolve an IANA timezone identifier to a ZoneInfo.

    Unlike a cached UTC offset, the returned zone yields the correct offset
    for any specific date, including both sides of a DST transition.

    Args:
        timezone_name: IANA identifier, e.g. "America/New_York"

    Returns:
        ZoneInfo for the identifier

    Raises:
        InvalidTimezoneError: If the identifier is empty or unknown
    """
    if not isinstance(timezone_name, str) or not timezone_name.strip():
        raise InvalidTimezoneError(timezone_name)

    try:
        return ZoneInfo(timezone_name.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise InvalidTimezoneError(timezone_name) from e


def validate_timezone(timezone_name: str) -> bool:
    """
    Validate if a timezone string is valid.

    Returns:
        True if valid, False otherwise
    """
    try:
        resolve_timezone(timezone_name)
        return True
    except InvalidTimezoneError:
        return False


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize an aware datetime to UTC.

    Raises:
        InvalidInstantError: If the datetime is naive
    """
    if value.tzinfo is None or value.utcoffset() is None:
        raise InvalidInstantError(value)
    return value.astimezone(UTC_TIMEZONE)


def local_today(timezone_name: str, now: datetime) -> date:
    """
    Calendar date of `now` as seen in the subscriber's timezone.

    At 03:00 UTC a New York subscriber is still on the previous day; this is
    the date used for "today" in every window and regeneration decision.
    """
    return ensure_utc(now).astimezone(resolve_timezone(timezone_name)).date()


def date_range(start: date, end: date) -> Iterator[date]:
    """Yield calendar dates from start to end inclusive. Empty when end < start."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def weekday_index(value: date) -> int:
    """Weekday index with Sunday = 0 ... Saturday = 6."""
    return (value.weekday() + 1) % 7
