"""
Standardized Date/Time Handling Utilities

Streaks, recurrence and statistics are all defined over the user's LOCAL
calendar day, not UTC and not a rolling 24h window.

RULES:
- Persisted instants are epoch milliseconds (int)
- Persisted calendar days are 'YYYY-MM-DD' strings
- Calendar comparisons always go through local_date_from_ms() and the injected clock
- Never mix naive and aware datetimes
"""

import logging
from datetime import datetime, date, time, timedelta, tzinfo
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import tzlocal

from routinely import config

logger = logging.getLogger(__name__)

MS_PER_DAY = 1000 * 60 * 60 * 24

# Returns the current aware datetime; injected into services so tests can pin "now"
Clock = Callable[[], datetime]


def get_local_timezone() -> tzinfo:
    """
    Get the timezone used for calendar-day math

    Returns:
        ZoneInfo for config.TIMEZONE, or the device's IANA zone when unset
        (a real zone with DST rules, not today's fixed UTC offset)
    """
    if config.TIMEZONE:
        try:
            return ZoneInfo(config.TIMEZONE)
        except ZoneInfoNotFoundError as e:
            logger.error(f"Invalid timezone '{config.TIMEZONE}': {e}")
    return tzlocal.get_localzone()


def now_local() -> datetime:
    """Current datetime in the local timezone (timezone-aware)"""
    return datetime.now(get_local_timezone())


def to_epoch_ms(dt: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds"""
    return int(dt.timestamp() * 1000)


def from_epoch_ms(epoch_ms: int, tz: Optional[tzinfo] = None) -> datetime:
    """Convert epoch milliseconds to an aware datetime in tz (default: local)"""
    return datetime.fromtimestamp(epoch_ms / 1000, tz or get_local_timezone())


def local_date_from_ms(epoch_ms: int, tz: Optional[tzinfo] = None) -> date:
    """Local calendar day an epoch-ms instant falls on"""
    return from_epoch_ms(epoch_ms, tz).date()


def format_date_key(d: date) -> str:
    """Format a date as YYYY-MM-DD (storage format)"""
    return d.isoformat()


def parse_date_key(value: Optional[str]) -> Optional[date]:
    """
    Parse a stored YYYY-MM-DD string

    Returns:
        date, or None when value is missing or malformed
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.warning(f"Ignoring malformed date value: {value!r}")
        return None


def whole_days_between(start_ms: int, end_ms: int) -> int:
    """Full 24h periods elapsed between two instants (floored)"""
    return (end_ms - start_ms) // MS_PER_DAY


def start_of_week(now: datetime) -> datetime:
    """Sunday 00:00:00.000 of the week containing now"""
    # weekday(): Monday=0 .. Sunday=6
    days_since_sunday = (now.weekday() + 1) % 7
    sunday = now.date() - timedelta(days=days_since_sunday)
    return datetime.combine(sunday, time.min, tzinfo=now.tzinfo)


def end_of_day(d: date, tz: Optional[tzinfo]) -> datetime:
    """23:59:59.999 on the given day"""
    return datetime.combine(d, time(23, 59, 59, 999000), tzinfo=tz)


def start_of_month(now: datetime) -> datetime:
    """First day of now's month at 00:00"""
    return datetime.combine(now.date().replace(day=1), time.min, tzinfo=now.tzinfo)


def end_of_month(now: datetime) -> datetime:
    """Last day of now's month at 23:59:59.999"""
    first_of_next = (now.date().replace(day=28) + timedelta(days=4)).replace(day=1)
    return end_of_day(first_of_next - timedelta(days=1), now.tzinfo)
