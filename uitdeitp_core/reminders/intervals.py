"""
Notification Intervals
======================
Date arithmetic for expiry reminders.

All dates are calendar dates in Romanian local time. Intervals are day
offsets before the expiry date (e.g. ``[7, 3, 1]``).
"""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Union
from zoneinfo import ZoneInfo

from ..errors import ValidationError

DEFAULT_TIMEZONE = "Europe/Bucharest"
MAX_INTERVAL_DAYS = 365

DateLike = Union[date, datetime, str]


class UrgencyStatus(str, Enum):
    """Display urgency for an expiry date."""
    EXPIRED = "expired"
    URGENT = "urgent"
    WARNING = "warning"
    NORMAL = "normal"


def as_date(value: DateLike) -> date:
    """Accept a date, datetime or ISO string (``YYYY-MM-DD[...]``)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def local_today(tz_name: str = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> date:
    """Today's date in the given timezone (Bucharest by default)."""
    tz = ZoneInfo(tz_name)
    if now is None:
        return datetime.now(tz).date()
    return now.astimezone(tz).date()


def days_until_expiry(expiry_date: DateLike, as_of: DateLike) -> int:
    """Whole calendar days from ``as_of`` to the expiry date; negative once expired."""
    return (as_date(expiry_date) - as_date(as_of)).days


def should_notify_today(days_until: int, intervals: Iterable[int]) -> bool:
    """A reminder fires only on an exact interval day."""
    return days_until in set(intervals)


def next_notification_date(
    expiry_date: DateLike,
    current_days_until_expiry: int,
    intervals: Iterable[int],
) -> Optional[str]:
    """
    Date of the next reminder after today's.

    Picks the largest interval strictly below the current distance to
    expiry.

    Args:
        expiry_date: Expiry date
        current_days_until_expiry: Days until expiry as of today
        intervals: Day offsets before expiry

    Returns:
        ``YYYY-MM-DD`` or None when no interval is left
    """
    expiry = as_date(expiry_date)
    for interval in sorted(intervals, reverse=True):
        if interval < current_days_until_expiry:
            return (expiry - timedelta(days=interval)).isoformat()
    return None


def initial_notification_date(
    expiry_date: DateLike,
    intervals: Iterable[int],
    as_of: DateLike,
) -> Optional[str]:
    """
    First reminder date for a newly created reminder.

    Unlike ``next_notification_date`` the current day counts: a reminder
    created exactly 7 days before expiry with a 7-day interval fires today.
    """
    expiry = as_date(expiry_date)
    days = days_until_expiry(expiry, as_of)
    for interval in sorted(intervals, reverse=True):
        if days >= interval:
            return (expiry - timedelta(days=interval)).isoformat()
    return None


def urgency_status(days_until: int) -> UrgencyStatus:
    if days_until < 0:
        return UrgencyStatus.EXPIRED
    if days_until <= 3:
        return UrgencyStatus.URGENT
    if days_until <= 7:
        return UrgencyStatus.WARNING
    return UrgencyStatus.NORMAL


def validate_intervals(intervals: Iterable[int]) -> List[int]:
    """
    Clean a user-supplied interval list.

    Returns:
        Unique intervals, largest first

    Raises:
        ValidationError: If empty or any value is outside 1..365
    """
    cleaned = sorted({int(i) for i in intervals}, reverse=True)
    if not cleaned:
        raise ValidationError("Selectează cel puțin un interval de notificare")
    if cleaned[-1] < 1 or cleaned[0] > MAX_INTERVAL_DAYS:
        raise ValidationError("Interval de notificare invalid")
    return cleaned
