"""
Display formatting for project dates.

Every function computes the numbers and hands the wording to a label
lookup(key, params=None), so the same buckets render in any locale.
"""

from datetime import datetime
from typing import Callable, NamedTuple, Optional

from .timeutil import BoundaryMode, days_between, local_now, previous_month_length, to_datetime

EXPIRY_WARNING_PREFIX = "⚠️ "


class ExpiryText(NamedTuple):
    text: str
    warning: bool
    danger: bool


def _now(now: Optional[datetime]) -> datetime:
    return to_datetime(now) if now is not None else local_now()


def relative_time(value: Optional[datetime], lookup: Callable[..., str], now: Optional[datetime] = None) -> str:
    """
    Render how long ago something happened, e.g. "3 days ago".

    Compares calendar dates, so anything from this morning is "today" and
    anything from last night is "yesterday" regardless of the hour.
    Only past dates are a defined use.
    """
    if value is None:
        return lookup('time.never')

    days = days_between(to_datetime(value), _now(now), BoundaryMode.CALENDAR)

    if days == 0:
        return lookup('time.today')
    if days == 1:
        return lookup('time.yesterday')
    if days < 7:
        return lookup('time.daysAgo', {'count': days})
    if days < 30:
        return lookup('time.weeksAgo', {'count': days // 7})
    if days < 365:
        return lookup('time.monthsAgo', {'count': days // 30})
    return lookup('time.yearsAgo', {'count': days // 365})


def domain_expiry_text(value: Optional[datetime], lookup: Callable[..., str], now: Optional[datetime] = None) -> ExpiryText:
    """Render the countdown to a domain's expiry with warning/danger flags."""
    if value is None:
        return ExpiryText(lookup('time.notSet'), False, False)

    days = days_between(_now(now), to_datetime(value), BoundaryMode.ROLLING)

    if days < 0:
        return ExpiryText(lookup('time.expired'), True, True)
    if days < 15:
        return ExpiryText(EXPIRY_WARNING_PREFIX + lookup('time.daysLeft', {'count': days}), True, True)
    if days < 30:
        return ExpiryText(EXPIRY_WARNING_PREFIX + lookup('time.daysLeft', {'count': days}), True, False)
    if days < 90:
        return ExpiryText(lookup('time.daysLeft', {'count': days}), False, False)
    if days < 365:
        return ExpiryText(lookup('time.monthsLeft', {'count': days // 30}), False, False)

    # More than a year out: compose years, months and days
    years = days // 365
    months = (days % 365) // 30
    remaining_days = (days % 365) % 30

    parts = []
    if years > 0:
        parts.append(f"{years}{lookup('time.yearUnit')}")
    if months > 0:
        parts.append(f"{months}{lookup('time.monthUnit')}")
    if remaining_days > 0:
        parts.append(f"{remaining_days}{lookup('time.dayUnit')}")

    return ExpiryText(''.join(parts), False, False)


def launch_duration(launched_at: Optional[datetime], lookup: Callable[..., str], now: Optional[datetime] = None) -> str:
    """Render how long a site has been live, e.g. "1 years 2 months 3 days"."""
    if launched_at is None:
        return ''

    now = _now(now)
    launched_at = to_datetime(launched_at)

    total_days = days_between(launched_at, now, BoundaryMode.ROLLING)
    if total_days < 0:
        return lookup('time.notLaunched')

    years = now.year - launched_at.year
    months = now.month - launched_at.month
    days = now.day - launched_at.day

    if days < 0:
        months -= 1
        days += previous_month_length(now)
    if months < 0:
        years -= 1
        months += 12

    if years > 0:
        return lookup('time.durationYearsMonthsDays', {'years': years, 'months': months, 'days': days})
    if months > 0:
        return lookup('time.durationMonthsDays', {'months': months, 'days': days})
    return lookup('time.durationDays', {'count': total_days})
