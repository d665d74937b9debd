"""
Day arithmetic shared by the health classifier and the display formatters.

Two boundary modes exist side by side:
  ROLLING  - whole 24-hour periods elapsed between two instants
  CALENDAR - difference between the local calendar dates of two instants
"""

import enum
import math
from datetime import datetime, date, timedelta
from typing import Optional, Union

DAY = timedelta(days=1)

# Sentinel day count for a project that has never been updated
NEVER_UPDATED_DAYS = 999


class BoundaryMode(enum.Enum):
    ROLLING = "rolling"
    CALENDAR = "calendar"


def to_datetime(value: Union[datetime, date, None]) -> Optional[datetime]:
    """Promote a plain date to midnight of that day, aware values to local naive time."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    return datetime.combine(value, datetime.min.time())


def local_now() -> datetime:
    """Current wall-clock time as a naive local datetime."""
    return datetime.now()


def days_between(start: Union[datetime, date], end: Union[datetime, date],
                 mode: BoundaryMode = BoundaryMode.ROLLING) -> int:
    """
    Count days from start to end (negative when end is before start).

    ROLLING floors the elapsed time, so -1 second counts as -1 day.
    CALENDAR ignores the time of day entirely.
    """
    start = to_datetime(start)
    end = to_datetime(end)

    if mode is BoundaryMode.CALENDAR:
        return (end.date() - start.date()).days

    return math.floor((end - start) / DAY)


def latest(*values: Union[datetime, date, None]) -> Optional[datetime]:
    """Most recent of the given timestamps, ignoring missing ones."""
    present = [to_datetime(v) for v in values if v is not None]
    if not present:
        return None
    return max(present)


def previous_month_length(reference: Union[datetime, date]) -> int:
    """Number of days in the month before the one containing reference."""
    first_of_month = to_datetime(reference).replace(day=1)
    return (first_of_month - timedelta(days=1)).day
