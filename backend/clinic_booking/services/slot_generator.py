"""
Slot generation on the fixed time grid.

Turns one open range into the list of ``HH:MM`` start times a patient can
pick. When the date is today, instants that already elapsed are dropped.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Union

from clinic_booking.core.clock import SystemClock
from clinic_booking.core.config import SLOT_GRANULARITY_MINUTES

HHMM_PATTERN = re.compile(r"^\d{2}:\d{2}$")


def parse_time(value: Union[str, time]) -> time:
    """Parse ``HH:MM`` (or ``HH:MM:SS`` as stored by some backends) into a time."""
    if isinstance(value, time):
        return value
    text = str(value).strip()
    return datetime.strptime(text[:5], "%H:%M").time()


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


def ceil_to_grid(instant: datetime, granularity_minutes: int) -> datetime:
    """Round ``instant`` up to the next multiple of the grid, counted from midnight.

    An instant exactly on the grid is returned unchanged; any fraction past
    it (seconds included) moves to the next grid point.
    """
    step = timedelta(minutes=granularity_minutes)
    midnight = datetime.combine(instant.date(), time.min)
    remainder = (instant - midnight) % step
    if remainder:
        return instant + (step - remainder)
    return instant


def generate_slots(
    on_date: date,
    range_start: Union[str, time],
    range_end: Union[str, time],
    is_today: bool,
    granularity_minutes: int = SLOT_GRANULARITY_MINUTES,
    now: Optional[datetime] = None,
) -> List[str]:
    """Expand ``[range_start, range_end)`` on ``on_date`` into grid-aligned slots.

    Args:
        on_date: Calendar date of the range
        range_start: Inclusive start of the open range
        range_end: Exclusive end of the open range
        is_today: Whether ``on_date`` is the local today; past slots are dropped
        granularity_minutes: Grid step in minutes
        now: Current local time; read from the system clock when omitted

    Returns:
        Ascending list of ``HH:MM`` strings
    """
    if granularity_minutes <= 0:
        raise ValueError("granularity_minutes must be positive")

    start = datetime.combine(on_date, parse_time(range_start))
    end = datetime.combine(on_date, parse_time(range_end))

    lower = start
    if is_today:
        current = now if now is not None else SystemClock().now()
        lower = max(lower, ceil_to_grid(current, granularity_minutes))

    lower = ceil_to_grid(lower, granularity_minutes)
    if lower >= end:
        return []

    step = timedelta(minutes=granularity_minutes)
    slots = []
    cursor = lower
    while cursor < end:
        slots.append(cursor.strftime("%H:%M"))
        cursor += step
    return slots
