"""
Clock abstraction for "now" in the clinic's local time.

Slot generation, past-time checks and queue ETAs all depend on the current
wall-clock time. Services receive a clock instead of calling
``datetime.now()`` so the same code runs deterministically under test.
"""

from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from clinic_booking.core import config


class SystemClock:
    """Reads the real time in the application timezone.

    Returned datetimes are naive local wall-clock values, matching how
    booking dates and times are stored.
    """

    def __init__(self, tz: Optional[ZoneInfo] = None):
        self.tz = tz

    def now(self) -> datetime:
        tz = self.tz or config.APP_TZ
        return datetime.now(tz).replace(tzinfo=None)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock frozen at a given local instant. Used by tests."""

    def __init__(self, instant: datetime):
        self.instant = instant.replace(tzinfo=None)

    def now(self) -> datetime:
        return self.instant

    def today(self) -> date:
        return self.instant.date()

    def advance(self, **delta) -> None:
        self.instant = self.instant + timedelta(**delta)
