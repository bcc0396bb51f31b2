"""
Availability calculation for a doctor and date.
"""

import logging
import time as perf_time
from datetime import date
from typing import List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError

from clinic_booking.core.clock import SystemClock
from clinic_booking.core.config import SLOT_GRANULARITY_MINUTES
from clinic_booking.core.exceptions import StorageError
from clinic_booking.core.logging_config import log_performance
from clinic_booking.domain.interfaces import IBookingReader
from clinic_booking.services.schedule_resolver import ScheduleResolver
from clinic_booking.services.slot_generator import format_time, generate_slots

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Computes the bookable slots of a doctor on a date.

    Slots from every open range are merged (overlapping ranges collapse),
    times held by non-cancelled bookings are removed, and the rest is
    returned sorted. Results are never cached: the allocator calls this
    again right before inserting.
    """

    def __init__(
        self,
        schedule_resolver: ScheduleResolver,
        booking_repo: IBookingReader,
        clock=None,
        granularity_minutes: int = SLOT_GRANULARITY_MINUTES,
    ):
        self.schedule_resolver = schedule_resolver
        self.booking_repo = booking_repo
        self.clock = clock or SystemClock()
        self.granularity_minutes = granularity_minutes

    def available_slots(self, doctor_id: int, on_date: date) -> List[str]:
        started = perf_time.perf_counter()
        now = self.clock.now()
        is_today = on_date == now.date()

        ranges = self.schedule_resolver.resolve_open_ranges(doctor_id, on_date)

        candidates: Set[str] = set()
        for open_range in ranges:
            candidates.update(
                generate_slots(
                    on_date,
                    open_range.start_time,
                    open_range.end_time,
                    is_today,
                    granularity_minutes=self.granularity_minutes,
                    now=now,
                )
            )

        if not candidates:
            return []

        try:
            consumed = {
                format_time(t)
                for t in self.booking_repo.get_consumed_times(doctor_id, on_date)
            }
        except SQLAlchemyError as e:
            logger.error(
                "Failed to load booked times",
                extra={"context": {"doctor_id": doctor_id, "date": on_date.isoformat()}},
                exc_info=True,
            )
            raise StorageError(
                "Could not load existing bookings", doctor_id=doctor_id, date=on_date
            ) from e

        slots = sorted(candidates - consumed)
        log_performance(
            "available_slots",
            (perf_time.perf_counter() - started) * 1000,
            doctor_id=doctor_id,
            date=on_date.isoformat(),
            range_count=len(ranges),
            slot_count=len(slots),
        )
        return slots

    def is_available(self, doctor_id: int, on_date: date, slot: str) -> bool:
        return slot in self.available_slots(doctor_id, on_date)
