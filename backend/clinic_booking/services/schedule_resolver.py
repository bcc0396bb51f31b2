"""
Schedule resolution: weekly template + date exception -> open ranges.
"""

import logging
from datetime import date
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from clinic_booking.core.exceptions import StorageError
from clinic_booking.domain.entities import OpenRange
from clinic_booking.domain.interfaces import IScheduleReader

logger = logging.getLogger(__name__)


class ScheduleResolver:
    """Resolves the open ranges of a doctor on a given calendar date.

    An exception for the date replaces the weekly template entirely:
    closed means no ranges, an open exception with a window yields exactly
    that window, and an open exception without times yields nothing.
    """

    def __init__(self, schedule_repo: IScheduleReader):
        self.schedule_repo = schedule_repo

    def resolve_open_ranges(self, doctor_id: int, on_date: date) -> List[OpenRange]:
        try:
            exception = self.schedule_repo.get_exception(doctor_id, on_date)
            if exception is not None:
                if exception.is_closed:
                    return []
                if exception.has_window:
                    return [OpenRange(exception.start_time, exception.end_time)]
                logger.warning(
                    "Open exception without a time window; treating day as closed",
                    extra={
                        "context": {
                            "doctor_id": doctor_id,
                            "date": on_date.isoformat(),
                            "exception_id": exception.id,
                        }
                    },
                )
                return []

            rows = self.schedule_repo.get_weekly_hours(doctor_id, on_date.isoweekday())
            return [row.to_range() for row in rows]
        except SQLAlchemyError as e:
            logger.error(
                "Failed to resolve open ranges",
                extra={"context": {"doctor_id": doctor_id, "date": on_date.isoformat()}},
                exc_info=True,
            )
            raise StorageError(
                "Could not load the doctor's schedule", doctor_id=doctor_id, date=on_date
            ) from e
