"""
Staff-side booking status changes and the day sheet.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from clinic_booking.core.clock import SystemClock
from clinic_booking.core.exceptions import (
    BookingNotFoundError,
    InvalidStatusTransitionError,
    StorageError,
)
from clinic_booking.domain.entities import BookingStatus
from clinic_booking.domain.interfaces import IBookingRepository

logger = logging.getLogger(__name__)


class VisitStatusService:
    """Moves bookings through the status state machine.

    Each change is a single conditional UPDATE guarded by the statuses the
    target may be reached from, so repeating a call is harmless.
    """

    def __init__(self, booking_repo: IBookingRepository, clock=None):
        self.booking_repo = booking_repo
        self.clock = clock or SystemClock()

    def complete_visit(
        self, booking_id: int, doctor_id: int, on_date: Optional[date] = None
    ) -> bool:
        """Mark a visit completed. Returns False if it already was."""
        on_date = on_date or self.clock.today()
        return self._transition(booking_id, BookingStatus.COMPLETED, doctor_id, on_date)

    def start_visit(
        self, booking_id: int, doctor_id: int, on_date: Optional[date] = None
    ) -> bool:
        on_date = on_date or self.clock.today()
        return self._transition(booking_id, BookingStatus.RUNNING, doctor_id, on_date)

    def cancel_booking(self, booking_id: int, doctor_id: Optional[int] = None) -> bool:
        """Cancel a booking; its time slot becomes available again."""
        return self._transition(booking_id, BookingStatus.CANCELLED, doctor_id, None)

    def day_sheet(self, doctor_id: int, on_date: date) -> Dict[str, Any]:
        try:
            bookings = self.booking_repo.list_for_day(doctor_id, on_date)
            current = self.booking_repo.max_sequence_number(
                doctor_id, on_date, status=BookingStatus.COMPLETED
            )
        except SQLAlchemyError as e:
            raise StorageError(
                "Could not load day sheet", doctor_id=doctor_id, date=on_date
            ) from e
        return {
            "doctor_id": doctor_id,
            "date": on_date,
            "current_running_no": current,
            "bookings": bookings,
        }

    def _transition(
        self,
        booking_id: int,
        target: BookingStatus,
        doctor_id: Optional[int],
        on_date: Optional[date],
    ) -> bool:
        context = {
            "booking_id": booking_id,
            "doctor_id": doctor_id,
            "date": on_date.isoformat() if on_date else None,
            "target": target.value,
        }
        try:
            changed = self.booking_repo.transition_status(
                booking_id,
                target,
                doctor_id=doctor_id,
                on_date=on_date,
                at=self.clock.now(),
            )
            if changed:
                self.booking_repo.commit()
                logger.info("Booking status changed", extra={"context": context})
                return True

            self.booking_repo.rollback()
            current = self.booking_repo.get_by_id(booking_id)
        except SQLAlchemyError as e:
            self.booking_repo.rollback()
            logger.error(
                "Booking status change failed",
                extra={"context": context},
                exc_info=True,
            )
            raise StorageError(
                "Could not update booking", booking_id=booking_id, doctor_id=doctor_id
            ) from e

        if (
            current is None
            or (doctor_id is not None and current.doctor_id != doctor_id)
            or (on_date is not None and current.appointment_date != on_date)
        ):
            logger.warning("Booking not found for status change", extra={"context": context})
            raise BookingNotFoundError(
                "Booking not found", booking_id=booking_id, doctor_id=doctor_id, date=on_date
            )

        if current.status == target:
            return False

        logger.warning(
            "Rejected booking status change",
            extra={"context": {**context, "current": current.status.value}},
        )
        raise InvalidStatusTransitionError(
            f"Cannot move booking from {current.status.value} to {target.value}",
            booking_id=booking_id,
            current=current.status.value,
            target=target.value,
        )
