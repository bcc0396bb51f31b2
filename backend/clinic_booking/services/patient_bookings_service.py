"""
A patient's bookings across doctors, looked up by phone number.
"""

from typing import List, Tuple

from sqlalchemy.exc import SQLAlchemyError

from clinic_booking.core.clock import SystemClock
from clinic_booking.core.exceptions import StorageError
from clinic_booking.domain.entities import PatientBooking
from clinic_booking.domain.interfaces import IBookingReader

PAST_BOOKINGS_LIMIT = 200


class PatientBookingsService:
    def __init__(self, booking_repo: IBookingReader, clock=None):
        self.booking_repo = booking_repo
        self.clock = clock or SystemClock()

    def list_bookings(
        self, patient_phone: str
    ) -> Tuple[List[PatientBooking], List[PatientBooking]]:
        """Return (upcoming, past). Upcoming starts today, oldest first;
        past is newest first and capped."""
        today = self.clock.today()
        try:
            upcoming = self.booking_repo.list_for_patient(patient_phone, from_date=today)
            past = self.booking_repo.list_for_patient(
                patient_phone, before_date=today, limit=PAST_BOOKINGS_LIMIT
            )
        except SQLAlchemyError as e:
            raise StorageError("Could not load patient bookings") from e
        return upcoming, past
