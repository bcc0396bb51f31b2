"""
Live queue estimation for a doctor's day.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from clinic_booking.core.clock import SystemClock
from clinic_booking.core.config import SERVICE_MINUTES_PER_PATIENT
from clinic_booking.core.exceptions import StorageError
from clinic_booking.domain.entities import BookingStatus, QueueStatus
from clinic_booking.domain.interfaces import IBookingReader, IDoctorReader

logger = logging.getLogger(__name__)


class QueueService:
    """Computes the running number, waiting count and a patient's ETA.

    Pure read: every call recomputes from the stored bookings.
    """

    def __init__(
        self,
        booking_repo: IBookingReader,
        doctor_repo: Optional[IDoctorReader] = None,
        clock=None,
        minutes_per_patient: int = SERVICE_MINUTES_PER_PATIENT,
    ):
        self.booking_repo = booking_repo
        self.doctor_repo = doctor_repo
        self.clock = clock or SystemClock()
        self.minutes_per_patient = minutes_per_patient

    def compute_queue(
        self, doctor_id: int, on_date: date, patient_phone: Optional[str] = None
    ) -> QueueStatus:
        try:
            current = self.booking_repo.max_sequence_number(
                doctor_id, on_date, status=BookingStatus.COMPLETED
            )
            waiting = self.booking_repo.count_by_status(
                doctor_id, on_date, BookingStatus.BOOKED
            )
            mine = None
            if patient_phone:
                mine = self.booking_repo.find_live_by_patient(
                    doctor_id, on_date, patient_phone
                )
            doctor = self.doctor_repo.get_by_id(doctor_id) if self.doctor_repo else None
        except SQLAlchemyError as e:
            raise StorageError(
                "Could not load queue", doctor_id=doctor_id, date=on_date
            ) from e

        status = QueueStatus(
            doctor_id=doctor_id,
            date=on_date,
            current_running_no=current,
            next_no=current + 1,
            total_waiting=waiting,
        )
        if doctor is not None:
            status.doctor_name = doctor.name
            status.hospital_name = doctor.hospital_name
            status.city = doctor.city

        if mine is not None:
            ahead = max(0, mine.sequence_number - status.next_no)
            eta_minutes = ahead * self.minutes_per_patient
            status.your_no = mine.sequence_number
            status.people_ahead = ahead
            status.eta_minutes = eta_minutes
            status.eta_time = (
                self.clock.now() + timedelta(minutes=eta_minutes)
            ).strftime("%H:%M")

        return status
