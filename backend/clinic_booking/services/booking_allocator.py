"""
Booking allocation: validate a requested slot and assign its sequence number.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from clinic_booking.core import config
from clinic_booking.core.clock import SystemClock
from clinic_booking.core.exceptions import (
    DuplicatePatientBookingError,
    PastTimeError,
    SlotRaceError,
    SlotUnavailableError,
    StorageError,
)
from clinic_booking.domain.entities import Booking, BookingStatus
from clinic_booking.domain.interfaces import IBookingRepository
from clinic_booking.schemas.dtos import BookingCreateRequest
from clinic_booking.services.availability_service import AvailabilityService
from clinic_booking.services.doctor_directory_service import DoctorDirectoryService
from clinic_booking.services.keyed_lock import KeyedLock, LockTimeoutError, booking_locks
from clinic_booking.services.slot_generator import format_time

logger = logging.getLogger(__name__)


class BookingAllocator:
    """Creates bookings with dense, strictly increasing sequence numbers.

    Business Rules (checked in this order):
    - Request must be well formed (date, HH:MM time, patient details)
    - When a hospital is named, the doctor must be attached to it
    - Requested instant must not be in the past
    - A patient holds at most one live booking per doctor per day
    - Requested time must be in the doctor's current availability

    The "read max sequence, insert" step runs under a per-(doctor, date)
    lock, inside a single transaction that also takes a per-key advisory
    lock on PostgreSQL.
    """

    def __init__(
        self,
        booking_repo: IBookingRepository,
        availability_service: AvailabilityService,
        clock=None,
        locks: Optional[KeyedLock] = None,
        lock_timeout: Optional[float] = None,
        directory: Optional[DoctorDirectoryService] = None,
    ):
        self.booking_repo = booking_repo
        self.availability_service = availability_service
        self.clock = clock or SystemClock()
        self.locks = locks or booking_locks
        self.lock_timeout = lock_timeout
        self.directory = directory

    def create_booking(self, request: BookingCreateRequest) -> Booking:
        request.validate()

        doctor_id = request.doctor_key
        if request.hospital_name and self.directory is not None:
            self.directory.ensure_doctor_at_hospital(doctor_id, request.hospital_name)

        on_date = request.on_date
        slot_time = request.slot_time
        slot = format_time(slot_time)
        now = self.clock.now()

        if datetime.combine(on_date, slot_time) < now:
            raise PastTimeError(
                "Selected time is in the past. Please choose a future slot.",
                doctor_id=doctor_id,
                date=on_date,
                time=slot_time,
            )

        self._ensure_no_patient_booking(doctor_id, on_date, request.phone)

        if slot not in self.availability_service.available_slots(doctor_id, on_date):
            logger.info(
                "Requested slot is not available",
                extra={
                    "context": {
                        "doctor_id": doctor_id,
                        "date": on_date.isoformat(),
                        "time": slot,
                    }
                },
            )
            raise SlotUnavailableError(
                "That time just got booked or is not available anymore. "
                "Please pick another slot.",
                doctor_id=doctor_id,
                date=on_date,
                time=slot_time,
            )

        booking = Booking(
            doctor_id=doctor_id,
            appointment_date=on_date,
            appointment_time=slot_time,
            patient_name=request.name,
            patient_phone=request.phone,
            status=BookingStatus.BOOKED,
            created_at=now,
        )
        return self._allocate(booking)

    def _ensure_no_patient_booking(self, doctor_id, on_date, phone) -> None:
        try:
            existing = self.booking_repo.find_live_by_patient(doctor_id, on_date, phone)
        except SQLAlchemyError as e:
            raise StorageError(
                "Could not check existing bookings", doctor_id=doctor_id, date=on_date
            ) from e

        if existing is not None:
            raise DuplicatePatientBookingError(
                f"Your appointment is already booked for {existing.time_label} "
                f"(No. {existing.sequence_number}). You can't book another slot "
                "with the same doctor on this day.",
                existing_time=existing.appointment_time,
                existing_sequence=existing.sequence_number,
                doctor_id=doctor_id,
                date=on_date,
            )

    def _allocate(self, booking: Booking) -> Booking:
        key = (booking.doctor_id, booking.appointment_date)
        timeout = (
            self.lock_timeout
            if self.lock_timeout is not None
            else config.BOOKING_LOCK_TIMEOUT_SECONDS
        )
        context = {
            "doctor_id": booking.doctor_id,
            "date": booking.appointment_date.isoformat(),
            "time": booking.time_label,
        }

        try:
            with self.locks.hold(key, timeout=timeout):
                # Fresh transaction so reads see what the previous holder committed
                self.booking_repo.rollback()
                try:
                    self._ensure_no_patient_booking(
                        booking.doctor_id, booking.appointment_date, booking.patient_phone
                    )
                    booking.sequence_number = self.booking_repo.lock_next_sequence_number(
                        booking.doctor_id, booking.appointment_date
                    )
                    created = self.booking_repo.add(booking)
                    self.booking_repo.commit()
                except IntegrityError as e:
                    self.booking_repo.rollback()
                    logger.warning(
                        "Booking lost a race on a unique index",
                        extra={"context": {**context, "error": str(e.orig)}},
                    )
                    raise SlotRaceError(
                        "That time was just booked. Please choose another slot.",
                        doctor_id=booking.doctor_id,
                        date=booking.appointment_date,
                        time=booking.appointment_time,
                    ) from e
                except SQLAlchemyError as e:
                    self.booking_repo.rollback()
                    logger.error(
                        "Booking insert failed",
                        extra={"context": context},
                        exc_info=True,
                    )
                    raise StorageError(
                        "Could not create booking",
                        doctor_id=booking.doctor_id,
                        date=booking.appointment_date,
                    ) from e
                except DuplicatePatientBookingError:
                    self.booking_repo.rollback()
                    raise
        except LockTimeoutError as e:
            raise StorageError(
                "Booking system is busy. Please try again.",
                doctor_id=booking.doctor_id,
                date=booking.appointment_date,
            ) from e

        logger.info(
            "Booking created",
            extra={
                "context": {
                    **context,
                    "booking_id": created.id,
                    "appointment_no": created.sequence_number,
                }
            },
        )
        return created
