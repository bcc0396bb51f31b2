"""
Integration tests for the booking flow on SQLite.

Covers:
- Sequence numbers 1, 2, ... per (doctor, date)
- Rejection of taken slots and duplicate patients
- Schedule exceptions seen through the full availability stack
- A unique-index race surfaced as SlotRaceError
"""

from datetime import date
from unittest.mock import Mock

import pytest

from clinic_booking.core.exceptions import (
    DuplicatePatientBookingError,
    SlotRaceError,
    SlotUnavailableError,
)
from clinic_booking.domain.entities import BookingStatus
from clinic_booking.repositories import BookingRepository, ScheduleRepository
from clinic_booking.schemas.dtos import BookingCreateRequest
from clinic_booking.services.availability_service import AvailabilityService
from clinic_booking.services.booking_allocator import BookingAllocator
from clinic_booking.services.schedule_resolver import ScheduleResolver
from clinic_booking.services.visit_status_service import VisitStatusService
from tests.factories.db_factories import make_booking, make_exception

TUESDAY = date(2025, 1, 7)


def _request(doctor_id: int, at: str, phone: str, on_date: str = "2025-01-07"):
    return BookingCreateRequest(
        doctor_id=doctor_id,
        appointment_date=on_date,
        appointment_time=at,
        patient_name=f"Patient {phone[-2:]}",
        patient_phone=phone,
    )


@pytest.fixture
def availability(db_session, fixed_clock) -> AvailabilityService:
    return AvailabilityService(
        ScheduleResolver(ScheduleRepository(db_session)),
        BookingRepository(db_session),
        clock=fixed_clock,
    )


@pytest.fixture
def allocator(db_session, availability, fixed_clock) -> BookingAllocator:
    return BookingAllocator(
        BookingRepository(db_session), availability, clock=fixed_clock
    )


@pytest.mark.database
@pytest.mark.booking
class TestBookingFlow:
    def test_sequence_numbers_then_taken_slot(self, allocator, doctor):
        first = allocator.create_booking(_request(doctor.id, "09:00", "9000000001"))
        second = allocator.create_booking(_request(doctor.id, "09:05", "9000000002"))

        assert (first.sequence_number, second.sequence_number) == (1, 2)

        with pytest.raises(SlotUnavailableError):
            allocator.create_booking(_request(doctor.id, "09:00", "9000000003"))

    def test_booking_removes_slot_from_availability(
        self, allocator, availability, doctor
    ):
        before = availability.available_slots(doctor.id, TUESDAY)
        allocator.create_booking(_request(doctor.id, "09:10", "9000000001"))
        after = availability.available_slots(doctor.id, TUESDAY)

        assert len(before) == 36
        assert set(before) - set(after) == {"09:10"}

    def test_sequences_are_per_doctor_and_date(self, allocator, doctor):
        allocator.create_booking(_request(doctor.id, "09:00", "9000000001"))
        other_day = allocator.create_booking(
            _request(doctor.id, "09:00", "9000000001", on_date="2025-01-08")
        )

        assert other_day.sequence_number == 1

    def test_duplicate_patient_same_day(self, allocator, doctor):
        allocator.create_booking(_request(doctor.id, "09:00", "9000000001"))

        with pytest.raises(DuplicatePatientBookingError) as exc_info:
            allocator.create_booking(_request(doctor.id, "10:00", "9000000001"))

        assert exc_info.value.existing_sequence == 1
        assert exc_info.value.context["existing_time"] == "09:00"

    def test_cancelled_booking_frees_slot_and_patient(
        self, allocator, db_session, fixed_clock, doctor
    ):
        booking = allocator.create_booking(_request(doctor.id, "09:00", "9000000001"))
        VisitStatusService(BookingRepository(db_session), clock=fixed_clock).cancel_booking(
            booking.id
        )

        again = allocator.create_booking(_request(doctor.id, "09:00", "9000000001"))

        assert again.sequence_number == 2
        assert again.status == BookingStatus.BOOKED

    def test_closed_exception_blocks_booking(self, allocator, db_session, doctor):
        make_exception(db_session, doctor.id, TUESDAY, is_closed=True)
        db_session.commit()

        with pytest.raises(SlotUnavailableError):
            allocator.create_booking(_request(doctor.id, "09:00", "9000000001"))

    def test_open_exception_window_allows_evening(
        self, allocator, db_session, doctor
    ):
        make_exception(db_session, doctor.id, TUESDAY, start="18:00", end="18:30")
        db_session.commit()

        booking = allocator.create_booking(_request(doctor.id, "18:25", "9000000001"))

        assert booking.sequence_number == 1
        with pytest.raises(SlotUnavailableError):
            allocator.create_booking(_request(doctor.id, "09:00", "9000000002"))

    def test_insert_collision_is_reported_as_race(
        self, db_session, fixed_clock, doctor
    ):
        # Stale availability still offers 09:00 although it is already booked
        make_booking(db_session, doctor.id, TUESDAY, "09:00", 1, phone="9000000001")
        db_session.commit()
        stale = Mock(spec=AvailabilityService)
        stale.available_slots.return_value = ["09:00"]
        allocator = BookingAllocator(
            BookingRepository(db_session), stale, clock=fixed_clock
        )

        with pytest.raises(SlotRaceError) as exc_info:
            allocator.create_booking(_request(doctor.id, "09:00", "9000000002"))

        assert exc_info.value.retryable is True
        assert BookingRepository(db_session).count_by_status(
            doctor.id, TUESDAY, BookingStatus.BOOKED
        ) == 1
