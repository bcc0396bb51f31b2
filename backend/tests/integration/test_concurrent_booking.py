"""
Concurrent booking tests against a SQLite file shared by several threads.

Each worker uses its own session, as request handlers do.
"""

import threading
from datetime import date

import pytest

from clinic_booking.core.exceptions import SlotRaceError, SlotUnavailableError
from clinic_booking.db.session import SessionLocal
from clinic_booking.repositories import BookingRepository, ScheduleRepository
from clinic_booking.schemas.dtos import BookingCreateRequest
from clinic_booking.services.availability_service import AvailabilityService
from clinic_booking.services.booking_allocator import BookingAllocator
from clinic_booking.services.schedule_resolver import ScheduleResolver
from tests.factories.db_factories import make_doctor, make_weekly_hours

TUESDAY = date(2025, 1, 7)
WORKERS = 8


@pytest.fixture
def shared_doctor_id(file_database):
    session = SessionLocal()
    try:
        doctor = make_doctor(session)
        make_weekly_hours(session, doctor.id, TUESDAY.isoweekday(), "09:00", "12:00")
        session.commit()
        return doctor.id
    finally:
        session.close()


def _book(doctor_id, at, phone, clock, start, outcomes):
    session = SessionLocal()
    try:
        allocator = BookingAllocator(
            BookingRepository(session),
            AvailabilityService(
                ScheduleResolver(ScheduleRepository(session)),
                BookingRepository(session),
                clock=clock,
            ),
            clock=clock,
        )
        start.wait(5)
        try:
            booking = allocator.create_booking(
                BookingCreateRequest(
                    doctor_id=doctor_id,
                    appointment_date=TUESDAY.isoformat(),
                    appointment_time=at,
                    patient_name=f"Patient {phone}",
                    patient_phone=phone,
                )
            )
            outcomes.append(booking)
        except (SlotUnavailableError, SlotRaceError) as e:
            outcomes.append(e)
    finally:
        session.close()


@pytest.mark.database
@pytest.mark.booking
class TestConcurrentBooking:
    def test_concurrent_bookings_get_a_permutation_of_sequence_numbers(
        self, shared_doctor_id, fixed_clock
    ):
        start = threading.Event()
        outcomes = []
        workers = [
            threading.Thread(
                target=_book,
                args=(
                    shared_doctor_id,
                    f"09:{index * 5:02d}",
                    f"90000000{index:02d}",
                    fixed_clock,
                    start,
                    outcomes,
                ),
            )
            for index in range(WORKERS)
        ]

        _run_with_start(workers, start)

        assert len(outcomes) == WORKERS
        assert sorted(b.sequence_number for b in outcomes) == list(
            range(1, WORKERS + 1)
        )

    def test_concurrent_requests_for_one_slot_have_one_winner(
        self, shared_doctor_id, fixed_clock
    ):
        start = threading.Event()
        outcomes = []
        workers = [
            threading.Thread(
                target=_book,
                args=(
                    shared_doctor_id,
                    "10:00",
                    f"91000000{index:02d}",
                    fixed_clock,
                    start,
                    outcomes,
                ),
            )
            for index in range(4)
        ]

        _run_with_start(workers, start)

        winners = [o for o in outcomes if not isinstance(o, Exception)]
        losers = [o for o in outcomes if isinstance(o, Exception)]
        assert len(winners) == 1
        assert winners[0].sequence_number == 1
        assert len(losers) == 3

        session = SessionLocal()
        try:
            assert BookingRepository(session).get_consumed_times(
                shared_doctor_id, TUESDAY
            ) == [winners[0].appointment_time]
        finally:
            session.close()


def _run_with_start(workers, start):
    for worker in workers:
        worker.start()
    start.set()
    for worker in workers:
        worker.join(30)
