"""
Unit tests for VisitStatusService status changes.
"""

from datetime import date, time
from unittest.mock import Mock

import pytest

from clinic_booking.core.exceptions import (
    BookingNotFoundError,
    InvalidStatusTransitionError,
)
from clinic_booking.domain.entities import Booking, BookingStatus
from clinic_booking.services.visit_status_service import VisitStatusService
from tests.factories.repository_factories import BookingRepositoryFactory

TODAY = date(2025, 1, 6)


def _booking(status: BookingStatus, doctor_id: int = 1) -> Booking:
    return Booking(
        id=12,
        doctor_id=doctor_id,
        appointment_date=TODAY,
        appointment_time=time(9, 0),
        patient_name="Kiran",
        patient_phone="9000000012",
        sequence_number=1,
        status=status,
    )


@pytest.fixture
def mock_booking_repo() -> Mock:
    return BookingRepositoryFactory.create_mock_full()


@pytest.fixture
def service(mock_booking_repo, fixed_clock) -> VisitStatusService:
    return VisitStatusService(mock_booking_repo, clock=fixed_clock)


@pytest.mark.services
@pytest.mark.queue
class TestCompleteVisit:
    def test_completes_booked_visit(self, service, mock_booking_repo, fixed_clock):
        mock_booking_repo.transition_status.return_value = True

        assert service.complete_visit(12, 1) is True

        mock_booking_repo.transition_status.assert_called_once_with(
            12,
            BookingStatus.COMPLETED,
            doctor_id=1,
            on_date=TODAY,
            at=fixed_clock.now(),
        )
        mock_booking_repo.commit.assert_called_once()

    def test_repeat_completion_is_a_no_op(self, service, mock_booking_repo):
        mock_booking_repo.get_by_id.return_value = _booking(BookingStatus.COMPLETED)

        assert service.complete_visit(12, 1, TODAY) is False
        mock_booking_repo.commit.assert_not_called()

    def test_unknown_booking(self, service):
        with pytest.raises(BookingNotFoundError):
            service.complete_visit(404, 1)

    def test_booking_of_another_doctor_is_not_found(self, service, mock_booking_repo):
        mock_booking_repo.get_by_id.return_value = _booking(
            BookingStatus.BOOKED, doctor_id=2
        )

        with pytest.raises(BookingNotFoundError):
            service.complete_visit(12, 1)

    def test_cancelled_booking_cannot_be_completed(self, service, mock_booking_repo):
        mock_booking_repo.get_by_id.return_value = _booking(BookingStatus.CANCELLED)

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            service.complete_visit(12, 1)

        assert exc_info.value.context["current"] == "cancelled"


@pytest.mark.services
class TestOtherTransitions:
    def test_start_visit(self, service, mock_booking_repo):
        mock_booking_repo.transition_status.return_value = True

        assert service.start_visit(12, 1) is True
        assert mock_booking_repo.transition_status.call_args[0][1] == BookingStatus.RUNNING

    def test_cancel_is_not_limited_to_today(self, service, mock_booking_repo):
        mock_booking_repo.transition_status.return_value = True

        assert service.cancel_booking(12) is True
        kwargs = mock_booking_repo.transition_status.call_args[1]
        assert kwargs["on_date"] is None
        assert kwargs["doctor_id"] is None

    def test_completed_booking_cannot_be_cancelled(self, service, mock_booking_repo):
        mock_booking_repo.get_by_id.return_value = _booking(BookingStatus.COMPLETED)

        with pytest.raises(InvalidStatusTransitionError):
            service.cancel_booking(12)

    def test_day_sheet(self, service, mock_booking_repo):
        mock_booking_repo.list_for_day.return_value = [_booking(BookingStatus.BOOKED)]
        mock_booking_repo.max_sequence_number.return_value = 0

        sheet = service.day_sheet(1, TODAY)

        assert sheet["current_running_no"] == 0
        assert [b.id for b in sheet["bookings"]] == [12]
