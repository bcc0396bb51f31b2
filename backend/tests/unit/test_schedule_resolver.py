"""
Unit tests for ScheduleResolver.

A date exception replaces the weekly template entirely; without one the
template rows for the ISO weekday are used.
"""

from datetime import date, time
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from clinic_booking.core.exceptions import StorageError
from clinic_booking.domain.entities import OpenRange, ScheduleException, WeeklyOpenHours
from clinic_booking.services.schedule_resolver import ScheduleResolver
from tests.factories.repository_factories import ScheduleRepositoryFactory

MONDAY = date(2025, 1, 6)


@pytest.fixture
def mock_schedule_repo() -> Mock:
    return ScheduleRepositoryFactory.create_mock_reader()


@pytest.fixture
def resolver(mock_schedule_repo) -> ScheduleResolver:
    return ScheduleResolver(mock_schedule_repo)


@pytest.mark.services
@pytest.mark.schedule
class TestResolveOpenRanges:
    def test_uses_weekly_template_for_iso_weekday(self, resolver, mock_schedule_repo):
        mock_schedule_repo.get_weekly_hours.return_value = [
            WeeklyOpenHours(7, 1, 1, time(9, 0), time(12, 0)),
            WeeklyOpenHours(7, 1, 2, time(16, 0), time(19, 0)),
        ]

        ranges = resolver.resolve_open_ranges(7, MONDAY)

        assert ranges == [
            OpenRange(time(9, 0), time(12, 0)),
            OpenRange(time(16, 0), time(19, 0)),
        ]
        mock_schedule_repo.get_weekly_hours.assert_called_once_with(7, 1)

    def test_no_template_rows_means_closed(self, resolver):
        assert resolver.resolve_open_ranges(7, MONDAY) == []

    def test_closed_exception_overrides_template(self, resolver, mock_schedule_repo):
        mock_schedule_repo.get_exception.return_value = ScheduleException(
            doctor_id=7, exception_date=MONDAY, is_closed=True, reason="Holiday"
        )
        mock_schedule_repo.get_weekly_hours.return_value = [
            WeeklyOpenHours(7, 1, 1, time(9, 0), time(12, 0))
        ]

        assert resolver.resolve_open_ranges(7, MONDAY) == []
        mock_schedule_repo.get_weekly_hours.assert_not_called()

    def test_open_exception_window_replaces_template(
        self, resolver, mock_schedule_repo
    ):
        mock_schedule_repo.get_exception.return_value = ScheduleException(
            doctor_id=7,
            exception_date=MONDAY,
            start_time=time(10, 0),
            end_time=time(11, 0),
        )

        assert resolver.resolve_open_ranges(7, MONDAY) == [
            OpenRange(time(10, 0), time(11, 0))
        ]
        mock_schedule_repo.get_weekly_hours.assert_not_called()

    def test_open_exception_without_window_yields_nothing(
        self, resolver, mock_schedule_repo
    ):
        mock_schedule_repo.get_exception.return_value = ScheduleException(
            doctor_id=7, exception_date=MONDAY, is_closed=False
        )

        assert resolver.resolve_open_ranges(7, MONDAY) == []

    def test_database_failure_becomes_storage_error(self, resolver, mock_schedule_repo):
        mock_schedule_repo.get_exception.side_effect = OperationalError(
            "SELECT", {}, Exception("database is locked")
        )

        with pytest.raises(StorageError) as exc_info:
            resolver.resolve_open_ranges(7, MONDAY)

        assert exc_info.value.context == {"doctor_id": 7, "date": "2025-01-06"}
