"""
Repository test factories following Interface Segregation Principle.

This module provides mock factories for repository interfaces, ensuring
tests only depend on the specific interfaces they need.
"""

from dataclasses import replace
from unittest.mock import Mock

from clinic_booking.domain.interfaces import (
    IBookingReader,
    IBookingRepository,
    IDoctorReader,
    IScheduleReader,
)


class BookingRepositoryFactory:
    """Factory for creating Booking repository mocks."""

    @staticmethod
    def create_mock_reader() -> Mock:
        """Create mock that only implements IBookingReader operations."""
        mock_reader = Mock(spec=IBookingReader)

        # Set up default return values: an empty day
        mock_reader.get_by_id.return_value = None
        mock_reader.get_consumed_times.return_value = []
        mock_reader.find_live_by_patient.return_value = None
        mock_reader.max_sequence_number.return_value = 0
        mock_reader.count_by_status.return_value = 0
        mock_reader.list_for_day.return_value = []
        mock_reader.list_for_patient.return_value = []

        return mock_reader

    @staticmethod
    def create_mock_full() -> Mock:
        """Create full repository mock implementing IBookingRepository."""
        mock_repo = Mock(spec=IBookingRepository)

        # Set up default return values for read operations
        mock_repo.get_by_id.return_value = None
        mock_repo.get_consumed_times.return_value = []
        mock_repo.find_live_by_patient.return_value = None
        mock_repo.max_sequence_number.return_value = 0
        mock_repo.count_by_status.return_value = 0
        mock_repo.list_for_day.return_value = []
        mock_repo.list_for_patient.return_value = []

        # Set up default return values for write operations
        mock_repo.lock_next_sequence_number.return_value = 1
        mock_repo.add.side_effect = lambda booking: replace(booking, id=101)
        mock_repo.transition_status.return_value = False

        return mock_repo


class ScheduleRepositoryFactory:
    """Factory for creating schedule reader mocks."""

    @staticmethod
    def create_mock_reader() -> Mock:
        mock_reader = Mock(spec=IScheduleReader)
        mock_reader.get_weekly_hours.return_value = []
        mock_reader.get_exception.return_value = None
        return mock_reader


class DoctorRepositoryFactory:
    """Factory for creating doctor reader mocks."""

    @staticmethod
    def create_mock_reader() -> Mock:
        mock_reader = Mock(spec=IDoctorReader)
        mock_reader.get_by_id.return_value = None
        mock_reader.list_by_city.return_value = []
        mock_reader.list_by_hospital.return_value = []
        mock_reader.list_hospitals.return_value = []
        return mock_reader
