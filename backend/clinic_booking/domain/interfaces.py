"""
Abstract interfaces for repositories following Interface Segregation Principle.

These interfaces define the storage contracts the booking engine depends
on, enabling dependency injection and easier testing.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, time
from typing import List, Optional

from .entities import (
    Booking,
    BookingStatus,
    Doctor,
    Hospital,
    PatientBooking,
    ScheduleException,
    WeeklyOpenHours,
)


class IDoctorReader(ABC):
    """Interface for doctor lookups."""

    @abstractmethod
    def get_by_id(self, doctor_id: int) -> Optional[Doctor]:
        """Get doctor by ID."""
        pass

    @abstractmethod
    def list_by_city(self, city: str) -> List[Doctor]:
        """Doctors practising in a city, ordered by name."""
        pass

    @abstractmethod
    def list_by_hospital(self, hospital_name: str) -> List[Doctor]:
        """Doctors attached to a hospital, ordered by name."""
        pass

    @abstractmethod
    def list_hospitals(self) -> List[Hospital]:
        """Distinct non-empty hospital names, ordered."""
        pass


class IScheduleReader(ABC):
    """Interface for the weekly template and date exceptions."""

    @abstractmethod
    def get_weekly_hours(self, doctor_id: int, day_of_week: int) -> List[WeeklyOpenHours]:
        """Get weekly rows for a doctor and weekday, ordered by slot_index."""
        pass

    @abstractmethod
    def get_exception(
        self, doctor_id: int, on_date: date
    ) -> Optional[ScheduleException]:
        """Get the exception for a doctor on a date, if any."""
        pass


class IBookingReader(ABC):
    """Interface for booking read operations."""

    @abstractmethod
    def get_by_id(self, booking_id: int) -> Optional[Booking]:
        """Get booking by ID."""
        pass

    @abstractmethod
    def get_consumed_times(self, doctor_id: int, on_date: date) -> List[time]:
        """Times held by non-cancelled bookings for a doctor and date."""
        pass

    @abstractmethod
    def find_live_by_patient(
        self, doctor_id: int, on_date: date, patient_phone: str
    ) -> Optional[Booking]:
        """Get the patient's non-cancelled booking for a doctor and date."""
        pass

    @abstractmethod
    def max_sequence_number(
        self, doctor_id: int, on_date: date, status: Optional[BookingStatus] = None
    ) -> int:
        """Highest sequence number for a doctor and date (0 when none)."""
        pass

    @abstractmethod
    def count_by_status(
        self, doctor_id: int, on_date: date, status: BookingStatus
    ) -> int:
        """Count bookings in a status for a doctor and date."""
        pass

    @abstractmethod
    def list_for_day(self, doctor_id: int, on_date: date) -> List[Booking]:
        """All bookings for a doctor and date ordered by sequence number."""
        pass

    @abstractmethod
    def list_for_patient(
        self,
        patient_phone: str,
        from_date: Optional[date] = None,
        before_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> List[PatientBooking]:
        """Bookings for a phone number, joined with doctor details."""
        pass


class IBookingWriter(ABC):
    """Interface for booking write operations.

    Writes happen inside the session's current transaction; callers decide
    when to commit or roll back.
    """

    @abstractmethod
    def lock_next_sequence_number(self, doctor_id: int, on_date: date) -> int:
        """Read max sequence + 1, locking the rows it read until commit."""
        pass

    @abstractmethod
    def add(self, booking: Booking) -> Booking:
        """Insert a booking and flush it so constraint violations surface."""
        pass

    @abstractmethod
    def transition_status(
        self,
        booking_id: int,
        target: BookingStatus,
        doctor_id: Optional[int] = None,
        on_date: Optional[date] = None,
        at: Optional[datetime] = None,
    ) -> bool:
        """Conditionally move a booking to ``target``; False when nothing changed."""
        pass

    @abstractmethod
    def commit(self) -> None:
        pass

    @abstractmethod
    def rollback(self) -> None:
        pass


class IBookingRepository(IBookingReader, IBookingWriter):
    """Complete booking repository interface."""

    pass
