"""
Domain package - Pure business logic layer.

This package contains:
- entities.py: Domain entities and the booking status state machine
- interfaces.py: Repository contracts
"""

from .entities import (
    Booking,
    BookingStatus,
    Doctor,
    OpenRange,
    PatientBooking,
    QueueStatus,
    ScheduleException,
    WeeklyOpenHours,
)
from .interfaces import (
    IBookingReader,
    IBookingRepository,
    IBookingWriter,
    IDoctorReader,
    IScheduleReader,
)

__all__ = [
    # Domain entities
    "Booking",
    "BookingStatus",
    "Doctor",
    "OpenRange",
    "PatientBooking",
    "QueueStatus",
    "ScheduleException",
    "WeeklyOpenHours",
    # Repository interfaces
    "IBookingRepository",
    "IDoctorReader",
    "IScheduleReader",
    # Segregated interfaces
    "IBookingReader",
    "IBookingWriter",
]
