"""
Domain entities - Pure business logic, no framework dependencies.

These dataclasses are what services and repositories exchange. They know
nothing about SQLAlchemy or Flask.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Dict, FrozenSet, Optional


class BookingStatus(str, Enum):
    """Booking lifecycle states."""

    BOOKED = "booked"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self]

    def can_transition_to(self, target: "BookingStatus") -> bool:
        return target in ALLOWED_TRANSITIONS[self]

    @classmethod
    def sources_for(cls, target: "BookingStatus") -> FrozenSet["BookingStatus"]:
        """Statuses from which ``target`` may be reached."""
        return frozenset(
            status for status, targets in ALLOWED_TRANSITIONS.items() if target in targets
        )


ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.BOOKED: frozenset(
        {BookingStatus.RUNNING, BookingStatus.COMPLETED, BookingStatus.CANCELLED}
    ),
    BookingStatus.RUNNING: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


@dataclass
class Doctor:
    """Doctor as seen by the booking engine."""

    id: Optional[int] = None
    name: str = ""
    city: Optional[str] = None
    hospital_name: Optional[str] = None
    specialist: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Doctor name is required")


@dataclass(frozen=True)
class Hospital:
    """A hospital name as listed in the doctor directory."""

    name: str

    @property
    def slug(self) -> str:
        return self.name.strip().lower().replace(" ", "-")


@dataclass(frozen=True)
class OpenRange:
    """A contiguous interval [start_time, end_time) in which the doctor sees patients."""

    start_time: time
    end_time: time


@dataclass
class WeeklyOpenHours:
    """One row of a doctor's recurring weekly template."""

    doctor_id: int
    day_of_week: int  # 1=Monday .. 7=Sunday
    slot_index: int
    start_time: time
    end_time: time
    id: Optional[int] = None

    def __post_init__(self):
        if not 1 <= self.day_of_week <= 7:
            raise ValueError("day_of_week must be between 1 (Monday) and 7 (Sunday)")
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")

    def to_range(self) -> OpenRange:
        return OpenRange(self.start_time, self.end_time)


@dataclass
class ScheduleException:
    """Date-specific override of a doctor's weekly template."""

    doctor_id: int
    exception_date: date
    is_closed: bool = False
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None
    id: Optional[int] = None

    @property
    def has_window(self) -> bool:
        return self.start_time is not None and self.end_time is not None


@dataclass
class Booking:
    """Domain entity for a patient's booking with a doctor on a date."""

    doctor_id: int
    appointment_date: date
    appointment_time: time
    patient_name: str
    patient_phone: str
    sequence_number: int = 0
    status: BookingStatus = BookingStatus.BOOKED
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __post_init__(self):
        if self.doctor_id <= 0:
            raise ValueError("Valid doctor_id is required")
        if not self.patient_name or not self.patient_name.strip():
            raise ValueError("Patient name is required")
        if not self.patient_phone or not self.patient_phone.strip():
            raise ValueError("Patient phone is required")
        self.status = BookingStatus(self.status)

    @property
    def time_label(self) -> str:
        return self.appointment_time.strftime("%H:%M")

    @property
    def is_live(self) -> bool:
        """Live bookings hold their slot; cancelled ones do not."""
        return self.status != BookingStatus.CANCELLED


@dataclass
class PatientBooking:
    """A booking joined with the doctor's directory details."""

    booking: Booking
    doctor_name: str
    hospital_name: Optional[str] = None
    city: Optional[str] = None


@dataclass
class QueueStatus:
    """Live queue position for a doctor's day, optionally for one patient."""

    doctor_id: int
    date: date
    current_running_no: int
    next_no: int
    total_waiting: int
    doctor_name: Optional[str] = None
    hospital_name: Optional[str] = None
    city: Optional[str] = None
    your_no: Optional[int] = None
    people_ahead: Optional[int] = None
    eta_minutes: Optional[int] = None
    eta_time: Optional[str] = None
