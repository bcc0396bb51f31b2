"""
Custom exceptions for the booking engine.

``StorageError`` marks infrastructure failures. Everything deriving from
``BookingValidationError`` is an expected, user-actionable outcome: the
controller turns it into a 4xx response with a friendly message.
"""

from datetime import date, time
from typing import Any, Dict, Optional


class BookingError(Exception):
    """Base class for all booking engine errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = {
            key: _plain(value) for key, value in context.items() if value is not None
        }


def _plain(value: Any) -> Any:
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, date):
        return value.isoformat()
    return value


class StorageError(BookingError):
    """Underlying persistence failure or lock timeout. Not recoverable locally."""


class BookingNotFoundError(BookingError):
    """Raised when a staff action targets a booking that does not exist."""


class InvalidStatusTransitionError(BookingError):
    """Raised when a booking status change is not allowed by the state machine."""


class BookingValidationError(BookingError, ValueError):
    """Base class for rejections the patient can act on."""

    retryable = False


class InvalidBookingRequestError(BookingValidationError):
    """Raised when the booking request is malformed (date, time, patient)."""


class PastTimeError(BookingValidationError):
    """Raised when the requested date and time are already in the past."""


class DuplicatePatientBookingError(BookingValidationError):
    """Raised when the patient already holds a booking with the doctor that day."""

    def __init__(
        self,
        message: str,
        existing_time: Optional[time] = None,
        existing_sequence: Optional[int] = None,
        **context: Any,
    ):
        super().__init__(
            message,
            existing_time=existing_time,
            existing_sequence=existing_sequence,
            **context,
        )
        self.existing_time = existing_time
        self.existing_sequence = existing_sequence


class SlotUnavailableError(BookingValidationError):
    """Raised when the requested time is not in the doctor's current availability."""


class SlotRaceError(BookingValidationError):
    """Raised when a concurrent booking won the slot between check and insert.

    The caller should re-read availability and retry.
    """

    retryable = True


class DoctorHospitalMismatchError(InvalidBookingRequestError):
    """Raised when the chosen doctor is not attached to the chosen hospital."""


class HospitalNotFoundError(BookingError):
    """Raised when a hospital slug matches no hospital in the directory."""
