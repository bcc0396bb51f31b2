"""
Data Transfer Objects (DTOs) and validation schemas.

Requests arrive as strings from the JSON layer; ``validate()`` checks the
wire format and the typed accessors expose parsed values to services.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from clinic_booking.core.exceptions import BookingError, InvalidBookingRequestError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")
ID_PATTERN = re.compile(r"^\d+$")
MIN_PHONE_LENGTH = 7


def parse_doctor_id(value: Any) -> int:
    """Accept a positive integer or a string of digits; nothing else."""
    if isinstance(value, bool):
        doctor_id = None
    elif isinstance(value, int):
        doctor_id = value
    elif isinstance(value, str) and ID_PATTERN.match(value.strip()):
        doctor_id = int(value.strip())
    else:
        doctor_id = None
    if doctor_id is None or doctor_id <= 0:
        raise InvalidBookingRequestError("Valid doctor_id is required")
    return doctor_id


def parse_date(value: Any) -> date:
    """Parse a ``YYYY-MM-DD`` string (or pass a date through)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not DATE_PATTERN.match(text):
        raise InvalidBookingRequestError(
            "Date must use the YYYY-MM-DD format", date=text or None
        )
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise InvalidBookingRequestError("Date is not a valid calendar day", date=text)


def parse_hhmm(value: Any) -> time:
    """Parse a strict ``HH:MM`` 24-hour string (or pass a time through)."""
    if isinstance(value, time):
        return value
    text = str(value or "").strip()
    if not TIME_PATTERN.match(text):
        raise InvalidBookingRequestError(
            "Time must use the HH:MM format", time=text or None
        )
    try:
        return datetime.strptime(text, "%H:%M").time()
    except ValueError:
        raise InvalidBookingRequestError("Time is not a valid time of day", time=text)


@dataclass
class BookingCreateRequest:
    """DTO for booking creation requests."""

    doctor_id: Any
    appointment_date: Any
    appointment_time: Any
    patient_name: str
    patient_phone: str
    hospital: Optional[str] = None

    def validate(self) -> None:
        """Validate the request data."""
        parse_doctor_id(self.doctor_id)
        parse_date(self.appointment_date)
        parse_hhmm(self.appointment_time)

        if not self.patient_name or not str(self.patient_name).strip():
            raise InvalidBookingRequestError("Patient name is required")
        if (
            not self.patient_phone
            or len(str(self.patient_phone).strip()) < MIN_PHONE_LENGTH
        ):
            raise InvalidBookingRequestError(
                f"Patient phone must have at least {MIN_PHONE_LENGTH} characters"
            )

    @property
    def doctor_key(self) -> int:
        return parse_doctor_id(self.doctor_id)

    @property
    def on_date(self) -> date:
        return parse_date(self.appointment_date)

    @property
    def slot_time(self) -> time:
        return parse_hhmm(self.appointment_time)

    @property
    def name(self) -> str:
        return str(self.patient_name).strip()

    @property
    def phone(self) -> str:
        return str(self.patient_phone).strip()

    @property
    def hospital_name(self) -> Optional[str]:
        text = str(self.hospital or "").strip()
        return text or None

    @classmethod
    def from_json(cls, data: Any) -> "BookingCreateRequest":
        if not isinstance(data, dict):
            raise InvalidBookingRequestError("Request body must be a JSON object")
        return cls(
            doctor_id=data.get("doctor_id"),
            appointment_date=data.get("appointment_date"),
            appointment_time=data.get("appointment_time"),
            patient_name=data.get("patient_name") or "",
            patient_phone=data.get("patient_phone") or "",
            hospital=data.get("hospital"),
        )


@dataclass
class BookingResponse:
    """DTO for booking API responses."""

    id: int
    doctor_id: int
    appointment_date: str
    appointment_time: str
    appointment_no: int
    patient_name: str
    patient_phone: str
    status: str
    created_at: Optional[str] = None
    completed_at: Optional[str] = None

    @classmethod
    def from_domain(cls, booking) -> "BookingResponse":
        """Create response from domain entity."""
        return cls(
            id=booking.id,
            doctor_id=booking.doctor_id,
            appointment_date=booking.appointment_date.isoformat(),
            appointment_time=booking.time_label,
            appointment_no=booking.sequence_number,
            patient_name=booking.patient_name,
            patient_phone=booking.patient_phone,
            status=booking.status.value,
            created_at=booking.created_at.isoformat() if booking.created_at else None,
            completed_at=(
                booking.completed_at.isoformat() if booking.completed_at else None
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class QueueStatusResponse:
    """DTO for the live queue view."""

    doctor: Dict[str, Optional[str]]
    date: str
    current_running_no: int
    next_no: int
    total_waiting: int
    your_no: Optional[int] = None
    people_ahead: Optional[int] = None
    eta_minutes: Optional[int] = None
    eta_time: Optional[str] = None

    @classmethod
    def from_domain(cls, status) -> "QueueStatusResponse":
        return cls(
            doctor={
                "doctor_name": status.doctor_name,
                "hospital_name": status.hospital_name,
                "city": status.city,
            },
            date=status.date.isoformat(),
            current_running_no=status.current_running_no,
            next_no=status.next_no,
            total_waiting=status.total_waiting,
            your_no=status.your_no,
            people_ahead=status.people_ahead,
            eta_minutes=status.eta_minutes,
            eta_time=status.eta_time,
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class PatientBookingsResponse:
    """DTO for a patient's upcoming and past bookings."""

    phone: str
    upcoming: List[Dict[str, Any]] = field(default_factory=list)
    past: List[Dict[str, Any]] = field(default_factory=list)

    @staticmethod
    def _row(entry) -> Dict[str, Any]:
        row = BookingResponse.from_domain(entry.booking).to_dict()
        row.update(
            doctor_name=entry.doctor_name,
            hospital_name=entry.hospital_name,
            city=entry.city,
        )
        return row

    @classmethod
    def from_domain(cls, phone: str, upcoming, past) -> "PatientBookingsResponse":
        return cls(
            phone=phone,
            upcoming=[cls._row(entry) for entry in upcoming],
            past=[cls._row(entry) for entry in past],
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class DoctorResponse:
    """DTO for doctor directory entries."""

    doctor_id: int
    doctor_name: str
    specialist: Optional[str] = None
    hospital_name: Optional[str] = None
    city: Optional[str] = None

    @classmethod
    def from_domain(cls, doctor) -> "DoctorResponse":
        return cls(
            doctor_id=doctor.id,
            doctor_name=doctor.name,
            specialist=doctor.specialist,
            hospital_name=doctor.hospital_name,
            city=doctor.city,
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class HospitalResponse:
    hospital: str
    slug: str

    @classmethod
    def from_domain(cls, hospital) -> "HospitalResponse":
        return cls(hospital=hospital.name, slug=hospital.slug)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class DaySheetResponse:
    """DTO for the staff view of one doctor's day."""

    doctor_id: int
    date: str
    current_running_no: int
    bookings: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_domain(cls, sheet: Dict[str, Any]) -> "DaySheetResponse":
        return cls(
            doctor_id=sheet["doctor_id"],
            date=sheet["date"].isoformat(),
            current_running_no=sheet["current_running_no"],
            bookings=[
                BookingResponse.from_domain(booking).to_dict()
                for booking in sheet["bookings"]
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class ErrorResponse:
    """DTO for error responses."""

    error: str
    message: str
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def from_exception(cls, exc: BookingError) -> "ErrorResponse":
        return cls(
            error=type(exc).__name__,
            message=exc.message,
            details=exc.context or None,
        )

    @classmethod
    def validation_error(cls, message: str) -> "ErrorResponse":
        return cls(error="validation_error", message=message)

    @classmethod
    def server_error(cls, message: str = "Internal server error") -> "ErrorResponse":
        return cls(error="server_error", message=message)
