"""
Booking controller: the JSON surface of the booking engine.

Handles HTTP concerns only. Each request opens its own session, builds the
repositories and services on it and closes it afterwards.
"""

import logging

from flask import Blueprint, current_app, request

from clinic_booking.core.api_utils import api_response
from clinic_booking.core.clock import SystemClock
from clinic_booking.core.db import bind_booking_key
from clinic_booking.core.exceptions import (
    BookingError,
    BookingNotFoundError,
    BookingValidationError,
    DuplicatePatientBookingError,
    HospitalNotFoundError,
    InvalidBookingRequestError,
    InvalidStatusTransitionError,
    PastTimeError,
    SlotRaceError,
    SlotUnavailableError,
    StorageError,
)
from clinic_booking.core.limiter_config import booking_limit, limiter, read_limit
from clinic_booking.db.session import SessionLocal
from clinic_booking.repositories import (
    BookingRepository,
    DoctorRepository,
    ScheduleRepository,
)
from clinic_booking.schemas.dtos import (
    BookingCreateRequest,
    BookingResponse,
    DaySheetResponse,
    DoctorResponse,
    ErrorResponse,
    HospitalResponse,
    PatientBookingsResponse,
    QueueStatusResponse,
    parse_date,
    parse_doctor_id,
)
from clinic_booking.services.availability_service import AvailabilityService
from clinic_booking.services.booking_allocator import BookingAllocator
from clinic_booking.services.doctor_directory_service import DoctorDirectoryService
from clinic_booking.services.patient_bookings_service import PatientBookingsService
from clinic_booking.services.queue_service import QueueService
from clinic_booking.services.schedule_resolver import ScheduleResolver
from clinic_booking.services.visit_status_service import VisitStatusService

logger = logging.getLogger(__name__)

booking_bp = Blueprint("booking", __name__, url_prefix="/api")

STATUS_CODES = {
    InvalidBookingRequestError: 422,
    PastTimeError: 422,
    DuplicatePatientBookingError: 409,
    SlotUnavailableError: 409,
    SlotRaceError: 409,
    InvalidStatusTransitionError: 409,
    BookingNotFoundError: 404,
    HospitalNotFoundError: 404,
    StorageError: 503,
}


def _status_for(exc: BookingError) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in STATUS_CODES:
            return STATUS_CODES[exc_type]
    return 422 if isinstance(exc, BookingValidationError) else 500


def _error_response(exc: BookingError):
    error = ErrorResponse.from_exception(exc)
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error(
            "Booking request failed",
            extra={"context": {"error": error.error, **exc.context}},
        )
    data = {"error": error.error, "details": error.details}
    if isinstance(exc, BookingValidationError):
        data["retryable"] = exc.retryable
    return api_response(False, error.message, data, status_code)


@booking_bp.errorhandler(429)
def rate_limited(error):
    return api_response(
        False,
        "Too many requests. Please slow down and try again.",
        {"error": "rate_limited", "limit": str(getattr(error, "description", ""))},
        429,
    )


def _clock():
    return current_app.config.get("BOOKING_CLOCK") or SystemClock()


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidBookingRequestError("Request body must be a JSON object")
    return data


def _availability(db, clock) -> AvailabilityService:
    return AvailabilityService(
        ScheduleResolver(ScheduleRepository(db)), BookingRepository(db), clock=clock
    )


# ------------------- patient: directory -------------------


@booking_bp.route("/doctors", methods=["GET"])
@limiter.limit(read_limit)
def list_doctors():
    """Doctors in a city or at a hospital. Without a filter the list is empty."""
    db = SessionLocal()
    try:
        doctors = DoctorDirectoryService(DoctorRepository(db)).find_doctors(
            city=request.args.get("city"), hospital=request.args.get("hospital")
        )
        return api_response(
            True,
            f"{len(doctors)} doctors found",
            {"doctors": [DoctorResponse.from_domain(d).to_dict() for d in doctors]},
        )
    except BookingError as e:
        return _error_response(e)
    finally:
        db.close()


@booking_bp.route("/hospitals", methods=["GET"])
@limiter.limit(read_limit)
def list_hospitals():
    db = SessionLocal()
    try:
        hospitals = DoctorDirectoryService(DoctorRepository(db)).list_hospitals()
        return api_response(
            True,
            f"{len(hospitals)} hospitals found",
            {"hospitals": [HospitalResponse.from_domain(h).to_dict() for h in hospitals]},
        )
    except BookingError as e:
        return _error_response(e)
    finally:
        db.close()


@booking_bp.route("/hospitals/<slug>", methods=["GET"])
@limiter.limit(read_limit)
def hospital_by_slug(slug: str):
    """Resolve a hospital slug (e.g. ``city-care``) and list its doctors."""
    db = SessionLocal()
    try:
        hospital, doctors = DoctorDirectoryService(
            DoctorRepository(db)
        ).hospital_by_slug(slug)
        data = HospitalResponse.from_domain(hospital).to_dict()
        data["doctors"] = [DoctorResponse.from_domain(d).to_dict() for d in doctors]
        return api_response(True, hospital.name, data)
    except BookingError as e:
        return _error_response(e)
    finally:
        db.close()


# ------------------- patient: availability and booking -------------------


@booking_bp.route("/slots", methods=["GET"])
@limiter.limit(read_limit)
def list_slots():
    """Available HH:MM slots for a doctor on a date."""
    doctor_id = request.args.get("doctor_id")
    on_date = request.args.get("date")
    if not doctor_id or not on_date:
        return api_response(True, "No slots", {"slots": []})

    db = SessionLocal()
    try:
        doctor_id = parse_doctor_id(doctor_id)
        on_date = parse_date(on_date)
        bind_booking_key(doctor_id, on_date)
        slots = _availability(db, _clock()).available_slots(doctor_id, on_date)
        return api_response(True, f"{len(slots)} slots available", {"slots": slots})
    except BookingError as e:
        return _error_response(e)
    finally:
        db.close()


@booking_bp.route("/bookings", methods=["POST"])
@limiter.limit(booking_limit)
def create_booking():
    """Book a slot and return the assigned appointment number."""
    db = SessionLocal()
    try:
        create_request = BookingCreateRequest.from_json(_json_body())
        create_request.validate()
        bind_booking_key(create_request.doctor_key, create_request.on_date)

        clock = _clock()
        allocator = BookingAllocator(
            BookingRepository(db),
            _availability(db, clock),
            clock=clock,
            directory=DoctorDirectoryService(DoctorRepository(db)),
        )
        booking = allocator.create_booking(create_request)
        return api_response(
            True,
            f"Booking confirmed. Your number is {booking.sequence_number}.",
            BookingResponse.from_domain(booking).to_dict(),
            201,
        )
    except BookingError as e:
        if isinstance(e, BookingValidationError):
            logger.info(
                "Booking rejected",
                extra={"context": {"error": type(e).__name__, **e.context}},
            )
        return _error_response(e)
    finally:
        db.close()


@booking_bp.route("/queue", methods=["GET"])
@limiter.limit(read_limit)
def queue_status():
    """Running number, waiting count and optional ETA for a patient."""
    db = SessionLocal()
    try:
        clock = _clock()
        doctor_id = parse_doctor_id(request.args.get("doctor_id"))
        on_date_arg = request.args.get("date")
        on_date = parse_date(on_date_arg) if on_date_arg else clock.today()
        phone = (request.args.get("phone") or "").strip() or None
        bind_booking_key(doctor_id, on_date)

        service = QueueService(BookingRepository(db), DoctorRepository(db), clock=clock)
        status = service.compute_queue(doctor_id, on_date, patient_phone=phone)
        return api_response(
            True, "Queue status", QueueStatusResponse.from_domain(status).to_dict()
        )
    except BookingError as e:
        return _error_response(e)
    finally:
        db.close()


@booking_bp.route("/patients/<phone>/bookings", methods=["GET"])
@limiter.limit(read_limit)
def patient_bookings(phone: str):
    """Upcoming and past bookings for a phone number."""
    db = SessionLocal()
    try:
        service = PatientBookingsService(BookingRepository(db), clock=_clock())
        upcoming, past = service.list_bookings(phone.strip())
        payload = PatientBookingsResponse.from_domain(phone.strip(), upcoming, past)
        return api_response(
            True, f"{len(upcoming)} upcoming bookings", payload.to_dict()
        )
    except BookingError as e:
        return _error_response(e)
    finally:
        db.close()


# ------------------- staff -------------------


@booking_bp.route("/doctors/<int:doctor_id>/day-sheet", methods=["GET"])
@limiter.limit(read_limit)
def day_sheet(doctor_id: int):
    """All bookings of a doctor's day (default today) in number order."""
    db = SessionLocal()
    try:
        clock = _clock()
        on_date_arg = request.args.get("date")
        on_date = parse_date(on_date_arg) if on_date_arg else clock.today()
        bind_booking_key(doctor_id, on_date)

        sheet = VisitStatusService(BookingRepository(db), clock=clock).day_sheet(
            doctor_id, on_date
        )
        payload = DaySheetResponse.from_domain(sheet).to_dict()
        return api_response(True, f"{len(payload['bookings'])} bookings", payload)
    except BookingError as e:
        return _error_response(e)
    finally:
        db.close()


@booking_bp.route("/bookings/<int:booking_id>/start", methods=["POST"])
@limiter.limit(booking_limit)
def start_visit(booking_id: int):
    """Call today's patient in. Repeating the call is harmless."""
    db = SessionLocal()
    try:
        doctor_id = parse_doctor_id(_json_body().get("doctor_id"))
        service = VisitStatusService(BookingRepository(db), clock=_clock())
        changed = service.start_visit(booking_id, doctor_id)
        message = "Visit started" if changed else "Visit was already running"
        return api_response(True, message, {"booking_id": booking_id, "changed": changed})
    except BookingError as e:
        return _error_response(e)
    finally:
        db.close()


@booking_bp.route("/bookings/<int:booking_id>/complete", methods=["POST"])
@limiter.limit(booking_limit)
def complete_visit(booking_id: int):
    """Mark today's visit as completed. Repeating the call is harmless."""
    db = SessionLocal()
    try:
        doctor_id = parse_doctor_id(_json_body().get("doctor_id"))
        service = VisitStatusService(BookingRepository(db), clock=_clock())
        changed = service.complete_visit(booking_id, doctor_id)
        message = "Visit completed" if changed else "Visit was already completed"
        return api_response(True, message, {"booking_id": booking_id, "changed": changed})
    except BookingError as e:
        return _error_response(e)
    finally:
        db.close()


@booking_bp.route("/bookings/<int:booking_id>/cancel", methods=["POST"])
@limiter.limit(booking_limit)
def cancel_booking(booking_id: int):
    """Cancel a booking and free its slot. ``doctor_id`` is optional."""
    db = SessionLocal()
    try:
        raw_doctor_id = _json_body().get("doctor_id")
        doctor_id = parse_doctor_id(raw_doctor_id) if raw_doctor_id is not None else None
        service = VisitStatusService(BookingRepository(db), clock=_clock())
        changed = service.cancel_booking(booking_id, doctor_id)
        message = "Booking cancelled" if changed else "Booking was already cancelled"
        return api_response(True, message, {"booking_id": booking_id, "changed": changed})
    except BookingError as e:
        return _error_response(e)
    finally:
        db.close()
