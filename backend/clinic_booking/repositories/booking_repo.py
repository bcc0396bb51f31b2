"""
Booking repository implementation backed by SQLAlchemy.
"""

from datetime import date, datetime, time
from typing import List, Optional

from sqlalchemy import func, text

from clinic_booking.db.base import Booking as DbBooking
from clinic_booking.db.base import Doctor as DbDoctor
from clinic_booking.db.session import SessionLocal
from clinic_booking.domain.entities import Booking, BookingStatus, PatientBooking
from clinic_booking.domain.interfaces import IBookingRepository

_CANCELLED = BookingStatus.CANCELLED.value


class BookingRepository(IBookingRepository):
    """Repository for Booking persistence operations.

    The repository never commits on its own except through ``commit()``, so
    the allocator can keep "read max sequence + insert" in one transaction.
    """

    def __init__(self, db_session=None) -> None:
        self.db = db_session or SessionLocal()

    # ------------------- reads -------------------

    def get_by_id(self, booking_id: int) -> Optional[Booking]:
        db_booking = self.db.get(DbBooking, booking_id)
        return self._to_domain(db_booking) if db_booking else None

    def get_consumed_times(self, doctor_id: int, on_date: date) -> List[time]:
        rows = (
            self.db.query(DbBooking.appointment_time)
            .filter(
                DbBooking.doctor_id == doctor_id,
                DbBooking.appointment_date == on_date,
                DbBooking.status != _CANCELLED,
            )
            .all()
        )
        return [row[0] for row in rows]

    def find_live_by_patient(
        self, doctor_id: int, on_date: date, patient_phone: str
    ) -> Optional[Booking]:
        db_booking = (
            self.db.query(DbBooking)
            .filter(
                DbBooking.doctor_id == doctor_id,
                DbBooking.appointment_date == on_date,
                DbBooking.patient_phone == patient_phone,
                DbBooking.status != _CANCELLED,
            )
            .order_by(DbBooking.sequence_number.asc())
            .first()
        )
        return self._to_domain(db_booking) if db_booking else None

    def max_sequence_number(
        self, doctor_id: int, on_date: date, status: Optional[BookingStatus] = None
    ) -> int:
        query = self.db.query(
            func.coalesce(func.max(DbBooking.sequence_number), 0)
        ).filter(
            DbBooking.doctor_id == doctor_id,
            DbBooking.appointment_date == on_date,
        )
        if status is not None:
            query = query.filter(DbBooking.status == BookingStatus(status).value)
        return int(query.scalar() or 0)

    def count_by_status(
        self, doctor_id: int, on_date: date, status: BookingStatus
    ) -> int:
        return (
            self.db.query(func.count(DbBooking.id))
            .filter(
                DbBooking.doctor_id == doctor_id,
                DbBooking.appointment_date == on_date,
                DbBooking.status == BookingStatus(status).value,
            )
            .scalar()
            or 0
        )

    def list_for_day(self, doctor_id: int, on_date: date) -> List[Booking]:
        rows = (
            self.db.query(DbBooking)
            .filter(
                DbBooking.doctor_id == doctor_id,
                DbBooking.appointment_date == on_date,
            )
            .order_by(DbBooking.sequence_number.asc())
            .all()
        )
        return [self._to_domain(row) for row in rows]

    def list_for_patient(
        self,
        patient_phone: str,
        from_date: Optional[date] = None,
        before_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> List[PatientBooking]:
        query = (
            self.db.query(DbBooking, DbDoctor)
            .join(DbDoctor, DbDoctor.id == DbBooking.doctor_id)
            .filter(DbBooking.patient_phone == patient_phone)
        )
        if from_date is not None:
            query = query.filter(DbBooking.appointment_date >= from_date).order_by(
                DbBooking.appointment_date.asc(), DbBooking.appointment_time.asc()
            )
        if before_date is not None:
            query = query.filter(DbBooking.appointment_date < before_date).order_by(
                DbBooking.appointment_date.desc(), DbBooking.appointment_time.desc()
            )
        if limit is not None:
            query = query.limit(limit)

        return [
            PatientBooking(
                booking=self._to_domain(db_booking),
                doctor_name=db_doctor.name,
                hospital_name=db_doctor.hospital_name,
                city=db_doctor.city,
            )
            for db_booking, db_doctor in query.all()
        ]

    # ------------------- writes -------------------

    def lock_next_sequence_number(self, doctor_id: int, on_date: date) -> int:
        # On PostgreSQL writers for the same (doctor, date) queue on an
        # advisory lock released at commit. The max is read afterwards, so a
        # writer that waited sees the previous holder's row. SQLite already
        # serializes writers.
        if self.db.get_bind().dialect.name == "postgresql":
            self.db.execute(
                text("SELECT pg_advisory_xact_lock(:doctor_id, :day)"),
                {"doctor_id": doctor_id, "day": on_date.toordinal()},
            )
        return self.max_sequence_number(doctor_id, on_date) + 1

    def add(self, booking: Booking) -> Booking:
        db_booking = DbBooking(
            doctor_id=booking.doctor_id,
            appointment_date=booking.appointment_date,
            appointment_time=booking.appointment_time,
            patient_name=booking.patient_name,
            patient_phone=booking.patient_phone,
            sequence_number=booking.sequence_number,
            status=BookingStatus(booking.status).value,
        )
        if booking.created_at is not None:
            db_booking.created_at = booking.created_at
        self.db.add(db_booking)
        self.db.flush()
        return self._to_domain(db_booking)

    def transition_status(
        self,
        booking_id: int,
        target: BookingStatus,
        doctor_id: Optional[int] = None,
        on_date: Optional[date] = None,
        at: Optional[datetime] = None,
    ) -> bool:
        target = BookingStatus(target)
        sources = [status.value for status in BookingStatus.sources_for(target)]
        if not sources:
            return False

        query = self.db.query(DbBooking).filter(
            DbBooking.id == booking_id, DbBooking.status.in_(sources)
        )
        if doctor_id is not None:
            query = query.filter(DbBooking.doctor_id == doctor_id)
        if on_date is not None:
            query = query.filter(DbBooking.appointment_date == on_date)

        values = {DbBooking.status: target.value}
        if target == BookingStatus.COMPLETED:
            values[DbBooking.completed_at] = at

        updated = query.update(values, synchronize_session="fetch")
        return updated > 0

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def _to_domain(self, db_booking: DbBooking) -> Booking:
        return Booking(
            id=db_booking.id,
            doctor_id=db_booking.doctor_id,
            appointment_date=db_booking.appointment_date,
            appointment_time=db_booking.appointment_time,
            patient_name=db_booking.patient_name,
            patient_phone=db_booking.patient_phone,
            sequence_number=db_booking.sequence_number,
            status=BookingStatus(db_booking.status),
            created_at=db_booking.created_at,
            completed_at=db_booking.completed_at,
        )
