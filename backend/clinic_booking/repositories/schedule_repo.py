"""
Schedule and doctor repositories backed by SQLAlchemy.
"""

from datetime import date
from typing import List, Optional

from clinic_booking.db.base import Doctor as DbDoctor
from clinic_booking.db.base import DoctorException, DoctorOpenHours
from clinic_booking.db.session import SessionLocal
from clinic_booking.domain.entities import (
    Doctor,
    Hospital,
    ScheduleException,
    WeeklyOpenHours,
)
from clinic_booking.domain.interfaces import IDoctorReader, IScheduleReader


class ScheduleRepository(IScheduleReader):
    """Reads a doctor's weekly template and date exceptions."""

    def __init__(self, db_session=None) -> None:
        self.db = db_session or SessionLocal()

    def get_weekly_hours(self, doctor_id: int, day_of_week: int) -> List[WeeklyOpenHours]:
        rows = (
            self.db.query(DoctorOpenHours)
            .filter(
                DoctorOpenHours.doctor_id == doctor_id,
                DoctorOpenHours.day_of_week == day_of_week,
            )
            .order_by(DoctorOpenHours.slot_index.asc())
            .all()
        )
        return [
            WeeklyOpenHours(
                id=row.id,
                doctor_id=row.doctor_id,
                day_of_week=row.day_of_week,
                slot_index=row.slot_index,
                start_time=row.start_time,
                end_time=row.end_time,
            )
            for row in rows
        ]

    def get_exception(
        self, doctor_id: int, on_date: date
    ) -> Optional[ScheduleException]:
        row = (
            self.db.query(DoctorException)
            .filter_by(doctor_id=doctor_id, exception_date=on_date)
            .first()
        )
        if row is None:
            return None
        return ScheduleException(
            id=row.id,
            doctor_id=row.doctor_id,
            exception_date=row.exception_date,
            is_closed=bool(row.is_closed),
            start_time=row.start_time,
            end_time=row.end_time,
            reason=row.reason,
        )


class DoctorRepository(IDoctorReader):
    def __init__(self, db_session=None) -> None:
        self.db = db_session or SessionLocal()

    def get_by_id(self, doctor_id: int) -> Optional[Doctor]:
        row = self.db.get(DbDoctor, doctor_id)
        return self._to_domain(row) if row else None

    def list_by_city(self, city: str) -> List[Doctor]:
        rows = (
            self.db.query(DbDoctor)
            .filter(DbDoctor.city == city)
            .order_by(DbDoctor.name.asc())
            .all()
        )
        return [self._to_domain(row) for row in rows]

    def list_by_hospital(self, hospital_name: str) -> List[Doctor]:
        rows = (
            self.db.query(DbDoctor)
            .filter(DbDoctor.hospital_name == hospital_name)
            .order_by(DbDoctor.name.asc())
            .all()
        )
        return [self._to_domain(row) for row in rows]

    def list_hospitals(self) -> List[Hospital]:
        rows = (
            self.db.query(DbDoctor.hospital_name)
            .filter(DbDoctor.hospital_name.isnot(None), DbDoctor.hospital_name != "")
            .distinct()
            .order_by(DbDoctor.hospital_name.asc())
            .all()
        )
        return [Hospital(name=row[0]) for row in rows]

    def _to_domain(self, row: DbDoctor) -> Doctor:
        return Doctor(
            id=row.id,
            name=row.name,
            city=row.city,
            hospital_name=row.hospital_name,
            specialist=row.specialist,
        )
