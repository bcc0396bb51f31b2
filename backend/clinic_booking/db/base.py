from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Time,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .session import Base


class Doctor(Base):
    """Doctor directory entry. Only its identity matters to the booking engine."""

    __tablename__ = "doctors"

    id: Mapped[int] = mapped_column("doctor_id", Integer, primary_key=True)
    name: Mapped[str] = mapped_column("doctor_name", String(120), nullable=False)
    city: Mapped[Optional[str]] = mapped_column(String(80), nullable=True, index=True)
    hospital_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    specialist: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    open_hours = relationship(
        "DoctorOpenHours", back_populates="doctor", cascade="all, delete-orphan"
    )
    exceptions = relationship(
        "DoctorException", back_populates="doctor", cascade="all, delete-orphan"
    )


# ------------------- WEEKLY TEMPLATE -------------------
class DoctorOpenHours(Base):
    """Recurring weekly open range. Several disjoint ranges per day via slot_index."""

    __tablename__ = "doctor_open_hours"
    __table_args__ = (
        UniqueConstraint(
            "doctor_id", "day_of_week", "slot_index", name="uq_doctor_day_slot"
        ),
        CheckConstraint("day_of_week BETWEEN 1 AND 7", name="ck_open_hours_dow"),
        CheckConstraint("start_time < end_time", name="ck_open_hours_range"),
    )

    id: Mapped[int] = mapped_column("open_hours_id", Integer, primary_key=True)
    doctor_id: Mapped[int] = mapped_column(
        ForeignKey("doctors.doctor_id", ondelete="CASCADE"), nullable=False
    )
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)  # 1=Mon..7=Sun
    slot_index: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    doctor = relationship("Doctor", back_populates="open_hours")


# ------------------- DATE EXCEPTIONS -------------------
class DoctorException(Base):
    """Date-specific override of the weekly template."""

    __tablename__ = "doctor_exceptions"
    __table_args__ = (
        UniqueConstraint("doctor_id", "exception_date", name="uq_doctor_exception_date"),
    )

    id: Mapped[int] = mapped_column("exception_id", Integer, primary_key=True)
    doctor_id: Mapped[int] = mapped_column(
        ForeignKey("doctors.doctor_id", ondelete="CASCADE"), nullable=False
    )
    exception_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    start_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    end_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    doctor = relationship("Doctor", back_populates="exceptions")


# ------------------- BOOKINGS -------------------
class Booking(Base):
    """Patient booking with its per-(doctor, date) sequence number."""

    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint(
            "doctor_id",
            "appointment_date",
            "appointment_no",
            name="uq_booking_doctor_date_no",
        ),
        # At most one live booking per slot; cancelled rows free the slot
        Index(
            "uq_booking_doctor_date_time_live",
            "doctor_id",
            "appointment_date",
            "appointment_time",
            unique=True,
            sqlite_where=text("status <> 'cancelled'"),
            postgresql_where=text("status <> 'cancelled'"),
        ),
        Index("ix_booking_patient_phone", "patient_phone"),
    )

    id: Mapped[int] = mapped_column("booking_id", Integer, primary_key=True)
    doctor_id: Mapped[int] = mapped_column(
        ForeignKey("doctors.doctor_id"), nullable=False
    )
    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    appointment_time: Mapped[time] = mapped_column(Time, nullable=False)
    patient_name: Mapped[str] = mapped_column(String(120), nullable=False)
    patient_phone: Mapped[str] = mapped_column(String(20), nullable=False)
    sequence_number: Mapped[int] = mapped_column(
        "appointment_no", Integer, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="booked", server_default="booked"
    )
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=False), server_default=func.now()
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=False), nullable=True
    )

    doctor = relationship("Doctor")
