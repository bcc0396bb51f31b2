"""
Database seeding functions.

Creates a demo doctor with a weekly template so the API has something to
serve in development. Safe to run repeatedly.
"""

import logging
from datetime import time
from typing import Optional

from clinic_booking.db.base import Doctor, DoctorOpenHours
from clinic_booking.db.session import SessionLocal

logger = logging.getLogger(__name__)

DEMO_DOCTOR_NAME = "Dr. Demo"

# day_of_week -> list of (start, end); 1=Monday .. 7=Sunday
DEMO_WEEKLY_TEMPLATE = {
    1: [(time(9, 0), time(12, 0)), (time(16, 0), time(19, 0))],
    2: [(time(9, 0), time(12, 0)), (time(16, 0), time(19, 0))],
    3: [(time(9, 0), time(12, 0)), (time(16, 0), time(19, 0))],
    4: [(time(9, 0), time(12, 0)), (time(16, 0), time(19, 0))],
    5: [(time(9, 0), time(12, 0)), (time(16, 0), time(19, 0))],
    6: [(time(9, 0), time(12, 0))],
}


def seed_demo_doctor(db=None) -> int:
    """Ensure the demo doctor and its weekly hours exist. Returns its id."""
    owns_session = db is None
    db = db or SessionLocal()
    try:
        doctor: Optional[Doctor] = (
            db.query(Doctor).filter(Doctor.name == DEMO_DOCTOR_NAME).first()
        )
        if doctor is not None:
            logger.info(
                "Demo doctor already present",
                extra={"context": {"doctor_id": doctor.id}},
            )
            return doctor.id

        doctor = Doctor(
            name=DEMO_DOCTOR_NAME,
            city="Springfield",
            hospital_name="City Clinic",
            specialist="General Physician",
        )
        db.add(doctor)
        db.flush()

        for day_of_week, windows in DEMO_WEEKLY_TEMPLATE.items():
            for slot_index, (start, end) in enumerate(windows, start=1):
                db.add(
                    DoctorOpenHours(
                        doctor_id=doctor.id,
                        day_of_week=day_of_week,
                        slot_index=slot_index,
                        start_time=start,
                        end_time=end,
                    )
                )
        db.commit()
        logger.info(
            "Demo doctor created",
            extra={"context": {"doctor_id": doctor.id, "name": DEMO_DOCTOR_NAME}},
        )
        return doctor.id
    except Exception:
        db.rollback()
        raise
    finally:
        if owns_session:
            db.close()
