"""
Doctor directory: the lookups a patient uses to pick a doctor before booking.
"""

from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from clinic_booking.core.exceptions import (
    DoctorHospitalMismatchError,
    HospitalNotFoundError,
    StorageError,
)
from clinic_booking.domain.entities import Doctor, Hospital
from clinic_booking.domain.interfaces import IDoctorReader


class DoctorDirectoryService:
    def __init__(self, doctor_repo: IDoctorReader):
        self.doctor_repo = doctor_repo

    def find_doctors(
        self, city: Optional[str] = None, hospital: Optional[str] = None
    ) -> List[Doctor]:
        """Doctors in ``city`` or, failing that, at ``hospital``.

        With neither filter the result is empty.
        """
        city = (city or "").strip()
        hospital = (hospital or "").strip()
        try:
            if city:
                return self.doctor_repo.list_by_city(city)
            if hospital:
                return self.doctor_repo.list_by_hospital(hospital)
        except SQLAlchemyError as e:
            raise StorageError("Could not load doctors") from e
        return []

    def list_hospitals(self) -> List[Hospital]:
        try:
            return self.doctor_repo.list_hospitals()
        except SQLAlchemyError as e:
            raise StorageError("Could not load hospitals") from e

    def hospital_by_slug(self, slug: str) -> Tuple[Hospital, List[Doctor]]:
        """Resolve a URL slug such as ``city-care-hospital`` to the hospital
        and its doctors."""
        wanted = (slug or "").strip().lower()
        for hospital in self.list_hospitals():
            if hospital.slug == wanted:
                try:
                    return hospital, self.doctor_repo.list_by_hospital(hospital.name)
                except SQLAlchemyError as e:
                    raise StorageError("Could not load doctors") from e
        raise HospitalNotFoundError("Hospital not found", slug=wanted or None)

    def ensure_doctor_at_hospital(self, doctor_id: int, hospital_name: str) -> Doctor:
        try:
            doctor = self.doctor_repo.get_by_id(doctor_id)
        except SQLAlchemyError as e:
            raise StorageError("Could not load doctor", doctor_id=doctor_id) from e
        if doctor is None or (doctor.hospital_name or "").strip() != hospital_name:
            raise DoctorHospitalMismatchError(
                "Selected doctor is not attached to the chosen hospital.",
                doctor_id=doctor_id,
                hospital=hospital_name,
            )
        return doctor
