from .booking_repo import BookingRepository
from .schedule_repo import DoctorRepository, ScheduleRepository

__all__ = ["BookingRepository", "DoctorRepository", "ScheduleRepository"]
