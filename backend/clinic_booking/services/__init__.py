# Services package initialization
# Business logic for availability, allocation, queue and visit status

from . import availability_service
from . import booking_allocator
from . import doctor_directory_service
from . import keyed_lock
from . import patient_bookings_service
from . import queue_service
from . import schedule_resolver
from . import slot_generator
from . import visit_status_service

__all__ = [
    "availability_service",
    "booking_allocator",
    "doctor_directory_service",
    "keyed_lock",
    "patient_bookings_service",
    "queue_service",
    "schedule_resolver",
    "slot_generator",
    "visit_status_service",
]
