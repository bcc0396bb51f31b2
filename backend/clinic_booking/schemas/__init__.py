"""
Schemas package - Data Transfer Objects for the JSON surface.
"""

from .dtos import (
    BookingCreateRequest,
    BookingResponse,
    ErrorResponse,
    PatientBookingsResponse,
    QueueStatusResponse,
)

__all__ = [
    "BookingCreateRequest",
    "BookingResponse",
    "ErrorResponse",
    "PatientBookingsResponse",
    "QueueStatusResponse",
]
