# Controllers package initialization

from . import booking_controller

__all__ = [
    "booking_controller",
]
