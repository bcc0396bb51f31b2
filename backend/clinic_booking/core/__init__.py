# Core package initialization
# Configuration, clock, exceptions and logging shared by every layer

from . import clock, config, exceptions

__all__ = [
    "clock",
    "config",
    "exceptions",
]
