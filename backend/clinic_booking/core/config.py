"""
Centralized configuration module for application-wide settings.

Timezone, slot grid and booking-lock settings live here so every service
reads the same values. Values are resolved from environment variables once
at import time; tests reload the module after patching ``os.environ``.
"""

import logging
import os
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

# ===========================
# Timezone Configuration
# ===========================


def get_app_timezone() -> ZoneInfo:
    """
    Get the application timezone from environment variable.

    Returns:
        ZoneInfo: Application timezone (defaults to UTC if not configured)

    Environment Variables:
        TZ: Timezone identifier (e.g., 'Asia/Kolkata', 'UTC')
            Default: 'UTC'
            Production: set to the clinic's local zone. All dates and times
            handled by the booking engine are wall-clock values in this zone.
    """
    tz_name = os.getenv("TZ", "UTC")

    try:
        return ZoneInfo(tz_name)
    except Exception as e:
        logger.warning(
            f"Invalid timezone '{tz_name}' specified in TZ environment variable. "
            f"Falling back to UTC. Error: {e}"
        )
        return ZoneInfo("UTC")


# Global timezone instance - initialized once at import time
APP_TZ = get_app_timezone()


# ===========================
# Slot Grid Configuration
# ===========================

# Every bookable slot starts on this grid (minutes from midnight).
SLOT_GRANULARITY_MINUTES = 5

# Fixed service time per patient used by the queue ETA.
SERVICE_MINUTES_PER_PATIENT = 5


# ===========================
# Booking Lock Configuration
# ===========================


def get_booking_lock_timeout() -> float:
    """
    Get the maximum time a booking request waits for its (doctor, date) lock.

    Environment Variables:
        BOOKING_LOCK_TIMEOUT_SECONDS: Positive number of seconds.
            Default: 10
    """
    raw = os.getenv("BOOKING_LOCK_TIMEOUT_SECONDS", "10")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning(
            "Invalid BOOKING_LOCK_TIMEOUT_SECONDS, using default",
            extra={"context": {"value": raw, "default": 10.0}},
        )
        return 10.0
    if value <= 0:
        logger.warning(
            "Non-positive BOOKING_LOCK_TIMEOUT_SECONDS, using default",
            extra={"context": {"value": raw, "default": 10.0}},
        )
        return 10.0
    return value


BOOKING_LOCK_TIMEOUT_SECONDS = get_booking_lock_timeout()


# ===========================
# Logging Configuration
# ===========================


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes")


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = _env_flag("LOG_JSON", "false")
LOG_TO_FILE = _env_flag("LOG_TO_FILE", "true")


def log_config():
    """
    Log the active configuration.

    Should be called during application startup to provide visibility
    into the timezone and booking settings in effect.
    """
    logger.info(
        "Booking engine configuration initialized",
        extra={
            "context": {
                "timezone": str(APP_TZ),
                "tz_env_var": os.getenv("TZ", "UTC"),
                "slot_granularity_minutes": SLOT_GRANULARITY_MINUTES,
                "service_minutes_per_patient": SERVICE_MINUTES_PER_PATIENT,
                "booking_lock_timeout_seconds": BOOKING_LOCK_TIMEOUT_SECONDS,
            }
        },
    )
