import logging
import os
import sys

from flask import Flask, current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

logger = logging.getLogger(__name__)

DEFAULT_BOOKING_LIMIT = "30 per minute"
DEFAULT_READ_LIMIT = "100 per minute"


def _is_test_mode() -> bool:
    """Check if we're running in test mode (pytest/CI)."""
    testing_val = os.getenv("TESTING", "").lower().strip()
    if testing_val in ("true", "1", "yes"):
        return True
    if "pytest" in sys.modules:
        return True
    if os.getenv("PYTEST_CURRENT_TEST"):
        return True
    return False


# Shared instance imported by controllers for their decorators
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per hour", "200 per minute"],
    storage_uri=os.getenv("LIMITER_STORAGE_URI", "memory://"),
)


def booking_limit() -> str:
    """Limit for the booking write path, overridable per app."""
    return current_app.config.get("BOOKING_RATE_LIMIT", DEFAULT_BOOKING_LIMIT)


def read_limit() -> str:
    """Limit for slots, queue and directory reads."""
    return current_app.config.get("READ_RATE_LIMIT", DEFAULT_READ_LIMIT)


def init_limiter(app: Flask) -> None:
    """Bind the limiter to ``app``.

    Tests switch it off with RATE_LIMIT_ENABLED=0 unless the app config sets
    RATELIMIT_ENABLED explicitly.
    """
    disabled = _is_test_mode() or app.config.get("TESTING", False)
    disabled = disabled and os.getenv("RATE_LIMIT_ENABLED", "1") == "0"
    app.config.setdefault("RATELIMIT_ENABLED", not disabled)
    app.config.setdefault(
        "RATELIMIT_STORAGE_URI", os.getenv("LIMITER_STORAGE_URI", "memory://")
    )
    limiter.init_app(app)

    if not app.config["RATELIMIT_ENABLED"]:
        logger.info(
            "Rate limiting disabled for testing", extra={"context": {"test_mode": True}}
        )
