"""
Tests for environment-driven configuration and the clock.
"""

import importlib
import os
from datetime import datetime
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest

from clinic_booking.core import config
from clinic_booking.core.clock import FixedClock, SystemClock


@pytest.fixture(autouse=True)
def restore_config():
    yield
    importlib.reload(config)


class TestTimezoneConfig:
    def test_app_timezone_default_utc(self):
        with patch.dict(os.environ, {}, clear=True):
            importlib.reload(config)

            assert str(config.APP_TZ) == "UTC"

    def test_app_timezone_custom(self):
        with patch.dict(os.environ, {"TZ": "Asia/Kolkata"}):
            importlib.reload(config)

            assert str(config.APP_TZ) == "Asia/Kolkata"

    def test_app_timezone_invalid_fallback(self):
        with patch.dict(os.environ, {"TZ": "Invalid/Timezone"}):
            importlib.reload(config)

            assert str(config.APP_TZ) == "UTC"


class TestLockTimeoutConfig:
    def test_default(self):
        with patch.dict(os.environ, {}, clear=True):
            assert config.get_booking_lock_timeout() == 10.0

    @pytest.mark.parametrize("raw", ["abc", "0", "-3"])
    def test_invalid_values_fall_back(self, raw):
        with patch.dict(os.environ, {"BOOKING_LOCK_TIMEOUT_SECONDS": raw}):
            assert config.get_booking_lock_timeout() == 10.0

    def test_custom_value(self):
        with patch.dict(os.environ, {"BOOKING_LOCK_TIMEOUT_SECONDS": "2.5"}):
            assert config.get_booking_lock_timeout() == 2.5


class TestClocks:
    def test_system_clock_returns_naive_local_time(self):
        clock = SystemClock(tz=ZoneInfo("Asia/Kolkata"))
        expected = datetime.now(ZoneInfo("Asia/Kolkata")).replace(tzinfo=None)

        now = clock.now()

        assert now.tzinfo is None
        assert abs((now - expected).total_seconds()) < 5

    def test_fixed_clock_advance(self):
        clock = FixedClock(datetime(2025, 1, 6, 23, 58))

        clock.advance(minutes=5)

        assert clock.now() == datetime(2025, 1, 7, 0, 3)
        assert clock.today().isoformat() == "2025-01-07"
