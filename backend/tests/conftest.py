"""
Central pytest configuration for the clinic booking tests.

This file sets up the test environment before any application module is
imported, and provides the database, clock and Flask fixtures shared by
unit and integration tests.
"""

import os
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add backend/ to sys.path so `clinic_booking` and `tests` import directly
backend_root = Path(__file__).parent.parent
sys.path.insert(0, str(backend_root))

# Test database configuration (set early so import-time config uses it)
TEST_DATABASE_URL = "sqlite:///:memory:"  # In-memory SQLite for fast tests
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["TESTING"] = "true"
os.environ["LOG_TO_FILE"] = "0"  # Console-only logging in tests
os.environ["RATE_LIMIT_ENABLED"] = "0"  # Disable rate limiting in tests

from tests.config.markers import *  # noqa: E402,F401,F403

from clinic_booking.core.clock import FixedClock  # noqa: E402
from clinic_booking.db.session import (  # noqa: E402
    SessionLocal,
    create_tables,
    drop_tables,
    get_engine,
)
from tests.factories.db_factories import make_doctor, make_weekly_hours  # noqa: E402

# Monday 2025-01-06, 08:00 local time
DEFAULT_NOW = datetime(2025, 1, 6, 8, 0)


@pytest.fixture
def fixed_clock():
    """Clock frozen at DEFAULT_NOW; tests may move it with ``advance``."""
    return FixedClock(DEFAULT_NOW)


@pytest.fixture
def db_session():
    """Session on a fresh in-memory schema, dropped after the test."""
    create_tables()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        drop_tables()


@pytest.fixture
def file_database(tmp_path, monkeypatch):
    """Point the engine at a SQLite file so several threads share one database."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'booking.db'}")
    engine = get_engine()
    create_tables(engine)
    yield engine
    drop_tables(engine)
    engine.dispose()


@pytest.fixture
def doctor(db_session):
    """A doctor open Monday to Friday from 09:00 to 12:00."""
    doctor = make_doctor(db_session)
    for day_of_week in range(1, 6):
        make_weekly_hours(db_session, doctor.id, day_of_week, "09:00", "12:00")
    db_session.commit()
    return doctor


@pytest.fixture
def app(fixed_clock):
    """Flask app wired to the in-memory database and the fixed clock."""
    from clinic_booking.main import create_app

    app = create_app({"TESTING": True, "BOOKING_CLOCK": fixed_clock})
    yield app
    drop_tables()


@pytest.fixture
def client(app):
    return app.test_client()
