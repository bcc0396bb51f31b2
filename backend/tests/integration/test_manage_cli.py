"""
Integration tests for the management CLI and demo seed data.
"""

import pytest
from click.testing import CliRunner

from clinic_booking.db.base import DoctorOpenHours
from clinic_booking.db.seed import seed_demo_doctor
from manage import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.mark.database
class TestManageCommands:
    def test_init_db(self, runner, db_session):
        result = runner.invoke(cli, ["init-db"])

        assert result.exit_code == 0

    def test_seed_demo_is_idempotent(self, runner, db_session):
        first = runner.invoke(cli, ["seed-demo"])
        second = runner.invoke(cli, ["seed-demo"])

        assert first.exit_code == 0
        assert first.output == second.output
        assert db_session.query(DoctorOpenHours).count() == 11

    def test_slots_prints_availability(self, runner, db_session, doctor):
        # A past Tuesday is not "today", so every slot is listed
        result = runner.invoke(cli, ["slots", str(doctor.id), "2025-01-07"])

        lines = result.output.split()
        assert result.exit_code == 0
        assert lines[0] == "09:00"
        assert len(lines) == 36

    def test_slots_on_closed_day(self, runner, db_session, doctor):
        result = runner.invoke(cli, ["slots", str(doctor.id), "2025-01-05"])

        assert result.exit_code == 0
        assert "No slots available." in result.output

    def test_slots_rejects_bad_date(self, runner, db_session, doctor):
        result = runner.invoke(cli, ["slots", str(doctor.id), "tomorrow"])

        assert result.exit_code != 0
        assert "YYYY-MM-DD" in result.output


@pytest.mark.database
def test_seed_demo_doctor_returns_same_id(db_session):
    assert seed_demo_doctor(db_session) == seed_demo_doctor(db_session)
