"""Management commands for the clinic booking backend."""

from __future__ import annotations

import logging

import click

from clinic_booking.db.session import SessionLocal, create_tables

logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@click.group()
def cli() -> None:
    """Entry point for management commands."""


@cli.command("init-db")
def init_db() -> None:
    """Create all database tables (idempotent)."""
    create_tables()
    logging.info("Database tables are ready.")


@cli.command("seed-demo")
def seed_demo() -> None:
    """Create a demo doctor with a weekday schedule."""
    from clinic_booking.db.seed import seed_demo_doctor

    create_tables()
    doctor_id = seed_demo_doctor()
    click.echo(f"Demo doctor id: {doctor_id}")


@cli.command("slots")
@click.argument("doctor_id", type=int)
@click.argument("on_date", metavar="DATE")
def slots(doctor_id: int, on_date: str) -> None:
    """Print available HH:MM slots for DOCTOR_ID on DATE (YYYY-MM-DD)."""
    from clinic_booking.core.exceptions import BookingError
    from clinic_booking.repositories import BookingRepository, ScheduleRepository
    from clinic_booking.schemas.dtos import parse_date
    from clinic_booking.services.availability_service import AvailabilityService
    from clinic_booking.services.schedule_resolver import ScheduleResolver

    session = SessionLocal()
    try:
        service = AvailabilityService(
            ScheduleResolver(ScheduleRepository(session)), BookingRepository(session)
        )
        available = service.available_slots(doctor_id, parse_date(on_date))
    except BookingError as e:
        raise click.ClickException(e.message)
    finally:
        session.close()

    if not available:
        click.echo("No slots available.")
        return
    for slot in available:
        click.echo(slot)


if __name__ == "__main__":
    cli()
