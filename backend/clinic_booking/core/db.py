"""
Slow query alerts for the booking database.

Every statement is timed on the engine. Statements slower than
``ALERT_QUERY_MS_THRESHOLD`` are logged on ``clinic_booking.sql`` together
with the booking key (doctor, date) the current request works on, so a slow
allocation or availability read can be traced back to the day it touched.
Patient phone numbers and names never reach the log.
"""

import logging
import os
import time
from datetime import date
from typing import Any, Dict, Optional

from flask import g, has_request_context
from sqlalchemy import event
from sqlalchemy.engine import Engine

logger = logging.getLogger("clinic_booking.sql")

_MASKED_PARAMS = ("phone", "patient_name", "password", "secret")
_BOOKING_TABLES = ("bookings", "doctor_open_hours", "doctor_exceptions")


def bind_booking_key(doctor_id: Optional[int], on_date: Optional[date]) -> None:
    """Remember which (doctor, date) the current request is working on."""
    if not has_request_context():
        return
    key: Dict[str, Any] = {}
    if doctor_id is not None:
        key["doctor_id"] = doctor_id
    if on_date is not None:
        key["date"] = on_date.isoformat()
    g.booking_key = key


def _threshold_ms() -> int:
    try:
        return int(os.getenv("ALERT_QUERY_MS_THRESHOLD", "100"))
    except (TypeError, ValueError):
        return 100


def _alerts_enabled() -> bool:
    return os.getenv("ALERT_SLOW_QUERY_ENABLED", "true").lower() == "true"


def _shorten(value: Any, limit: int) -> str:
    text = str(value)
    return text if len(text) <= limit else text[:limit] + "..."


def _mask(params: Any) -> Any:
    if isinstance(params, dict):
        return {
            key: "***"
            if any(marker in str(key).lower() for marker in _MASKED_PARAMS)
            else _mask(value)
            for key, value in params.items()
        }
    if isinstance(params, (list, tuple)):
        return [_mask(item) for item in params]
    return _shorten(params, 200)


def _describe(statement: str) -> Dict[str, Any]:
    lowered = (statement or "").lower()
    tables = [name for name in _BOOKING_TABLES if name in lowered]
    return {
        "tables": tables,
        # Row locks taken while assigning sequence numbers
        "locking": "for update" in lowered,
    }


def _request_context() -> Dict[str, Any]:
    if not has_request_context():
        return {}
    context: Dict[str, Any] = {}
    for attr in ("request_id", "route"):
        value = getattr(g, attr, None)
        if value:
            context[attr] = value
    booking_key = getattr(g, "booking_key", None)
    if booking_key:
        context["booking_key"] = dict(booking_key)
    return context


def register_query_timing(engine: Engine) -> None:
    """Attach slow query alert listeners to ``engine`` (once)."""
    if getattr(engine, "_slow_query_alerts_registered", False):
        return

    database = engine.url.database

    @event.listens_for(engine, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany):
        context._query_started_at = time.perf_counter()

    @event.listens_for(engine, "after_cursor_execute")
    def _report_slow(conn, cursor, statement, parameters, context, executemany):
        started = getattr(context, "_query_started_at", None)
        if started is None or not _alerts_enabled():
            return
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms < _threshold_ms():
            return

        params = parameters
        compiled = getattr(context, "compiled_parameters", None)
        if compiled:
            params = compiled if executemany else compiled[0]

        payload = {
            "alert_type": "slow_query",
            "duration_ms": round(duration_ms, 2),
            "database": database,
            "statement": _shorten(statement or "", 500),
            "params": _mask(params),
            "context": _request_context(),
            **_describe(statement),
        }
        logger.warning("Slow query detected", extra={"context": payload})

    engine._slow_query_alerts_registered = True
