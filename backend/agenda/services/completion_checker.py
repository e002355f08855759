"""
Appointment completion checker.

Periodically finds live appointments whose time has ended
(scheduled_at + duration_minutes <= now), marks them completed and
emits appointment_completed events.

Runs as an asyncio task in the FastAPI lifespan.
Uses synchronous DB and Redis (via asyncio.to_thread).
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from ..config import settings
from ..database import SessionLocal
from ..models.generated import Appointments
from .events import appointment_payload, emit_event
from .scheduling.config import STATUS_COMPLETED, STATUS_CONFIRMED, STATUS_SCHEDULED

logger = logging.getLogger(__name__)


async def completion_checker_loop() -> None:
    """Periodic loop around complete_past_appointments."""
    logger.info("completion_checker_loop started")

    try:
        while True:
            try:
                await asyncio.to_thread(_run_once)
            except asyncio.CancelledError:
                logger.info("completion_checker_loop cancelled")
                raise
            except Exception:
                logger.exception("completion_checker_loop error")

            await asyncio.sleep(settings.completion_check_interval)
    except asyncio.CancelledError:
        pass


def _run_once() -> None:
    db = SessionLocal()
    try:
        complete_past_appointments(db)
    finally:
        db.close()


def complete_past_appointments(db: Session, now: datetime | None = None) -> list[Appointments]:
    """
    Flip scheduled/confirmed appointments that have ended to completed.

    `now` is naive UTC. Returns the appointments that changed.
    """
    if now is None:
        now = datetime.now(timezone.utc).replace(tzinfo=None)

    candidates = (
        db.query(Appointments)
        .filter(
            Appointments.status.in_([STATUS_SCHEDULED, STATUS_CONFIRMED]),
            Appointments.scheduled_at <= now,
        )
        .all()
    )

    done = [
        a for a in candidates
        if a.scheduled_at + timedelta(minutes=a.duration_minutes) <= now
    ]
    if not done:
        return []

    for appointment in done:
        appointment.status = STATUS_COMPLETED
    db.commit()

    for appointment in done:
        emit_event("appointment_completed", appointment_payload(appointment))

    logger.info(f"Marked {len(done)} appointment(s) completed")
    return done
