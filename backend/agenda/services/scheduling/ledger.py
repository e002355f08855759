# backend/agenda/services/scheduling/ledger.py
"""
Appointment ledger: the only write path for appointments.

book / reschedule run check_availability first, then write. The partial
unique index (salesperson_id, scheduled_at) WHERE status != 'cancelled'
catches whoever loses a concurrent race; that surfaces as SlotTakenError.

Cancellation is a soft delete (status = cancelled) and is idempotent.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models.generated import Appointments
from .allocator import record_assignment
from .availability import check_availability
from .calendar import require_salesperson
from .config import (
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_CONFIRMED,
    STATUS_SCHEDULED,
    ScheduleConfig,
)
from .errors import ConflictError, InvalidInputError, NotFoundError, SlotTakenError

logger = logging.getLogger(__name__)

# Manual status transitions allowed through update_appointment
EDITABLE_STATUSES = (STATUS_SCHEDULED, STATUS_CONFIRMED, STATUS_COMPLETED)


@dataclass
class BookingResult:
    appointment: Appointments
    cycle_reset: bool = False
    replaced: list[Appointments] = field(default_factory=list)


def get_appointment(db: Session, organization_id: int, appointment_id: int) -> Appointments:
    appointment = (
        db.query(Appointments)
        .filter(
            Appointments.id == appointment_id,
            Appointments.organization_id == organization_id,
        )
        .first()
    )
    if not appointment:
        raise NotFoundError(f"Appointment {appointment_id} not found")
    return appointment


def list_appointments(
    db: Session,
    organization_id: int,
    start: datetime,
    end: datetime,
    salesperson_id: int | None = None,
    include_cancelled: bool = True,
) -> list[Appointments]:
    """Appointments with scheduled_at in [start, end) (naive UTC)."""
    query = db.query(Appointments).filter(
        Appointments.organization_id == organization_id,
        Appointments.scheduled_at >= start,
        Appointments.scheduled_at < end,
    )
    if salesperson_id is not None:
        query = query.filter(Appointments.salesperson_id == salesperson_id)
    if not include_cancelled:
        query = query.filter(Appointments.status != STATUS_CANCELLED)
    return query.order_by(Appointments.scheduled_at, Appointments.id).all()


def count_future_appointments(
    db: Session,
    organization_id: int,
    salesperson_id: int,
    now: datetime,
) -> int:
    """Live appointments at or after `now` (naive UTC)."""
    return (
        db.query(Appointments)
        .filter(
            Appointments.organization_id == organization_id,
            Appointments.salesperson_id == salesperson_id,
            Appointments.scheduled_at >= now,
            Appointments.status.in_([STATUS_SCHEDULED, STATUS_CONFIRMED]),
        )
        .count()
    )


def book(
    db: Session,
    organization_id: int,
    salesperson_id: int,
    scheduled_at: datetime,
    config: ScheduleConfig,
    duration_minutes: int | None = None,
    lead_id: str | None = None,
    notes: str | None = None,
    exclude_appointment_id: int | None = None,
    before_commit=None,
) -> BookingResult:
    """
    Reserve one instant for one salesperson.

    Steps:
    1. Validate input and salesperson
    2. check_availability (raises ConflictError with its reason)
    3. Insert; unique index violation → SlotTakenError
    4. before_commit(db, appointment) hook for policy layers
    5. record_assignment for the salesperson, once, same transaction

    Naive `scheduled_at` is organization wall-clock time.
    """
    duration = duration_minutes if duration_minutes is not None else config.duration_minutes
    if duration <= 0:
        raise InvalidInputError(f"duration_minutes must be positive, got {duration}")

    require_salesperson(db, organization_id, salesperson_id)
    instant = config.to_utc(scheduled_at)

    result = check_availability(
        db, organization_id, salesperson_id, instant.replace(tzinfo=timezone.utc), config,
        exclude_appointment_id=exclude_appointment_id,
    )
    if not result.available:
        logger.info(
            f"Booking rejected: salesperson={salesperson_id}, "
            f"at={instant.isoformat()}Z, reason={result.reason}"
        )
        raise ConflictError(result.reason)

    appointment = Appointments(
        organization_id=organization_id,
        salesperson_id=salesperson_id,
        lead_id=lead_id,
        scheduled_at=instant,
        duration_minutes=duration,
        notes=notes,
        status=STATUS_SCHEDULED,
    )
    db.add(appointment)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.warning(
            f"Storage race lost: salesperson={salesperson_id}, "
            f"at={instant.isoformat()}Z already taken"
        )
        raise SlotTakenError()

    booking = BookingResult(appointment=appointment)
    if before_commit is not None:
        booking.replaced = before_commit(db, appointment) or []

    booking.cycle_reset = record_assignment(db, organization_id, salesperson_id, config)
    db.commit()
    db.refresh(appointment)

    logger.info(
        f"Appointment booked: id={appointment.id}, salesperson={salesperson_id}, "
        f"lead={lead_id}, at={instant.isoformat()}Z"
    )
    return booking


def cancel(
    db: Session,
    organization_id: int,
    appointment_id: int,
    reason: str | None = None,
) -> tuple[Appointments, bool]:
    """
    Soft-cancel an appointment. Already cancelled → no-op.

    Returns (appointment, changed). Allocation counters are untouched.
    """
    appointment = get_appointment(db, organization_id, appointment_id)
    if appointment.status == STATUS_CANCELLED:
        return appointment, False

    appointment.status = STATUS_CANCELLED
    appointment.cancel_reason = reason
    db.commit()
    db.refresh(appointment)

    logger.info(f"Appointment cancelled: id={appointment_id}")
    return appointment, True


def reschedule(
    db: Session,
    organization_id: int,
    appointment_id: int,
    new_instant: datetime,
    config: ScheduleConfig,
) -> Appointments:
    """Move an appointment, re-checking availability with itself excluded."""
    appointment = get_appointment(db, organization_id, appointment_id)
    if appointment.status == STATUS_CANCELLED:
        raise InvalidInputError("Cannot reschedule a cancelled appointment")

    instant = config.to_utc(new_instant)
    if instant == appointment.scheduled_at:
        return appointment

    result = check_availability(
        db, organization_id, appointment.salesperson_id, instant.replace(tzinfo=timezone.utc), config,
        exclude_appointment_id=appointment.id,
    )
    if not result.available:
        raise ConflictError(result.reason)

    previous = appointment.scheduled_at
    appointment.scheduled_at = instant
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(
            f"Storage race lost on reschedule: appointment={appointment_id}, "
            f"at={instant.isoformat()}Z already taken"
        )
        raise SlotTakenError()
    db.refresh(appointment)

    logger.info(
        f"Appointment rescheduled: id={appointment_id}, "
        f"{previous.isoformat()}Z → {instant.isoformat()}Z"
    )
    return appointment


def update_appointment(
    db: Session,
    organization_id: int,
    appointment_id: int,
    notes: str | None = None,
    status: str | None = None,
) -> Appointments:
    """Edit notes and/or move between scheduled/confirmed/completed."""
    appointment = get_appointment(db, organization_id, appointment_id)

    if status is not None:
        if status not in EDITABLE_STATUSES:
            raise InvalidInputError(f"Status must be one of {', '.join(EDITABLE_STATUSES)}")
        if appointment.status == STATUS_CANCELLED and status != STATUS_CANCELLED:
            raise InvalidInputError("Cancelled appointments cannot be reopened; book again")
        appointment.status = status
    if notes is not None:
        appointment.notes = notes

    db.commit()
    db.refresh(appointment)
    return appointment
