# backend/agenda/routers/appointments.py
# PATCH = reschedule / notes / status, DELETE = soft cancel (idempotent)

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_organization_id, get_schedule
from ..models.generated import Appointments as DBAppointments
from ..schemas.appointments import (
    AppointmentCreate,
    AppointmentRead,
    AppointmentUpdate,
    BookingResponse,
)
from ..services.events import appointment_payload, emit_event
from ..services.scheduling import ScheduleConfig, book_lead_meeting
from ..services.scheduling import ledger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["appointments"])


def to_read(appointment: DBAppointments, config: ScheduleConfig) -> AppointmentRead:
    local = config.to_local(appointment.scheduled_at)
    return AppointmentRead(
        id=appointment.id,
        salesperson_id=appointment.salesperson_id,
        salesperson_name=appointment.salesperson.name if appointment.salesperson else None,
        lead_id=appointment.lead_id,
        scheduled_at=appointment.scheduled_at,
        local_date=local.date().isoformat(),
        local_time=local.strftime("%H:%M"),
        duration_minutes=appointment.duration_minutes,
        status=appointment.status,
        notes=appointment.notes,
        cancel_reason=appointment.cancel_reason,
        created_at=appointment.created_at,
    )


@router.get("/", response_model=list[AppointmentRead])
def list_appointments(
    target_date: date | None = Query(None, alias="date"),
    salesperson_id: int | None = None,
    include_cancelled: bool = True,
    organization_id: int = Depends(get_organization_id),
    config: ScheduleConfig = Depends(get_schedule),
    db: Session = Depends(get_db),
):
    """Appointments of one local day (defaults to today)."""
    if target_date is None:
        target_date = config.local_now().date()
    start, end = config.day_bounds_utc(target_date)

    items = ledger.list_appointments(
        db, organization_id, start, end,
        salesperson_id=salesperson_id,
        include_cancelled=include_cancelled,
    )
    return [to_read(a, config) for a in items]


@router.get("/{id}", response_model=AppointmentRead)
def get_appointment(
    id: int,
    organization_id: int = Depends(get_organization_id),
    config: ScheduleConfig = Depends(get_schedule),
    db: Session = Depends(get_db),
):
    return to_read(ledger.get_appointment(db, organization_id, id), config)


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: AppointmentCreate,
    organization_id: int = Depends(get_organization_id),
    config: ScheduleConfig = Depends(get_schedule),
    db: Session = Depends(get_db),
):
    """
    Book a meeting.

    Steps:
    1. Pick a salesperson with the fair allocator if none was given
    2. Re-validate the exact instant, insert (409 on any conflict)
    3. Cancel the lead's live appointment with another salesperson, if any
    4. Count the lead for the salesperson
    """
    result = book_lead_meeting(
        db,
        organization_id,
        data.instant(),
        config,
        salesperson_id=data.salesperson_id,
        lead_id=data.lead_id,
        duration_minutes=data.duration_minutes,
        notes=data.notes,
    )
    appointment = result.appointment

    emit_event("appointment_booked", appointment_payload(appointment))
    for old in result.replaced:
        emit_event("appointment_cancelled", appointment_payload(old))
    if result.cycle_reset:
        emit_event("allocation_cycle_reset", {"organization_id": organization_id})

    return BookingResponse(
        appointment=to_read(appointment, config),
        cycle_reset=result.cycle_reset,
        replaced_appointment_ids=[old.id for old in result.replaced],
    )


@router.patch("/{id}", response_model=AppointmentRead)
def update_appointment(
    id: int,
    data: AppointmentUpdate,
    organization_id: int = Depends(get_organization_id),
    config: ScheduleConfig = Depends(get_schedule),
    db: Session = Depends(get_db),
):
    new_instant = data.instant()
    appointment = ledger.get_appointment(db, organization_id, id)
    previous_at = appointment.scheduled_at

    if new_instant is not None:
        appointment = ledger.reschedule(db, organization_id, id, new_instant, config)

    if data.notes is not None or data.status is not None:
        appointment = ledger.update_appointment(
            db, organization_id, id, notes=data.notes, status=data.status
        )

    if appointment.scheduled_at != previous_at:
        emit_event("appointment_rescheduled", {
            **appointment_payload(appointment),
            "previous_scheduled_at": previous_at.isoformat() + "Z",
        })

    return to_read(appointment, config)


@router.delete("/{id}", response_model=AppointmentRead)
def cancel_appointment(
    id: int,
    reason: str | None = None,
    organization_id: int = Depends(get_organization_id),
    config: ScheduleConfig = Depends(get_schedule),
    db: Session = Depends(get_db),
):
    """Soft cancel. Cancelling twice is a no-op."""
    appointment, changed = ledger.cancel(db, organization_id, id, reason=reason)
    if changed:
        emit_event("appointment_cancelled", appointment_payload(appointment))
    return to_read(appointment, config)
