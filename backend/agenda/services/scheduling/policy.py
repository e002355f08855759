# backend/agenda/services/scheduling/policy.py
"""
Lead booking policy on top of the ledger.

- No salesperson given → the fair allocator picks one.
- A lead keeps at most one live appointment: booking a lead that already
  holds a live appointment with a *different* salesperson cancels the old
  one in the same transaction as the new booking.

The ledger itself never touches rows other than the one it books.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ...models.generated import Appointments
from .allocator import pick_next
from .config import STATUS_CANCELLED, STATUS_CONFIRMED, STATUS_SCHEDULED, ScheduleConfig
from .errors import ConflictError
from .ledger import BookingResult, book

logger = logging.getLogger(__name__)

REBOOK_CANCEL_REASON = "rebooked with another salesperson"


def book_lead_meeting(
    db: Session,
    organization_id: int,
    scheduled_at: datetime,
    config: ScheduleConfig,
    salesperson_id: int | None = None,
    lead_id: str | None = None,
    duration_minutes: int | None = None,
    notes: str | None = None,
) -> BookingResult:
    if salesperson_id is None:
        chosen = pick_next(db, organization_id)
        if chosen is None:
            raise ConflictError("no active salesperson available")
        salesperson_id = chosen.id
        logger.info(f"Allocator picked salesperson={salesperson_id} for lead={lead_id}")

    def cancel_previous(session: Session, appointment: Appointments) -> list[Appointments]:
        if not lead_id:
            return []
        return _cancel_other_live_appointments(session, appointment)

    return book(
        db,
        organization_id,
        salesperson_id,
        scheduled_at,
        config,
        duration_minutes=duration_minutes,
        lead_id=lead_id,
        notes=notes,
        before_commit=cancel_previous,
    )


def _cancel_other_live_appointments(db: Session, appointment: Appointments) -> list[Appointments]:
    previous = (
        db.query(Appointments)
        .filter(
            Appointments.organization_id == appointment.organization_id,
            Appointments.lead_id == appointment.lead_id,
            Appointments.salesperson_id != appointment.salesperson_id,
            Appointments.status.in_([STATUS_SCHEDULED, STATUS_CONFIRMED]),
            Appointments.id != appointment.id,
        )
        .all()
    )
    for old in previous:
        old.status = STATUS_CANCELLED
        old.cancel_reason = REBOOK_CANCEL_REASON
        logger.info(
            f"Lead {appointment.lead_id} rebooked: appointment {old.id} "
            f"(salesperson={old.salesperson_id}) cancelled"
        )
    return previous
