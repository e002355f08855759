# backend/agenda/services/scheduling/availability.py
"""
Single-instant availability check.

Runs right before every appointment write to close the gap between
"slot shown" and "slot booked". Checks short-circuit in this order:

1. no weekly rule on that day of week
2. time of day outside every rule's [start, end)
3. inside a blackout interval
4. another live appointment at exactly that instant

Advisory only: the partial unique index on appointments is what
actually prevents double booking.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from ...models.generated import Appointments
from .calendar import is_blacked_out, list_blackouts, list_rules
from .config import STATUS_CANCELLED, ScheduleConfig, day_of_week, time_str_to_minutes
from .errors import REASON_BLOCKED, REASON_BOOKED, REASON_NO_SCHEDULE, REASON_OUTSIDE_HOURS


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    reason: str | None = None

    def as_dict(self) -> dict:
        if self.available:
            return {"available": True}
        return {"available": False, "reason": self.reason}


AVAILABLE = AvailabilityResult(available=True)


def check_availability(
    db: Session,
    organization_id: int,
    salesperson_id: int,
    instant: datetime,
    config: ScheduleConfig,
    exclude_appointment_id: int | None = None,
) -> AvailabilityResult:
    """
    Decide whether `instant` is bookable for the salesperson.

    Naive `instant` is organization wall-clock time.
    exclude_appointment_id lets a reschedule ignore its own row.
    """
    instant_utc = config.to_utc(instant)
    local = config.to_local(instant_utc)

    # Step 1: any rule on that day of week
    rules = list_rules(db, organization_id, salesperson_id, day_of_week(local.date()))
    if not rules:
        return AvailabilityResult(False, REASON_NO_SCHEDULE)

    # Step 2: inside a rule window
    seconds = local.hour * 3600 + local.minute * 60 + local.second
    in_hours = any(
        time_str_to_minutes(r.start_time) * 60 <= seconds < time_str_to_minutes(r.end_time) * 60
        for r in rules
    )
    if not in_hours:
        return AvailabilityResult(False, REASON_OUTSIDE_HOURS)

    # Step 3: blackout
    blackouts = list_blackouts(db, organization_id, salesperson_id, instant_utc, instant_utc)
    if is_blacked_out(blackouts, instant_utc):
        return AvailabilityResult(False, REASON_BLOCKED)

    # Step 4: exact-instant booking
    query = db.query(Appointments.id).filter(
        Appointments.organization_id == organization_id,
        Appointments.salesperson_id == salesperson_id,
        Appointments.scheduled_at == instant_utc,
        Appointments.status != STATUS_CANCELLED,
    )
    if exclude_appointment_id is not None:
        query = query.filter(Appointments.id != exclude_appointment_id)
    if query.first() is not None:
        return AvailabilityResult(False, REASON_BOOKED)

    return AVAILABLE
