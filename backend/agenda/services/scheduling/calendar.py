# backend/agenda/services/scheduling/calendar.py
"""
Calendar store: weekly availability rules and blackout intervals.

Storage and retrieval only. Every query is scoped by organization_id.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ...models.generated import Appointments, AvailabilityRules, Blackouts, Salespeople
from .config import STATUS_CANCELLED, ScheduleConfig, time_str_to_minutes
from .errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


def get_salesperson(db: Session, organization_id: int, salesperson_id: int) -> Salespeople | None:
    return (
        db.query(Salespeople)
        .filter(
            Salespeople.id == salesperson_id,
            Salespeople.organization_id == organization_id,
        )
        .first()
    )


def require_salesperson(db: Session, organization_id: int, salesperson_id: int) -> Salespeople:
    salesperson = get_salesperson(db, organization_id, salesperson_id)
    if not salesperson:
        raise NotFoundError(f"Salesperson {salesperson_id} not found")
    return salesperson


# ── Weekly rules ─────────────────────────────────────────────────────────


def list_rules(
    db: Session,
    organization_id: int,
    salesperson_id: int,
    weekday: int | None = None,
) -> list[AvailabilityRules]:
    """Rules for a salesperson, optionally for one day of week, ordered by start."""
    query = db.query(AvailabilityRules).filter(
        AvailabilityRules.organization_id == organization_id,
        AvailabilityRules.salesperson_id == salesperson_id,
    )
    if weekday is not None:
        query = query.filter(AvailabilityRules.day_of_week == weekday)
    return query.order_by(
        AvailabilityRules.day_of_week,
        AvailabilityRules.start_time,
        AvailabilityRules.id,
    ).all()


def add_rule(
    db: Session,
    organization_id: int,
    salesperson_id: int,
    weekday: int,
    start_time: str,
    end_time: str,
    slot_minutes: int,
) -> AvailabilityRules:
    require_salesperson(db, organization_id, salesperson_id)

    if not 0 <= weekday <= 6:
        raise InvalidInputError(f"day_of_week must be 0..6, got {weekday}")
    if slot_minutes <= 0:
        raise InvalidInputError(f"slot_minutes must be positive, got {slot_minutes}")
    if time_str_to_minutes(start_time) >= time_str_to_minutes(end_time):
        raise InvalidInputError(f"Rule start {start_time} must be before end {end_time}")

    rule = AvailabilityRules(
        organization_id=organization_id,
        salesperson_id=salesperson_id,
        day_of_week=weekday,
        start_time=start_time,
        end_time=end_time,
        slot_minutes=slot_minutes,
    )
    db.add(rule)
    db.commit()
    db.refresh(rule)
    return rule


def delete_rule(db: Session, organization_id: int, rule_id: int) -> None:
    rule = (
        db.query(AvailabilityRules)
        .filter(
            AvailabilityRules.id == rule_id,
            AvailabilityRules.organization_id == organization_id,
        )
        .first()
    )
    if not rule:
        raise NotFoundError(f"Availability rule {rule_id} not found")
    db.delete(rule)
    db.commit()


# ── Blackouts ────────────────────────────────────────────────────────────


def list_blackouts(
    db: Session,
    organization_id: int,
    salesperson_id: int,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Blackouts]:
    """
    Blackouts for a salesperson, optionally only those touching
    [start, end] (naive UTC).
    """
    query = db.query(Blackouts).filter(
        Blackouts.organization_id == organization_id,
        Blackouts.salesperson_id == salesperson_id,
    )
    if end is not None:
        query = query.filter(Blackouts.starts_at <= end)
    if start is not None:
        query = query.filter(Blackouts.ends_at >= start)
    return query.order_by(Blackouts.starts_at, Blackouts.id).all()


def add_blackout(
    db: Session,
    organization_id: int,
    salesperson_id: int,
    starts_at: datetime,
    ends_at: datetime,
    config: ScheduleConfig,
    reason: str | None = None,
) -> Blackouts:
    """Naive datetimes are organization wall-clock time."""
    require_salesperson(db, organization_id, salesperson_id)

    start_utc = config.to_utc(starts_at)
    end_utc = config.to_utc(ends_at)
    if start_utc >= end_utc:
        raise InvalidInputError("Blackout start must be before end")

    blackout = Blackouts(
        organization_id=organization_id,
        salesperson_id=salesperson_id,
        starts_at=start_utc,
        ends_at=end_utc,
        reason=reason,
    )
    db.add(blackout)
    db.commit()
    db.refresh(blackout)

    logger.info(
        f"Blackout added: salesperson={salesperson_id} "
        f"{start_utc.isoformat()}Z..{end_utc.isoformat()}Z"
    )
    return blackout


def delete_blackout(db: Session, organization_id: int, blackout_id: int) -> None:
    blackout = (
        db.query(Blackouts)
        .filter(
            Blackouts.id == blackout_id,
            Blackouts.organization_id == organization_id,
        )
        .first()
    )
    if not blackout:
        raise NotFoundError(f"Blackout {blackout_id} not found")
    db.delete(blackout)
    db.commit()


def is_blacked_out(blackouts: list[Blackouts], instant: datetime) -> bool:
    """True if instant (naive UTC) falls in any [starts_at, ends_at], ends included."""
    return any(b.starts_at <= instant <= b.ends_at for b in blackouts)


# ── Appointments (read side) ─────────────────────────────────────────────


def list_live_appointments(
    db: Session,
    organization_id: int,
    salesperson_id: int,
    start: datetime,
    end: datetime,
) -> list[Appointments]:
    """Non-cancelled appointments with scheduled_at in [start, end) (naive UTC)."""
    return (
        db.query(Appointments)
        .filter(
            Appointments.organization_id == organization_id,
            Appointments.salesperson_id == salesperson_id,
            Appointments.scheduled_at >= start,
            Appointments.scheduled_at < end,
            Appointments.status != STATUS_CANCELLED,
        )
        .order_by(Appointments.scheduled_at)
        .all()
    )
