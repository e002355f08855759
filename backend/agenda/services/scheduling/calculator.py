# backend/agenda/services/scheduling/calculator.py
"""
Free slot calculation for one salesperson on one local calendar day.

Combines:
✓ weekly availability rules for the day of week
✓ blackout intervals overlapping the day
✓ live (non-cancelled) appointments of the day
✓ "now" (slots at or before the current wall clock are dropped today)

Read-only and recomputed on every call. A returned slot can still be
taken a moment later; booking re-validates through check_availability.
"""

from datetime import date, datetime

from sqlalchemy.orm import Session

from .calendar import get_salesperson, is_blacked_out, list_blackouts, list_live_appointments, list_rules
from .config import ScheduleConfig, day_of_week, minutes_to_time_str, time_str_to_minutes


def get_free_slots(
    db: Session,
    organization_id: int,
    salesperson_id: int,
    target_date: date,
    config: ScheduleConfig,
    now: datetime | None = None,
) -> list[str]:
    """
    Bookable "HH:MM" local times for target_date, chronological, de-duplicated.

    Unknown salesperson or a day without rules → empty list.
    """
    if not get_salesperson(db, organization_id, salesperson_id):
        return []

    # Step 1: rules for the day of week
    rules = list_rules(db, organization_id, salesperson_id, day_of_week(target_date))
    if not rules:
        return []

    # Step 2-3: blackouts and bookings of the whole local day
    day_start, day_end = config.day_bounds_utc(target_date)
    blackouts = list_blackouts(db, organization_id, salesperson_id, day_start, day_end)
    booked = {
        config.to_local(a.scheduled_at).strftime("%H:%M")
        for a in list_live_appointments(db, organization_id, salesperson_id, day_start, day_end)
    }

    local_now = config.local_now(now)
    is_today = local_now.date() == target_date
    now_utc = config.to_utc(local_now)

    # Step 4: walk each rule in its own granularity
    free: dict[int, str] = {}
    for rule in rules:
        start_min = time_str_to_minutes(rule.start_time)
        end_min = time_str_to_minutes(rule.end_time)

        for t in range(start_min, end_min, rule.slot_minutes):
            if t in free:
                continue

            instant = config.local_slot_to_utc(target_date, t)
            time_str = minutes_to_time_str(t)

            if is_today and instant <= now_utc:
                continue
            if is_blacked_out(blackouts, instant):
                continue
            if time_str in booked:
                continue

            free[t] = time_str

    # Overlapping rules may offer the same time twice; keyed by minute above
    return [free[t] for t in sorted(free)]
