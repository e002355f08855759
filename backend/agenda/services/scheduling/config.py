# backend/agenda/services/scheduling/config.py
"""
Scheduling configuration and wall-clock helpers.

All instants are persisted as naive UTC. Weekly rules are local
time-of-day strings ("HH:MM") in the organization's fixed UTC offset.
Every local ↔ UTC conversion goes through this module.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache

from sqlalchemy.orm import Session

from ...config import settings
from .errors import InvalidInputError

TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class ScheduleConfig:
    """
    Configuration for the scheduling engine.

    Attributes:
        utc_offset_minutes: Organization offset from UTC (-180 = UTC-3)
        slot_minutes: Default granularity for new availability rules
        duration_minutes: Default appointment length
        reset_min_leads_per_salesperson: Cycle reset needs at least
            active_count * this many leads in the cycle
    """
    utc_offset_minutes: int = -180
    slot_minutes: int = 30
    duration_minutes: int = 30
    reset_min_leads_per_salesperson: int = 2

    def __post_init__(self):
        if not -14 * 60 <= self.utc_offset_minutes <= 14 * 60:
            raise ValueError(f"utc_offset_minutes out of range: {self.utc_offset_minutes}")
        if self.slot_minutes <= 0:
            raise ValueError(f"slot_minutes must be positive, got {self.slot_minutes}")
        if self.duration_minutes <= 0:
            raise ValueError(f"duration_minutes must be positive, got {self.duration_minutes}")

    @property
    def tz(self) -> timezone:
        return timezone(timedelta(minutes=self.utc_offset_minutes))

    # ── Local ↔ UTC ─────────────────────────────────────────────────────

    def local_now(self, now: datetime | None = None) -> datetime:
        """Current wall clock in the organization offset (aware)."""
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.astimezone(self.tz)

    def to_utc(self, value: datetime) -> datetime:
        """
        Normalize an instant to naive UTC for storage.

        Naive input is organization wall-clock time. Truncated to the
        minute, the granularity of slots.
        """
        if value.tzinfo is None:
            value = value.replace(tzinfo=self.tz)
        return value.astimezone(timezone.utc).replace(tzinfo=None, second=0, microsecond=0)

    def to_local(self, value: datetime) -> datetime:
        """Naive UTC (as stored) → aware local."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(self.tz)

    def local_slot_to_utc(self, target_date: date, minutes: int) -> datetime:
        """Local date + minutes-of-day → naive UTC instant."""
        local = datetime.combine(target_date, time(0, 0), tzinfo=self.tz) + timedelta(minutes=minutes)
        return local.astimezone(timezone.utc).replace(tzinfo=None)

    def day_bounds_utc(self, target_date: date) -> tuple[datetime, datetime]:
        """
        [start, end) of a local calendar day as naive UTC.

        With UTC-3, local midnight is 03:00 UTC of the same date.
        """
        start = self.local_slot_to_utc(target_date, 0)
        return start, start + timedelta(days=1)


@lru_cache
def get_schedule_config() -> ScheduleConfig:
    """Defaults from settings (singleton)."""
    return ScheduleConfig(
        utc_offset_minutes=settings.default_utc_offset_minutes,
        slot_minutes=settings.default_slot_minutes,
        duration_minutes=settings.default_duration_minutes,
    )


def get_org_config(db: Session, organization_id: int) -> ScheduleConfig:
    """ScheduleConfig with the organization's overrides applied, if any."""
    from ...models.generated import OrganizationSettings

    base = get_schedule_config()
    row = db.get(OrganizationSettings, organization_id)
    if not row:
        return base

    return ScheduleConfig(
        utc_offset_minutes=row.utc_offset_minutes,
        slot_minutes=row.default_slot_minutes,
        duration_minutes=row.default_duration_minutes,
        reset_min_leads_per_salesperson=base.reset_min_leads_per_salesperson,
    )


# ── Time-of-day helpers ─────────────────────────────────────────────────


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight. "24:00" is end of day."""
    if value == "24:00":
        return MINUTES_PER_DAY
    match = TIME_RE.match(value or "")
    if not match:
        raise InvalidInputError(f"Invalid time of day: {value!r}, expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def day_of_week(target_date: date) -> int:
    """0 = Sunday … 6 = Saturday."""
    return (target_date.weekday() + 1) % 7


# ── Appointment statuses ────────────────────────────────────────────────

STATUS_SCHEDULED = "scheduled"
STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"
STATUS_COMPLETED = "completed"

APPOINTMENT_STATUSES = (STATUS_SCHEDULED, STATUS_CONFIRMED, STATUS_CANCELLED, STATUS_COMPLETED)
