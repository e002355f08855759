# backend/agenda/schemas/appointments.py

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from .common import TimeStr, UtcDatetime


class _InstantInput(BaseModel):
    """
    Either `scheduled_at` (ISO datetime; naive = organization local time)
    or `date` + `time` in local wall clock, as the chat agent sends them.
    """
    scheduled_at: Optional[datetime] = None
    date: Optional[str] = Field(None, description="Date in YYYY-MM-DD format")
    time: Optional[TimeStr] = Field(None, description="Time in HH:MM format")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            datetime.strptime(v, "%Y-%m-%d")
        except ValueError:
            raise ValueError("Date must be in YYYY-MM-DD format")
        return v

    def instant(self) -> Optional[datetime]:
        if self.scheduled_at is not None:
            return self.scheduled_at
        if self.date and self.time:
            return datetime.strptime(f"{self.date} {self.time}", "%Y-%m-%d %H:%M")
        return None


class AppointmentCreate(_InstantInput):
    salesperson_id: Optional[int] = Field(None, description="Omit to let the allocator choose")
    lead_id: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, gt=0)
    notes: Optional[str] = None

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def require_instant(self):
        if self.instant() is None:
            raise ValueError("scheduled_at or date + time is required")
        return self


class AppointmentUpdate(_InstantInput):
    notes: Optional[str] = None
    # Cancelling goes through DELETE
    status: Optional[Literal["scheduled", "confirmed", "completed"]] = None

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_pair(self):
        if self.scheduled_at is None and bool(self.date) != bool(self.time):
            raise ValueError("date and time must be given together")
        return self


class AppointmentRead(BaseModel):
    id: int
    salesperson_id: int
    salesperson_name: Optional[str] = None
    lead_id: Optional[str] = None

    scheduled_at: UtcDatetime
    local_date: str
    local_time: str
    duration_minutes: int

    status: str
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    created_at: Optional[UtcDatetime] = None

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    appointment: AppointmentRead
    cycle_reset: bool = False
    replaced_appointment_ids: list[int] = []
