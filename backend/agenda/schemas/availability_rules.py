# backend/agenda/schemas/availability_rules.py

from typing import Optional
from pydantic import BaseModel, Field, model_validator

from .common import EndTimeStr, TimeStr


class AvailabilityRuleCreate(BaseModel):
    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday … 6 = Saturday")
    start_time: TimeStr = Field(description="Local time, HH:MM")
    end_time: EndTimeStr = Field(description="Local time, HH:MM (24:00 allowed)")
    slot_minutes: Optional[int] = Field(None, gt=0, description="Defaults to the organization setting")

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_window(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityRuleRead(BaseModel):
    id: int
    salesperson_id: int
    day_of_week: int
    start_time: str
    end_time: str
    slot_minutes: int

    model_config = {"from_attributes": True}
