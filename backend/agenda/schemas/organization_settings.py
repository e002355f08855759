# backend/agenda/schemas/organization_settings.py

from pydantic import BaseModel, Field


class ScheduleSettingsUpdate(BaseModel):
    utc_offset_minutes: int = Field(ge=-14 * 60, le=14 * 60, description="-180 = UTC-3")
    default_slot_minutes: int = Field(30, gt=0)
    default_duration_minutes: int = Field(30, gt=0)

    model_config = {"from_attributes": True}


class ScheduleSettingsRead(BaseModel):
    organization_id: int
    utc_offset_minutes: int
    default_slot_minutes: int
    default_duration_minutes: int

    model_config = {"from_attributes": True}
