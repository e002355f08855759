# backend/agenda/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class SlotsDayResponse(BaseModel):
    """Free slots of one salesperson on one local day."""
    salesperson_id: int
    date: date
    utc_offset_minutes: int
    slots: list[str] = Field(description='Local "HH:MM" times, chronological')

    model_config = {"from_attributes": True}


class AvailabilityCheckResponse(BaseModel):
    """Single-instant check result."""
    available: bool
    reason: Optional[str] = None

    model_config = {"from_attributes": True}
