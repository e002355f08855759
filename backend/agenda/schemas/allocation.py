# backend/agenda/schemas/allocation.py

from typing import Optional
from pydantic import BaseModel

from .salespeople import SalespersonRead


class NextSalespersonResponse(BaseModel):
    """salesperson is null when the organization has no active salesperson."""
    salesperson: Optional[SalespersonRead] = None


class AllocationEntryRead(BaseModel):
    salesperson_id: int
    name: str
    target_share_percent: float
    leads_received_in_cycle: int
    expected_ratio: float
    actual_ratio: float
    deficit: float

    model_config = {"from_attributes": True}


class AllocationSummary(BaseModel):
    total_share_percent: float
    total_received: int
    entries: list[AllocationEntryRead]


class AllocationResetResponse(BaseModel):
    reset_count: int
