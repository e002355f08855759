# backend/agenda/schemas/salespeople.py

from typing import Optional
from pydantic import BaseModel, Field

from .common import UtcDatetime


class SalespersonCreate(BaseModel):
    name: str = Field(min_length=1)
    email: Optional[str] = None
    whatsapp: Optional[str] = None
    target_share_percent: float = Field(50, ge=0, le=100)
    active: bool = True

    model_config = {"from_attributes": True}


class SalespersonUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    whatsapp: Optional[str] = None
    target_share_percent: Optional[float] = Field(None, ge=0, le=100)
    active: Optional[bool] = None

    model_config = {"from_attributes": True}


class SalespersonRead(BaseModel):
    id: int
    organization_id: int
    name: str
    email: Optional[str] = None
    whatsapp: Optional[str] = None
    target_share_percent: float
    active: bool
    leads_received_in_cycle: int
    created_at: Optional[UtcDatetime] = None

    model_config = {"from_attributes": True}
