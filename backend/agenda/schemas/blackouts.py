# backend/agenda/schemas/blackouts.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, model_validator

from .common import UtcDatetime


class BlackoutCreate(BaseModel):
    # Naive values are organization local time
    starts_at: datetime
    ends_at: datetime
    reason: Optional[str] = None

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_window(self):
        # Only comparable when both sides carry (or both lack) tzinfo
        if (self.starts_at.tzinfo is None) == (self.ends_at.tzinfo is None):
            if self.starts_at >= self.ends_at:
                raise ValueError("starts_at must be before ends_at")
        return self


class BlackoutRead(BaseModel):
    id: int
    salesperson_id: int
    starts_at: UtcDatetime
    ends_at: UtcDatetime
    reason: Optional[str] = None

    model_config = {"from_attributes": True}
