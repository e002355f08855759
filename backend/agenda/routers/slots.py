# backend/agenda/routers/slots.py
"""
Slots API endpoints.

GET /slots/day   - free "HH:MM" slots of a salesperson on a local day
GET /slots/check - is one exact instant bookable (with reason if not)
"""

from datetime import date, datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_organization_id, get_schedule
from ..schemas.slots import (
    AvailabilityCheckResponse,
    SlotsDayResponse,
)
from ..services.scheduling import (
    ScheduleConfig,
    check_availability,
    get_free_slots,
)


router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/day", response_model=SlotsDayResponse)
def get_slots_day(
    salesperson_id: int,
    target_date: date = Query(..., alias="date"),
    organization_id: int = Depends(get_organization_id),
    config: ScheduleConfig = Depends(get_schedule),
    db: Session = Depends(get_db),
):
    """Free slots for a salesperson on a date (organization local time)."""
    slots = get_free_slots(db, organization_id, salesperson_id, target_date, config)

    return SlotsDayResponse(
        salesperson_id=salesperson_id,
        date=target_date,
        utc_offset_minutes=config.utc_offset_minutes,
        slots=slots,
    )


@router.get("/check", response_model=AvailabilityCheckResponse)
def check_slot(
    salesperson_id: int,
    at: datetime = Query(..., description="ISO datetime; naive = organization local time"),
    exclude_appointment_id: int | None = None,
    organization_id: int = Depends(get_organization_id),
    config: ScheduleConfig = Depends(get_schedule),
    db: Session = Depends(get_db),
):
    """Validate a single instant, the same check booking runs."""
    result = check_availability(
        db, organization_id, salesperson_id, at, config,
        exclude_appointment_id=exclude_appointment_id,
    )
    return AvailabilityCheckResponse(**result.as_dict())
