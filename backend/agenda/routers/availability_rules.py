# backend/agenda/routers/availability_rules.py
# PATCH = 405, DELETE = ALLOWED (hard)

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_organization_id, get_schedule
from ..schemas.availability_rules import (
    AvailabilityRuleCreate,
    AvailabilityRuleRead,
)
from ..services.scheduling import ScheduleConfig
from ..services.scheduling import calendar

router = APIRouter(tags=["availability_rules"])


@router.get("/salespeople/{salesperson_id}/availability", response_model=list[AvailabilityRuleRead])
def list_availability_rules(
    salesperson_id: int,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    calendar.require_salesperson(db, organization_id, salesperson_id)
    return calendar.list_rules(db, organization_id, salesperson_id)


@router.post(
    "/salespeople/{salesperson_id}/availability",
    response_model=AvailabilityRuleRead,
    status_code=status.HTTP_201_CREATED,
)
def create_availability_rule(
    salesperson_id: int,
    data: AvailabilityRuleCreate,
    organization_id: int = Depends(get_organization_id),
    config: ScheduleConfig = Depends(get_schedule),
    db: Session = Depends(get_db),
):
    return calendar.add_rule(
        db,
        organization_id,
        salesperson_id,
        weekday=data.day_of_week,
        start_time=data.start_time,
        end_time=data.end_time,
        slot_minutes=data.slot_minutes or config.slot_minutes,
    )


@router.delete("/availability_rules/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_availability_rule(
    id: int,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    calendar.delete_rule(db, organization_id, id)
