# backend/agenda/routers/blackouts.py
# PATCH = 405, DELETE = ALLOWED (hard)

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_organization_id, get_schedule
from ..schemas.blackouts import (
    BlackoutCreate,
    BlackoutRead,
)
from ..services.scheduling import ScheduleConfig
from ..services.scheduling import calendar

router = APIRouter(tags=["blackouts"])


@router.get("/salespeople/{salesperson_id}/blackouts", response_model=list[BlackoutRead])
def list_blackouts(
    salesperson_id: int,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    calendar.require_salesperson(db, organization_id, salesperson_id)
    return calendar.list_blackouts(db, organization_id, salesperson_id)


@router.post(
    "/salespeople/{salesperson_id}/blackouts",
    response_model=BlackoutRead,
    status_code=status.HTTP_201_CREATED,
)
def create_blackout(
    salesperson_id: int,
    data: BlackoutCreate,
    organization_id: int = Depends(get_organization_id),
    config: ScheduleConfig = Depends(get_schedule),
    db: Session = Depends(get_db),
):
    return calendar.add_blackout(
        db,
        organization_id,
        salesperson_id,
        starts_at=data.starts_at,
        ends_at=data.ends_at,
        config=config,
        reason=data.reason,
    )


@router.delete("/blackouts/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blackout(
    id: int,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    calendar.delete_blackout(db, organization_id, id)
