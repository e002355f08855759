# backend/agenda/routers/organization_settings.py
# Per-organization schedule settings: UTC offset and defaults.
# GET returns the effective values (defaults when nothing is stored).

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_organization_id, get_schedule
from ..models.generated import OrganizationSettings as DBOrganizationSettings
from ..schemas.organization_settings import (
    ScheduleSettingsRead,
    ScheduleSettingsUpdate,
)
from ..services.scheduling import ScheduleConfig

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/schedule", response_model=ScheduleSettingsRead)
def get_schedule_settings(
    organization_id: int = Depends(get_organization_id),
    config: ScheduleConfig = Depends(get_schedule),
):
    return ScheduleSettingsRead(
        organization_id=organization_id,
        utc_offset_minutes=config.utc_offset_minutes,
        default_slot_minutes=config.slot_minutes,
        default_duration_minutes=config.duration_minutes,
    )


@router.put("/schedule", response_model=ScheduleSettingsRead)
def put_schedule_settings(
    data: ScheduleSettingsUpdate,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    obj = db.get(DBOrganizationSettings, organization_id)
    if not obj:
        obj = DBOrganizationSettings(organization_id=organization_id)
        db.add(obj)

    for field, value in data.model_dump().items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    return obj
