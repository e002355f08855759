# backend/agenda/dependencies.py
"""
Request-scoped dependencies.

The auth layer in front of this service resolves the caller and forwards
the organization as X-Organization-Id. It is opaque here: every query is
simply filtered by it.
"""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from .database import get_db
from .services.scheduling import ScheduleConfig, get_org_config


def get_organization_id(
    x_organization_id: int | None = Header(None),
) -> int:
    if x_organization_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Organization-Id",
        )
    return x_organization_id


def get_schedule(
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
) -> ScheduleConfig:
    """ScheduleConfig for the caller's organization."""
    return get_org_config(db, organization_id)
