# backend/agenda/routers/salespeople.py
# - PATCH = ALLOWED (name, contact, share, active)
# - DELETE = hard delete, rejected (409) while future live appointments exist
# - Domain relations: salespeople -> availability_rules, blackouts

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_organization_id
from ..models.generated import Salespeople as DBSalespeople
from ..schemas.salespeople import (
    SalespersonCreate,
    SalespersonUpdate,
    SalespersonRead,
)
from ..services.scheduling.calendar import require_salesperson
from ..services.scheduling.ledger import count_future_appointments

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/salespeople", tags=["salespeople"])


@router.get("/", response_model=list[SalespersonRead])
def list_salespeople(
    active: bool | None = None,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    query = db.query(DBSalespeople).filter(DBSalespeople.organization_id == organization_id)
    if active is not None:
        query = query.filter(DBSalespeople.active.is_(active))
    return query.order_by(DBSalespeople.id).all()


@router.get("/{id}", response_model=SalespersonRead)
def get_salesperson(
    id: int,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    return require_salesperson(db, organization_id, id)


@router.post("/", response_model=SalespersonRead, status_code=status.HTTP_201_CREATED)
def create_salesperson(
    data: SalespersonCreate,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    obj = DBSalespeople(organization_id=organization_id, **data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.info(f"Salesperson created: id={obj.id}, organization={organization_id}")
    return obj


@router.patch("/{id}", response_model=SalespersonRead)
def update_salesperson(
    id: int,
    data: SalespersonUpdate,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    obj = require_salesperson(db, organization_id, id)

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field in ("name", "target_share_percent", "active"):
            continue
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    return obj


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_salesperson(
    id: int,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    obj = require_salesperson(db, organization_id, id)

    now = datetime.now(timezone.utc).replace(tzinfo=None)
    future = count_future_appointments(db, organization_id, id, now)
    if future:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Salesperson has {future} upcoming appointment(s); cancel or deactivate instead",
        )

    db.delete(obj)
    db.commit()
    logger.info(f"Salesperson deleted: id={id}, organization={organization_id}")
