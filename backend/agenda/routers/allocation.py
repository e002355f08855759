# backend/agenda/routers/allocation.py
"""
Fair allocation endpoints.

GET  /allocation/next    - who should get the next lead (read-only)
GET  /allocation/summary - share vs received per active salesperson
POST /allocation/reset   - start a new cycle manually
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_organization_id
from ..schemas.allocation import (
    AllocationEntryRead,
    AllocationResetResponse,
    AllocationSummary,
    NextSalespersonResponse,
)
from ..schemas.salespeople import SalespersonRead
from ..services.events import emit_event
from ..services.scheduling import compute_deficits, pick_next, reset_cycle
from ..services.scheduling.allocator import list_active

router = APIRouter(prefix="/allocation", tags=["allocation"])


@router.get("/next", response_model=NextSalespersonResponse)
def get_next_salesperson(
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """Null salesperson means nobody is active; fall back to manual assignment."""
    chosen = pick_next(db, organization_id)
    return NextSalespersonResponse(
        salesperson=SalespersonRead.model_validate(chosen) if chosen else None
    )


@router.get("/summary", response_model=AllocationSummary)
def get_allocation_summary(
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    roster = list_active(db, organization_id)
    entries = compute_deficits(roster)

    return AllocationSummary(
        total_share_percent=sum(e.target_share_percent for e in entries),
        total_received=sum(e.leads_received_in_cycle for e in entries),
        entries=[AllocationEntryRead.model_validate(e) for e in entries],
    )


@router.post("/reset", response_model=AllocationResetResponse)
def reset_allocation_cycle(
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    count = reset_cycle(db, organization_id)
    db.commit()

    emit_event("allocation_cycle_reset", {"organization_id": organization_id, "manual": True})
    return AllocationResetResponse(reset_count=count)
