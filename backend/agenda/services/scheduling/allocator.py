# backend/agenda/services/scheduling/allocator.py
"""
Fair lead allocation (weighted round-robin by deficit).

Each active salesperson has a target share and a leads_received_in_cycle
counter. The next lead goes to whoever is most under-served:

    deficit = share / total_share - received / total_received

Ties go to the first salesperson in insertion order (lowest id).
Counters only grow until every active salesperson is within one lead of
their proportional count, at which point the cycle resets to zero.

Counters are never decremented on cancellation: a cancelled-then-rebooked
lead still counts toward the original assignment.
"""

import logging
import math
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.orm import Session

from ...models.generated import Salespeople
from .config import ScheduleConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationEntry:
    salesperson_id: int
    name: str
    target_share_percent: float
    leads_received_in_cycle: int
    expected_ratio: float
    actual_ratio: float
    deficit: float


def list_active(db: Session, organization_id: int) -> list[Salespeople]:
    return (
        db.query(Salespeople)
        .filter(
            Salespeople.organization_id == organization_id,
            Salespeople.active.is_(True),
        )
        .order_by(Salespeople.id)
        .all()
    )


def compute_deficits(salespeople: list[Salespeople]) -> list[AllocationEntry]:
    """Deficit table for a roster, in roster order."""
    if not salespeople:
        return []

    total_share = sum(s.target_share_percent or 0 for s in salespeople)
    total_received = sum(s.leads_received_in_cycle or 0 for s in salespeople)

    entries = []
    for s in salespeople:
        share = s.target_share_percent or 0
        received = s.leads_received_in_cycle or 0

        if total_share > 0:
            expected = share / total_share
        else:
            # No shares configured: plain round-robin
            expected = 1 / len(salespeople)
        actual = received / total_received if total_received > 0 else 0.0

        entries.append(AllocationEntry(
            salesperson_id=s.id,
            name=s.name,
            target_share_percent=share,
            leads_received_in_cycle=received,
            expected_ratio=expected,
            actual_ratio=actual,
            deficit=expected - actual,
        ))
    return entries


def pick_next(db: Session, organization_id: int) -> Salespeople | None:
    """
    Salesperson who should receive the next lead, or None if the roster
    has no active salesperson. Read-only: calling twice without
    record_assignment returns the same salesperson.
    """
    roster = list_active(db, organization_id)
    if not roster:
        return None

    best = None
    best_deficit = -math.inf
    for person, entry in zip(roster, compute_deficits(roster)):
        if entry.deficit > best_deficit:
            best, best_deficit = person, entry.deficit
    return best


def record_assignment(
    db: Session,
    organization_id: int,
    salesperson_id: int,
    config: ScheduleConfig,
) -> bool:
    """
    Count one lead for the salesperson and reset the cycle if the roster
    has converged. Does not commit; runs inside the caller's transaction.

    Returns True if the cycle was reset.
    """
    # Atomic increment, no read-modify-write in Python
    db.execute(
        update(Salespeople)
        .where(
            Salespeople.id == salesperson_id,
            Salespeople.organization_id == organization_id,
        )
        .values(leads_received_in_cycle=Salespeople.leads_received_in_cycle + 1)
        .execution_options(synchronize_session="fetch")
    )

    roster = list_active(db, organization_id)
    for person in roster:
        db.refresh(person)

    if _is_converged(roster, config):
        reset_cycle(db, organization_id)
        return True
    return False


def _is_converged(roster: list[Salespeople], config: ScheduleConfig) -> bool:
    if not roster:
        return False

    total_share = sum(s.target_share_percent or 0 for s in roster)
    total_received = sum(s.leads_received_in_cycle or 0 for s in roster)

    if total_received < len(roster) * config.reset_min_leads_per_salesperson:
        return False

    for s in roster:
        if total_share > 0:
            ratio = (s.target_share_percent or 0) / total_share
        else:
            ratio = 1 / len(roster)
        # Half-up rounding
        expected_count = math.floor(ratio * total_received + 0.5)
        if abs((s.leads_received_in_cycle or 0) - expected_count) > 1:
            return False
    return True


def reset_cycle(db: Session, organization_id: int) -> int:
    """
    Zero the counters of every active salesperson. Does not commit.

    Returns number of salespeople reset.
    """
    result = db.execute(
        update(Salespeople)
        .where(
            Salespeople.organization_id == organization_id,
            Salespeople.active.is_(True),
        )
        .values(leads_received_in_cycle=0)
        .execution_options(synchronize_session="fetch")
    )
    logger.info(f"Allocation cycle reset: organization={organization_id}, salespeople={result.rowcount}")
    return result.rowcount
