# backend/agenda/services/scheduling/__init__.py
"""
Appointment scheduling and fair lead distribution.

Calendar store   → weekly rules, blackouts
Slot calculator  → free "HH:MM" slots for a day
Availability     → single-instant check before every write
Allocator        → next salesperson by share deficit, self-resetting cycle
Ledger           → book / cancel / reschedule
"""

from .config import ScheduleConfig, get_org_config, get_schedule_config
from .errors import ConflictError, InvalidInputError, NotFoundError, SchedulingError, SlotTakenError
from .calculator import get_free_slots
from .availability import AvailabilityResult, check_availability
from .allocator import compute_deficits, pick_next, record_assignment, reset_cycle
from .ledger import BookingResult, book, cancel, reschedule
from .policy import book_lead_meeting

__all__ = [
    "ScheduleConfig",
    "get_org_config",
    "get_schedule_config",
    "SchedulingError",
    "NotFoundError",
    "InvalidInputError",
    "ConflictError",
    "SlotTakenError",
    "get_free_slots",
    "AvailabilityResult",
    "check_availability",
    "compute_deficits",
    "pick_next",
    "record_assignment",
    "reset_cycle",
    "BookingResult",
    "book",
    "cancel",
    "reschedule",
    "book_lead_meeting",
]
