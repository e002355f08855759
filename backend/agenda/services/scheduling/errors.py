# backend/agenda/services/scheduling/errors.py
"""
Scheduling error taxonomy.

All of these are recoverable by the caller (retry with other input).
The HTTP layer maps them in main.py.
"""


class SchedulingError(Exception):
    """Base class for scheduling failures."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(SchedulingError):
    """Referenced entity is missing or belongs to another organization."""


class InvalidInputError(SchedulingError):
    """Malformed date/time, non-positive duration, inverted interval."""


class ConflictError(SchedulingError):
    """Requested instant is not bookable."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class SlotTakenError(ConflictError):
    """Storage uniqueness rejected an insert that passed the checker."""

    def __init__(self, reason: str = "slot already booked"):
        super().__init__(reason)


# Checker reasons
REASON_NO_SCHEDULE = "no schedule defined for this day"
REASON_OUTSIDE_HOURS = "outside business hours"
REASON_BLOCKED = "blocked by manager"
REASON_BOOKED = "slot already booked"
