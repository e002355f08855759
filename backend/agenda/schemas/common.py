# backend/agenda/schemas/common.py

import re
from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator

TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _as_utc(value: datetime) -> datetime:
    # Stored instants are naive UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_time_str(value: str) -> str:
    if not TIME_RE.match(value):
        raise ValueError("Time must be in HH:MM format")
    return value


def validate_end_time_str(value: str) -> str:
    if value == "24:00":
        return value
    return validate_time_str(value)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]
TimeStr = Annotated[str, AfterValidator(validate_time_str)]
EndTimeStr = Annotated[str, AfterValidator(validate_end_time_str)]
