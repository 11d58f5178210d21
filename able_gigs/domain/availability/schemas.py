"""Availability schemas - Pydantic models for worker availability slots"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

_CLOCK_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class RecurrencePattern(BaseModel):
    """Optional weekly-style pattern kept alongside a slot"""

    days: Optional[list[str]] = None
    frequency: Optional[Literal["never", "weekly", "biweekly", "monthly"]] = None
    startDate: Optional[str] = Field(None, pattern=_DATE_PATTERN)
    startTimeStr: Optional[str] = Field(None, pattern=_CLOCK_PATTERN)
    endTimeStr: Optional[str] = Field(None, pattern=_CLOCK_PATTERN)
    ends: Optional[Literal["never", "on_date", "after_occurrences"]] = None
    occurrences: Optional[int] = Field(None, ge=1, le=365)
    endDate: Optional[str] = Field(None, pattern=_DATE_PATTERN)

    @field_validator("days")
    @classmethod
    def validate_days(cls, v):
        if v is None:
            return v
        allowed = {"Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"}
        unknown = [d for d in v if d not in allowed]
        if unknown:
            raise ValueError(f"Unknown days: {', '.join(unknown)}")
        return v


class AvailabilityCreate(RecurrencePattern):
    startTime: datetime
    endTime: datetime
    notes: Optional[str] = Field(None, max_length=1000)


class AvailabilityUpdate(RecurrencePattern):
    startTime: Optional[datetime] = None
    endTime: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=1000)


class AvailabilityResponse(BaseModel):
    id: str
    userId: str
    startTime: datetime
    endTime: datetime
    notes: Optional[str] = None
    days: Optional[list[str]] = None
    frequency: Optional[str] = None
    startDate: Optional[str] = None
    startTimeStr: Optional[str] = None
    endTimeStr: Optional[str] = None
    ends: Optional[str] = None
    occurrences: Optional[int] = None
    endDate: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
