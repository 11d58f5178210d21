"""Amendment schemas - Pydantic models for gig change requests"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

AMENDABLE_FIELDS = {"hourly_rate", "start_time", "end_time", "location", "notes"}


class AmendmentCreate(BaseModel):
    requestType: str = Field(..., min_length=1, max_length=50)
    newValues: dict[str, Any]
    reason: Optional[str] = Field(None, max_length=2000)

    @field_validator("newValues")
    @classmethod
    def validate_new_values(cls, v):
        if not v:
            raise ValueError("At least one change is required")
        unknown = set(v) - AMENDABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported fields: {', '.join(sorted(unknown))}")
        return v


class AmendmentRespond(BaseModel):
    accept: bool
    notes: Optional[str] = Field(None, max_length=2000)


class ExistingAmendment(BaseModel):
    amendId: Optional[str] = None


class AmendmentResponse(BaseModel):
    id: str
    gigId: str
    requesterId: str
    requestType: str
    oldValues: Optional[dict[str, Any]] = None
    newValues: dict[str, Any]
    reason: Optional[str] = None
    status: str
    responderNotes: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
