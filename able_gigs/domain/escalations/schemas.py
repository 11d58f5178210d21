"""Escalation schemas - support escalations and incident reports"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import require_text
from .detection import INCIDENT_TYPES

ContextType = Literal["onboarding", "support", "gig_issue", "payment", "technical", "chat"]
IssueStatus = Literal["OPEN", "IN_PROGRESS", "RESOLVED", "CLOSED"]


class EscalationCreate(BaseModel):
    issueType: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=5000)
    gigId: Optional[str] = None
    contextType: Optional[ContextType] = None

    @field_validator("issueType", "description")
    @classmethod
    def strip_text(cls, v, info):
        return require_text(v, info.field_name)


class IncidentReportCreate(BaseModel):
    incidentType: str
    description: str = Field(..., min_length=10, max_length=5000)
    gigId: Optional[str] = None

    @field_validator("incidentType")
    @classmethod
    def validate_incident_type(cls, v):
        if v not in INCIDENT_TYPES:
            raise ValueError(f"Incident type must be one of: {', '.join(INCIDENT_TYPES)}")
        return v


class IncidentDetectRequest(BaseModel):
    text: str = Field(..., max_length=5000)


class IssueUpdate(BaseModel):
    status: Optional[IssueStatus] = None
    resolutionNotes: Optional[str] = Field(None, max_length=5000)


class IssueResponse(BaseModel):
    id: str
    incidentId: Optional[str] = None
    userId: str
    gigId: Optional[str] = None
    issueType: Optional[str] = None
    contextType: Optional[str] = None
    description: Optional[str] = None
    severity: Optional[str] = None
    status: str
    adminUserId: Optional[str] = None
    resolutionNotes: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class IncidentReportResponse(BaseModel):
    success: bool = True
    incidentId: str
    severity: str
    message: str
