"""Gig domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class GigCreate(BaseModel):
    """Schema for posting a new gig offer"""

    gigDescription: str = Field(..., min_length=1)
    additionalInstructions: Optional[str] = None
    hourlyRate: Union[float, str]
    gigLocation: Optional[Union[str, dict[str, Any]]] = None
    gigDate: str = Field(..., description="YYYY-MM-DD")
    gigTime: Optional[str] = Field(None, description='"HH:MM", "HH:MM-HH:MM" or "HH:MM to HH:MM"')
    discountCode: Optional[str] = None

    @field_validator("hourlyRate")
    @classmethod
    def coerce_rate(cls, v):
        try:
            rate = float(v)
        except (TypeError, ValueError) as e:
            raise ValueError("Hourly rate must be a number") from e
        if rate <= 0:
            raise ValueError("Hourly rate must be greater than zero")
        return rate


class GigCreatedResponse(BaseModel):
    gigId: str
    status: str
    startTime: datetime
    endTime: datetime
    estimatedHours: float
    totalAgreedPrice: float


class GigDetails(BaseModel):
    id: str
    gigTitle: str
    description: Optional[str] = None
    buyerName: str
    workerName: Optional[str] = None
    date: str
    startTime: datetime
    endTime: datetime
    duration: str
    location: str
    hourlyRate: float
    estimatedEarnings: float
    specialInstructions: Optional[str] = None
    status: str
    statusInternal: str
    hiringManager: str
    hiringManagerUsername: str


class WorkerGigOffer(BaseModel):
    id: str
    role: str
    buyerName: str
    locationSnippet: str
    dateString: str
    timeString: str
    hourlyRate: float
    estimatedHours: float
    totalPay: float
    status: str
    gigDescription: Optional[str] = None
    notesForWorker: Optional[str] = None


class WorkerOffersResponse(BaseModel):
    offers: list[WorkerGigOffer]
    acceptedGigs: list[WorkerGigOffer]


class BuyerGigSummary(BaseModel):
    id: str
    title: str
    status: str
    startTime: datetime
    endTime: datetime
    hourlyRate: float
    totalAgreedPrice: Optional[float] = None
    workerName: Optional[str] = None


class GigActionResponse(BaseModel):
    gigId: str
    status: str
    message: str


class OfferStatusUpdate(BaseModel):
    role: Literal["buyer", "worker"]
    action: Literal["accept", "cancel"]
    reason: Optional[str] = Field(None, max_length=2000)


class DelegateRequest(BaseModel):
    newWorkerId: str
    reason: Optional[str] = Field(None, max_length=2000)


class DelegateCandidate(BaseModel):
    id: str
    name: str
    username: str
    primarySkill: str
    experienceYears: float
    hourlyRate: float
    bio: str
    location: str
