"""User domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_phone

RoleName = Literal["BUYER", "GIG_WORKER"]


class RegisterRequest(BaseModel):
    fullName: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = None
    role: RoleName

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class UserResponse(BaseModel):
    id: str
    email: str
    fullName: str
    phone: Optional[str] = None
    appRole: str
    isBuyer: bool
    isGigWorker: bool
    lastRoleUsed: Optional[str] = None
    lastViewVisitedBuyer: Optional[str] = None
    lastViewVisitedWorker: Optional[str] = None
    stripeCustomerId: Optional[str] = None
    stripeConnectAccountId: Optional[str] = None
    canReceivePayouts: bool
    stripeAccountStatus: Optional[str] = None
    workerProfileId: Optional[str] = None
    buyerProfileId: Optional[str] = None


class RoleContextUpdate(BaseModel):
    role: RoleName
    lastViewVisited: Optional[str] = Field(None, max_length=500)


class WorkerProfileUpdate(BaseModel):
    bio: Optional[str] = Field(None, max_length=5000)
    location: Optional[str] = Field(None, max_length=500)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class SkillCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    experience: str = Field(..., description='e.g. "3", "2.5 years", "1 year 6 months"')
    agreedRate: float = Field(..., gt=0)


class SkillUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    experience: Optional[str] = None
    agreedRate: Optional[float] = Field(None, gt=0)


class SkillResponse(BaseModel):
    id: str
    name: str
    experienceYears: float
    experienceMonths: int
    agreedRate: float


class BuyerProfileUpdate(BaseModel):
    companyName: Optional[str] = Field(None, max_length=255)
    vatNumber: Optional[str] = Field(None, max_length=50)
    businessRegistrationNumber: Optional[str] = Field(None, max_length=100)
    billingAddress: Optional[dict] = None


class BuyerProfileResponse(BaseModel):
    id: str
    companyName: Optional[str] = None
    vatNumber: Optional[str] = None
    businessRegistrationNumber: Optional[str] = None
    billingAddress: Optional[dict] = None


class PublicReview(BaseModel):
    id: str
    rating: int
    comment: Optional[str] = None
    type: str
    recommenderName: Optional[str] = None
    createdAt: Optional[datetime] = None


class PublicWorkerProfile(BaseModel):
    workerProfileId: str
    userId: str
    fullName: str
    bio: Optional[str] = None
    location: Optional[str] = None
    skills: list[SkillResponse]
    averageRating: Optional[float] = None
    reviewCount: int
    reviews: list[PublicReview]
