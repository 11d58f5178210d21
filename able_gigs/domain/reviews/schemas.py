"""Review schemas - gig feedback and external recommendations"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class GigFeedbackCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)
    wouldWorkAgain: Optional[bool] = None


class RecommendationCreate(BaseModel):
    recommendationText: str = Field(..., max_length=2000)
    relationship: str = Field(..., max_length=255)
    recommenderName: str = Field(..., max_length=255)
    recommenderEmail: EmailStr
    skillId: str

    @field_validator("recommendationText", "relationship", "recommenderName", "skillId")
    @classmethod
    def require_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("All fields are required to submit a recommendation.")
        return v


class ReviewResponse(BaseModel):
    id: str
    gigId: Optional[str] = None
    targetUserId: str
    rating: int
    comment: Optional[str] = None
    wouldWorkAgain: Optional[bool] = None
    type: str
    moderationStatus: str
    targetRole: Optional[str] = None
    createdAt: Optional[datetime] = None


class RecommendationSkill(BaseModel):
    id: str
    name: str


class WorkerForRecommendation(BaseModel):
    userName: str
    skills: list[RecommendationSkill]
