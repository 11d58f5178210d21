"""Matchmaking schemas"""

from typing import Optional

from pydantic import BaseModel


class MatchSkill(BaseModel):
    name: str
    experienceYears: float
    agreedRate: float


class MatchAvailability(BaseModel):
    days: Optional[list[str]] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None


class WorkerMatch(BaseModel):
    workerId: str
    workerName: str
    primarySkill: str
    bio: Optional[str] = None
    location: Optional[str] = None
    hourlyRate: float
    experienceYears: float
    distanceKm: float
    matchScore: int
    matchReasons: list[str]
    availability: list[MatchAvailability]
    skills: list[MatchSkill]


class MatchmakingResult(BaseModel):
    matches: list[WorkerMatch]
    totalWorkersAnalyzed: int
    usedAi: bool
