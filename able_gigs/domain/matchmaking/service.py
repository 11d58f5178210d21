"""Matchmaking service - find the best nearby workers for a gig"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import MATCH_RADIUS_KM
from ...models import Gig, GigWorkerProfile, User
from ...shared.geo import calculate_distance, parse_coordinates
from ..gigs.repository import GigRepository
from . import gemini_client
from .repository import MatchmakingRepository
from .schemas import MatchmakingResult, WorkerMatch
from .scoring import fallback_matches, find_most_relevant_skill

logger = logging.getLogger(__name__)

TOP_MATCHES = 5


def gig_coordinates(gig: Gig) -> Optional[tuple[float, float]]:
    return parse_coordinates(gig.address_json) or parse_coordinates(gig.exact_location)


def worker_coordinates(profile: Optional[GigWorkerProfile]) -> Optional[tuple[float, float]]:
    if not profile:
        return None
    if profile.latitude is not None and profile.longitude is not None:
        return float(profile.latitude), float(profile.longitude)
    return parse_coordinates(profile.location)


class MatchmakingService:
    """Service layer for AI assisted worker matchmaking"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MatchmakingRepository()

    def _nearby_workers(self, gig: Gig) -> list[tuple[User, float]]:
        """Workers inside the match radius; location is a hard requirement"""
        origin = gig_coordinates(gig)
        if not origin:
            logger.warning(f"⚠️ Gig {gig.id} has no coordinates, no workers can be matched")
            return []

        nearby = []
        for worker in self.repo.get_candidate_workers(self.db, gig.buyer_user_id):
            coords = worker_coordinates(worker.worker_profile)
            if not coords:
                continue
            distance = calculate_distance(origin[0], origin[1], coords[0], coords[1])
            if distance <= MATCH_RADIUS_KM:
                nearby.append((worker, distance))
        return nearby

    async def find_matching_workers(self, gig_id: str, user: User) -> MatchmakingResult:
        gig = GigRepository.get_gig(self.db, gig_id)
        if not gig or gig.buyer_user_id != user.id:
            raise HTTPException(status_code=404, detail="Gig not found")

        nearby = self._nearby_workers(gig)
        logger.info(f"📍 {len(nearby)} workers within {MATCH_RADIUS_KM:g}km of gig {gig.id}")

        availability: dict[str, list[dict]] = {}
        for slot in self.repo.get_availability_for(self.db, [w.id for w, _ in nearby]):
            availability.setdefault(slot.user_id, []).append(
                {"days": slot.days, "startTime": slot.start_time_str, "endTime": slot.end_time_str}
            )

        gig_context = {
            "title": gig.title_internal,
            "description": gig.full_description or "",
            "hourlyRate": gig.agreed_rate,
            "startTime": gig.start_time.isoformat(),
            "endTime": gig.end_time.isoformat(),
            "location": gig.exact_location,
        }
        worker_data = []
        for worker, _ in nearby:
            profile = worker.worker_profile
            worker_data.append(
                {
                    "workerId": worker.id,
                    "workerName": worker.full_name,
                    "bio": profile.full_bio,
                    "location": profile.location,
                    "skills": [
                        {"name": s.name, "experienceYears": s.experience_years or 0, "agreedRate": s.agreed_rate or 0}
                        for s in profile.skills
                    ],
                    "availability": availability.get(worker.id, []),
                }
            )

        used_ai = False
        scored: list[dict] = []
        if worker_data:
            try:
                scored = await gemini_client.rank_workers(gig_context, worker_data)
                used_ai = True
            except gemini_client.MatchingUnavailable as e:
                logger.info(f"🔄 Falling back to rule based matching: {e}")
                scored = fallback_matches(gig_context, worker_data)

        by_id = {w["workerId"]: w for w in worker_data}
        distances = {worker.id: distance for worker, distance in nearby}
        matches = []
        for result in scored:
            worker = by_id[result["workerId"]]
            skill, _ = find_most_relevant_skill(worker["skills"], gig_context["title"], gig_context["description"])
            matches.append(
                WorkerMatch(
                    workerId=worker["workerId"],
                    workerName=worker["workerName"],
                    primarySkill=skill["name"] if skill else "Professional",
                    bio=worker["bio"],
                    location=worker["location"],
                    hourlyRate=skill["agreedRate"] if skill else 0,
                    experienceYears=skill["experienceYears"] if skill else 0,
                    distanceKm=round(distances[worker["workerId"]], 2),
                    matchScore=result["matchScore"],
                    matchReasons=result["matchReasons"],
                    availability=worker["availability"],
                    skills=worker["skills"],
                )
            )

        matches.sort(key=lambda m: m.matchScore, reverse=True)
        return MatchmakingResult(
            matches=matches[:TOP_MATCHES],
            totalWorkersAnalyzed=len(worker_data),
            usedAi=used_ai,
        )
