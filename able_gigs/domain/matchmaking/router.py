"""Matchmaking router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...rate_limiter import ai_match_limiter
from .schemas import MatchmakingResult
from .service import MatchmakingService

router = APIRouter(prefix="/gigs", tags=["Matchmaking"])


def get_matchmaking_service(db: Session = Depends(get_db)) -> MatchmakingService:
    """Dependency injection for MatchmakingService"""
    return MatchmakingService(db)


@router.post("/{gig_id}/matches", response_model=MatchmakingResult, dependencies=[Depends(ai_match_limiter)])
async def find_matching_workers(
    gig_id: str,
    current_user: User = Depends(get_current_user),
    service: MatchmakingService = Depends(get_matchmaking_service),
):
    """Top five nearby workers for the buyer's gig"""
    return await service.find_matching_workers(gig_id, current_user)
