"""Review router - gig feedback and public recommendation form"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...rate_limiter import public_form_limiter
from .schemas import GigFeedbackCreate, RecommendationCreate, ReviewResponse, WorkerForRecommendation
from .service import ReviewService, to_response

router = APIRouter(prefix="/reviews", tags=["Reviews"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db)


@router.post("/gigs/{gig_id}", response_model=ReviewResponse, status_code=201)
async def submit_gig_feedback(
    gig_id: str,
    data: GigFeedbackCreate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return to_response(service.submit_gig_feedback(gig_id, current_user, data))


@router.get("/recommendations/{worker_profile_id}", response_model=WorkerForRecommendation)
async def get_worker_for_recommendation(
    worker_profile_id: str,
    service: ReviewService = Depends(get_review_service),
):
    """Public: worker name and skills for the recommendation form"""
    return service.get_worker_for_recommendation(worker_profile_id)


@router.post(
    "/recommendations/{worker_profile_id}",
    status_code=201,
    dependencies=[Depends(public_form_limiter)],
)
async def submit_external_recommendation(
    worker_profile_id: str,
    data: RecommendationCreate,
    service: ReviewService = Depends(get_review_service),
):
    """Public: submit a recommendation for a worker, held for moderation"""
    review = service.submit_external_recommendation(worker_profile_id, data)
    return {"success": True, "id": review.id}
