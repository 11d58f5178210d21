"""Review service - post-gig feedback and external recommendations"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import GigStatus, ModerationStatus, Review, ReviewType, RoleContext, User
from ..gigs.repository import GigRepository
from ..notifications.service import NotificationService
from ..users.repository import UserRepository
from .repository import ReviewRepository
from .schemas import (
    GigFeedbackCreate,
    RecommendationCreate,
    RecommendationSkill,
    ReviewResponse,
    WorkerForRecommendation,
)

logger = logging.getLogger(__name__)

REVIEWABLE_STATUSES = {
    GigStatus.COMPLETED.value,
    GigStatus.AWAITING_PAYMENT.value,
    GigStatus.PAID.value,
}


def to_response(review: Review) -> ReviewResponse:
    return ReviewResponse(
        id=review.id,
        gigId=review.gig_id,
        targetUserId=review.target_user_id,
        rating=review.rating,
        comment=review.comment,
        wouldWorkAgain=review.would_work_again,
        type=review.type,
        moderationStatus=review.moderation_status,
        targetRole=review.target_role,
        createdAt=review.created_at,
    )


class ReviewService:
    """Service layer for reviews"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository()
        self.notifications = NotificationService(db)

    def submit_gig_feedback(self, gig_id: str, author: User, data: GigFeedbackCreate) -> Review:
        gig = GigRepository.get_gig(self.db, gig_id)
        if not gig or author.id not in (gig.buyer_user_id, gig.worker_user_id):
            raise HTTPException(status_code=404, detail="Gig not found")
        if gig.status_internal not in REVIEWABLE_STATUSES:
            raise HTTPException(status_code=400, detail="Feedback can only be left once the gig is completed")

        if author.id == gig.buyer_user_id:
            target_id, target_role = gig.worker_user_id, RoleContext.GIG_WORKER.value
        else:
            target_id, target_role = gig.buyer_user_id, RoleContext.BUYER.value

        if self.repo.find_review(self.db, gig.id, author.id, target_id):
            raise HTTPException(status_code=409, detail="You have already left feedback for this gig")

        review = self.repo.create_review(
            self.db,
            gig_id=gig.id,
            author_user_id=author.id,
            target_user_id=target_id,
            rating=data.rating,
            comment=data.comment.strip() if data.comment else None,
            would_work_again=data.wouldWorkAgain,
            type=ReviewType.INTERNAL_PLATFORM.value,
            moderation_status=ModerationStatus.PENDING.value,
            target_role=target_role,
        )
        self.notifications.notify(
            target_id,
            "review",
            "⭐ New Feedback",
            f'{author.full_name or "Someone"} left you feedback for "{gig.title_internal}".',
            gig_id=gig.id,
        )
        self.db.commit()
        self.db.refresh(review)

        logger.info(f"✅ Feedback {review.id} left on gig {gig.id} by {author.id}")
        return review

    def get_worker_for_recommendation(self, worker_profile_id: str) -> WorkerForRecommendation:
        profile = UserRepository.get_worker_profile(self.db, worker_profile_id)
        if not profile or not profile.user:
            raise HTTPException(status_code=404, detail="Worker profile not found")

        return WorkerForRecommendation(
            userName=profile.user.full_name,
            skills=[RecommendationSkill(id=s.id, name=s.name) for s in profile.skills],
        )

    def submit_external_recommendation(self, worker_profile_id: str, data: RecommendationCreate) -> Review:
        profile = UserRepository.get_worker_profile(self.db, worker_profile_id)
        if not profile:
            raise HTTPException(
                status_code=404, detail="Could not find the worker profile to add a recommendation to."
            )
        if not UserRepository.get_skill(self.db, data.skillId, profile.id):
            raise HTTPException(status_code=400, detail="Skill does not belong to this worker")

        review = self.repo.create_review(
            self.db,
            target_user_id=profile.user_id,
            skill_id=data.skillId,
            comment=data.recommendationText,
            relationship_to_target=data.relationship,
            recommender_name=data.recommenderName,
            recommender_email=str(data.recommenderEmail),
            type=ReviewType.EXTERNAL_REQUESTED.value,
            rating=5,
            moderation_status=ModerationStatus.PENDING.value,
            is_public=True,
            target_role=RoleContext.GIG_WORKER.value,
        )
        self.db.commit()
        self.db.refresh(review)

        logger.info(f"🆕 External recommendation {review.id} submitted for worker profile {profile.id}")
        return review
