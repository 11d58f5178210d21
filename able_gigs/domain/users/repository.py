"""User repository - Database operations for users, profiles and skills"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import (
    BuyerProfile,
    GigWorkerProfile,
    ModerationStatus,
    Review,
    Skill,
    User,
)


class UserRepository:
    """Repository for user and profile database operations"""

    @staticmethod
    def get_user(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_or_create_worker_profile(db: Session, user: User) -> GigWorkerProfile:
        profile = db.query(GigWorkerProfile).filter(GigWorkerProfile.user_id == user.id).first()
        if not profile:
            profile = GigWorkerProfile(user_id=user.id)
            db.add(profile)
            db.flush()
        return profile

    @staticmethod
    def get_or_create_buyer_profile(db: Session, user: User) -> BuyerProfile:
        profile = db.query(BuyerProfile).filter(BuyerProfile.user_id == user.id).first()
        if not profile:
            profile = BuyerProfile(user_id=user.id)
            db.add(profile)
            db.flush()
        return profile

    @staticmethod
    def get_worker_profile(db: Session, profile_id: str) -> Optional[GigWorkerProfile]:
        return (
            db.query(GigWorkerProfile)
            .options(joinedload(GigWorkerProfile.user), joinedload(GigWorkerProfile.skills))
            .filter(GigWorkerProfile.id == profile_id)
            .first()
        )

    @staticmethod
    def get_skill(db: Session, skill_id: str, worker_profile_id: str) -> Optional[Skill]:
        return (
            db.query(Skill)
            .filter(Skill.id == skill_id, Skill.worker_profile_id == worker_profile_id)
            .first()
        )

    @staticmethod
    def get_public_reviews(db: Session, user_id: str, limit: int = 20) -> list[Review]:
        return (
            db.query(Review)
            .filter(
                Review.target_user_id == user_id,
                Review.is_public.is_(True),
                Review.moderation_status == ModerationStatus.APPROVED.value,
            )
            .order_by(Review.created_at.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_rating_summary(db: Session, user_id: str) -> tuple[Optional[float], int]:
        average, count = (
            db.query(func.avg(Review.rating), func.count(Review.id))
            .filter(
                Review.target_user_id == user_id,
                Review.moderation_status == ModerationStatus.APPROVED.value,
            )
            .one()
        )
        return (round(float(average), 2) if average is not None else None), count
