"""Matchmaking repository - candidate workers for a gig"""

from sqlalchemy.orm import Session, joinedload

from ...models import GigWorkerProfile, User, WorkerAvailability


class MatchmakingRepository:
    """Repository for matchmaking database reads"""

    @staticmethod
    def get_candidate_workers(db: Session, exclude_user_id: str) -> list[User]:
        return (
            db.query(User)
            .join(GigWorkerProfile, GigWorkerProfile.user_id == User.id)
            .options(joinedload(User.worker_profile).joinedload(GigWorkerProfile.skills))
            .filter(
                User.is_gig_worker.is_(True),
                User.is_banned.is_(False),
                User.is_disabled.is_(False),
                User.id != exclude_user_id,
            )
            .all()
        )

    @staticmethod
    def get_availability_for(db: Session, user_ids: list[str]) -> list[WorkerAvailability]:
        if not user_ids:
            return []
        return db.query(WorkerAvailability).filter(WorkerAvailability.user_id.in_(user_ids)).all()
