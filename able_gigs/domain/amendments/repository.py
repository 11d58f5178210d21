"""Amendment repository - Database operations for gig amendment requests"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import AmendmentStatus, GigAmendmentRequest


class AmendmentRepository:
    """Repository for gig amendment database operations"""

    @staticmethod
    def get_amendment(db: Session, amendment_id: str) -> Optional[GigAmendmentRequest]:
        return db.query(GigAmendmentRequest).filter(GigAmendmentRequest.id == amendment_id).first()

    @staticmethod
    def get_pending_by_requester(db: Session, gig_id: str, requester_id: str) -> Optional[GigAmendmentRequest]:
        return (
            db.query(GigAmendmentRequest)
            .filter(
                GigAmendmentRequest.gig_id == gig_id,
                GigAmendmentRequest.requester_id == requester_id,
                GigAmendmentRequest.status == AmendmentStatus.PENDING.value,
            )
            .order_by(GigAmendmentRequest.created_at.desc())
            .first()
        )

    @staticmethod
    def list_for_gig(db: Session, gig_id: str) -> list[GigAmendmentRequest]:
        return (
            db.query(GigAmendmentRequest)
            .filter(GigAmendmentRequest.gig_id == gig_id)
            .order_by(GigAmendmentRequest.created_at.desc())
            .all()
        )

    @staticmethod
    def create_amendment(db: Session, **data) -> GigAmendmentRequest:
        amendment = GigAmendmentRequest(**data)
        db.add(amendment)
        db.flush()
        return amendment
