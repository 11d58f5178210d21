"""Gig repository - Database operations for gigs"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from ...models import (
    DiscountCode,
    Gig,
    GigWorkerProfile,
    Payment,
    Skill,
    User,
)
from .state import OPEN_OFFER_STATUSES, WORKER_ACTIVE_STATUSES


class GigRepository:
    """Repository for gig database operations"""

    @staticmethod
    def get_gig(db: Session, gig_id: str) -> Optional[Gig]:
        return (
            db.query(Gig)
            .options(joinedload(Gig.buyer), joinedload(Gig.worker))
            .filter(Gig.id == gig_id)
            .first()
        )

    @staticmethod
    def get_gig_for_buyer(db: Session, gig_id: str, buyer_id: str) -> Optional[Gig]:
        return db.query(Gig).filter(Gig.id == gig_id, Gig.buyer_user_id == buyer_id).first()

    @staticmethod
    def get_gig_for_worker(db: Session, gig_id: str, worker_id: str) -> Optional[Gig]:
        return db.query(Gig).filter(Gig.id == gig_id, Gig.worker_user_id == worker_id).first()

    @staticmethod
    def get_open_offer(db: Session, gig_id: str) -> Optional[Gig]:
        """A gig no worker holds yet, still waiting for acceptance"""
        return (
            db.query(Gig)
            .filter(
                Gig.id == gig_id,
                Gig.worker_user_id.is_(None),
                Gig.status_internal.in_(OPEN_OFFER_STATUSES),
            )
            .first()
        )

    @staticmethod
    def create_gig(db: Session, **gig_data) -> Gig:
        gig = Gig(**gig_data)
        db.add(gig)
        db.commit()
        db.refresh(gig)
        return gig

    @staticmethod
    def list_open_offers(db: Session, worker_id: str) -> list[Gig]:
        """Offers any worker may take, minus the worker's own postings"""
        return (
            db.query(Gig)
            .filter(
                Gig.status_internal.in_(OPEN_OFFER_STATUSES),
                Gig.worker_user_id.is_(None),
                Gig.buyer_user_id != worker_id,
            )
            .order_by(Gig.start_time.asc())
            .all()
        )

    @staticmethod
    def list_worker_gigs(db: Session, worker_id: str) -> list[Gig]:
        return (
            db.query(Gig)
            .filter(Gig.worker_user_id == worker_id, Gig.status_internal.in_(WORKER_ACTIVE_STATUSES))
            .order_by(Gig.start_time.asc())
            .all()
        )

    @staticmethod
    def list_buyer_gigs(db: Session, buyer_id: str, status: Optional[str] = None) -> list[Gig]:
        query = db.query(Gig).options(joinedload(Gig.worker)).filter(Gig.buyer_user_id == buyer_id)
        if status:
            query = query.filter(Gig.status_internal == status)
        return query.order_by(Gig.created_at.desc(), Gig.start_time.desc()).all()

    @staticmethod
    def find_overlapping_gigs(
        db: Session,
        worker_id: str,
        start: datetime,
        end: datetime,
        statuses: list[str],
        exclude_gig_id: Optional[str] = None,
    ) -> list[Gig]:
        query = db.query(Gig).filter(
            Gig.worker_user_id == worker_id,
            Gig.status_internal.in_(statuses),
            Gig.start_time < end,
            Gig.end_time > start,
        )
        if exclude_gig_id:
            query = query.filter(Gig.id != exclude_gig_id)
        return query.all()

    @staticmethod
    def count_payments(db: Session, gig_id: str) -> int:
        return db.query(func.count(Payment.id)).filter(Payment.gig_id == gig_id).scalar()

    @staticmethod
    def delete_gig(db: Session, gig: Gig) -> None:
        db.delete(gig)
        db.commit()

    @staticmethod
    def get_active_discount_code(db: Session, code: str) -> Optional[DiscountCode]:
        discount = (
            db.query(DiscountCode)
            .filter(func.upper(DiscountCode.code) == code.strip().upper(), DiscountCode.is_active.is_(True))
            .first()
        )
        if discount and discount.expires_at and discount.expires_at < datetime.utcnow():
            return None
        return discount

    @staticmethod
    def search_workers(
        db: Session, exclude_user_ids: list[str], term: str = "", limit: int = 20
    ) -> list[User]:
        """Active gig workers whose name, email or skill matches `term`"""
        query = (
            db.query(User)
            .join(GigWorkerProfile, GigWorkerProfile.user_id == User.id)
            .outerjoin(Skill, Skill.worker_profile_id == GigWorkerProfile.id)
            .options(joinedload(User.worker_profile).joinedload(GigWorkerProfile.skills))
            .filter(
                User.is_gig_worker.is_(True),
                User.is_banned.is_(False),
                User.is_disabled.is_(False),
                User.id.notin_([uid for uid in exclude_user_ids if uid]),
            )
        )
        if term:
            pattern = f"%{term.lower()}%"
            query = query.filter(
                or_(
                    func.lower(User.full_name).like(pattern),
                    func.lower(User.email).like(pattern),
                    func.lower(Skill.name).like(pattern),
                )
            )
        return query.distinct().order_by(User.full_name).limit(limit).all()
