"""Payment repository - Database operations for gig payments"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Payment, PaymentStatus, User


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def create_payment(db: Session, **data) -> Payment:
        payment = Payment(**data)
        db.add(payment)
        db.flush()
        return payment

    @staticmethod
    def get_pending_for_gig(db: Session, gig_id: str) -> list[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.gig_id == gig_id, Payment.status == PaymentStatus.PENDING.value)
            .order_by(Payment.created_at.asc(), Payment.id.asc())
            .all()
        )

    @staticmethod
    def get_captured_total(db: Session, gig_id: str) -> int:
        """Cents already captured for a gig across its completed payments"""
        total = (
            db.query(func.sum(Payment.able_fee_amount + Payment.amount_net_to_worker))
            .filter(Payment.gig_id == gig_id, Payment.status == PaymentStatus.COMPLETED.value)
            .scalar()
        )
        return int(total or 0)

    @staticmethod
    def get_by_payment_intent(db: Session, payment_intent_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.stripe_payment_intent_id == payment_intent_id).first()

    @staticmethod
    def list_for_payer(
        db: Session,
        payer_id: str,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        price_from: Optional[int] = None,
        price_to: Optional[int] = None,
    ) -> list[Payment]:
        query = (
            db.query(Payment)
            .options(joinedload(Payment.gig), joinedload(Payment.receiver))
            .filter(Payment.payer_user_id == payer_id)
        )
        if date_from:
            query = query.filter(Payment.paid_at >= date_from)
        if date_to:
            query = query.filter(Payment.paid_at <= date_to)
        if price_from is not None:
            query = query.filter(Payment.amount_gross >= price_from)
        if price_to is not None:
            query = query.filter(Payment.amount_gross <= price_to)
        return query.order_by(Payment.created_at.desc(), Payment.id.desc()).all()

    @staticmethod
    def get_user_by_connect_account(db: Session, account_id: str) -> Optional[User]:
        return db.query(User).filter(User.stripe_connect_account_id == account_id).first()
