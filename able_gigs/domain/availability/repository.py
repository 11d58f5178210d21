"""Availability repository - Database operations for worker availability"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import WorkerAvailability


class AvailabilityRepository:
    """Repository for worker availability database operations"""

    @staticmethod
    def get_slot(db: Session, slot_id: str, user_id: str) -> Optional[WorkerAvailability]:
        return (
            db.query(WorkerAvailability)
            .filter(WorkerAvailability.id == slot_id, WorkerAvailability.user_id == user_id)
            .first()
        )

    @staticmethod
    def list_slots(
        db: Session,
        user_id: str,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> list[WorkerAvailability]:
        query = db.query(WorkerAvailability).filter(WorkerAvailability.user_id == user_id)
        if date_from:
            query = query.filter(WorkerAvailability.start_time >= date_from)
        if date_to:
            query = query.filter(WorkerAvailability.end_time <= date_to)
        return query.order_by(WorkerAvailability.start_time.asc()).all()

    @staticmethod
    def find_overlapping(
        db: Session,
        user_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None,
    ) -> list[WorkerAvailability]:
        query = db.query(WorkerAvailability).filter(
            WorkerAvailability.user_id == user_id,
            WorkerAvailability.start_time < end,
            WorkerAvailability.end_time > start,
        )
        if exclude_id:
            query = query.filter(WorkerAvailability.id != exclude_id)
        return query.all()

    @staticmethod
    def create_slot(db: Session, **data) -> WorkerAvailability:
        slot = WorkerAvailability(**data)
        db.add(slot)
        db.commit()
        db.refresh(slot)
        return slot

    @staticmethod
    def delete_slot(db: Session, slot: WorkerAvailability) -> None:
        db.delete(slot)
        db.commit()

    @staticmethod
    def clear_slots(db: Session, user_id: str) -> int:
        deleted = (
            db.query(WorkerAvailability)
            .filter(WorkerAvailability.user_id == user_id)
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted
