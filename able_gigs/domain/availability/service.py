"""Availability service - worker availability slots and their overlap rules"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import GigStatus, User, WorkerAvailability
from ...shared.time_utils import to_naive_utc
from ..gigs.repository import GigRepository
from .repository import AvailabilityRepository
from .schemas import AvailabilityCreate, AvailabilityResponse, AvailabilityUpdate

logger = logging.getLogger(__name__)

INVALID_RANGE = "Start time must be before end time"
OVERLAPS_AVAILABILITY = "This time period overlaps with an existing availability period"
OVERLAPS_GIG = "This time period overlaps with an accepted gig"

_PATTERN_FIELDS = {
    "days": "days",
    "frequency": "frequency",
    "startDate": "start_date",
    "startTimeStr": "start_time_str",
    "endTimeStr": "end_time_str",
    "ends": "ends",
    "occurrences": "occurrences",
    "endDate": "end_date",
    "notes": "notes",
}


def validate_time_range(start: datetime, end: datetime) -> bool:
    return start < end


def check_availability_overlap(
    db: Session, user_id: str, start: datetime, end: datetime, exclude_id: Optional[str] = None
) -> bool:
    return bool(AvailabilityRepository.find_overlapping(db, user_id, start, end, exclude_id))


def check_gig_overlap(db: Session, user_id: str, start: datetime, end: datetime) -> bool:
    return bool(GigRepository.find_overlapping_gigs(db, user_id, start, end, [GigStatus.ACCEPTED.value]))


def validate_availability(
    db: Session,
    user_id: str,
    start: datetime,
    end: datetime,
    exclude_id: Optional[str] = None,
) -> list[str]:
    """Every reason the slot cannot be saved; empty when it can"""
    if not validate_time_range(start, end):
        # Overlap checks are meaningless on an inverted range
        return [INVALID_RANGE]

    errors = []
    if check_availability_overlap(db, user_id, start, end, exclude_id):
        errors.append(OVERLAPS_AVAILABILITY)
    if check_gig_overlap(db, user_id, start, end):
        errors.append(OVERLAPS_GIG)
    return errors


def to_response(slot: WorkerAvailability) -> AvailabilityResponse:
    return AvailabilityResponse(
        id=slot.id,
        userId=slot.user_id,
        startTime=slot.start_time,
        endTime=slot.end_time,
        notes=slot.notes,
        days=slot.days,
        frequency=slot.frequency,
        startDate=slot.start_date,
        startTimeStr=slot.start_time_str,
        endTimeStr=slot.end_time_str,
        ends=slot.ends,
        occurrences=slot.occurrences,
        endDate=slot.end_date,
        createdAt=slot.created_at,
        updatedAt=slot.updated_at,
    )


class AvailabilityService:
    """Service layer for worker availability"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AvailabilityRepository()

    def _require_worker(self, user: User) -> None:
        if not user.is_gig_worker:
            raise HTTPException(status_code=403, detail="Only gig workers can manage availability")

    def _check(self, user: User, start: datetime, end: datetime, exclude_id: Optional[str] = None) -> None:
        errors = validate_availability(self.db, user.id, start, end, exclude_id)
        if errors:
            logger.warning(f"⚠️ Availability rejected for user {user.id}: {errors}")
            raise HTTPException(status_code=400, detail=", ".join(errors))

    def create_availability(self, user: User, data: AvailabilityCreate) -> WorkerAvailability:
        self._require_worker(user)
        start, end = to_naive_utc(data.startTime), to_naive_utc(data.endTime)
        self._check(user, start, end)

        fields = {column: getattr(data, attr) for attr, column in _PATTERN_FIELDS.items()}
        slot = self.repo.create_slot(self.db, user_id=user.id, start_time=start, end_time=end, **fields)
        logger.info(f"✅ Availability {slot.id} created for user {user.id}")
        return slot

    def list_availability(
        self, user: User, date_from: Optional[datetime] = None, date_to: Optional[datetime] = None
    ) -> list[WorkerAvailability]:
        return self.repo.list_slots(
            self.db,
            user.id,
            to_naive_utc(date_from) if date_from else None,
            to_naive_utc(date_to) if date_to else None,
        )

    def update_availability(self, user: User, slot_id: str, data: AvailabilityUpdate) -> WorkerAvailability:
        slot = self.repo.get_slot(self.db, slot_id, user.id)
        if not slot:
            raise HTTPException(status_code=404, detail="Availability slot not found")

        start = to_naive_utc(data.startTime) if data.startTime else slot.start_time
        end = to_naive_utc(data.endTime) if data.endTime else slot.end_time
        if data.startTime or data.endTime:
            self._check(user, start, end, exclude_id=slot.id)
        slot.start_time, slot.end_time = start, end

        for attr, column in _PATTERN_FIELDS.items():
            if attr in data.model_fields_set:
                setattr(slot, column, getattr(data, attr))

        self.db.commit()
        self.db.refresh(slot)
        return slot

    def delete_availability(self, user: User, slot_id: str) -> dict:
        slot = self.repo.get_slot(self.db, slot_id, user.id)
        if not slot:
            raise HTTPException(status_code=404, detail="Availability slot not found")
        self.repo.delete_slot(self.db, slot)
        return {"message": "Availability deleted"}

    def clear_availability(self, user: User) -> dict:
        deleted = self.repo.clear_slots(self.db, user.id)
        logger.info(f"🗑️ Cleared {deleted} availability slots for user {user.id}")
        return {"message": "Availability cleared", "deletedCount": deleted}
