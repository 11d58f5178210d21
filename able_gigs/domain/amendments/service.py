"""Amendment service - requesting and agreeing changes to a booked gig"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import AmendmentStatus, Gig, GigAmendmentRequest, GigStatus, User
from ...shared.geo import describe_location
from ...shared.time_utils import parse_iso_datetime
from ..gigs.repository import GigRepository
from ..notifications.service import NotificationService
from .repository import AmendmentRepository
from .schemas import AmendmentCreate, AmendmentRespond, AmendmentResponse

logger = logging.getLogger(__name__)

AMENDABLE_GIG_STATUSES = {
    GigStatus.PENDING_WORKER_ACCEPTANCE.value,
    GigStatus.PAYMENT_HELD_PENDING_ACCEPTANCE.value,
    GigStatus.ACCEPTED.value,
    GigStatus.IN_PROGRESS.value,
}


def snapshot_gig(gig: Gig) -> dict:
    """Current values of the fields an amendment can change"""
    return {
        "hourly_rate": gig.agreed_rate,
        "start_time": gig.start_time.isoformat() if gig.start_time else None,
        "end_time": gig.end_time.isoformat() if gig.end_time else None,
        "location": gig.exact_location,
        "notes": gig.notes_for_worker,
    }


def apply_amendment(gig: Gig, new_values: dict) -> None:
    """Write agreed changes onto the gig and recompute its totals"""
    try:
        if new_values.get("hourly_rate") is not None:
            rate = float(new_values["hourly_rate"])
            if rate <= 0:
                raise ValueError("Hourly rate must be greater than zero")
            gig.agreed_rate = round(rate, 2)
        if new_values.get("start_time"):
            gig.start_time = parse_iso_datetime(new_values["start_time"])
        if new_values.get("end_time"):
            gig.end_time = parse_iso_datetime(new_values["end_time"])
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid amendment values: {e}") from e

    if gig.end_time <= gig.start_time:
        raise HTTPException(status_code=400, detail="Gig end time must be after start time")

    if "location" in new_values:
        text, address_json = describe_location(new_values["location"])
        if text:
            gig.exact_location = text
            gig.address_json = address_json
    if "notes" in new_values:
        gig.notes_for_worker = new_values["notes"]

    hours = (gig.end_time - gig.start_time).total_seconds() / 3600
    gig.estimated_hours = round(hours, 2)
    gig.total_agreed_price = round(gig.agreed_rate * hours, 2)


def to_response(amendment: GigAmendmentRequest) -> AmendmentResponse:
    return AmendmentResponse(
        id=amendment.id,
        gigId=amendment.gig_id,
        requesterId=amendment.requester_id,
        requestType=amendment.request_type,
        oldValues=amendment.old_values,
        newValues=amendment.new_values,
        reason=amendment.reason,
        status=amendment.status,
        responderNotes=amendment.responder_notes,
        createdAt=amendment.created_at,
        updatedAt=amendment.updated_at,
    )


class AmendmentService:
    """Service layer for gig amendment requests"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AmendmentRepository()
        self.notifications = NotificationService(db)

    def _get_party_gig(self, gig_id: str, user: User) -> Gig:
        gig = GigRepository.get_gig(self.db, gig_id)
        if not gig:
            raise HTTPException(status_code=404, detail="Gig not found")
        if user.id not in (gig.buyer_user_id, gig.worker_user_id):
            raise HTTPException(status_code=403, detail="You are not a party to this gig")
        return gig

    def _get_visible(self, amendment_id: str, user: User) -> GigAmendmentRequest:
        amendment = self.repo.get_amendment(self.db, amendment_id)
        if not amendment:
            raise HTTPException(status_code=404, detail="Amendment not found")
        self._get_party_gig(amendment.gig_id, user)
        return amendment

    def find_existing_amendment(self, gig_id: str, user: User) -> Optional[str]:
        amendment = self.repo.get_pending_by_requester(self.db, gig_id, user.id)
        return amendment.id if amendment else None

    def create_or_update_amendment(
        self, amend_id: str, gig_id: str, user: User, data: AmendmentCreate
    ) -> GigAmendmentRequest:
        """Open a change request ("new") or revise the caller's pending one"""
        gig = self._get_party_gig(gig_id, user)
        if gig.status_internal not in AMENDABLE_GIG_STATUSES:
            raise HTTPException(status_code=400, detail="This gig can no longer be amended")

        if amend_id == "new":
            amendment = self.repo.create_amendment(
                self.db,
                gig_id=gig.id,
                requester_id=user.id,
                request_type=data.requestType,
                old_values=snapshot_gig(gig),
                new_values=data.newValues,
                reason=data.reason,
                status=AmendmentStatus.PENDING.value,
            )
            logger.info(f"🆕 Amendment {amendment.id} requested on gig {gig.id} by {user.id}")
        else:
            amendment = self.repo.get_amendment(self.db, amend_id)
            if not amendment or amendment.gig_id != gig.id or amendment.requester_id != user.id:
                raise HTTPException(status_code=404, detail="Amendment not found")
            if amendment.status != AmendmentStatus.PENDING.value:
                raise HTTPException(status_code=400, detail="Only pending amendments can be edited")
            amendment.request_type = data.requestType
            amendment.new_values = data.newValues
            amendment.reason = data.reason
            logger.info(f"🔄 Amendment {amendment.id} updated by {user.id}")

        counterpart = gig.worker_user_id if user.id == gig.buyer_user_id else gig.buyer_user_id
        self.notifications.notify(
            counterpart,
            "gigAmendment",
            "📝 Gig Change Requested",
            f'{user.full_name or "The other party"} requested changes to "{gig.title_internal}".',
            gig_id=gig.id,
        )
        self.db.commit()
        self.db.refresh(amendment)
        return amendment

    def get_amendment(self, amendment_id: str, user: User) -> GigAmendmentRequest:
        return self._get_visible(amendment_id, user)

    def cancel_amendment(self, amendment_id: str, user: User) -> GigAmendmentRequest:
        amendment = self.repo.get_amendment(self.db, amendment_id)
        if not amendment or amendment.requester_id != user.id:
            raise HTTPException(
                status_code=404, detail="Amendment not found or you don't have permission to cancel it."
            )
        if amendment.status != AmendmentStatus.PENDING.value:
            raise HTTPException(status_code=400, detail="Only pending amendments can be withdrawn")

        amendment.status = AmendmentStatus.WITHDRAWN.value
        self.db.commit()
        self.db.refresh(amendment)
        logger.info(f"🚫 Amendment {amendment.id} withdrawn")
        return amendment

    def respond_to_amendment(self, amendment_id: str, user: User, data: AmendmentRespond) -> GigAmendmentRequest:
        amendment = self._get_visible(amendment_id, user)
        if amendment.requester_id == user.id:
            raise HTTPException(status_code=403, detail="You cannot respond to your own amendment request")
        if amendment.status != AmendmentStatus.PENDING.value:
            raise HTTPException(status_code=400, detail="This amendment has already been answered")

        gig = amendment.gig
        if data.accept:
            if gig.status_internal not in AMENDABLE_GIG_STATUSES:
                raise HTTPException(status_code=400, detail="This gig can no longer be amended")
            apply_amendment(gig, amendment.new_values or {})
            amendment.status = AmendmentStatus.ACCEPTED.value
            title = "✅ Gig Changes Accepted"
        else:
            amendment.status = AmendmentStatus.DECLINED.value
            title = "❌ Gig Changes Declined"
        amendment.responder_notes = data.notes

        self.notifications.notify(
            amendment.requester_id,
            "gigAmendment",
            title,
            f'Your requested changes to "{gig.title_internal}" were {amendment.status.lower()}.',
            gig_id=gig.id,
        )
        self.db.commit()
        self.db.refresh(amendment)

        logger.info(f"✅ Amendment {amendment.id} {amendment.status.lower()} by {user.id}")
        return amendment
