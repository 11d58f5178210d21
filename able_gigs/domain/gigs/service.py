"""Gig service - Business logic for gig offers and their lifecycle"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import ABLE_FEE_PERCENT
from ...models import CancellationParty, Gig, GigStatus, ModerationStatus, User
from ...shared.geo import describe_location
from ...shared.time_utils import build_gig_window, parse_gig_date
from ..notifications.service import NotificationService
from ..users.repository import UserRepository
from .repository import GigRepository
from .schemas import (
    BuyerGigSummary,
    DelegateCandidate,
    DelegateRequest,
    GigActionResponse,
    GigCreate,
    GigCreatedResponse,
    GigDetails,
    OfferStatusUpdate,
    WorkerGigOffer,
    WorkerOffersResponse,
)
from .state import (
    DELEGABLE_STATUSES,
    display_status,
    transition,
)

logger = logging.getLogger(__name__)

DEFAULT_LOCATION_TEXT = "Location details provided"


def location_snippet(gig: Gig) -> str:
    """Short location line for offer cards"""
    address = gig.address_json if isinstance(gig.address_json, dict) else {}
    if address.get("formatted_address"):
        return address["formatted_address"]
    if address.get("address"):
        return address["address"]
    if address.get("city") and address.get("country"):
        return f"{address['city']}, {address['country']}"
    return gig.exact_location or "Location not specified"


def _format_clock(value: datetime) -> str:
    return value.strftime("%I:%M %p").lstrip("0")


def _hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


class GigService:
    """Service layer for gig business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = GigRepository()
        self.notifications = NotificationService(db)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_gig(self, gig_id: str) -> Gig:
        gig = self.repo.get_gig(self.db, gig_id)
        if not gig:
            raise HTTPException(status_code=404, detail="Gig not found")
        return gig

    def get_gig_for_party(self, gig_id: str, user: User) -> Gig:
        """Gig the user is buyer or assigned worker of"""
        gig = self.get_gig(gig_id)
        if user.id not in (gig.buyer_user_id, gig.worker_user_id):
            raise HTTPException(status_code=403, detail="You are not a party to this gig")
        return gig

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_gig(self, data: GigCreate, buyer: User) -> GigCreatedResponse:
        """Post a new gig offer for workers to pick up"""
        logger.info(f"📥 Creating gig for buyer {buyer.id}")

        try:
            gig_date = parse_gig_date(data.gigDate)
            start, end, hours = build_gig_window(gig_date, data.gigTime)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        exact_location, address_json = describe_location(data.gigLocation)

        discount = None
        if data.discountCode:
            discount = self.repo.get_active_discount_code(self.db, data.discountCode)
            if not discount:
                raise HTTPException(status_code=400, detail="Invalid or expired discount code")

        description = data.gigDescription.strip()
        rate = round(data.hourlyRate, 2)

        gig = self.repo.create_gig(
            self.db,
            buyer_user_id=buyer.id,
            title_internal=description[:255],
            full_description=description,
            notes_for_worker=data.additionalInstructions,
            exact_location=exact_location or DEFAULT_LOCATION_TEXT,
            address_json=address_json,
            start_time=start,
            end_time=end,
            agreed_rate=rate,
            estimated_hours=round(hours, 2),
            total_agreed_price=round(rate * hours, 2),
            status_internal=GigStatus.PENDING_WORKER_ACCEPTANCE.value,
            moderation_status=ModerationStatus.PENDING.value,
            able_fee_percent=ABLE_FEE_PERCENT,
            discount_code_id=discount.id if discount else None,
            promo_code_applied=discount.code if discount else None,
        )

        logger.info(f"✅ Gig {gig.id} created ({hours:.2f}h at {rate})")
        return GigCreatedResponse(
            gigId=gig.id,
            status=gig.status_internal,
            startTime=gig.start_time,
            endTime=gig.end_time,
            estimatedHours=gig.estimated_hours,
            totalAgreedPrice=gig.total_agreed_price,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_gig_details(self, gig_id: str, user: User, role: str) -> GigDetails:
        if role == "buyer":
            gig = self.repo.get_gig_for_buyer(self.db, gig_id, user.id)
        else:
            gig = self.repo.get_gig_for_worker(self.db, gig_id, user.id) or self.repo.get_open_offer(
                self.db, gig_id
            )
        if not gig:
            raise HTTPException(status_code=404, detail="Gig not found")

        hours = _hours_between(gig.start_time, gig.end_time)
        buyer_name = gig.buyer.full_name if gig.buyer else "Unknown"

        return GigDetails(
            id=gig.id,
            gigTitle=gig.title_internal,
            description=gig.full_description,
            buyerName=buyer_name,
            workerName=gig.worker.full_name if gig.worker else None,
            date=gig.start_time.date().isoformat(),
            startTime=gig.start_time,
            endTime=gig.end_time,
            duration=f"{round(hours, 2):g} hours",
            location=gig.exact_location or "location not specified",
            hourlyRate=gig.agreed_rate,
            estimatedEarnings=gig.total_agreed_price or round(gig.agreed_rate * hours, 2),
            specialInstructions=gig.notes_for_worker,
            status=display_status(gig.status_internal),
            statusInternal=gig.status_internal,
            hiringManager=buyer_name,
            hiringManagerUsername=gig.buyer.email if gig.buyer else "",
        )

    def _offer_card(self, gig: Gig, status: str) -> WorkerGigOffer:
        hours = _hours_between(gig.start_time, gig.end_time)
        return WorkerGigOffer(
            id=gig.id,
            role=gig.title_internal,
            buyerName=gig.buyer.full_name if gig.buyer else "Unknown",
            locationSnippet=location_snippet(gig),
            dateString=gig.start_time.strftime("%d/%m/%y"),
            timeString=f"{_format_clock(gig.start_time)} - {_format_clock(gig.end_time)}",
            hourlyRate=gig.agreed_rate,
            estimatedHours=round(hours, 2),
            totalPay=round(gig.agreed_rate * hours, 2),
            status=status,
            gigDescription=gig.full_description,
            notesForWorker=gig.notes_for_worker,
        )

    def get_worker_offers(self, worker: User) -> WorkerOffersResponse:
        """Open offers the worker could take plus the gigs they already hold"""
        offers = self.repo.list_open_offers(self.db, worker.id)
        accepted = self.repo.list_worker_gigs(self.db, worker.id)
        return WorkerOffersResponse(
            offers=[self._offer_card(g, "pending") for g in offers],
            acceptedGigs=[self._offer_card(g, g.status_internal.lower()) for g in accepted],
        )

    def get_buyer_gigs(self, buyer: User, status: Optional[str] = None) -> list[BuyerGigSummary]:
        if status:
            try:
                status = GigStatus(status.upper()).value
            except ValueError as e:
                raise HTTPException(status_code=400, detail=f"Unknown gig status: {status}") from e

        return [
            BuyerGigSummary(
                id=g.id,
                title=g.title_internal,
                status=g.status_internal,
                startTime=g.start_time,
                endTime=g.end_time,
                hourlyRate=g.agreed_rate,
                totalAgreedPrice=g.total_agreed_price,
                workerName=g.worker.full_name if g.worker else None,
            )
            for g in self.repo.list_buyer_gigs(self.db, buyer.id, status)
        ]

    # ------------------------------------------------------------------
    # Offer responses
    # ------------------------------------------------------------------

    def _get_open_offer(self, gig_id: str, worker: User) -> Gig:
        gig = self.repo.get_open_offer(self.db, gig_id)
        if not gig:
            raise HTTPException(status_code=404, detail="Gig offer not found or no longer available")
        if gig.buyer_user_id == worker.id:
            raise HTTPException(status_code=400, detail="You cannot accept your own gig")
        return gig

    def accept_gig_offer(self, gig_id: str, worker: User) -> GigActionResponse:
        if not worker.is_gig_worker:
            raise HTTPException(status_code=403, detail="Only gig workers can accept gig offers")

        gig = self._get_open_offer(gig_id, worker)

        clashes = self.repo.find_overlapping_gigs(
            self.db, worker.id, gig.start_time, gig.end_time, [GigStatus.ACCEPTED.value], gig.id
        )
        if clashes:
            raise HTTPException(status_code=409, detail="You already have an accepted gig at this time")

        transition(gig, GigStatus.ACCEPTED)
        gig.worker_user_id = worker.id

        self.notifications.notify(
            gig.buyer_user_id,
            "gigAccepted",
            "✅ Gig Accepted",
            f'{worker.full_name or "A worker"} accepted your gig "{gig.title_internal}".',
            path=f"/user/{gig.buyer_user_id}/buyer/gigs/{gig.id}",
            gig_id=gig.id,
        )
        self.db.commit()

        logger.info(f"✅ Worker {worker.id} accepted gig {gig.id}")
        return GigActionResponse(gigId=gig.id, status=gig.status_internal, message="Gig offer accepted")

    def decline_gig_offer(self, gig_id: str, worker: User) -> GigActionResponse:
        gig = self._get_open_offer(gig_id, worker)
        transition(gig, GigStatus.DECLINED_BY_WORKER)

        self.notifications.notify(
            gig.buyer_user_id,
            "gigDeclined",
            "Gig Declined",
            f'Your gig "{gig.title_internal}" was declined.',
            path=f"/user/{gig.buyer_user_id}/buyer/gigs/{gig.id}",
            gig_id=gig.id,
        )
        self.db.commit()

        logger.info(f"🚫 Worker {worker.id} declined gig {gig.id}")
        return GigActionResponse(gigId=gig.id, status=gig.status_internal, message="Gig offer declined")

    def update_gig_offer_status(self, gig_id: str, user: User, data: OfferStatusUpdate) -> GigActionResponse:
        """Accept or cancel a gig acting as its buyer or worker"""
        if data.action == "accept":
            if data.role != "worker":
                raise HTTPException(status_code=400, detail="Only workers can accept gig offers")
            return self.accept_gig_offer(gig_id, user)

        if data.role == "buyer":
            gig = self.repo.get_gig_for_buyer(self.db, gig_id, user.id)
            target, party, counterpart = (
                GigStatus.CANCELLED_BY_BUYER,
                CancellationParty.BUYER,
                gig.worker_user_id if gig else None,
            )
        else:
            gig = self.repo.get_gig_for_worker(self.db, gig_id, user.id)
            target, party, counterpart = (
                GigStatus.CANCELLED_BY_WORKER,
                CancellationParty.WORKER,
                gig.buyer_user_id if gig else None,
            )
        if not gig:
            raise HTTPException(status_code=404, detail="Gig not found")

        transition(gig, target)
        gig.cancellation_party = party.value
        gig.cancellation_reason = data.reason

        self.notifications.notify(
            counterpart,
            "gigCancelled",
            "⚠️ Gig Cancelled",
            f'The gig "{gig.title_internal}" has been cancelled.',
            gig_id=gig.id,
        )
        self.db.commit()

        logger.info(f"🚫 Gig {gig.id} cancelled by {party.value.lower()} {user.id}")
        return GigActionResponse(gigId=gig.id, status=gig.status_internal, message="Gig cancelled")

    # ------------------------------------------------------------------
    # Running the gig
    # ------------------------------------------------------------------

    def start_gig(self, gig_id: str, worker: User) -> GigActionResponse:
        gig = self.repo.get_gig_for_worker(self.db, gig_id, worker.id)
        if not gig:
            raise HTTPException(status_code=404, detail="Gig not found")

        transition(gig, GigStatus.IN_PROGRESS)
        self.notifications.notify(
            gig.buyer_user_id,
            "gigStarted",
            "Gig Started",
            f'Work on "{gig.title_internal}" has started.',
            gig_id=gig.id,
        )
        self.db.commit()
        return GigActionResponse(gigId=gig.id, status=gig.status_internal, message="Gig started")

    def mark_complete(self, gig_id: str, user: User) -> GigActionResponse:
        """
        Record one party's completion confirmation.

        The first confirmation parks the gig waiting on the other party; the
        second completes it.
        """
        gig = self.get_gig_for_party(gig_id, user)
        now = datetime.utcnow()

        if user.id == gig.worker_user_id:
            if gig.worker_confirmed_at:
                raise HTTPException(status_code=400, detail="You have already confirmed this gig")
            gig.worker_confirmed_at = now
            counterpart, waiting_on = gig.buyer_user_id, GigStatus.PENDING_COMPLETION_BUYER
        else:
            if gig.buyer_confirmed_at:
                raise HTTPException(status_code=400, detail="You have already confirmed this gig")
            gig.buyer_confirmed_at = now
            counterpart, waiting_on = gig.worker_user_id, GigStatus.PENDING_COMPLETION_WORKER

        if gig.worker_confirmed_at and gig.buyer_confirmed_at:
            transition(gig, GigStatus.COMPLETED)
            title, message = "🎉 Gig Completed", "Gig completed"
        else:
            transition(gig, waiting_on)
            title, message = "Gig Awaiting Your Confirmation", "Completion recorded"

        self.notifications.notify(
            counterpart,
            "gigCompletion",
            title,
            f'"{gig.title_internal}" was marked as complete.',
            gig_id=gig.id,
        )
        self.db.commit()

        logger.info(f"✅ Completion for gig {gig.id} recorded by {user.id} -> {gig.status_internal}")
        return GigActionResponse(gigId=gig.id, status=gig.status_internal, message=message)

    def delete_gig(self, gig_id: str, buyer: User) -> dict:
        gig = self.repo.get_gig_for_buyer(self.db, gig_id, buyer.id)
        if not gig:
            raise HTTPException(status_code=404, detail="Gig not found")
        if gig.status_internal != GigStatus.PENDING_WORKER_ACCEPTANCE.value:
            raise HTTPException(status_code=400, detail="Only gigs still waiting for a worker can be deleted")
        if self.repo.count_payments(self.db, gig.id):
            raise HTTPException(status_code=400, detail="Gigs with payments cannot be deleted")

        self.repo.delete_gig(self.db, gig)
        logger.info(f"🗑️ Gig {gig_id} deleted by buyer {buyer.id}")
        return {"message": "Gig deleted"}

    # ------------------------------------------------------------------
    # Delegation
    # ------------------------------------------------------------------

    def _get_delegable_gig(self, gig_id: str, user: User) -> Gig:
        gig = self.get_gig_for_party(gig_id, user)
        if gig.status_internal not in DELEGABLE_STATUSES:
            raise HTTPException(status_code=400, detail="This gig can no longer be delegated")
        return gig

    def delegate_gig(self, gig_id: str, user: User, data: DelegateRequest) -> GigActionResponse:
        gig = self._get_delegable_gig(gig_id, user)

        new_worker = UserRepository.get_user(self.db, data.newWorkerId)
        if not new_worker or not new_worker.is_gig_worker or new_worker.is_banned or new_worker.is_disabled:
            raise HTTPException(status_code=404, detail="Worker not found")
        if new_worker.id in (gig.buyer_user_id, gig.worker_user_id):
            raise HTTPException(status_code=400, detail="Choose a different worker to delegate to")

        previous_worker_id = gig.worker_user_id
        gig.worker_user_id = None
        transition(gig, GigStatus.PENDING_WORKER_ACCEPTANCE)
        if data.reason:
            gig.adjustment_notes = data.reason

        profile = new_worker.worker_profile
        self.notifications.notify(
            new_worker.id,
            "gigDelegated",
            "🎯 Gig Delegated to You",
            f"{user.full_name or 'Someone'} has delegated you for this gig!",
            path=f"/user/{profile.id if profile else new_worker.id}/worker/gigs/{gig.id}",
            gig_id=gig.id,
        )
        if previous_worker_id and previous_worker_id != user.id:
            self.notifications.notify(
                previous_worker_id,
                "gigDelegatedAway",
                "⚠️ Gig Delegated Away",
                f'The gig "{gig.title_internal}" has been delegated to another worker.',
                gig_id=gig.id,
            )
        elif previous_worker_id:
            # Worker handed the gig on; the buyer hears about it instead
            self.notifications.notify(
                gig.buyer_user_id,
                "gigDelegated",
                "🔄 Gig Delegated",
                f'{user.full_name or "Your worker"} delegated "{gig.title_internal}" to another worker.',
                gig_id=gig.id,
            )
        self.db.commit()

        logger.info(f"🔄 Gig {gig.id} delegated by {user.id} to {new_worker.id}")
        return GigActionResponse(gigId=gig.id, status=gig.status_internal, message="Gig delegated")

    def search_workers_for_delegation(self, gig_id: str, user: User, query: str = "") -> list[DelegateCandidate]:
        gig = self._get_delegable_gig(gig_id, user)
        workers = self.repo.search_workers(
            self.db, [gig.buyer_user_id, gig.worker_user_id], (query or "").strip()
        )

        candidates = []
        for worker in workers:
            profile = worker.worker_profile
            skills = sorted(profile.skills, key=lambda s: s.experience_years or 0, reverse=True) if profile else []
            top = skills[0] if skills else None
            candidates.append(
                DelegateCandidate(
                    id=worker.id,
                    name=worker.full_name,
                    username=worker.email.split("@")[0],
                    primarySkill=top.name if top else "Professional",
                    experienceYears=top.experience_years if top else 0,
                    hourlyRate=top.agreed_rate if top else 0,
                    bio=(profile.full_bio if profile else None) or "",
                    location=(profile.location if profile else None) or "Location not specified",
                )
            )
        return candidates
