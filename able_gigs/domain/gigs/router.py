"""Gig router - offers, lifecycle and delegation endpoints"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import (
    BuyerGigSummary,
    DelegateCandidate,
    DelegateRequest,
    GigActionResponse,
    GigCreate,
    GigCreatedResponse,
    GigDetails,
    OfferStatusUpdate,
    WorkerOffersResponse,
)
from .service import GigService

router = APIRouter(prefix="/gigs", tags=["Gigs"])


def get_gig_service(db: Session = Depends(get_db)) -> GigService:
    """Dependency injection for GigService"""
    return GigService(db)


@router.post("", response_model=GigCreatedResponse, status_code=201)
async def create_gig(
    data: GigCreate,
    current_user: User = Depends(get_current_user),
    service: GigService = Depends(get_gig_service),
):
    """Post a new gig offer"""
    return service.create_gig(data, current_user)


@router.get("/buyer", response_model=list[BuyerGigSummary])
async def get_buyer_gigs(
    status: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    service: GigService = Depends(get_gig_service),
):
    return service.get_buyer_gigs(current_user, status)


@router.get("/worker/offers", response_model=WorkerOffersResponse)
async def get_worker_offers(
    current_user: User = Depends(get_current_user),
    service: GigService = Depends(get_gig_service),
):
    """Open offers plus the worker's own accepted gigs"""
    return service.get_worker_offers(current_user)


@router.get("/{gig_id}", response_model=GigDetails)
async def get_gig_details(
    gig_id: str,
    role: Literal["buyer", "worker"] = "buyer",
    current_user: User = Depends(get_current_user),
    service: GigService = Depends(get_gig_service),
):
    return service.get_gig_details(gig_id, current_user, role)


@router.post("/{gig_id}/accept", response_model=GigActionResponse)
async def accept_gig_offer(
    gig_id: str,
    current_user: User = Depends(get_current_user),
    service: GigService = Depends(get_gig_service),
):
    return service.accept_gig_offer(gig_id, current_user)


@router.post("/{gig_id}/decline", response_model=GigActionResponse)
async def decline_gig_offer(
    gig_id: str,
    current_user: User = Depends(get_current_user),
    service: GigService = Depends(get_gig_service),
):
    return service.decline_gig_offer(gig_id, current_user)


@router.post("/{gig_id}/status", response_model=GigActionResponse)
async def update_gig_offer_status(
    gig_id: str,
    data: OfferStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: GigService = Depends(get_gig_service),
):
    """Accept or cancel a gig as its buyer or worker"""
    return service.update_gig_offer_status(gig_id, current_user, data)


@router.post("/{gig_id}/start", response_model=GigActionResponse)
async def start_gig(
    gig_id: str,
    current_user: User = Depends(get_current_user),
    service: GigService = Depends(get_gig_service),
):
    return service.start_gig(gig_id, current_user)


@router.post("/{gig_id}/complete", response_model=GigActionResponse)
async def mark_complete(
    gig_id: str,
    current_user: User = Depends(get_current_user),
    service: GigService = Depends(get_gig_service),
):
    return service.mark_complete(gig_id, current_user)


@router.delete("/{gig_id}")
async def delete_gig(
    gig_id: str,
    current_user: User = Depends(get_current_user),
    service: GigService = Depends(get_gig_service),
):
    return service.delete_gig(gig_id, current_user)


@router.post("/{gig_id}/delegate", response_model=GigActionResponse)
async def delegate_gig(
    gig_id: str,
    data: DelegateRequest,
    current_user: User = Depends(get_current_user),
    service: GigService = Depends(get_gig_service),
):
    return service.delegate_gig(gig_id, current_user, data)


@router.get("/{gig_id}/delegate/workers", response_model=list[DelegateCandidate])
async def search_workers_for_delegation(
    gig_id: str,
    q: str = Query("", max_length=100),
    current_user: User = Depends(get_current_user),
    service: GigService = Depends(get_gig_service),
):
    return service.search_workers_for_delegation(gig_id, current_user, q)
