"""Payment router - Stripe setup, holds, captures and webhooks"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import (
    AccountLinkResponse,
    AdjustmentRequest,
    AdjustmentResponse,
    BuyerPayment,
    FinalizeResponse,
    HoldFundsRequest,
    HoldResponse,
    SetupIntentResponse,
    StripeStatusResponse,
)
from .service import PaymentService

router = APIRouter(prefix="/payments", tags=["Payments"])
webhook_router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


@router.post("/setup-intent", response_model=SetupIntentResponse)
async def create_setup_intent(
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Start saving a card for off-session gig holds"""
    return service.create_setup_intent(current_user)


@router.post("/connect/account-link", response_model=AccountLinkResponse)
async def create_account_link(
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return AccountLinkResponse(url=service.create_account_link(current_user))


@router.post("/connect/portal-session", response_model=AccountLinkResponse)
async def create_portal_session(
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Open the Stripe Express dashboard of the current worker"""
    return AccountLinkResponse(url=service.create_portal_session(current_user))


@router.get("/connect/status", response_model=StripeStatusResponse)
async def get_stripe_status(
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return service.get_stripe_status(current_user)


@router.post("/hold", response_model=HoldResponse)
async def hold_gig_funds(
    data: HoldFundsRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return service.hold_gig_funds(current_user, data.gigId, data.amountInCents, data.currency)


@router.post("/gigs/{gig_id}/adjust", response_model=AdjustmentResponse)
async def handle_gig_adjustment(
    gig_id: str,
    data: AdjustmentRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return service.handle_gig_adjustment(
        current_user, gig_id, data.newFinalRate, data.newFinalHours, data.currency
    )


@router.post("/gigs/{gig_id}/finalize", response_model=FinalizeResponse)
async def finalize_gig_payment(
    gig_id: str,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Capture the held funds and mark the gig paid"""
    return service.finalize_gig_payment(gig_id, current_user)


@router.get("", response_model=list[BuyerPayment])
async def get_buyer_payments(
    date_from: Optional[datetime] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(None, alias="dateTo"),
    price_from: Optional[int] = Query(None, alias="priceFrom", ge=0),
    price_to: Optional[int] = Query(None, alias="priceTo", ge=0),
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return service.get_buyer_payments(current_user, date_from, date_to, price_from, price_to)


@webhook_router.post("/stripe")
async def stripe_webhook(request: Request, service: PaymentService = Depends(get_payment_service)):
    payload = await request.body()
    return service.handle_stripe_webhook(payload, request.headers.get("stripe-signature"))
