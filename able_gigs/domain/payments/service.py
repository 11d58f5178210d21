"""
Payment service - Stripe holds, adjustments, captures and Connect onboarding

Amounts handled here are integer cents. Gig prices live on the gig in
currency units and are converted with round(x * 100).
"""

import logging
from datetime import datetime
from typing import Optional

import stripe
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import ABLE_FEE_PERCENT, FRONTEND_URL, STRIPE_DEFAULT_CURRENCY
from ...models import (
    DiscountCode,
    DiscountType,
    Gig,
    GigStatus,
    Payment,
    PaymentStatus,
    StripeAccountStatus,
    User,
)
from ...shared.time_utils import to_naive_utc
from ..gigs.repository import GigRepository
from ..gigs.state import CANCELLED_STATUSES, transition
from ..notifications.service import NotificationService
from . import stripe_client
from .repository import PaymentRepository
from .schemas import (
    AdjustmentResponse,
    BuyerPayment,
    FinalizeResponse,
    HoldResponse,
    StripeStatusResponse,
)

logger = logging.getLogger(__name__)

NO_CHANGES_MESSAGE = "There have been no changes in the working hours or in the rate."

ADJUSTABLE_STATUSES = {
    GigStatus.ACCEPTED.value,
    GigStatus.IN_PROGRESS.value,
    GigStatus.PENDING_COMPLETION_WORKER.value,
    GigStatus.PENDING_COMPLETION_BUYER.value,
    GigStatus.COMPLETED.value,
    GigStatus.AWAITING_PAYMENT.value,
}

FINALIZABLE_STATUSES = {
    GigStatus.COMPLETED.value,
    GigStatus.AWAITING_PAYMENT.value,
    GigStatus.DISPUTED.value,
}


def to_cents(amount: float) -> int:
    return int(round(amount * 100))


def platform_fee(amount_cents: int, fee_percent: Optional[float] = None) -> int:
    return int(round(amount_cents * (fee_percent or ABLE_FEE_PERCENT)))


def calculate_amount_with_discount(amount_cents: int, discount: Optional[DiscountCode]) -> int:
    """Apply a percentage or fixed (cents) discount; never below zero"""
    if not discount or not discount.is_active:
        return amount_cents
    if discount.discount_type == DiscountType.PERCENTAGE.value:
        discounted = amount_cents - round(amount_cents * discount.value / 100)
    else:
        discounted = amount_cents - round(discount.value)
    return max(int(discounted), 0)


def gig_price_cents(gig: Gig) -> int:
    """Current agreed price of the gig, final price if it was adjusted"""
    price = gig.final_agreed_price if gig.final_agreed_price is not None else gig.total_agreed_price
    return to_cents(price or 0)


class PaymentService:
    """Service layer for payments"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository()
        self.notifications = NotificationService(db)

    def _require_stripe(self) -> None:
        if not stripe_client.is_available():
            raise HTTPException(status_code=503, detail="Payments are not configured")

    def _stripe_failed(self, action: str, error: Exception) -> HTTPException:
        logger.error(f"❌ Stripe error while trying to {action}: {error}")
        message = getattr(error, "user_message", None) or str(error)
        return HTTPException(status_code=502, detail=f"Payment provider error: {message}")

    # ------------------------------------------------------------------
    # Customers and Connect accounts
    # ------------------------------------------------------------------

    def ensure_stripe_customer(self, user: User) -> str:
        """Stripe customer id for a buyer, created on first use"""
        if user.stripe_customer_id:
            return user.stripe_customer_id

        self._require_stripe()
        try:
            customer_id = stripe_client.create_customer(user.email, user.full_name, user.id)
        except stripe.StripeError as e:
            raise self._stripe_failed("create customer", e) from e

        user.stripe_customer_id = customer_id
        self.db.commit()
        return customer_id

    def create_setup_intent(self, user: User) -> dict:
        customer_id = self.ensure_stripe_customer(user)
        try:
            intent = stripe_client.create_setup_intent(customer_id, user.id)
        except stripe.StripeError as e:
            raise self._stripe_failed("create setup intent", e) from e
        return {"clientSecret": intent["client_secret"], "stripeCustomerId": customer_id}

    def create_account_link(self, user: User) -> str:
        """Onboarding link for the worker's Express account, creating it once"""
        self._require_stripe()
        try:
            if not user.stripe_connect_account_id:
                user.stripe_connect_account_id = stripe_client.create_connect_account(
                    user.id, user.email, user.full_name
                )
                user.stripe_account_status = StripeAccountStatus.PENDING_VERIFICATION.value
                self.db.commit()

            account_id = user.stripe_connect_account_id
            return stripe_client.create_account_link(
                account_id,
                refresh_url=f"{FRONTEND_URL}/user/{user.id}/settings/onboarding-retry",
                return_url=f"{FRONTEND_URL}/user/{user.id}/settings/onboarding-success?account_id={account_id}",
            )
        except stripe.StripeError as e:
            raise self._stripe_failed("create account link", e) from e

    def create_portal_session(self, user: User) -> str:
        """Link to the worker's Stripe Express dashboard for payouts and bank details"""
        if not user.stripe_connect_account_id:
            raise HTTPException(
                status_code=404,
                detail="Stripe Connected Account ID not found for this user. "
                "Please connect your bank account first.",
            )

        self._require_stripe()
        try:
            return stripe_client.create_login_link(user.stripe_connect_account_id)
        except stripe.StripeError as e:
            raise self._stripe_failed("create dashboard login link", e) from e

    def _apply_account_state(self, user: User, transfers_active: bool, payouts_enabled: bool) -> None:
        user.can_receive_payouts = payouts_enabled
        user.stripe_account_status = (
            StripeAccountStatus.CONNECTED.value
            if transfers_active and payouts_enabled
            else StripeAccountStatus.INCOMPLETE.value
        )

    def get_stripe_status(self, user: User) -> StripeStatusResponse:
        """Refresh payout capability straight from Stripe"""
        if not user.stripe_connect_account_id:
            return StripeStatusResponse(canReceivePayouts=False)

        self._require_stripe()
        try:
            transfers_active, payouts_enabled = stripe_client.get_account_capabilities(
                user.stripe_connect_account_id
            )
        except stripe.StripeError as e:
            raise self._stripe_failed("fetch account status", e) from e

        self._apply_account_state(user, transfers_active, payouts_enabled)
        self.db.commit()
        return StripeStatusResponse(
            accountId=user.stripe_connect_account_id,
            stripeAccountStatus=user.stripe_account_status,
            canReceivePayouts=user.can_receive_payouts,
            transfersActive=transfers_active,
            payoutsEnabled=payouts_enabled,
        )

    # ------------------------------------------------------------------
    # Holds
    # ------------------------------------------------------------------

    def _get_buyer_gig(self, gig_id: str, buyer: User) -> Gig:
        gig = GigRepository.get_gig_for_buyer(self.db, gig_id, buyer.id)
        if not gig:
            raise HTTPException(status_code=404, detail="Gig not found")
        return gig

    def _destination_for(self, gig: Gig) -> Optional[str]:
        if not gig.worker_user_id:
            return None
        worker = gig.worker
        if not worker or not worker.stripe_connect_account_id:
            raise HTTPException(status_code=400, detail="Receiver is not connected with stripe")
        return worker.stripe_connect_account_id

    def _hold(
        self,
        buyer: User,
        gig: Gig,
        amount_cents: int,
        currency: str,
        description: str,
        hold_type: str = "initial_gig_hold",
        metadata: Optional[dict] = None,
    ) -> Payment:
        if amount_cents <= 0:
            raise HTTPException(status_code=400, detail="Amount to hold must be greater than zero")
        if not buyer.stripe_customer_id:
            raise HTTPException(status_code=400, detail="User is not connected with stripe")

        self._require_stripe()
        destination = self._destination_for(gig)
        fee = platform_fee(amount_cents, gig.able_fee_percent)

        try:
            payment_method = stripe_client.find_saved_payment_method(buyer.stripe_customer_id)
            if not payment_method:
                raise HTTPException(status_code=400, detail="No saved payment method found")
            intent = stripe_client.create_hold(
                customer_id=buyer.stripe_customer_id,
                payment_method_id=payment_method,
                amount_cents=amount_cents,
                currency=currency,
                application_fee=fee,
                destination_account_id=destination,
                description=description,
                metadata={"gigId": gig.id, "type": hold_type, **(metadata or {})},
            )
        except stripe.StripeError as e:
            raise self._stripe_failed(f"hold funds for gig {gig.id}", e) from e

        return self.repo.create_payment(
            self.db,
            gig_id=gig.id,
            payer_user_id=buyer.id,
            receiver_user_id=gig.worker_user_id,
            amount_gross=amount_cents,
            able_fee_amount=fee,
            stripe_fee_amount=0,
            amount_net_to_worker=amount_cents - fee,
            currency=currency,
            status=PaymentStatus.PENDING.value,
            stripe_payment_intent_id=intent["id"],
            stripe_charge_id=intent.get("latest_charge"),
            internal_notes=description,
        )

    def hold_gig_funds(
        self, buyer: User, gig_id: str, amount_cents: Optional[int] = None, currency: Optional[str] = None
    ) -> HoldResponse:
        """Authorise the gig price on the buyer's card without capturing it"""
        gig = self._get_buyer_gig(gig_id, buyer)
        if gig.status_internal in CANCELLED_STATUSES or gig.status_internal == GigStatus.PAID.value:
            raise HTTPException(status_code=400, detail="Funds cannot be held for this gig")

        if amount_cents is None:
            amount_cents = calculate_amount_with_discount(gig_price_cents(gig), gig.discount_code)

        payment = self._hold(
            buyer,
            gig,
            amount_cents,
            (currency or STRIPE_DEFAULT_CURRENCY).lower(),
            description=f"Initial hold for Gig: {gig.id}",
        )
        if gig.status_internal == GigStatus.PENDING_WORKER_ACCEPTANCE.value:
            transition(gig, GigStatus.PAYMENT_HELD_PENDING_ACCEPTANCE)

        self.db.commit()
        logger.info(f"🔒 Held {amount_cents} cents for gig {gig.id}")
        return HoldResponse(
            paymentId=payment.id,
            paymentIntentId=payment.stripe_payment_intent_id,
            status=payment.status,
            amountGross=payment.amount_gross,
            ableFeeAmount=payment.able_fee_amount,
        )

    def handle_gig_adjustment(
        self,
        buyer: User,
        gig_id: str,
        new_rate: float,
        new_hours: float,
        currency: Optional[str] = None,
    ) -> AdjustmentResponse:
        """
        Change the final rate or hours of a gig.

        A lower price is only recorded; the capture later takes less. A higher
        price needs the (discounted) difference held on the card first.
        """
        gig = self._get_buyer_gig(gig_id, buyer)
        if gig.status_internal not in ADJUSTABLE_STATUSES:
            raise HTTPException(status_code=400, detail="This gig can no longer be adjusted")

        current_cents = gig_price_cents(gig)
        new_cents = to_cents(new_rate * new_hours)
        if new_cents == current_cents:
            raise HTTPException(status_code=400, detail=NO_CHANGES_MESSAGE)

        difference = 0
        if new_cents > current_cents:
            discount = gig.discount_code
            difference = calculate_amount_with_discount(new_cents, discount) - calculate_amount_with_discount(
                current_cents, discount
            )
            if difference > 0:
                self._hold(
                    buyer,
                    gig,
                    difference,
                    (currency or STRIPE_DEFAULT_CURRENCY).lower(),
                    description=f"Adjustment for Gig ID: {gig.id}",
                    hold_type="gig_adjustment_hold",
                    metadata={"paymentType": "ADJUSTMENT"},
                )

        gig.final_rate = round(new_rate, 2)
        gig.final_hours = round(new_hours, 2)
        gig.final_agreed_price = round(new_cents / 100, 2)
        gig.adjusted_at = datetime.utcnow()

        self.notifications.notify(
            gig.worker_user_id,
            "gigAdjusted",
            "💰 Gig Payment Adjusted",
            f'The final pay for "{gig.title_internal}" is now {gig.final_agreed_price:.2f}.',
            gig_id=gig.id,
        )
        self.db.commit()

        logger.info(f"🔄 Gig {gig.id} adjusted from {current_cents} to {new_cents} cents")
        return AdjustmentResponse(
            gigId=gig.id,
            finalRate=gig.final_rate,
            finalHours=gig.final_hours,
            finalAgreedPrice=gig.final_agreed_price,
            additionalHoldCents=max(difference, 0),
        )

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def finalize_gig_payment(self, gig_id: str, user: User) -> FinalizeResponse:
        """
        Capture what the gig finally costs from its pending holds, oldest first.

        Each hold gives at most its own gross amount, so the captured total
        never exceeds what was authorised. Captures committed by an earlier,
        partly failed call count towards the price, so a retry only takes what
        is still owed.
        """
        gig = GigRepository.get_gig(self.db, gig_id)
        if not gig or (gig.buyer_user_id != user.id and not user.is_admin):
            raise HTTPException(status_code=404, detail="Gig not found")
        if gig.status_internal not in FINALIZABLE_STATUSES:
            raise HTTPException(status_code=400, detail="Gig is not ready for payment")

        payments = self.repo.get_pending_for_gig(self.db, gig.id)
        if not payments:
            raise HTTPException(status_code=400, detail="No payments found for this gig.")

        self._require_stripe()
        already_captured = self.repo.get_captured_total(self.db, gig.id)
        remaining = calculate_amount_with_discount(gig_price_cents(gig), gig.discount_code) - already_captured
        captured_total = 0

        for payment in payments:
            if remaining <= 0:
                break
            amount = min(remaining, payment.amount_gross)
            fee = platform_fee(amount, gig.able_fee_percent)
            try:
                intent = stripe_client.get_payment_intent(payment.stripe_payment_intent_id)
                if intent["status"] != "requires_capture":
                    raise HTTPException(
                        status_code=400,
                        detail=f"Payment Intent {intent['id']} is not in status 'requires_capture' "
                        f"(current: {intent['status']}).",
                    )
                has_destination = bool(intent.get("destination"))
                result = stripe_client.capture_payment_intent(
                    payment.stripe_payment_intent_id, amount, fee if has_destination else None
                )
                if result["status"] != "succeeded":
                    raise HTTPException(
                        status_code=502,
                        detail=f"Failed to capture PaymentIntent {payment.stripe_payment_intent_id}: {result['status']}",
                    )
                if not has_destination:
                    # Held before a worker was assigned; pay the worker from the platform balance
                    worker = gig.worker
                    if not worker or not worker.stripe_connect_account_id:
                        raise HTTPException(status_code=400, detail="Receiver is not connected with stripe")
                    stripe_client.create_transfer(
                        amount - fee, payment.currency, worker.stripe_connect_account_id, {"gigId": gig.id}
                    )
            except stripe.StripeError as e:
                raise self._stripe_failed(f"capture payment {payment.id}", e) from e

            payment.status = PaymentStatus.COMPLETED.value
            payment.stripe_charge_id = result.get("latest_charge") or payment.stripe_charge_id
            payment.receiver_user_id = payment.receiver_user_id or gig.worker_user_id
            payment.able_fee_amount = fee
            payment.amount_net_to_worker = amount - fee
            payment.paid_at = datetime.utcnow()
            # Captured money is real; persist it before touching the next hold
            self.db.commit()

            logger.info(f"✅ Captured {amount} cents from PaymentIntent {payment.stripe_payment_intent_id}")
            remaining -= amount
            captured_total += amount

        transition(gig, GigStatus.PAID)
        self.notifications.notify(
            gig.worker_user_id,
            "gigPaid",
            "💸 Payment Released",
            f'Payment for "{gig.title_internal}" has been released.',
            gig_id=gig.id,
        )
        self.db.commit()

        logger.info(f"✅ All payments finalized for gig {gig.id}. Total captured: {captured_total} cents")
        return FinalizeResponse(gigId=gig.id, status=gig.status_internal, capturedCents=captured_total)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def get_buyer_payments(
        self,
        buyer: User,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        price_from: Optional[int] = None,
        price_to: Optional[int] = None,
    ) -> list[BuyerPayment]:
        payments = self.repo.list_for_payer(
            self.db,
            buyer.id,
            to_naive_utc(date_from) if date_from else None,
            to_naive_utc(date_to) if date_to else None,
            price_from,
            price_to,
        )
        return [
            BuyerPayment(
                id=p.id,
                gigId=p.gig_id,
                gigType=p.gig.title_internal if p.gig else None,
                workerName=p.receiver.full_name if p.receiver else None,
                date=p.paid_at,
                status=p.gig.status_internal if p.gig else None,
                paymentStatus=p.status,
                invoiceUrl=p.invoice_url,
                amount=p.amount_gross,
                currency=p.currency,
            )
            for p in payments
        ]

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    def handle_stripe_webhook(self, payload: bytes, signature: Optional[str]) -> dict:
        try:
            event = stripe_client.construct_event(payload, signature)
        except ValueError as e:
            logger.warning(f"⚠️ Invalid Stripe webhook payload: {e}")
            raise HTTPException(status_code=400, detail="Invalid payload") from e
        except stripe.SignatureVerificationError as e:
            logger.warning("🚫 Stripe webhook signature verification failed")
            raise HTTPException(status_code=400, detail="Invalid signature") from e

        event_type = event["type"]
        obj = event["data"]["object"]
        logger.info(f"📡 Stripe webhook received: {event_type}")

        if event_type == "account.updated":
            self._on_account_updated(obj)
        elif event_type == "payment_intent.payment_failed":
            self._on_payment_failed(obj)
        else:
            logger.info(f"Unhandled Stripe event type: {event_type}")

        return {"received": True}

    def _on_account_updated(self, account) -> None:
        user_id = (account.get("metadata") or {}).get("userId")
        user = self.db.query(User).filter(User.id == user_id).first() if user_id else None
        if not user:
            user = self.repo.get_user_by_connect_account(self.db, account.get("id"))
        if not user:
            logger.warning(f"⚠️ No user for Stripe account {account.get('id')}")
            return

        capabilities = account.get("capabilities") or {}
        self._apply_account_state(
            user, capabilities.get("transfers") == "active", bool(account.get("payouts_enabled"))
        )
        self.db.commit()
        logger.info(f"✅ Stripe account status for user {user.id}: {user.stripe_account_status}")

    def _on_payment_failed(self, intent) -> None:
        payment = self.repo.get_by_payment_intent(self.db, intent.get("id"))
        if not payment:
            logger.warning(f"⚠️ No payment recorded for PaymentIntent {intent.get('id')}")
            return

        payment.status = PaymentStatus.FAILED.value
        error = intent.get("last_payment_error") or {}
        if error.get("message"):
            payment.internal_notes = f"{payment.internal_notes or ''}\nFailed: {error['message']}".strip()
        self.notifications.notify(
            payment.payer_user_id,
            "paymentFailed",
            "❌ Payment Failed",
            "We could not charge your saved card. Please update your payment method.",
            gig_id=payment.gig_id,
        )
        self.db.commit()
        logger.warning(f"❌ Payment {payment.id} failed")
