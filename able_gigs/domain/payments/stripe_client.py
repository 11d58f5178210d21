"""
Stripe API wrapper

Thin layer over the stripe SDK so the payment service deals in plain ids and
amounts. Every call raises stripe.StripeError subclasses on failure; the
service decides how to surface them.
"""

import json
import logging
from typing import Any, Optional

import stripe

from ...config import STRIPE_CONNECT_COUNTRY, STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SIGNING_SECRET

logger = logging.getLogger(__name__)

if STRIPE_SECRET_KEY:
    stripe.api_key = STRIPE_SECRET_KEY


def is_available() -> bool:
    """Check if Stripe is configured"""
    return bool(stripe.api_key)


def create_customer(email: str, name: Optional[str], user_id: str) -> str:
    customer = stripe.Customer.create(email=email, name=name or None, metadata={"userId": user_id})
    logger.info(f"✅ Stripe customer {customer.id} created for user {user_id}")
    return customer.id


def create_setup_intent(customer_id: str, user_id: str) -> dict:
    intent = stripe.SetupIntent.create(
        customer=customer_id,
        usage="off_session",
        metadata={"userId": user_id, "type": "initial_payment_method_setup"},
        automatic_payment_methods={"enabled": True},
    )
    return {"id": intent.id, "client_secret": intent.client_secret}


def find_saved_payment_method(customer_id: str) -> Optional[str]:
    """Card saved through a succeeded setup intent, else the customer's default"""
    for intent in stripe.SetupIntent.list(customer=customer_id, limit=20).auto_paging_iter():
        if intent.status == "succeeded" and intent.payment_method:
            return intent.payment_method

    customer = stripe.Customer.retrieve(customer_id)
    settings = getattr(customer, "invoice_settings", None)
    return getattr(settings, "default_payment_method", None) if settings else None


def create_connect_account(user_id: str, email: str, full_name: str) -> str:
    first_name, _, last_name = (full_name or "").partition(" ")
    account = stripe.Account.create(
        type="express",
        country=STRIPE_CONNECT_COUNTRY,
        email=email,
        capabilities={
            "card_payments": {"requested": True},
            "transfers": {"requested": True},
        },
        business_type="individual",
        individual={
            "email": email,
            "first_name": first_name or None,
            "last_name": last_name or None,
        },
        metadata={"userId": user_id},
    )
    logger.info(f"✅ Stripe Connect account {account.id} created for user {user_id}")
    return account.id


def create_account_link(account_id: str, refresh_url: str, return_url: str) -> str:
    link = stripe.AccountLink.create(
        account=account_id,
        refresh_url=refresh_url,
        return_url=return_url,
        type="account_onboarding",
    )
    return link.url


def create_login_link(account_id: str) -> str:
    """Single-use link into the Express dashboard of a connected account"""
    link = stripe.Account.create_login_link(account_id)
    return link.url


def get_account_capabilities(account_id: str) -> tuple[bool, bool]:
    """(transfers active, payouts enabled) for a connected account"""
    account = stripe.Account.retrieve(account_id)
    capabilities = getattr(account, "capabilities", None)
    transfers = getattr(capabilities, "transfers", None) if capabilities else None
    return transfers == "active", bool(getattr(account, "payouts_enabled", False))


def create_hold(
    customer_id: str,
    payment_method_id: str,
    amount_cents: int,
    currency: str,
    application_fee: int,
    destination_account_id: Optional[str],
    description: str,
    metadata: dict[str, Any],
) -> dict:
    """
    Authorise (but do not capture) `amount_cents` on the buyer's saved card.

    With a destination the charge settles on the worker's connected account;
    without one the funds stay on the platform until a transfer is made.
    """
    params: dict[str, Any] = {
        "amount": amount_cents,
        "currency": currency,
        "customer": customer_id,
        "payment_method": payment_method_id,
        "capture_method": "manual",
        "payment_method_options": {"card": {"capture_method": "manual"}},
        "confirm": True,
        "off_session": True,
        "metadata": metadata,
        "description": description,
    }
    if destination_account_id:
        params["on_behalf_of"] = destination_account_id
        params["application_fee_amount"] = application_fee
        params["transfer_data"] = {"destination": destination_account_id}

    intent = stripe.PaymentIntent.create(**params)
    logger.info(f"🔒 PaymentIntent {intent.id} created (HOLD), status: {intent.status}")
    return {
        "id": intent.id,
        "status": intent.status,
        "latest_charge": getattr(intent, "latest_charge", None),
        "destination": destination_account_id,
    }


def get_payment_intent(payment_intent_id: str) -> dict:
    intent = stripe.PaymentIntent.retrieve(payment_intent_id)
    transfer_data = getattr(intent, "transfer_data", None)
    return {
        "id": intent.id,
        "status": intent.status,
        "destination": getattr(transfer_data, "destination", None) if transfer_data else None,
    }


def capture_payment_intent(payment_intent_id: str, amount_cents: int, application_fee: Optional[int]) -> dict:
    params: dict[str, Any] = {"amount_to_capture": amount_cents}
    if application_fee is not None:
        params["application_fee_amount"] = application_fee
    result = stripe.PaymentIntent.capture(payment_intent_id, **params)
    return {"id": result.id, "status": result.status, "latest_charge": getattr(result, "latest_charge", None)}


def create_transfer(amount_cents: int, currency: str, destination_account_id: str, metadata: dict) -> str:
    transfer = stripe.Transfer.create(
        amount=amount_cents,
        currency=currency,
        destination=destination_account_id,
        metadata=metadata,
    )
    return transfer.id


def construct_event(payload: bytes, signature: Optional[str]) -> dict:
    """
    Verify a webhook delivery and return the event as plain JSON.

    Raises stripe.SignatureVerificationError or ValueError.
    """
    stripe.Webhook.construct_event(payload, signature, STRIPE_WEBHOOK_SIGNING_SECRET)
    return json.loads(payload)
