"""Gig lifecycle: which status changes are allowed"""

from fastapi import HTTPException

from ...models import Gig, GigStatus

S = GigStatus

CANCELLED_STATUSES = {s.value for s in (S.CANCELLED_BY_BUYER, S.CANCELLED_BY_WORKER, S.CANCELLED_BY_ADMIN)}

# Open offers a worker can still pick up
OPEN_OFFER_STATUSES = [S.PENDING_WORKER_ACCEPTANCE.value, S.PAYMENT_HELD_PENDING_ACCEPTANCE.value]

# A worker's booked gigs, from acceptance to payout
WORKER_ACTIVE_STATUSES = [
    s.value
    for s in (
        S.ACCEPTED,
        S.IN_PROGRESS,
        S.PENDING_COMPLETION_WORKER,
        S.PENDING_COMPLETION_BUYER,
        S.COMPLETED,
        S.AWAITING_PAYMENT,
        S.PAID,
    )
]

DELEGABLE_STATUSES = [S.PENDING_WORKER_ACCEPTANCE.value, S.ACCEPTED.value, S.IN_PROGRESS.value]

_CANCELS = {S.CANCELLED_BY_BUYER, S.CANCELLED_BY_WORKER, S.CANCELLED_BY_ADMIN}

ALLOWED_TRANSITIONS: dict[GigStatus, set[GigStatus]] = {
    S.PENDING_WORKER_ACCEPTANCE: {
        S.PAYMENT_HELD_PENDING_ACCEPTANCE,
        S.ACCEPTED,
        S.DECLINED_BY_WORKER,
        S.CANCELLED_BY_BUYER,
        S.CANCELLED_BY_ADMIN,
    },
    S.PAYMENT_HELD_PENDING_ACCEPTANCE: {
        S.ACCEPTED,
        S.DECLINED_BY_WORKER,
        S.CANCELLED_BY_BUYER,
        S.CANCELLED_BY_ADMIN,
    },
    S.DECLINED_BY_WORKER: {S.CANCELLED_BY_BUYER, S.CANCELLED_BY_ADMIN},
    S.ACCEPTED: {
        S.PENDING_WORKER_ACCEPTANCE,  # delegated to someone else
        S.IN_PROGRESS,
        S.PENDING_COMPLETION_WORKER,
        S.PENDING_COMPLETION_BUYER,
        S.DISPUTED,
    }
    | _CANCELS,
    S.IN_PROGRESS: {
        S.PENDING_WORKER_ACCEPTANCE,
        S.PENDING_COMPLETION_WORKER,
        S.PENDING_COMPLETION_BUYER,
        S.DISPUTED,
    }
    | _CANCELS,
    # Buyer confirmed first, waiting on the worker
    S.PENDING_COMPLETION_WORKER: {S.COMPLETED, S.DISPUTED},
    # Worker confirmed first, waiting on the buyer
    S.PENDING_COMPLETION_BUYER: {S.COMPLETED, S.DISPUTED},
    S.COMPLETED: {S.AWAITING_PAYMENT, S.PAID, S.DISPUTED},
    S.AWAITING_PAYMENT: {S.PAID, S.DISPUTED},
    S.PAID: {S.DISPUTED},
    S.DISPUTED: {S.COMPLETED, S.PAID, S.CANCELLED_BY_ADMIN},
    S.CANCELLED_BY_BUYER: set(),
    S.CANCELLED_BY_WORKER: set(),
    S.CANCELLED_BY_ADMIN: set(),
}


def can_transition(current: str, target: str) -> bool:
    if current == target:
        return True
    return GigStatus(target) in ALLOWED_TRANSITIONS.get(GigStatus(current), set())


def transition(gig: Gig, target: GigStatus) -> None:
    """Move `gig` to `target` or raise 409 when the lifecycle forbids it"""
    if not can_transition(gig.status_internal, target.value):
        raise HTTPException(
            status_code=409,
            detail=f"Cannot change gig status from {gig.status_internal} to {target.value}",
        )
    gig.status_internal = target.value


def display_status(status: str) -> str:
    """Collapse internal statuses into the handful the gig details screen shows"""
    if status in (S.PENDING_WORKER_ACCEPTANCE, S.PAYMENT_HELD_PENDING_ACCEPTANCE):
        return "PENDING"
    if status in CANCELLED_STATUSES:
        return "CANCELLED"
    if status in (S.PENDING_COMPLETION_WORKER, S.PENDING_COMPLETION_BUYER):
        return "IN_PROGRESS"
    if status == S.DECLINED_BY_WORKER:
        return "DECLINED"
    return status
