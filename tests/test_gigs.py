"""Tests for gig offers, their lifecycle and delegation."""

from datetime import datetime, timedelta

from able_gigs.models import (
    DiscountCode,
    Gig,
    GigStatus,
    Notification,
    Payment,
    PaymentStatus,
)
from conftest import GIG_START, make_gig, make_user, make_worker_profile


def _gig(db, gig_id) -> Gig:
    db.expire_all()
    return db.get(Gig, gig_id)


def _notifications_for(db, user):
    db.expire_all()
    return db.query(Notification).filter(Notification.user_id == user.id).all()


class TestCreateGig:
    def test_create_with_time_range(self, login, db, buyer):
        response = login(buyer).post(
            "/gigs",
            json={
                "gigDescription": "Bartender for wedding",
                "additionalInstructions": "Black tie",
                "hourlyRate": "18.50",
                "gigLocation": {"formatted_address": "The Savoy, London", "lat": 51.5104, "lng": -0.1204},
                "gigDate": "2030-06-01",
                "gigTime": "18:00 to 23:00",
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == GigStatus.PENDING_WORKER_ACCEPTANCE.value
        assert body["estimatedHours"] == 5
        assert body["totalAgreedPrice"] == 92.5

        gig = _gig(db, body["gigId"])
        assert gig.buyer_user_id == buyer.id
        assert gig.exact_location == "Coordinates: 51.510400, -0.120400"
        assert gig.address_json["formatted_address"] == "The Savoy, London"
        assert gig.notes_for_worker == "Black tie"
        assert gig.able_fee_percent == 0.065

    def test_missing_location_gets_placeholder(self, login, db, buyer):
        response = login(buyer).post(
            "/gigs", json={"gigDescription": "Waiter", "hourlyRate": 15, "gigDate": "2030-06-01"}
        )

        assert response.status_code == 201
        assert _gig(db, response.json()["gigId"]).exact_location == "Location details provided"

    def test_bad_date_is_rejected(self, login, buyer):
        response = login(buyer).post(
            "/gigs", json={"gigDescription": "Waiter", "hourlyRate": 15, "gigDate": "June 1st"}
        )
        assert response.status_code == 400

    def test_rate_must_be_positive(self, login, buyer):
        response = login(buyer).post(
            "/gigs", json={"gigDescription": "Waiter", "hourlyRate": 0, "gigDate": "2030-06-01"}
        )
        assert response.status_code == 422

    def test_discount_code_is_recorded(self, login, db, buyer):
        db.add(DiscountCode(code="WELCOME10", discount_type="PERCENTAGE", value=10))
        db.commit()

        response = login(buyer).post(
            "/gigs",
            json={"gigDescription": "Chef", "hourlyRate": 20, "gigDate": "2030-06-01", "discountCode": "welcome10"},
        )

        assert response.status_code == 201
        gig = _gig(db, response.json()["gigId"])
        assert gig.promo_code_applied == "WELCOME10"
        assert gig.discount_code_id is not None

    def test_expired_discount_code_is_rejected(self, login, db, buyer):
        db.add(
            DiscountCode(
                code="OLD", discount_type="FIXED", value=500, expires_at=datetime.utcnow() - timedelta(days=1)
            )
        )
        db.commit()

        response = login(buyer).post(
            "/gigs",
            json={"gigDescription": "Chef", "hourlyRate": 20, "gigDate": "2030-06-01", "discountCode": "OLD"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or expired discount code"


class TestGigDetails:
    def test_buyer_view(self, login, db, buyer):
        gig = make_gig(db, buyer, hours=4, rate=20)

        response = login(buyer).get(f"/gigs/{gig.id}", params={"role": "buyer"})

        assert response.status_code == 200
        body = response.json()
        assert body["gigTitle"] == gig.title_internal
        assert body["buyerName"] == "Bea Buyer"
        assert body["duration"] == "4 hours"
        assert body["estimatedEarnings"] == 80
        assert body["status"] == "PENDING"
        assert body["hiringManagerUsername"] == buyer.email

    def test_worker_can_view_open_offer(self, login, db, buyer, worker):
        gig = make_gig(db, buyer)
        assert login(worker).get(f"/gigs/{gig.id}", params={"role": "worker"}).status_code == 200

    def test_worker_cannot_view_someone_elses_booking(self, login, db, buyer, worker, other_worker):
        gig = make_gig(db, buyer, worker=other_worker, status=GigStatus.ACCEPTED)
        assert login(worker).get(f"/gigs/{gig.id}", params={"role": "worker"}).status_code == 404

    def test_stranger_buyer_view(self, login, db, buyer, worker):
        gig = make_gig(db, buyer)
        assert login(worker).get(f"/gigs/{gig.id}", params={"role": "buyer"}).status_code == 404


class TestWorkerOffers:
    def test_offers_and_accepted_gigs(self, login, db, buyer, worker, other_worker):
        open_offer = make_gig(db, buyer, address_json={"city": "London", "country": "UK"})
        mine = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED, start=GIG_START + timedelta(days=1))
        make_gig(db, buyer, worker=other_worker, status=GigStatus.ACCEPTED)
        make_gig(db, buyer, status=GigStatus.CANCELLED_BY_BUYER)

        response = login(worker).get("/gigs/worker/offers")

        assert response.status_code == 200
        body = response.json()
        assert [o["id"] for o in body["offers"]] == [open_offer.id]
        offer = body["offers"][0]
        assert offer["status"] == "pending"
        assert offer["locationSnippet"] == "London, UK"
        assert offer["dateString"] == "01/06/30"
        assert offer["timeString"] == "9:00 AM - 1:00 PM"
        assert offer["totalPay"] == 80
        assert [g["id"] for g in body["acceptedGigs"]] == [mine.id]
        assert body["acceptedGigs"][0]["status"] == "accepted"

    def test_own_postings_are_not_offers(self, login, db, worker):
        make_gig(db, worker)
        assert login(worker).get("/gigs/worker/offers").json()["offers"] == []


class TestBuyerGigs:
    def test_filter_by_status(self, login, db, buyer, worker):
        accepted = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        make_gig(db, buyer)
        client = login(buyer)

        assert len(client.get("/gigs/buyer").json()) == 2
        filtered = client.get("/gigs/buyer", params={"status": "accepted"}).json()
        assert [g["id"] for g in filtered] == [accepted.id]
        assert filtered[0]["workerName"] == "Will Worker"

    def test_unknown_status(self, login, buyer):
        assert login(buyer).get("/gigs/buyer", params={"status": "nope"}).status_code == 400


class TestAcceptAndDecline:
    def test_accept_assigns_worker_and_notifies_buyer(self, login, db, buyer, worker):
        gig = make_gig(db, buyer)

        response = login(worker).post(f"/gigs/{gig.id}/accept")

        assert response.status_code == 200
        assert response.json()["status"] == GigStatus.ACCEPTED.value
        stored = _gig(db, gig.id)
        assert stored.worker_user_id == worker.id
        assert [n.type for n in _notifications_for(db, buyer)] == ["gigAccepted"]

    def test_held_offer_can_be_accepted(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, status=GigStatus.PAYMENT_HELD_PENDING_ACCEPTANCE)
        assert login(worker).post(f"/gigs/{gig.id}/accept").status_code == 200

    def test_second_worker_cannot_take_accepted_gig(self, login, db, buyer, worker, other_worker):
        gig = make_gig(db, buyer)
        login(worker).post(f"/gigs/{gig.id}/accept")

        response = login(other_worker).post(f"/gigs/{gig.id}/accept")

        assert response.status_code == 404
        assert _gig(db, gig.id).worker_user_id == worker.id

    def test_buyer_cannot_accept_own_gig(self, login, db):
        both = make_user(db, "Dual Role", worker=True, buyer=True)
        gig = make_gig(db, both)

        response = login(both).post(f"/gigs/{gig.id}/accept")

        assert response.status_code == 400

    def test_non_worker_cannot_accept(self, login, db, buyer):
        other_buyer = make_user(db, "Other Buyer", buyer=True)
        gig = make_gig(db, buyer)
        assert login(other_buyer).post(f"/gigs/{gig.id}/accept").status_code == 403

    def test_clashing_booking_is_rejected(self, login, db, buyer, worker):
        make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED, start=GIG_START)
        clash = make_gig(db, buyer, start=GIG_START + timedelta(hours=2))

        response = login(worker).post(f"/gigs/{clash.id}/accept")

        assert response.status_code == 409
        assert response.json()["detail"] == "You already have an accepted gig at this time"

    def test_back_to_back_booking_is_fine(self, login, db, buyer, worker):
        make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED, start=GIG_START, hours=4)
        next_gig = make_gig(db, buyer, start=GIG_START + timedelta(hours=4))
        assert login(worker).post(f"/gigs/{next_gig.id}/accept").status_code == 200

    def test_decline_closes_the_offer(self, login, db, buyer, worker, other_worker):
        gig = make_gig(db, buyer)

        response = login(worker).post(f"/gigs/{gig.id}/decline")

        assert response.status_code == 200
        assert _gig(db, gig.id).status_internal == GigStatus.DECLINED_BY_WORKER.value
        assert [n.type for n in _notifications_for(db, buyer)] == ["gigDeclined"]
        assert login(other_worker).post(f"/gigs/{gig.id}/accept").status_code == 404


class TestStatusUpdates:
    def test_accept_through_status_endpoint(self, login, db, buyer, worker):
        gig = make_gig(db, buyer)

        response = login(worker).post(f"/gigs/{gig.id}/status", json={"role": "worker", "action": "accept"})

        assert response.status_code == 200
        assert _gig(db, gig.id).worker_user_id == worker.id

    def test_buyer_cannot_accept_as_buyer(self, login, db, buyer):
        gig = make_gig(db, buyer)
        response = login(buyer).post(f"/gigs/{gig.id}/status", json={"role": "buyer", "action": "accept"})
        assert response.status_code == 400

    def test_buyer_cancel_notifies_worker(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)

        response = login(buyer).post(
            f"/gigs/{gig.id}/status", json={"role": "buyer", "action": "cancel", "reason": "Event postponed"}
        )

        assert response.status_code == 200
        stored = _gig(db, gig.id)
        assert stored.status_internal == GigStatus.CANCELLED_BY_BUYER.value
        assert stored.cancellation_party == "BUYER"
        assert stored.cancellation_reason == "Event postponed"
        assert [n.type for n in _notifications_for(db, worker)] == ["gigCancelled"]

    def test_worker_cancel(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)

        response = login(worker).post(f"/gigs/{gig.id}/status", json={"role": "worker", "action": "cancel"})

        assert response.status_code == 200
        assert _gig(db, gig.id).status_internal == GigStatus.CANCELLED_BY_WORKER.value
        assert [n.type for n in _notifications_for(db, buyer)] == ["gigCancelled"]

    def test_worker_cannot_cancel_unassigned_gig(self, login, db, buyer, worker):
        gig = make_gig(db, buyer)
        response = login(worker).post(f"/gigs/{gig.id}/status", json={"role": "worker", "action": "cancel"})
        assert response.status_code == 404

    def test_paid_gig_cannot_be_cancelled(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.PAID)
        response = login(buyer).post(f"/gigs/{gig.id}/status", json={"role": "buyer", "action": "cancel"})
        assert response.status_code == 409


class TestRunningTheGig:
    def test_start_then_both_confirm(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)

        assert login(worker).post(f"/gigs/{gig.id}/start").json()["status"] == GigStatus.IN_PROGRESS.value

        first = login(worker).post(f"/gigs/{gig.id}/complete")
        assert first.json()["status"] == GigStatus.PENDING_COMPLETION_BUYER.value
        assert login(worker).post(f"/gigs/{gig.id}/complete").status_code == 400

        second = login(buyer).post(f"/gigs/{gig.id}/complete")
        assert second.json()["status"] == GigStatus.COMPLETED.value
        stored = _gig(db, gig.id)
        assert stored.worker_confirmed_at is not None
        assert stored.buyer_confirmed_at is not None

    def test_buyer_confirms_first(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.IN_PROGRESS)

        response = login(buyer).post(f"/gigs/{gig.id}/complete")

        assert response.json()["status"] == GigStatus.PENDING_COMPLETION_WORKER.value
        assert [n.type for n in _notifications_for(db, worker)] == ["gigCompletion"]

    def test_only_the_assigned_worker_starts(self, login, db, buyer, worker, other_worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        assert login(other_worker).post(f"/gigs/{gig.id}/start").status_code == 404

    def test_outsider_cannot_confirm(self, login, db, buyer, worker, other_worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.IN_PROGRESS)
        assert login(other_worker).post(f"/gigs/{gig.id}/complete").status_code == 403


class TestDeleteGig:
    def test_delete_pending_gig(self, login, db, buyer):
        gig = make_gig(db, buyer)

        response = login(buyer).delete(f"/gigs/{gig.id}")

        assert response.status_code == 200
        assert _gig(db, gig.id) is None

    def test_accepted_gig_cannot_be_deleted(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        assert login(buyer).delete(f"/gigs/{gig.id}").status_code == 400

    def test_gig_with_payments_cannot_be_deleted(self, login, db, buyer):
        gig = make_gig(db, buyer)
        db.add(Payment(gig_id=gig.id, payer_user_id=buyer.id, amount_gross=1000, status=PaymentStatus.FAILED.value))
        db.commit()

        assert login(buyer).delete(f"/gigs/{gig.id}").status_code == 400

    def test_only_owner_deletes(self, login, db, buyer, worker):
        gig = make_gig(db, buyer)
        assert login(worker).delete(f"/gigs/{gig.id}").status_code == 404


class TestDelegation:
    def test_worker_delegates_to_colleague(self, login, db, buyer, worker, other_worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)

        response = login(worker).post(
            f"/gigs/{gig.id}/delegate", json={"newWorkerId": other_worker.id, "reason": "Family emergency"}
        )

        assert response.status_code == 200
        stored = _gig(db, gig.id)
        assert stored.worker_user_id is None
        assert stored.status_internal == GigStatus.PENDING_WORKER_ACCEPTANCE.value
        assert stored.adjustment_notes == "Family emergency"

        [invite] = _notifications_for(db, other_worker)
        assert invite.title == "🎯 Gig Delegated to You"
        assert invite.body == "Will Worker has delegated you for this gig!"
        assert invite.path == f"/user/{other_worker.worker_profile.id}/worker/gigs/{gig.id}"
        assert [n.title for n in _notifications_for(db, buyer)] == ["🔄 Gig Delegated"]
        assert _notifications_for(db, worker) == []

        # The delegate picks it up like any open offer
        assert login(other_worker).post(f"/gigs/{gig.id}/accept").status_code == 200

    def test_buyer_delegation_warns_previous_worker(self, login, db, buyer, worker, other_worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)

        response = login(buyer).post(f"/gigs/{gig.id}/delegate", json={"newWorkerId": other_worker.id})

        assert response.status_code == 200
        assert [n.title for n in _notifications_for(db, worker)] == ["⚠️ Gig Delegated Away"]
        assert _notifications_for(db, buyer) == []

    def test_cannot_delegate_to_current_worker(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        response = login(buyer).post(f"/gigs/{gig.id}/delegate", json={"newWorkerId": worker.id})
        assert response.status_code == 400

    def test_cannot_delegate_to_non_worker(self, login, db, buyer, worker):
        other_buyer = make_user(db, "Other Buyer", buyer=True)
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        response = login(buyer).post(f"/gigs/{gig.id}/delegate", json={"newWorkerId": other_buyer.id})
        assert response.status_code == 404

    def test_completed_gig_cannot_be_delegated(self, login, db, buyer, worker, other_worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.COMPLETED)
        response = login(buyer).post(f"/gigs/{gig.id}/delegate", json={"newWorkerId": other_worker.id})
        assert response.status_code == 400

    def test_search_candidates(self, login, db, buyer, worker, other_worker):
        newbie = make_user(db, "Nia Newbie", worker=True)
        make_worker_profile(db, newbie)
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        client = login(buyer)

        everyone = client.get(f"/gigs/{gig.id}/delegate/workers").json()
        assert {c["id"] for c in everyone} == {other_worker.id, newbie.id}

        by_skill = client.get(f"/gigs/{gig.id}/delegate/workers", params={"q": "serv"}).json()
        assert [c["id"] for c in by_skill] == [other_worker.id]
        assert by_skill[0]["primarySkill"] == "Server"
        assert by_skill[0]["experienceYears"] == 6
        assert by_skill[0]["username"] == "olive.other"

        by_name = client.get(f"/gigs/{gig.id}/delegate/workers", params={"q": "NIA"}).json()
        assert by_name[0]["primarySkill"] == "Professional"
        assert by_name[0]["location"] == "Location not specified"
