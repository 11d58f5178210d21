"""Tests for gig amendment requests"""

from datetime import datetime

from able_gigs.models import AmendmentStatus, Gig, GigAmendmentRequest, GigStatus, Notification
from conftest import make_gig, make_user


def _url(gig, suffix=""):
    return f"/gigs/{gig.id}/amendments{suffix}"


def _request(client, gig, new_values, reason="Running late"):
    return client.put(
        _url(gig, "/new"),
        json={"requestType": "GIG_UPDATE", "newValues": new_values, "reason": reason},
    )


class TestCreateAmendment:
    def test_worker_requests_a_change(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)

        response = _request(login(worker), gig, {"hourly_rate": 25})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == AmendmentStatus.PENDING.value
        assert body["oldValues"]["hourly_rate"] == 20.0
        assert body["requesterId"] == worker.id
        notes = db.query(Notification).filter(Notification.user_id == buyer.id).all()
        assert [n.type for n in notes] == ["gigAmendment"]

    def test_unknown_fields_are_rejected(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        assert _request(login(worker), gig, {"title": "Something else"}).status_code == 422

    def test_outsiders_cannot_request(self, login, db, buyer, worker, other_worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        assert _request(login(other_worker), gig, {"hourly_rate": 25}).status_code == 403

    def test_completed_gig_cannot_be_amended(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.COMPLETED)
        assert _request(login(buyer), gig, {"notes": "Bring a shaker"}).status_code == 400

    def test_existing_pending_request(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        client = login(worker)
        assert client.get(_url(gig, "/existing")).json() == {"amendId": None}

        amend_id = _request(client, gig, {"hourly_rate": 25}).json()["id"]

        assert client.get(_url(gig, "/existing")).json() == {"amendId": amend_id}

    def test_requester_can_revise_pending_request(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        client = login(worker)
        amend_id = _request(client, gig, {"hourly_rate": 25}).json()["id"]

        response = client.put(
            _url(gig, f"/{amend_id}"),
            json={"requestType": "GIG_UPDATE", "newValues": {"hourly_rate": 30}},
        )

        assert response.status_code == 200
        assert response.json()["newValues"] == {"hourly_rate": 30}


class TestCancelAmendment:
    def test_requester_withdraws(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        client = login(worker)
        amend_id = _request(client, gig, {"hourly_rate": 25}).json()["id"]

        response = client.post(_url(gig, f"/{amend_id}/cancel"))

        assert response.status_code == 200
        assert response.json()["status"] == AmendmentStatus.WITHDRAWN.value
        assert client.post(_url(gig, f"/{amend_id}/cancel")).status_code == 400

    def test_only_requester_can_withdraw(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        amend_id = _request(login(worker), gig, {"hourly_rate": 25}).json()["id"]

        assert login(buyer).post(_url(gig, f"/{amend_id}/cancel")).status_code == 404


class TestRespondToAmendment:
    def test_accepting_applies_changes(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED, hours=4, rate=20)
        amend_id = _request(
            login(worker),
            gig,
            {"hourly_rate": 25, "start_time": "2030-06-01T10:00:00Z", "end_time": "2030-06-01T16:00:00Z"},
        ).json()["id"]

        response = login(buyer).post(_url(gig, f"/{amend_id}/respond"), json={"accept": True, "notes": "Fine"})

        assert response.status_code == 200
        assert response.json()["status"] == AmendmentStatus.ACCEPTED.value
        assert response.json()["responderNotes"] == "Fine"
        db.expire_all()
        stored = db.get(Gig, gig.id)
        assert stored.agreed_rate == 25
        assert stored.start_time == datetime(2030, 6, 1, 10, 0)
        assert stored.estimated_hours == 6
        assert stored.total_agreed_price == 150
        requester_notes = db.query(Notification).filter(Notification.user_id == worker.id).all()
        assert [n.type for n in requester_notes] == ["gigAmendment"]

    def test_declining_leaves_gig_alone(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        amend_id = _request(login(worker), gig, {"hourly_rate": 25}).json()["id"]

        response = login(buyer).post(_url(gig, f"/{amend_id}/respond"), json={"accept": False})

        assert response.json()["status"] == AmendmentStatus.DECLINED.value
        db.expire_all()
        assert db.get(Gig, gig.id).agreed_rate == 20

    def test_requester_cannot_answer_own_request(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        client = login(worker)
        amend_id = _request(client, gig, {"hourly_rate": 25}).json()["id"]

        assert client.post(_url(gig, f"/{amend_id}/respond"), json={"accept": True}).status_code == 403

    def test_answered_request_is_final(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        amend_id = _request(login(worker), gig, {"hourly_rate": 25}).json()["id"]
        client = login(buyer)
        client.post(_url(gig, f"/{amend_id}/respond"), json={"accept": False})

        assert client.post(_url(gig, f"/{amend_id}/respond"), json={"accept": True}).status_code == 400

    def test_inverted_times_are_rejected(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        amend_id = _request(login(worker), gig, {"end_time": "2030-06-01T08:00:00"}).json()["id"]

        response = login(buyer).post(_url(gig, f"/{amend_id}/respond"), json={"accept": True})

        assert response.status_code == 400
        db.expire_all()
        assert db.get(GigAmendmentRequest, amend_id).status == AmendmentStatus.PENDING.value

    def test_non_positive_rate_is_rejected(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        amend_id = _request(login(worker), gig, {"hourly_rate": 0}).json()["id"]

        assert login(buyer).post(_url(gig, f"/{amend_id}/respond"), json={"accept": True}).status_code == 400

    def test_outsider_cannot_view(self, login, db, buyer, worker):
        outsider = make_user(db, "Nosy Neighbour", buyer=True)
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        amend_id = _request(login(worker), gig, {"hourly_rate": 25}).json()["id"]

        assert login(outsider).get(_url(gig, f"/{amend_id}")).status_code == 403
