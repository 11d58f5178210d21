"""Tests for worker availability slots"""

from able_gigs.domain.availability.service import (
    INVALID_RANGE,
    OVERLAPS_AVAILABILITY,
    OVERLAPS_GIG,
    validate_availability,
)
from able_gigs.models import GigStatus, WorkerAvailability
from conftest import GIG_START, make_gig


def _slot(start="2030-06-02T09:00:00", end="2030-06-02T17:00:00", **extra):
    return {"startTime": start, "endTime": end, **extra}


class TestValidateAvailability:
    def test_inverted_range_reports_only_the_range(self, db, worker):
        db.add(
            WorkerAvailability(
                user_id=worker.id,
                start_time=GIG_START.replace(hour=8),
                end_time=GIG_START.replace(hour=18),
            )
        )
        db.commit()

        errors = validate_availability(db, worker.id, GIG_START.replace(hour=12), GIG_START.replace(hour=10))

        assert errors == [INVALID_RANGE]

    def test_both_overlaps_reported(self, db, buyer, worker):
        make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        db.add(
            WorkerAvailability(
                user_id=worker.id,
                start_time=GIG_START.replace(hour=8),
                end_time=GIG_START.replace(hour=18),
            )
        )
        db.commit()

        errors = validate_availability(db, worker.id, GIG_START.replace(hour=10), GIG_START.replace(hour=11))

        assert errors == [OVERLAPS_AVAILABILITY, OVERLAPS_GIG]

    def test_touching_slots_do_not_overlap(self, db, worker):
        db.add(
            WorkerAvailability(
                user_id=worker.id,
                start_time=GIG_START.replace(hour=8),
                end_time=GIG_START.replace(hour=12),
            )
        )
        db.commit()

        assert validate_availability(db, worker.id, GIG_START.replace(hour=12), GIG_START.replace(hour=14)) == []

    def test_unaccepted_gigs_are_ignored(self, db, buyer, worker):
        make_gig(db, buyer, worker=worker, status=GigStatus.PENDING_WORKER_ACCEPTANCE)

        assert validate_availability(db, worker.id, GIG_START, GIG_START.replace(hour=11)) == []


class TestAvailabilityEndpoints:
    def test_create_and_list(self, login, worker):
        client = login(worker)

        response = client.post(
            "/availability",
            json=_slot(notes="Evenings preferred", days=["Mon", "Tue"], frequency="weekly"),
        )

        assert response.status_code == 201
        assert response.json()["days"] == ["Mon", "Tue"]
        listed = client.get("/availability").json()
        assert [s["id"] for s in listed] == [response.json()["id"]]
        assert client.get("/availability", params={"from": "2030-06-03T00:00:00"}).json() == []

    def test_buyers_cannot_add_availability(self, login, buyer):
        assert login(buyer).post("/availability", json=_slot()).status_code == 403

    def test_overlap_is_rejected(self, login, worker):
        client = login(worker)
        client.post("/availability", json=_slot())

        response = client.post("/availability", json=_slot("2030-06-02T12:00:00", "2030-06-02T20:00:00"))

        assert response.status_code == 400
        assert response.json()["detail"] == OVERLAPS_AVAILABILITY

    def test_overlap_with_accepted_gig(self, login, db, buyer, worker):
        make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)

        response = login(worker).post("/availability", json=_slot("2030-06-01T10:00:00", "2030-06-01T12:00:00"))

        assert response.status_code == 400
        assert response.json()["detail"] == OVERLAPS_GIG

    def test_unknown_day_is_rejected(self, login, worker):
        assert login(worker).post("/availability", json=_slot(days=["Funday"])).status_code == 422

    def test_update_ignores_the_slot_itself(self, login, worker):
        client = login(worker)
        slot_id = client.post("/availability", json=_slot()).json()["id"]

        response = client.put(f"/availability/{slot_id}", json={"endTime": "2030-06-02T18:00:00"})

        assert response.status_code == 200
        assert response.json()["endTime"].startswith("2030-06-02T18:00:00")

    def test_update_rechecks_range(self, login, worker):
        client = login(worker)
        slot_id = client.post("/availability", json=_slot()).json()["id"]

        response = client.put(f"/availability/{slot_id}", json={"endTime": "2030-06-02T08:00:00"})

        assert response.status_code == 400
        assert response.json()["detail"] == INVALID_RANGE

    def test_delete_and_clear(self, login, worker):
        client = login(worker)
        first = client.post("/availability", json=_slot()).json()["id"]
        client.post("/availability", json=_slot("2030-06-03T09:00:00", "2030-06-03T17:00:00"))
        client.post("/availability", json=_slot("2030-06-04T09:00:00", "2030-06-04T17:00:00"))

        assert client.delete(f"/availability/{first}").status_code == 200
        assert client.delete(f"/availability/{first}").status_code == 404
        assert client.delete("/availability").json()["deletedCount"] == 2
        assert client.get("/availability").json() == []

    def test_slots_are_private(self, login, worker, other_worker):
        slot_id = login(worker).post("/availability", json=_slot()).json()["id"]

        assert login(other_worker).delete(f"/availability/{slot_id}").status_code == 404
