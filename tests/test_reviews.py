"""Tests for gig feedback and external recommendations"""

import pytest

from able_gigs.models import GigStatus, GigWorkerProfile, ModerationStatus, Notification, Review, ReviewType
from conftest import make_gig


@pytest.fixture
def profile(db, worker):
    return db.query(GigWorkerProfile).filter(GigWorkerProfile.user_id == worker.id).one()


def _recommendation(skill_id, **overrides):
    body = {
        "recommendationText": "Will ran our bar for a whole summer season.",
        "relationship": "Former manager",
        "recommenderName": "Rita Referee",
        "recommenderEmail": "rita@example.com",
        "skillId": skill_id,
    }
    body.update(overrides)
    return body


class TestGigFeedback:
    def test_buyer_reviews_worker(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.COMPLETED)

        response = login(buyer).post(
            f"/reviews/gigs/{gig.id}", json={"rating": 5, "comment": " Great work ", "wouldWorkAgain": True}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["targetUserId"] == worker.id
        assert body["targetRole"] == "GIG_WORKER"
        assert body["comment"] == "Great work"
        assert body["type"] == ReviewType.INTERNAL_PLATFORM.value
        notes = db.query(Notification).filter(Notification.user_id == worker.id).all()
        assert [n.type for n in notes] == ["review"]

    def test_worker_reviews_buyer(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.PAID)

        response = login(worker).post(f"/reviews/gigs/{gig.id}", json={"rating": 4})

        assert response.json()["targetUserId"] == buyer.id
        assert response.json()["targetRole"] == "BUYER"

    def test_one_review_per_gig(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.COMPLETED)
        client = login(buyer)
        client.post(f"/reviews/gigs/{gig.id}", json={"rating": 5})

        assert client.post(f"/reviews/gigs/{gig.id}", json={"rating": 1}).status_code == 409

    def test_gig_must_be_finished(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.ACCEPTED)
        assert login(buyer).post(f"/reviews/gigs/{gig.id}", json={"rating": 5}).status_code == 400

    def test_rating_range(self, login, db, buyer, worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.COMPLETED)
        assert login(buyer).post(f"/reviews/gigs/{gig.id}", json={"rating": 6}).status_code == 422

    def test_outsiders_cannot_review(self, login, db, buyer, worker, other_worker):
        gig = make_gig(db, buyer, worker=worker, status=GigStatus.COMPLETED)
        assert login(other_worker).post(f"/reviews/gigs/{gig.id}", json={"rating": 5}).status_code == 404


class TestRecommendations:
    def test_form_shows_worker_and_skills(self, client, worker, profile):
        response = client.get(f"/reviews/recommendations/{profile.id}")

        assert response.status_code == 200
        assert response.json()["userName"] == "Will Worker"
        assert [s["name"] for s in response.json()["skills"]] == ["Bartender"]

    def test_unknown_profile(self, client):
        assert client.get("/reviews/recommendations/missing").status_code == 404

    def test_submit_recommendation(self, client, db, worker, profile):
        skill_id = profile.skills[0].id

        response = client.post(f"/reviews/recommendations/{profile.id}", json=_recommendation(skill_id))

        assert response.status_code == 201
        db.expire_all()
        review = db.get(Review, response.json()["id"])
        assert review.target_user_id == worker.id
        assert review.type == ReviewType.EXTERNAL_REQUESTED.value
        assert review.moderation_status == ModerationStatus.PENDING.value
        assert review.recommender_email == "rita@example.com"
        assert review.relationship_to_target == "Former manager"

    def test_blank_fields_are_rejected(self, client, profile):
        skill_id = profile.skills[0].id
        response = client.post(
            f"/reviews/recommendations/{profile.id}", json=_recommendation(skill_id, relationship="   ")
        )
        assert response.status_code == 422

    def test_skill_must_belong_to_worker(self, client, other_worker, profile, db):
        other_profile = db.query(GigWorkerProfile).filter(GigWorkerProfile.user_id == other_worker.id).one()

        response = client.post(
            f"/reviews/recommendations/{profile.id}", json=_recommendation(other_profile.skills[0].id)
        )

        assert response.status_code == 400
