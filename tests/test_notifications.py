"""Tests for in-app notifications and preferences."""

from able_gigs.domain.notifications.service import NotificationService
from able_gigs.models import Notification


def _notify(db, user, title="Hello", **kwargs):
    NotificationService(db).notify(user.id, "test", title, "body", **kwargs)
    db.commit()


class TestNotify:
    def test_no_recipient_is_skipped(self, db):
        assert NotificationService(db).notify(None, "test", "Nobody") is None
        db.commit()
        assert db.query(Notification).count() == 0

    def test_notification_waits_for_commit(self, db, buyer):
        NotificationService(db).notify(buyer.id, "test", "Staged")
        db.rollback()
        assert db.query(Notification).count() == 0


class TestNotificationEndpoints:
    def test_list_and_mark_read(self, login, db, buyer):
        _notify(db, buyer, "First")
        _notify(db, buyer, "Second")
        client = login(buyer)

        listed = client.get("/notifications")
        assert listed.status_code == 200
        assert {n["title"] for n in listed.json()} == {"First", "Second"}
        assert client.get("/notifications/unread-count").json() == {"unread_count": 2}

        first_id = listed.json()[0]["id"]
        marked = client.post(f"/notifications/{first_id}/read")
        assert marked.json()["is_read"] is True
        assert client.get("/notifications/unread-count").json() == {"unread_count": 1}
        assert len(client.get("/notifications", params={"unread_only": True}).json()) == 1

        assert client.post("/notifications/read-all").json()["updated"] == 1
        assert client.get("/notifications/unread-count").json() == {"unread_count": 0}

    def test_cannot_read_someone_elses_notification(self, login, db, buyer, worker):
        _notify(db, worker, "Private")
        notification = db.query(Notification).one()

        response = login(buyer).post(f"/notifications/{notification.id}/read")

        assert response.status_code == 404

    def test_preferences_created_with_defaults(self, login, buyer):
        client = login(buyer)

        defaults = client.get("/notifications/preferences").json()
        assert defaults["email_gig_updates"] is True
        assert defaults["email_marketing"] is False

        updated = client.put("/notifications/preferences", json={"email_marketing": True})
        assert updated.json()["email_marketing"] is True
        assert updated.json()["email_gig_updates"] is True
