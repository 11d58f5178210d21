"""Tests for incident detection and escalated issues"""

import re

import pytest

from able_gigs.domain.escalations.detection import (
    detect_incident,
    generate_incident_id,
    get_incident_severity,
)
from able_gigs.models import AppRole, EscalatedIssue
from conftest import make_user


class TestDetectIncident:
    def test_threat_is_detected(self):
        result = detect_incident("He keeps threatening me and I am scared")

        assert result.isIncident is True
        assert result.incidentType == "threats"
        assert result.confidence == 1.0
        assert "threatening me" in result.detectedKeywords
        assert result.suggestedAction.startswith("Threats are very serious")

    def test_ordinary_message(self):
        result = detect_incident("Thanks, the gig went well")

        assert result.isIncident is False
        assert result.incidentType is None
        assert result.confidence == 0
        assert result.suggestedAction == ""

    def test_single_weak_keyword_is_below_threshold(self):
        result = detect_incident("I felt a bit nervous")

        assert result.isIncident is False
        assert result.confidence == pytest.approx(0.225)

    def test_case_insensitive(self):
        assert detect_incident("UNSAFE WORKING CONDITIONS in the kitchen").incidentType == "unsafe_work_conditions"


class TestSeverity:
    @pytest.mark.parametrize(
        "incident_type, confidence, expected",
        [
            ("other", 0, "LOW"),
            ("inappropriate_behavior", 0.5, "MEDIUM"),
            ("harassment", 0.8, "HIGH"),
            ("threats", 0.8, "CRITICAL"),
            ("not_a_type", 0.2, "LOW"),
        ],
    )
    def test_severity(self, incident_type, confidence, expected):
        assert get_incident_severity(incident_type, confidence) == expected


def test_incident_ids_are_unique_and_readable():
    ids = {generate_incident_id() for _ in range(50)}

    assert len(ids) == 50
    assert all(re.fullmatch(r"INC-[0-9A-Z]+-[0-9A-Z]{6}", i) for i in ids)


class TestEscalationEndpoints:
    def test_detect_endpoint(self, login, buyer):
        response = login(buyer).post("/escalations/detect", json={"text": "I was injured by a chemical spill"})

        assert response.status_code == 200
        assert response.json()["incidentType"] == "unsafe_work_conditions"

    def test_escalation_is_graded(self, login, db, worker):
        response = login(worker).post(
            "/escalations",
            json={
                "issueType": "chat_escalation",
                "description": "The buyer is making me uncomfortable with inappropriate comments",
                "contextType": "chat",
            },
        )

        assert response.status_code == 201
        assert response.json()["severity"] == "CRITICAL"
        assert response.json()["status"] == "OPEN"

    def test_plain_escalation_has_no_severity(self, login, worker):
        response = login(worker).post(
            "/escalations", json={"issueType": "payment", "description": "My payout has not arrived"}
        )
        assert response.json()["severity"] is None

    def test_incident_report(self, login, db, worker):
        client = login(worker)

        response = client.post(
            "/escalations/incidents",
            json={"incidentType": "harassment", "description": "The manager kept following me around"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["severity"] == "HIGH"
        assert body["incidentId"] in body["message"]
        fetched = client.get(f"/escalations/{body['incidentId']}")
        assert fetched.status_code == 200
        assert fetched.json()["contextType"] == "incident"

    def test_blank_description_is_rejected(self, login, worker):
        response = login(worker).post("/escalations", json={"issueType": "payment", "description": "   "})
        assert response.status_code == 422

    def test_unknown_incident_type(self, login, worker):
        response = login(worker).post(
            "/escalations/incidents", json={"incidentType": "weather", "description": "It rained all day long"}
        )
        assert response.status_code == 422

    def test_issues_are_private(self, login, worker, other_worker):
        issue_id = login(worker).post(
            "/escalations", json={"issueType": "payment", "description": "Missing payout"}
        ).json()["id"]

        assert login(other_worker).get(f"/escalations/{issue_id}").status_code == 404
        assert login(other_worker).get("/escalations/mine").json() == []

    def test_admin_triage(self, login, db, worker):
        admin = make_user(db, "Ada Admin", app_role=AppRole.ADMIN.value)
        issue_id = login(worker).post(
            "/escalations", json={"issueType": "payment", "description": "Missing payout"}
        ).json()["id"]

        assert login(worker).get("/escalations/admin").status_code == 403

        client = login(admin)
        assert [i["id"] for i in client.get("/escalations/admin", params={"status": "OPEN"}).json()] == [issue_id]

        response = client.patch(
            f"/escalations/{issue_id}", json={"status": "RESOLVED", "resolutionNotes": "Payout re-sent"}
        )

        assert response.status_code == 200
        db.expire_all()
        issue = db.get(EscalatedIssue, issue_id)
        assert issue.status == "RESOLVED"
        assert issue.admin_user_id == admin.id
        assert client.get("/escalations/admin", params={"status": "OPEN"}).json() == []
