"""Escalation service - support escalations and safety incident reports"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import EscalatedIssue, EscalationStatus, User
from .detection import detect_incident, generate_incident_id, get_incident_severity
from .repository import EscalationRepository
from .schemas import EscalationCreate, IncidentReportCreate, IncidentReportResponse, IssueResponse, IssueUpdate

logger = logging.getLogger(__name__)

# Confidence assumed for a report the user filed themselves
SELF_REPORTED_CONFIDENCE = 0.8


def to_response(issue: EscalatedIssue) -> IssueResponse:
    return IssueResponse(
        id=issue.id,
        incidentId=issue.incident_id,
        userId=issue.user_id,
        gigId=issue.gig_id,
        issueType=issue.issue_type,
        contextType=issue.context_type,
        description=issue.description,
        severity=issue.severity,
        status=issue.status,
        adminUserId=issue.admin_user_id,
        resolutionNotes=issue.resolution_notes,
        createdAt=issue.created_at,
        updatedAt=issue.updated_at,
    )


class EscalationService:
    """Service layer for escalated issues"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EscalationRepository()

    def create_escalated_issue(self, user: User, data: EscalationCreate) -> EscalatedIssue:
        detection = detect_incident(data.description)
        severity = (
            get_incident_severity(detection.incidentType, detection.confidence) if detection.isIncident else None
        )
        issue = self.repo.create_issue(
            self.db,
            user_id=user.id,
            gig_id=data.gigId,
            issue_type=data.issueType,
            context_type=data.contextType,
            description=data.description,
            severity=severity,
            status=EscalationStatus.OPEN.value,
        )
        logger.info(f"✅ Escalated issue created: {issue.id} ({data.issueType})")
        return issue

    def create_incident_report(self, user: User, data: IncidentReportCreate) -> IncidentReportResponse:
        incident_id = generate_incident_id()
        severity = get_incident_severity(data.incidentType, SELF_REPORTED_CONFIDENCE)

        self.repo.create_issue(
            self.db,
            user_id=user.id,
            incident_id=incident_id,
            gig_id=data.gigId,
            issue_type=data.incidentType,
            context_type="incident",
            description=data.description,
            severity=severity,
            status=EscalationStatus.OPEN.value,
        )
        logger.warning(f"🚨 Incident report created: {incident_id} by user {user.id}, severity {severity}")

        return IncidentReportResponse(
            incidentId=incident_id,
            severity=severity,
            message=(
                f"Incident report created successfully. Your incident ID is {incident_id}. "
                "Our support team will review this and contact you if needed."
            ),
        )

    def get_issue(self, issue_id: str, user: User) -> EscalatedIssue:
        issue = self.repo.get_issue(self.db, issue_id)
        if not issue or (issue.user_id != user.id and not user.is_admin):
            raise HTTPException(status_code=404, detail="Issue not found")
        return issue

    def list_user_issues(self, user: User) -> list[EscalatedIssue]:
        return self.repo.list_for_user(self.db, user.id)

    def list_issues_by_status(self, status: Optional[str] = None) -> list[EscalatedIssue]:
        return self.repo.list_by_status(self.db, status)

    def update_issue(self, issue_id: str, data: IssueUpdate, admin: User) -> EscalatedIssue:
        issue = self.repo.get_issue(self.db, issue_id)
        if not issue:
            raise HTTPException(status_code=404, detail="Issue not found")

        if data.status:
            issue.status = data.status
        if data.resolutionNotes:
            issue.resolution_notes = data.resolutionNotes
        issue.admin_user_id = admin.id

        self.db.commit()
        self.db.refresh(issue)
        logger.info(f"✅ Escalated issue updated: {issue.id} -> {issue.status}")
        return issue
