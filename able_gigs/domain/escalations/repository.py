"""Escalation repository - Database operations for escalated issues"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import EscalatedIssue


class EscalationRepository:
    """Repository for escalated issue database operations"""

    @staticmethod
    def create_issue(db: Session, **data) -> EscalatedIssue:
        issue = EscalatedIssue(**data)
        db.add(issue)
        db.commit()
        db.refresh(issue)
        return issue

    @staticmethod
    def get_issue(db: Session, issue_id: str) -> Optional[EscalatedIssue]:
        return (
            db.query(EscalatedIssue)
            .filter((EscalatedIssue.id == issue_id) | (EscalatedIssue.incident_id == issue_id))
            .first()
        )

    @staticmethod
    def list_for_user(db: Session, user_id: str) -> list[EscalatedIssue]:
        return (
            db.query(EscalatedIssue)
            .filter(EscalatedIssue.user_id == user_id)
            .order_by(EscalatedIssue.created_at.desc())
            .all()
        )

    @staticmethod
    def list_by_status(db: Session, status: Optional[str] = None) -> list[EscalatedIssue]:
        query = db.query(EscalatedIssue)
        if status:
            query = query.filter(EscalatedIssue.status == status)
        return query.order_by(EscalatedIssue.created_at.desc()).all()
