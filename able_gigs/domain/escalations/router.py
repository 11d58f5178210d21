"""Escalation router - support escalations, incident reports and admin triage"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_user
from ...database import get_db
from ...models import User
from ...rate_limiter import incident_report_limiter
from .detection import IncidentDetection, detect_incident
from .schemas import (
    EscalationCreate,
    IncidentDetectRequest,
    IncidentReportCreate,
    IncidentReportResponse,
    IssueResponse,
    IssueUpdate,
)
from .service import EscalationService, to_response

router = APIRouter(prefix="/escalations", tags=["Escalations"])


def get_escalation_service(db: Session = Depends(get_db)) -> EscalationService:
    """Dependency injection for EscalationService"""
    return EscalationService(db)


@router.post("/detect", response_model=IncidentDetection)
async def detect(data: IncidentDetectRequest, _: User = Depends(get_current_user)):
    """Check a support message for signs of an incident"""
    return detect_incident(data.text)


@router.post("", response_model=IssueResponse, status_code=201)
async def create_escalated_issue(
    data: EscalationCreate,
    current_user: User = Depends(get_current_user),
    service: EscalationService = Depends(get_escalation_service),
):
    return to_response(service.create_escalated_issue(current_user, data))


@router.post(
    "/incidents",
    response_model=IncidentReportResponse,
    status_code=201,
    dependencies=[Depends(incident_report_limiter)],
)
async def create_incident_report(
    data: IncidentReportCreate,
    current_user: User = Depends(get_current_user),
    service: EscalationService = Depends(get_escalation_service),
):
    return service.create_incident_report(current_user, data)


@router.get("/mine", response_model=list[IssueResponse])
async def list_user_issues(
    current_user: User = Depends(get_current_user),
    service: EscalationService = Depends(get_escalation_service),
):
    return [to_response(i) for i in service.list_user_issues(current_user)]


@router.get("/admin", response_model=list[IssueResponse])
async def list_issues_by_status(
    status: Optional[Literal["OPEN", "IN_PROGRESS", "RESOLVED", "CLOSED"]] = None,
    _: User = Depends(get_current_admin),
    service: EscalationService = Depends(get_escalation_service),
):
    return [to_response(i) for i in service.list_issues_by_status(status)]


@router.get("/{issue_id}", response_model=IssueResponse)
async def get_issue(
    issue_id: str,
    current_user: User = Depends(get_current_user),
    service: EscalationService = Depends(get_escalation_service),
):
    return to_response(service.get_issue(issue_id, current_user))


@router.patch("/{issue_id}", response_model=IssueResponse)
async def update_issue(
    issue_id: str,
    data: IssueUpdate,
    admin: User = Depends(get_current_admin),
    service: EscalationService = Depends(get_escalation_service),
):
    return to_response(service.update_issue(issue_id, data, admin))
