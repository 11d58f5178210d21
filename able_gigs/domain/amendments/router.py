"""Amendment router - gig change requests"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import AmendmentCreate, AmendmentRespond, AmendmentResponse, ExistingAmendment
from .service import AmendmentService, to_response

router = APIRouter(prefix="/gigs/{gig_id}/amendments", tags=["Amendments"])


def get_amendment_service(db: Session = Depends(get_db)) -> AmendmentService:
    """Dependency injection for AmendmentService"""
    return AmendmentService(db)


@router.get("/existing", response_model=ExistingAmendment)
async def find_existing_amendment(
    gig_id: str,
    current_user: User = Depends(get_current_user),
    service: AmendmentService = Depends(get_amendment_service),
):
    """The caller's latest pending request on this gig, if any"""
    return ExistingAmendment(amendId=service.find_existing_amendment(gig_id, current_user))


@router.put("/{amend_id}", response_model=AmendmentResponse)
async def create_or_update_amendment(
    gig_id: str,
    amend_id: str,
    data: AmendmentCreate,
    current_user: User = Depends(get_current_user),
    service: AmendmentService = Depends(get_amendment_service),
):
    """Use "new" as amend_id to open a request"""
    return to_response(service.create_or_update_amendment(amend_id, gig_id, current_user, data))


@router.get("/{amend_id}", response_model=AmendmentResponse)
async def get_amendment(
    gig_id: str,
    amend_id: str,
    current_user: User = Depends(get_current_user),
    service: AmendmentService = Depends(get_amendment_service),
):
    return to_response(service.get_amendment(amend_id, current_user))


@router.post("/{amend_id}/cancel", response_model=AmendmentResponse)
async def cancel_amendment(
    gig_id: str,
    amend_id: str,
    current_user: User = Depends(get_current_user),
    service: AmendmentService = Depends(get_amendment_service),
):
    return to_response(service.cancel_amendment(amend_id, current_user))


@router.post("/{amend_id}/respond", response_model=AmendmentResponse)
async def respond_to_amendment(
    gig_id: str,
    amend_id: str,
    data: AmendmentRespond,
    current_user: User = Depends(get_current_user),
    service: AmendmentService = Depends(get_amendment_service),
):
    return to_response(service.respond_to_amendment(amend_id, current_user, data))
