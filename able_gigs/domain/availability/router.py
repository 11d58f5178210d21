"""Availability router - a worker's own availability calendar"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import AvailabilityCreate, AvailabilityResponse, AvailabilityUpdate
from .service import AvailabilityService, to_response

router = APIRouter(prefix="/availability", tags=["Availability"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


@router.get("", response_model=list[AvailabilityResponse])
async def list_availability(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    return [to_response(s) for s in service.list_availability(current_user, date_from, date_to)]


@router.post("", response_model=AvailabilityResponse, status_code=201)
async def create_availability(
    data: AvailabilityCreate,
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    return to_response(service.create_availability(current_user, data))


@router.put("/{slot_id}", response_model=AvailabilityResponse)
async def update_availability(
    slot_id: str,
    data: AvailabilityUpdate,
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    return to_response(service.update_availability(current_user, slot_id, data))


@router.delete("/{slot_id}")
async def delete_availability(
    slot_id: str,
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.delete_availability(current_user, slot_id)


@router.delete("")
async def clear_availability(
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Remove every slot the worker has saved"""
    return service.clear_availability(current_user)
