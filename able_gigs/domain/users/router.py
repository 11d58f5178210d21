"""User router - account, role context and profile endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_token_claims
from ...database import get_db
from ...models import User
from .schemas import (
    BuyerProfileResponse,
    BuyerProfileUpdate,
    PublicWorkerProfile,
    RegisterRequest,
    RoleContextUpdate,
    SkillCreate,
    SkillResponse,
    SkillUpdate,
    UserResponse,
    WorkerProfileUpdate,
)
from .service import UserService, skill_to_response

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


@router.post("/register", response_model=UserResponse)
async def register(
    data: RegisterRequest,
    claims: dict = Depends(get_token_claims),
    service: UserService = Depends(get_user_service),
):
    """Create the platform account for a freshly signed-up Firebase user"""
    return service.to_response(service.register(claims, data))


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.to_response(current_user)


@router.put("/me/context", response_model=UserResponse)
async def update_role_context(
    data: RoleContextUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Switch between buyer and gig worker views"""
    return service.to_response(service.update_role_context(current_user, data))


@router.put("/me/worker-profile")
async def update_worker_profile(
    data: WorkerProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    profile = service.update_worker_profile(current_user, data)
    return {
        "id": profile.id,
        "bio": profile.full_bio,
        "location": profile.location,
        "latitude": profile.latitude,
        "longitude": profile.longitude,
    }


@router.post("/me/skills", response_model=SkillResponse)
async def add_skill(
    data: SkillCreate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return skill_to_response(service.add_skill(current_user, data))


@router.put("/me/skills/{skill_id}", response_model=SkillResponse)
async def update_skill(
    skill_id: str,
    data: SkillUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return skill_to_response(service.update_skill(current_user, skill_id, data))


@router.delete("/me/skills/{skill_id}")
async def delete_skill(
    skill_id: str,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.delete_skill(current_user, skill_id)


@router.put("/me/buyer-profile", response_model=BuyerProfileResponse)
async def update_buyer_profile(
    data: BuyerProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.update_buyer_profile(current_user, data)


@router.get("/workers/{worker_profile_id}", response_model=PublicWorkerProfile)
async def get_public_worker_profile(
    worker_profile_id: str,
    _: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.get_public_worker_profile(worker_profile_id)
