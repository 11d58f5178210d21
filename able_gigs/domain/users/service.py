"""User service - registration, role context, worker and buyer profiles"""

import logging
import math
import re

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import find_or_create_user
from ...models import RoleContext, Skill, User
from .repository import UserRepository
from .schemas import (
    BuyerProfileResponse,
    BuyerProfileUpdate,
    PublicReview,
    PublicWorkerProfile,
    RegisterRequest,
    RoleContextUpdate,
    SkillCreate,
    SkillResponse,
    SkillUpdate,
    UserResponse,
    WorkerProfileUpdate,
)

logger = logging.getLogger(__name__)

_SIMPLE_NUMBER = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*$")
_YEARS = re.compile(r"(\d+(?:\.\d+)?)\s*(?:years?|yrs?|y)\b")
_YEARS_AND_MONTHS = re.compile(r"(\d+(?:\.\d+)?)\s*(?:years?|yrs?|y)\b.*?(?<![\d.])(\d+)\s*(?:months?|mon|m)\b")
_MONTHS = re.compile(r"(?<![\d.])(\d+)\s*(?:months?|mon|m)\b")


def parse_experience(text: str) -> tuple[int, int]:
    """
    Parse free-text experience into whole (years, months).

    "5" -> (5, 0), "2.5 years" -> (2, 6), "3 years 6 months" -> (3, 6),
    "18 months" -> (1, 6). Unrecognised text counts as no experience.
    """
    if not text or not text.strip():
        return 0, 0

    lowered = text.lower()
    years = 0.0
    months = 0

    simple = _SIMPLE_NUMBER.match(lowered)
    both = _YEARS_AND_MONTHS.search(lowered)
    only_years = _YEARS.search(lowered)
    only_months = _MONTHS.search(lowered)

    if simple:
        years = float(simple.group(1))
    elif both:
        years, months = float(both.group(1)), int(both.group(2))
    elif only_years:
        years = float(only_years.group(1))
    elif only_months:
        months = int(only_months.group(1))

    whole_years = math.floor(years)
    months += round((years - whole_years) * 12)
    whole_years += months // 12
    return whole_years, months % 12


def skill_to_response(skill: Skill) -> SkillResponse:
    return SkillResponse(
        id=skill.id,
        name=skill.name,
        experienceYears=skill.experience_years,
        experienceMonths=skill.experience_months,
        agreedRate=skill.agreed_rate,
    )


class UserService:
    """Service layer for users and their profiles"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def to_response(self, user: User) -> UserResponse:
        return UserResponse(
            id=user.id,
            email=user.email,
            fullName=user.full_name,
            phone=user.phone,
            appRole=user.app_role,
            isBuyer=user.is_buyer,
            isGigWorker=user.is_gig_worker,
            lastRoleUsed=user.last_role_used,
            lastViewVisitedBuyer=user.last_view_visited_buyer,
            lastViewVisitedWorker=user.last_view_visited_worker,
            stripeCustomerId=user.stripe_customer_id,
            stripeConnectAccountId=user.stripe_connect_account_id,
            canReceivePayouts=user.can_receive_payouts,
            stripeAccountStatus=user.stripe_account_status,
            workerProfileId=user.worker_profile.id if user.worker_profile else None,
            buyerProfileId=user.buyer_profile.id if user.buyer_profile else None,
        )

    def _enable_role(self, user: User, role: str) -> None:
        if role == RoleContext.GIG_WORKER.value:
            user.is_gig_worker = True
            self.repo.get_or_create_worker_profile(self.db, user)
        else:
            user.is_buyer = True
            self.repo.get_or_create_buyer_profile(self.db, user)

    def register(self, claims: dict, data: RegisterRequest) -> User:
        """Create (or complete) the account behind a verified Firebase token"""
        user = find_or_create_user(self.db, claims)
        if user.is_banned or user.is_disabled:
            raise HTTPException(status_code=403, detail="This account has been disabled")

        user.full_name = data.fullName.strip()
        if data.phone:
            user.phone = data.phone
        self._enable_role(user, data.role)
        user.last_role_used = data.role

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"✅ Registered user {user.id} as {data.role}")
        return user

    def update_role_context(self, user: User, data: RoleContextUpdate) -> User:
        """Switch the active role and remember where the user was in it"""
        self._enable_role(user, data.role)
        user.last_role_used = data.role
        if data.lastViewVisited:
            if data.role == RoleContext.BUYER.value:
                user.last_view_visited_buyer = data.lastViewVisited
            else:
                user.last_view_visited_worker = data.lastViewVisited

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"🔄 User {user.id} switched to {data.role}")
        return user

    def _require_worker(self, user: User):
        if not user.is_gig_worker:
            raise HTTPException(status_code=403, detail="Only gig workers can manage a worker profile")
        return self.repo.get_or_create_worker_profile(self.db, user)

    def update_worker_profile(self, user: User, data: WorkerProfileUpdate):
        profile = self._require_worker(user)

        if data.bio is not None:
            profile.full_bio = data.bio.strip()
        if data.location is not None:
            profile.location = data.location.strip()
        if (data.latitude is None) != (data.longitude is None):
            raise HTTPException(status_code=400, detail="Latitude and longitude must be provided together")
        if data.latitude is not None:
            profile.latitude = data.latitude
            profile.longitude = data.longitude

        self.db.commit()
        self.db.refresh(profile)
        return profile

    def add_skill(self, user: User, data: SkillCreate) -> Skill:
        profile = self._require_worker(user)
        years, months = parse_experience(data.experience)

        skill = Skill(
            worker_profile_id=profile.id,
            name=data.name.strip(),
            experience_years=round(years + months / 12, 1),
            experience_months=years * 12 + months,
            agreed_rate=round(data.agreedRate, 2),
        )
        self.db.add(skill)
        self.db.commit()
        self.db.refresh(skill)
        logger.info(f"✅ Skill '{skill.name}' added for worker profile {profile.id}")
        return skill

    def _get_own_skill(self, user: User, skill_id: str) -> Skill:
        profile = self._require_worker(user)
        skill = self.repo.get_skill(self.db, skill_id, profile.id)
        if not skill:
            raise HTTPException(status_code=404, detail="Skill not found")
        return skill

    def update_skill(self, user: User, skill_id: str, data: SkillUpdate) -> Skill:
        skill = self._get_own_skill(user, skill_id)

        if data.name is not None:
            skill.name = data.name.strip()
        if data.experience is not None:
            years, months = parse_experience(data.experience)
            skill.experience_years = round(years + months / 12, 1)
            skill.experience_months = years * 12 + months
        if data.agreedRate is not None:
            skill.agreed_rate = round(data.agreedRate, 2)

        self.db.commit()
        self.db.refresh(skill)
        return skill

    def delete_skill(self, user: User, skill_id: str) -> dict:
        skill = self._get_own_skill(user, skill_id)
        self.db.delete(skill)
        self.db.commit()
        return {"message": "Skill deleted"}

    def update_buyer_profile(self, user: User, data: BuyerProfileUpdate) -> BuyerProfileResponse:
        if not user.is_buyer:
            raise HTTPException(status_code=403, detail="Only buyers can manage a buyer profile")
        profile = self.repo.get_or_create_buyer_profile(self.db, user)

        if data.companyName is not None:
            profile.full_company_name = data.companyName.strip()
        if data.vatNumber is not None:
            profile.vat_number = data.vatNumber.strip()
        if data.businessRegistrationNumber is not None:
            profile.business_registration_number = data.businessRegistrationNumber.strip()
        if data.billingAddress is not None:
            profile.billing_address_json = data.billingAddress

        self.db.commit()
        self.db.refresh(profile)
        return BuyerProfileResponse(
            id=profile.id,
            companyName=profile.full_company_name,
            vatNumber=profile.vat_number,
            businessRegistrationNumber=profile.business_registration_number,
            billingAddress=profile.billing_address_json,
        )

    def get_public_worker_profile(self, worker_profile_id: str) -> PublicWorkerProfile:
        profile = self.repo.get_worker_profile(self.db, worker_profile_id)
        if not profile or profile.user.is_banned or profile.user.is_disabled:
            raise HTTPException(status_code=404, detail="Worker not found")

        average, count = self.repo.get_rating_summary(self.db, profile.user_id)
        reviews = self.repo.get_public_reviews(self.db, profile.user_id)

        return PublicWorkerProfile(
            workerProfileId=profile.id,
            userId=profile.user_id,
            fullName=profile.user.full_name,
            bio=profile.full_bio,
            location=profile.location,
            skills=[skill_to_response(s) for s in profile.skills],
            averageRating=average,
            reviewCount=count,
            reviews=[
                PublicReview(
                    id=r.id,
                    rating=r.rating,
                    comment=r.comment,
                    type=r.type,
                    recommenderName=r.recommender_name,
                    createdAt=r.created_at,
                )
                for r in reviews
            ],
        )
