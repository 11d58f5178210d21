import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_uuid():
    return str(uuid.uuid4())


class GigStatus(str, enum.Enum):
    PENDING_WORKER_ACCEPTANCE = "PENDING_WORKER_ACCEPTANCE"
    PAYMENT_HELD_PENDING_ACCEPTANCE = "PAYMENT_HELD_PENDING_ACCEPTANCE"
    ACCEPTED = "ACCEPTED"
    DECLINED_BY_WORKER = "DECLINED_BY_WORKER"
    IN_PROGRESS = "IN_PROGRESS"
    PENDING_COMPLETION_WORKER = "PENDING_COMPLETION_WORKER"
    PENDING_COMPLETION_BUYER = "PENDING_COMPLETION_BUYER"
    COMPLETED = "COMPLETED"
    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    PAID = "PAID"
    CANCELLED_BY_BUYER = "CANCELLED_BY_BUYER"
    CANCELLED_BY_WORKER = "CANCELLED_BY_WORKER"
    CANCELLED_BY_ADMIN = "CANCELLED_BY_ADMIN"
    DISPUTED = "DISPUTED"


class RoleContext(str, enum.Enum):
    BUYER = "BUYER"
    GIG_WORKER = "GIG_WORKER"


class AppRole(str, enum.Enum):
    USER = "USER"
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    QA = "QA"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    REQUIRES_ACTION = "REQUIRES_ACTION"


class ModerationStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    AUTO_FLAGGED = "AUTO_FLAGGED"


class CancellationParty(str, enum.Enum):
    BUYER = "BUYER"
    WORKER = "WORKER"
    ADMIN = "ADMIN"
    SYSTEM = "SYSTEM"


class AmendmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    WITHDRAWN = "WITHDRAWN"


class StripeAccountStatus(str, enum.Enum):
    CONNECTED = "connected"
    PENDING_VERIFICATION = "pending_verification"
    INCOMPLETE = "incomplete"
    RESTRICTED = "restricted"
    DISABLED = "disabled"


class EscalationStatus(str, enum.Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class ReviewType(str, enum.Enum):
    INTERNAL_PLATFORM = "INTERNAL_PLATFORM"
    EXTERNAL_REQUESTED = "EXTERNAL_REQUESTED"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    firebase_uid = Column(String(128), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False, default="")
    phone = Column(String(30), nullable=True)
    app_role = Column(String(20), default=AppRole.USER.value, nullable=False)
    is_gig_worker = Column(Boolean, default=False, nullable=False)
    is_buyer = Column(Boolean, default=False, nullable=False)
    last_role_used = Column(String(20), nullable=True)  # BUYER or GIG_WORKER
    last_view_visited_buyer = Column(Text, nullable=True)
    last_view_visited_worker = Column(Text, nullable=True)
    # Stripe
    stripe_customer_id = Column(String(255), unique=True, nullable=True)  # buyers
    stripe_connect_account_id = Column(String(255), unique=True, nullable=True)  # workers
    can_receive_payouts = Column(Boolean, default=False, nullable=False)
    stripe_account_status = Column(String(30), nullable=True)
    # Moderation
    is_banned = Column(Boolean, default=False, nullable=False)
    is_disabled = Column(Boolean, default=False, nullable=False)
    profile_visibility = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    worker_profile = relationship(
        "GigWorkerProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    buyer_profile = relationship(
        "BuyerProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    notification_preferences = relationship(
        "NotificationPreference", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return self.app_role in (AppRole.ADMIN.value, AppRole.SUPER_ADMIN.value)


class GigWorkerProfile(Base):
    __tablename__ = "gig_worker_profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    full_bio = Column(Text, nullable=True)
    private_notes = Column(Text, nullable=True)
    location = Column(Text, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    response_rate_internal = Column(Float, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="worker_profile")
    skills = relationship("Skill", back_populates="worker_profile", cascade="all, delete-orphan")


class BuyerProfile(Base):
    __tablename__ = "buyer_profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    full_company_name = Column(String(255), nullable=True)
    vat_number = Column(String(50), nullable=True)
    business_registration_number = Column(String(100), nullable=True)
    billing_address_json = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="buyer_profile")


class Skill(Base):
    __tablename__ = "skills"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    worker_profile_id = Column(
        String(36), ForeignKey("gig_worker_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(100), nullable=False)
    experience_months = Column(Integer, nullable=False, default=0)
    experience_years = Column(Float, nullable=False, default=0)
    agreed_rate = Column(Float, nullable=False)
    skill_video_url = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    worker_profile = relationship("GigWorkerProfile", back_populates="skills")


class WorkerAvailability(Base):
    __tablename__ = "worker_availability"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    # Optional recurring pattern, kept as entered
    days = Column(JSON, nullable=True)  # e.g. ["Mon", "Tue"]
    frequency = Column(String(20), nullable=True)  # never, weekly, biweekly, monthly
    start_date = Column(String(10), nullable=True)  # YYYY-MM-DD
    start_time_str = Column(String(5), nullable=True)  # HH:MM
    end_time_str = Column(String(5), nullable=True)
    ends = Column(String(20), nullable=True)  # never, on_date, after_occurrences
    occurrences = Column(Integer, nullable=True)
    end_date = Column(String(10), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class DiscountCode(Base):
    __tablename__ = "discount_codes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    code = Column(String(50), unique=True, index=True, nullable=False)
    discount_type = Column(String(20), nullable=False, default=DiscountType.PERCENTAGE.value)
    value = Column(Float, nullable=False)  # percent (0-100) or fixed amount in cents
    is_active = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Gig(Base):
    __tablename__ = "gigs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    buyer_user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    worker_user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    title_internal = Column(String(255), nullable=False)
    full_description = Column(Text, nullable=True)
    exact_location = Column(Text, nullable=True)
    address_json = Column(JSON, nullable=True)  # {formatted_address, lat, lng, city, country, ...}
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    agreed_rate = Column(Float, nullable=False)
    estimated_hours = Column(Float, nullable=True)
    total_agreed_price = Column(Float, nullable=True)
    # Set when the buyer adjusts hours or rate after the gig
    final_rate = Column(Float, nullable=True)
    final_hours = Column(Float, nullable=True)
    final_agreed_price = Column(Float, nullable=True)
    status_internal = Column(
        String(40), default=GigStatus.PENDING_WORKER_ACCEPTANCE.value, nullable=False, index=True
    )
    able_fee_percent = Column(Float, nullable=True)  # 0.065 for 6.5%
    promo_code_applied = Column(String(50), nullable=True)
    discount_code_id = Column(String(36), ForeignKey("discount_codes.id"), nullable=True)
    moderation_status = Column(String(20), default=ModerationStatus.PENDING.value, nullable=False)
    cancellation_reason = Column(Text, nullable=True)
    cancellation_party = Column(String(20), nullable=True)
    notes_for_worker = Column(Text, nullable=True)
    notes_for_buyer = Column(Text, nullable=True)
    adjustment_notes = Column(Text, nullable=True)
    # Completion confirmations
    worker_confirmed_at = Column(DateTime, nullable=True)
    buyer_confirmed_at = Column(DateTime, nullable=True)
    adjusted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    buyer = relationship("User", foreign_keys=[buyer_user_id])
    worker = relationship("User", foreign_keys=[worker_user_id])
    discount_code = relationship("DiscountCode")
    payments = relationship("Payment", back_populates="gig", order_by="Payment.created_at")


class GigAmendmentRequest(Base):
    __tablename__ = "gig_amendment_requests"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    gig_id = Column(String(36), ForeignKey("gigs.id", ondelete="CASCADE"), nullable=False, index=True)
    requester_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    request_type = Column(String(50), nullable=False)  # e.g. GIG_UPDATE, RATE_CHANGE, TIME_CHANGE
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(String(20), default=AmendmentStatus.PENDING.value, nullable=False)
    responder_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    gig = relationship("Gig")
    requester = relationship("User")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    gig_id = Column(String(36), ForeignKey("gigs.id", ondelete="RESTRICT"), nullable=False, index=True)
    payer_user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    receiver_user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    # Amounts in the smallest currency unit (cents)
    amount_gross = Column(Integer, nullable=False)
    able_fee_amount = Column(Integer, nullable=False, default=0)
    stripe_fee_amount = Column(Integer, nullable=False, default=0)
    amount_net_to_worker = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="usd")
    status = Column(String(20), default=PaymentStatus.PENDING.value, nullable=False, index=True)
    stripe_payment_intent_id = Column(String(255), unique=True, nullable=True)
    stripe_charge_id = Column(String(255), unique=True, nullable=True)
    invoice_url = Column(Text, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    refunded_at = Column(DateTime, nullable=True)
    internal_notes = Column(Text, nullable=True)
    # Set in Python so holds made within the same second keep their order
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    gig = relationship("Gig", back_populates="payments")
    payer = relationship("User", foreign_keys=[payer_user_id])
    receiver = relationship("User", foreign_keys=[receiver_user_id])


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("gig_id", "author_user_id", "target_user_id", name="uq_review_gig_author_target"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    gig_id = Column(String(36), ForeignKey("gigs.id", ondelete="CASCADE"), nullable=True)
    author_user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    target_user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_id = Column(String(36), ForeignKey("skills.id", ondelete="SET NULL"), nullable=True)
    relationship_to_target = Column("relationship", Text, nullable=True)
    recommender_name = Column(Text, nullable=True)
    recommender_email = Column(Text, nullable=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    would_work_again = Column(Boolean, nullable=True)
    is_public = Column(Boolean, default=True, nullable=False)
    type = Column(String(30), default=ReviewType.INTERNAL_PLATFORM.value, nullable=False)
    moderation_status = Column(String(20), default=ModerationStatus.PENDING.value, nullable=False)
    target_role = Column(String(20), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    author = relationship("User", foreign_keys=[author_user_id])
    target = relationship("User", foreign_keys=[target_user_id])


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(50), nullable=False)  # gigOffer, gigDelegated, amendment, payment, ...
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=True)
    path = Column(String(500), nullable=True)  # frontend route to open
    gig_id = Column(String(36), ForeignKey("gigs.id", ondelete="SET NULL"), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class NotificationPreference(Base):
    __tablename__ = "notification_preferences"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    email_gig_updates = Column(Boolean, default=True, nullable=False)
    email_platform_announcements = Column(Boolean, default=True, nullable=False)
    email_marketing = Column(Boolean, default=False, nullable=False)
    sms_gig_alerts = Column(Boolean, default=True, nullable=False)
    fcm_updates = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="notification_preferences")


class EscalatedIssue(Base):
    __tablename__ = "escalated_issues"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    gig_id = Column(String(255), nullable=True)
    incident_id = Column(String(64), unique=True, nullable=True)  # INC-... for AI-detected incidents
    issue_type = Column(String(100), nullable=True)
    context_type = Column(String(50), nullable=True)  # chat, gig, support
    description = Column(Text, nullable=True)
    severity = Column(String(20), nullable=True)
    status = Column(String(50), default=EscalationStatus.OPEN.value, nullable=False, index=True)
    admin_user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolution_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", foreign_keys=[user_id])
