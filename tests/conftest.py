"""Shared fixtures: in-memory database, authenticated client, model factories."""

import os
from datetime import datetime, timedelta

# Configuration is read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SIGNING_SECRET", "whsec_test")
os.environ["GEMINI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from able_gigs.auth import get_token_claims
from able_gigs.database import Base, get_db
from able_gigs.main import app
from able_gigs.models import (
    Gig,
    GigStatus,
    GigWorkerProfile,
    Skill,
    User,
)
from able_gigs.rate_limiter import ai_match_limiter, incident_report_limiter, public_form_limiter

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

GIG_START = datetime(2030, 6, 1, 9, 0)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


async def no_rate_limit():
    return None


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    for limiter in (ai_match_limiter, incident_report_limiter, public_form_limiter):
        app.dependency_overrides[limiter] = no_rate_limit
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Authenticate the test client as `user` for the following requests"""

    def _login(user: User) -> TestClient:
        claims = {"sub": user.firebase_uid, "email": user.email, "name": user.full_name}
        app.dependency_overrides[get_token_claims] = lambda: claims
        return client

    return _login


def make_user(db, name: str, *, worker: bool = False, buyer: bool = False, **fields) -> User:
    slug = name.lower().replace(" ", ".")
    user = User(
        firebase_uid=f"uid-{slug}",
        email=f"{slug}@example.com",
        full_name=name,
        is_gig_worker=worker,
        is_buyer=buyer,
        **fields,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_worker_profile(db, user: User, skills=(), **fields) -> GigWorkerProfile:
    profile = GigWorkerProfile(user_id=user.id, **fields)
    db.add(profile)
    db.flush()
    for name, years, rate in skills:
        db.add(
            Skill(
                worker_profile_id=profile.id,
                name=name,
                experience_years=years,
                experience_months=int(years * 12),
                agreed_rate=rate,
            )
        )
    db.commit()
    db.refresh(profile)
    return profile


def make_gig(
    db,
    buyer: User,
    *,
    worker: User = None,
    status: GigStatus = GigStatus.PENDING_WORKER_ACCEPTANCE,
    start: datetime = GIG_START,
    hours: float = 4,
    rate: float = 20.0,
    title: str = "Bartender for wedding reception",
    **fields,
) -> Gig:
    values = {
        "buyer_user_id": buyer.id,
        "worker_user_id": worker.id if worker else None,
        "title_internal": title,
        "full_description": title,
        "exact_location": "Coordinates: 51.507351, -0.127758",
        "address_json": {"lat": 51.507351, "lng": -0.127758, "formatted_address": "10 Downing St, London"},
        "start_time": start,
        "end_time": start + timedelta(hours=hours),
        "agreed_rate": rate,
        "estimated_hours": hours,
        "total_agreed_price": round(rate * hours, 2),
        "status_internal": status.value,
        "able_fee_percent": 0.065,
    }
    values.update(fields)
    gig = Gig(**values)
    db.add(gig)
    db.commit()
    db.refresh(gig)
    return gig


@pytest.fixture
def buyer(db):
    return make_user(db, "Bea Buyer", buyer=True)


@pytest.fixture
def worker(db):
    user = make_user(db, "Will Worker", worker=True)
    make_worker_profile(db, user, skills=[("Bartender", 3, 18.0)], location="London")
    return user


@pytest.fixture
def other_worker(db):
    user = make_user(db, "Olive Other", worker=True)
    make_worker_profile(db, user, skills=[("Server", 6, 16.0)], location="London")
    return user
