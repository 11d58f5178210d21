import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Local development falls back to a SQLite file next to the project
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./able_gigs.db")

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()

# Firebase Configuration
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Stripe Configuration
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SIGNING_SECRET = os.getenv("STRIPE_WEBHOOK_SIGNING_SECRET")
STRIPE_DEFAULT_CURRENCY = os.getenv("STRIPE_DEFAULT_CURRENCY", "usd")
STRIPE_CONNECT_COUNTRY = os.getenv("STRIPE_CONNECT_COUNTRY", "US")

# Platform fee taken from every captured payment (6.5%)
ABLE_FEE_PERCENT = float(os.getenv("ABLE_FEE_PERCENT", "0.065"))

# Gemini (generative AI) Configuration for worker matchmaking
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_TIMEOUT = float(os.getenv("GEMINI_TIMEOUT", "20"))

# Workers further than this from the gig are never suggested
MATCH_RADIUS_KM = float(os.getenv("MATCH_RADIUS_KM", "30"))

# Frontend base URL for redirects (Stripe onboarding return links)
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
