# discussify/config.py
import os
from dotenv import load_dotenv

load_dotenv()

# ──────────────────────────────────────────────────────────────────────────────
# Database
# ──────────────────────────────────────────────────────────────────────────────
MONGO_URL = os.getenv("MONGODB_URL")
if not MONGO_URL:
    raise RuntimeError("MONGODB_URL env var is not set")

MONGO_DB = os.getenv("MONGODB_DB", "discussify")

# ──────────────────────────────────────────────────────────────────────────────
# Auth
# ──────────────────────────────────────────────────────────────────────────────
# Support either JWT_SECRET_KEY or JWT_SECRET (fallback)
SECRET_KEY = os.getenv("JWT_SECRET_KEY") or os.getenv("JWT_SECRET") or ""
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7"))

# ──────────────────────────────────────────────────────────────────────────────
# HTTP
# ──────────────────────────────────────────────────────────────────────────────
CORS_ORIGINS = [
    s.strip() for s in (os.getenv("CORS_ORIGINS", "*") or "*").split(",") if s.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ──────────────────────────────────────────────────────────────────────────────
# Listings
# ──────────────────────────────────────────────────────────────────────────────
POPULAR_COMMUNITIES_LIMIT = int(os.getenv("POPULAR_COMMUNITIES_LIMIT", "20"))
RECOMMENDED_COMMUNITIES_LIMIT = int(os.getenv("RECOMMENDED_COMMUNITIES_LIMIT", "10"))
DISCOVER_COMMUNITIES_LIMIT = int(os.getenv("DISCOVER_COMMUNITIES_LIMIT", "20"))
MAX_LIST_LIMIT = int(os.getenv("MAX_LIST_LIMIT", "100"))

# Soft-deleted communities older than this are hard-deleted by the reaper
COMMUNITY_REAP_AFTER_DAYS = int(os.getenv("COMMUNITY_REAP_AFTER_DAYS", "30"))
