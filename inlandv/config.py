# inlandv/config.py
# Environment-aware configuration for the Inland backend

import os
from pathlib import Path
from typing import Literal

# Environment detection
ENV: Literal["dev", "staging", "prod"] = os.environ.get("ENV", "dev")  # type: ignore
IS_DEV = (ENV == "dev")
IS_STAGING = (ENV == "staging")
IS_PROD = (ENV == "prod")

# JWT configuration
SECRET_KEY = os.environ.get("JWT_SECRET", os.environ.get("SECRET_KEY", "inlandv-dev-secret"))
ALGORITHM = "HS256"
TOKEN_DAYS = int(os.environ.get("TOKEN_DAYS", "7"))
AUTH_COOKIE_NAME = "token"

# Database configuration
# DATABASE_URL takes precedence (managed Postgres); SQLite for local development
DATABASE_URL = os.environ.get("DATABASE_URL", "").strip()
DATABASE_PATH = os.environ.get("DATABASE_PATH", "inlandv.db")
AUTO_MIGRATE = os.environ.get("AUTO_MIGRATE", "1" if IS_DEV else "0") in ("1", "true", "yes")

# File storage
STORAGE_PATH = os.environ.get("STORAGE_PATH", str(Path(__file__).resolve().parent.parent / "storage"))
UPLOADS_DIR = os.environ.get("UPLOADS_DIR", str(Path(STORAGE_PATH) / "uploads"))
MAX_UPLOAD_MB = int(os.environ.get("MAX_UPLOAD_MB", "100"))

# Rate limiting (per client IP, fixed window)
RATE_LIMIT_WINDOW_SECONDS = int(os.environ.get("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))
RATE_LIMIT_MAX_REQUESTS = int(os.environ.get("RATE_LIMIT_MAX_REQUESTS", "100"))
# Only behind a reverse proxy that sets it: X-Forwarded-For identifies the client
TRUST_PROXY = os.environ.get("TRUST_PROXY", "0") in ("1", "true", "yes")

# Lookup label cache
LOOKUP_CACHE_SECONDS = int(os.environ.get("LOOKUP_CACHE_SECONDS", str(5 * 60)))

# CORS origins (public site + CMS frontend)
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:3002",
    "http://127.0.0.1:3000",
]

if IS_STAGING or IS_PROD:
    extra_origins = os.environ.get("CORS_ORIGINS", "")
    if extra_origins:
        CORS_ORIGINS.extend(o.strip() for o in extra_origins.split(",") if o.strip())
    elif IS_PROD:
        CORS_ORIGINS.append("https://inlandv.com")

# Database type detection
IS_POSTGRES = DATABASE_URL.startswith(("postgres://", "postgresql://"))
IS_SQLITE = not IS_POSTGRES

print(f"[CONFIG] Environment: {ENV}")
print(f"[CONFIG] Database: {'PostgreSQL' if IS_POSTGRES else 'SQLite (local dev)'}")
print(f"[CONFIG] Uploads: {UPLOADS_DIR}")
