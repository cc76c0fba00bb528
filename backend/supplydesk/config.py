# backend/supplydesk/config.py
from __future__ import annotations
import os


def _csv(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/supplydesk.sqlite3 unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///supplydesk.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Sessions
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # GSTIN lookup (RapidAPI)
    GST_API_URL = os.environ.get(
        "GST_API_URL",
        "https://powerful-gstin-tool.p.rapidapi.com/v1/gstin/{gstin}/basic",
    )
    RAPIDAPI_HOST = os.environ.get("RAPIDAPI_HOST", "powerful-gstin-tool.p.rapidapi.com")
    RAPIDAPI_KEY = os.environ.get("RAPIDAPI_KEY", "")
    GST_LOOKUP_TIMEOUT = float(os.environ.get("GST_LOOKUP_TIMEOUT", "10"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ALLOWED_ORIGINS = _csv(os.environ.get(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
    ))

    # Seed credentials used by `flask system seed`
    SEED_SUPERADMIN_EMAIL = os.environ.get("SEED_SUPERADMIN_EMAIL", "admin@example.com")
    SEED_SUPERADMIN_PASSWORD = os.environ.get("SEED_SUPERADMIN_PASSWORD", "admin123")
