# backend/farmledger/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///farmledger.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # bcrypt cost factor; tests lower this to keep hashing fast
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Absolute lifetime of a login session token
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    ]

    # Admins may act on farms they own even when their farm_id points elsewhere.
    # Off unless explicitly enabled.
    FARM_OWNER_ACCESS = _env_flag("FARM_OWNER_ACCESS", False)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
