# backend/storepos/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    ENV = os.environ.get("ENV", "development")

    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Signing key for the session cookie token. Loaded once by SessionCodec.init_app.
    SESSION_SECRET = os.environ.get("SESSION_SECRET", "dev-session-secret-change-me")
    SESSION_MAX_AGE = int(os.environ.get("SESSION_MAX_AGE", 60 * 60 * 24))
    SESSION_COOKIE_SECURE = _env_flag("SESSION_COOKIE_SECURE", ENV == "production")

    # SQLite DB stored in backend/instance/storepos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///storepos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # The store holding administrator accounts; hidden from store listings
    ADMIN_STORE_NAME = os.environ.get("ADMIN_STORE_NAME", "pos admins")

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", 10))
    PASSWORD_MIN_LENGTH = int(os.environ.get("PASSWORD_MIN_LENGTH", 6))
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", 12))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
