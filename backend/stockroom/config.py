# backend/stockroom/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockroom.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///stockroom.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)

    # Bearer tokens expire after this many hours
    SESSION_TTL_HOURS = _env_int("SESSION_TTL_HOURS", 24)

    DEFAULT_MIN_STOCK_LEVEL = _env_int("DEFAULT_MIN_STOCK_LEVEL", 10)

    # Default page sizes: the notification bell vs. transactional lists
    NOTIFICATION_FEED_LIMIT = _env_int("NOTIFICATION_FEED_LIMIT", 20)
    LIST_LIMIT = _env_int("LIST_LIMIT", 50)
    MAX_LIST_LIMIT = 200

    CORS_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
        ).split(",")
        if origin.strip()
    }


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "WARNING"
    BCRYPT_ROUNDS = 4
