# backend/pharmacy/config.py
from __future__ import annotations
import os
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _engine_options(database_uri: str) -> dict:
    # SQLite uses a static/singleton pool that rejects sizing arguments
    if database_uri.startswith("sqlite"):
        return {}
    return {
        "pool_size": int(os.environ.get("STORE_POOL_SIZE", 10)),
        "max_overflow": 0,
        "pool_timeout": int(os.environ.get("STORE_POOL_TIMEOUT", 30)),
        "pool_pre_ping": True,
    }


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/pharmacy.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///pharmacy.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options(SQLALCHEMY_DATABASE_URI)

    # Product photos travel inside JSON bodies as base64
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_CONTENT_LENGTH", 50 * 1024 * 1024))

    LISTING_MAX_PAGE_SIZE = int(os.environ.get("LISTING_MAX_PAGE_SIZE", 1000))
    DASHBOARD_DEFAULT_DAYS = int(os.environ.get("DASHBOARD_DEFAULT_DAYS", 30))
    ALLOW_NEGATIVE_STOCK = _env_bool("ALLOW_NEGATIVE_STOCK", True)

    STATIC_DIR = os.environ.get(
        "STATIC_DIR",
        str(Path(__file__).resolve().parent.parent.parent / "dist"),
    )

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    }
