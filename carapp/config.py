"""Configuration objects for the car-service backend.

``create_app`` loads :class:`Config` unless another object (or a plain
mapping) is passed in, then lets ``APP_SETTINGS`` point at a Python file
with overrides.  Values are read from the environment once, at import time,
so export variables before starting the server.
"""
from __future__ import annotations

import os


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    # Must be at least 32 bytes; TokenService refuses shorter secrets.
    SECRET_KEY = os.environ.get("SECRET_KEY", "")

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///carapp.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Access token lifetime (24 hours by default).
    TOKEN_TTL_SECONDS = int(os.environ.get("TOKEN_TTL_SECONDS", str(24 * 60 * 60)))

    CORS_ORIGINS = _csv(os.environ.get("CORS_ORIGINS", "http://localhost:5173"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Default page size for the forum feed.
    FORUM_PAGE_SIZE = 20


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key-that-is-at-least-32-bytes-long"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    TOKEN_TTL_SECONDS = 3600
    LOG_LEVEL = "WARNING"
