# backend/slabworks/config.py
from __future__ import annotations
import os


class Config:
    # Signs the flash-notification cookie; override in every deployed environment
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/slabworks.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///slabworks.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Bearer session lifetime
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))

    # Attempts for lock/deadlock retries around reservation transactions
    RESERVATION_RETRY_ATTEMPTS = int(os.environ.get("RESERVATION_RETRY_ATTEMPTS", "3"))
