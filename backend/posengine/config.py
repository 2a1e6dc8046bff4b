# backend/posengine/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/posengine.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///posengine.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Wall-clock budget for one sale's unit of work
    SALE_TRANSACTION_TIMEOUT_SECONDS = float(os.environ.get("SALE_TRANSACTION_TIMEOUT_SECONDS", "10"))

    # How long a SQLite writer waits on a locked database before failing
    SQLITE_BUSY_TIMEOUT_SECONDS = float(os.environ.get("SQLITE_BUSY_TIMEOUT_SECONDS", "15"))

    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
