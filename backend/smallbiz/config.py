# backend/smallbiz/config.py
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

    # SQLite DB stored in backend/instance/smallbiz.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///smallbiz.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Orders
    ORDER_NUMBER_PREFIX = os.environ.get("ORDER_NUMBER_PREFIX", "ORD-")

    # List endpoints
    DEFAULT_PER_PAGE = _env_int("DEFAULT_PER_PAGE", 15)
    MAX_PER_PAGE = _env_int("MAX_PER_PAGE", 100)

    # Reports: ranges up to this many days are computed in the request,
    # longer ranges are queued and e-mailed
    REPORTS_IMMEDIATE_THRESHOLD_DAYS = _env_int("REPORTS_IMMEDIATE_THRESHOLD_DAYS", 7)
    REPORTS_DEFAULT_RANGE_DAYS = _env_int("REPORTS_DEFAULT_RANGE_DAYS", 7)
    REPORTS_TOP_PRODUCTS_LIMIT = _env_int("REPORTS_TOP_PRODUCTS_LIMIT", 5)
    REPORTS_FROM_EMAIL = os.environ.get("REPORTS_FROM_EMAIL", "reports@example.com")
    REPORTS_FROM_NAME = os.environ.get("REPORTS_FROM_NAME", "Sales Reports")

    # Outbound mail (delivery is skipped when SMTP_HOST is unset)
    SMTP_HOST = os.environ.get("SMTP_HOST")
    SMTP_PORT = _env_int("SMTP_PORT", 587)
    SMTP_USER = os.environ.get("SMTP_USER")
    SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD")
    SMTP_START_TLS = os.environ.get("SMTP_START_TLS", "true").lower() == "true"

    # Background jobs
    DAILY_SUMMARY_HOUR = _env_int("DAILY_SUMMARY_HOUR", 1)
    DAILY_SUMMARY_MINUTE = _env_int("DAILY_SUMMARY_MINUTE", 0)
    CELERY = {
        "broker_url": os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0"),
        "result_backend": os.environ.get("CELERY_RESULT_BACKEND", "redis://localhost:6379/0"),
        "task_ignore_result": True,
        "timezone": "UTC",
    }


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SMTP_HOST = None
    CELERY = {
        "broker_url": "memory://",
        "result_backend": "cache+memory://",
        "task_always_eager": True,
        "task_eager_propagates": True,
        "task_ignore_result": True,
        "timezone": "UTC",
    }
