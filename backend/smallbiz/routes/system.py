# Overview: Unauthenticated liveness/readiness endpoint.

"""
GET /api/health

Each check runs a couple of cheap queries and reports its own latency.
Any failing check turns the whole response into a 503 so load balancers
can pull the instance.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Order, SessionToken, Tenant
from smallbiz.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def _timed(name: str, probe) -> dict:
    started = time.perf_counter()
    try:
        details = probe()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Health check %s failed", name)
        result = {"status": "unhealthy", "error": f"{name} unavailable"}
    else:
        result = {"status": "healthy", "details": details}
    result["latency_ms"] = round((time.perf_counter() - started) * 1000, 2)
    return result


def _database_probe() -> dict:
    return {
        "active_tenants": db.session.query(Tenant).filter_by(is_active=True).count(),
        "orders": db.session.query(Order).count(),
    }


def _sessions_probe() -> dict:
    live = db.session.query(SessionToken).filter(SessionToken.is_revoked.is_(False))
    return {
        "active_sessions": live.count(),
        "expired_pending_cleanup": live.filter(SessionToken.expires_at < utcnow()).count(),
    }


@system_bp.get("/health")
def health():
    started = time.perf_counter()
    checks = {
        "database": _timed("database", _database_probe),
        "session_service": _timed("session_service", _sessions_probe),
    }
    healthy = all(check["status"] == "healthy" for check in checks.values())

    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round((time.perf_counter() - started) * 1000, 2),
        "checks": checks,
    }
    return body, 200 if healthy else 503
