# backend/supplydesk/routes/system.py
"""
System health endpoint.

Checks the database, the session table and that at least one superadmin
account exists.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Admin, School, SessionToken, ROLE_SUPERADMIN
from supplydesk.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def _elapsed_ms(start_time: float) -> float:
    return round((time.time() - start_time) * 1000, 2)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        admin_count = db.session.query(Admin).count()
        school_count = db.session.query(School).count()
        return {
            "status": "healthy",
            "latency_ms": _elapsed_ms(start_time),
            "details": {"admins": admin_count, "schools": school_count},
        }
    except SQLAlchemyError:
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Database error"}


def check_session_service_health() -> dict:
    start_time = time.time()
    try:
        active_sessions = db.session.query(SessionToken).filter(
            SessionToken.is_revoked.is_(False),
            SessionToken.expires_at >= utcnow(),
        ).count()
        return {
            "status": "healthy",
            "latency_ms": _elapsed_ms(start_time),
            "details": {"active_sessions": active_sessions},
        }
    except SQLAlchemyError:
        current_app.logger.exception("Session service health check failed")
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Session service error"}


def check_auth_service_health() -> dict:
    start_time = time.time()
    try:
        superadmins = db.session.query(Admin).filter(
            Admin.role == ROLE_SUPERADMIN,
            Admin.is_active.is_(True),
        ).count()
        if not superadmins:
            return {
                "status": "degraded",
                "latency_ms": _elapsed_ms(start_time),
                "warning": "No active superadmin. Run `flask system seed` or `flask admins create`.",
            }
        return {"status": "healthy", "latency_ms": _elapsed_ms(start_time), "details": {"superadmins": superadmins}}
    except SQLAlchemyError:
        current_app.logger.exception("Auth service health check failed")
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Auth service error"}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded (still operational)
    - 503: one or more checks unhealthy
    """
    start_time = time.time()

    checks = {
        "database": check_database_health(),
        "session_service": check_session_service_health(),
        "auth_service": check_auth_service_health(),
    }
    statuses = [check["status"] for check in checks.values()]

    if "unhealthy" in statuses:
        overall_status, http_status = "unhealthy", 503
    elif "degraded" in statuses:
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": _elapsed_ms(start_time),
        "checks": checks,
    }, http_status
