# backend/backoffice/routes/system.py
"""
System health and version endpoints.

The health check touches the tables every portal depends on so a broken
database shows up before a user hits it.
"""

import sys
import time

from flask import Blueprint, current_app

from ..extensions import db
from ..models import User, SessionToken, Product
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")

API_VERSION = "1.0.0"


def check_database_health() -> dict:
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        product_count = db.session.query(Product).count()
        active_sessions = db.session.query(SessionToken).filter(
            SessionToken.is_revoked.is_(False),
            SessionToken.expires_at > utcnow(),
        ).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "products": product_count,
                "active_sessions": active_sessions,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    healthy = database_health["status"] == "healthy"

    response = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": utcnow().isoformat() + "Z",
        "checks": {"database": database_health},
    }
    return response, 200 if healthy else 503


@system_bp.get("/version")
def version():
    """Non-sensitive deployment information. No secrets, paths or credentials."""
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": API_VERSION,
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": utcnow().isoformat() + "Z",
    }
