# backend/geoaccess/routes/system.py
"""
System health and version endpoints.

Provides a database health check and version information for deployment
debugging.
"""

import sys
import time

from flask import Blueprint, current_app

from ..extensions import db
from ..models import AllowedLocation, LocationAccessRequest, Organization
from geoaccess.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)

API_VERSION = "1.0.0"


def check_database_health() -> dict:
    """
    Check database connectivity and the location tables.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        org_count = db.session.query(Organization).count()
        pending_count = db.session.query(LocationAccessRequest).filter_by(status="pending").count()
        active_zone_count = db.session.query(AllowedLocation).filter(
            AllowedLocation.is_active.is_(True),
            AllowedLocation.deleted_at.is_(None),
        ).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "organizations": org_count,
                "pending_requests": pending_count,
                "active_allowed_locations": active_zone_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
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
    - 503: database unhealthy
    """
    database_health = check_database_health()
    http_status = 503 if database_health["status"] == "unhealthy" else 200

    return {
        "status": database_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }, http_status


@system_bp.get("/version")
def version():
    """
    Non-sensitive deployment information. Never exposes secrets, database
    credentials or internal paths.
    """
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": API_VERSION,
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }