# backend/assetverse/routes/system.py
"""
System liveness, health and version endpoints.
"""

import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import User, Asset, Package
from assetverse.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        asset_count = db.session.query(Asset).count()
        package_count = db.session.query(Package).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy" if package_count else "degraded",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "assets": asset_count,
                "packages": package_count,
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


@system_bp.get("/")
def index():
    return "assetVerse is Running"


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    - 200: healthy, or degraded (no packages seeded yet)
    - 503: database unreachable
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
    env = "production" if not current_app.debug else "development"
    return {
        "api_version": "1.0.0",
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
