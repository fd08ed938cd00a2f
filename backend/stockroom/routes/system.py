# Overview: Liveness endpoint for load balancers and the dev proxy.

import time

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db

system_bp = Blueprint("system", __name__, url_prefix="/api")


def _probe_database() -> dict:
    started = time.perf_counter()
    try:
        db.session.execute(text("SELECT 1"))
        ok = True
    except Exception:
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        ok = False
    result = {
        "status": "healthy" if ok else "unhealthy",
        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
    }
    if not ok:
        result["error"] = "Database error"
    return result


@system_bp.get("/health")
def health():
    """200 with status "ok", or 503 "degraded" when the database is unreachable."""
    database = _probe_database()
    status = "ok" if database["status"] == "healthy" else "degraded"
    return {"status": status, "database": database}, (200 if status == "ok" else 503)
