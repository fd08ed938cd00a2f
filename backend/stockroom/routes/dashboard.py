from flask import Blueprint, jsonify

from ..decorators import require_auth
from ..services import dashboard_service
from .responses import server_error


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
@require_auth
def dashboard_stats():
    try:
        return jsonify(dashboard_service.get_dashboard_stats()), 200
    except Exception:
        return server_error("Failed to fetch dashboard statistics")
