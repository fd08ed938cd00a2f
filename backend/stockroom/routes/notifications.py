# Overview: Flask API routes for the notification feed.

from flask import Blueprint, request, jsonify, current_app

from ..services import notification_service
from ..validation import coerce_integer, parse_limit, ValidationError, NotFoundError
from ..decorators import require_auth
from .responses import error, server_error

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("")
@require_auth
def list_notifications_route():
    """
    Newest first.

    Query params:
    - unread: "true" to return only unread notifications
    - limit: int (optional, default NOTIFICATION_FEED_LIMIT)
    """
    unread_only = request.args.get("unread", "false").lower() == "true"
    limit = parse_limit(
        request.args.get("limit"),
        default=current_app.config["NOTIFICATION_FEED_LIMIT"],
        maximum=current_app.config["MAX_LIST_LIMIT"],
    )
    try:
        items = notification_service.list_notifications(unread_only=unread_only, limit=limit)
    except Exception:
        return server_error("Failed to fetch notifications")
    return jsonify(items), 200


@notifications_bp.get("/unread-count")
@require_auth
def unread_count_route():
    return jsonify({"unread": notification_service.get_unread_count()}), 200


@notifications_bp.patch("")
@require_auth
def mark_read_route():
    """Body: {id, is_read=true}."""
    data = request.get_json(silent=True) or {}
    raw_id = data.get("id")
    if raw_id is None or raw_id == "":
        return error("Notification ID is required", 400)

    is_read = data.get("is_read", True)
    if not isinstance(is_read, bool):
        return error("is_read must be a boolean", 400)

    try:
        notification_id = coerce_integer("id", raw_id)
        updated = notification_service.mark_read(notification_id, is_read=is_read)
    except ValidationError as e:
        return error(str(e), 400)
    except NotFoundError as e:
        return error(str(e), 404)
    except Exception:
        return server_error("Failed to update notification")

    return jsonify(updated), 200


@notifications_bp.post("/read-all")
@require_auth
def mark_all_read_route():
    try:
        updated = notification_service.mark_all_read()
    except Exception:
        return server_error("Failed to update notifications")
    return jsonify({"updated": updated}), 200


@notifications_bp.delete("")
@require_auth
def purge_read_route():
    """Delete all read notifications. Safe to repeat."""
    try:
        deleted = notification_service.purge_read()
    except Exception:
        return server_error("Failed to delete notifications")
    return jsonify({"message": "Read notifications deleted successfully", "deleted": deleted}), 200
