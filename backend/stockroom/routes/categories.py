# Overview: Flask API routes for categories; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..models import Category
from ..services import categories_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth
from .responses import error, server_error

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "description"}),
    required_on_create=frozenset({"name"}),
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
def list_categories():
    """All categories, by name, with product_count."""
    try:
        return jsonify(categories_service.list_categories()), 200
    except Exception:
        return server_error("Failed to fetch categories")


@categories_bp.get("/<int:category_id>")
def get_category(category_id: int):
    try:
        return jsonify(categories_service.get_category(category_id)), 200
    except NotFoundError as e:
        return error(str(e), 404)


@categories_bp.post("")
@require_auth
def create_category_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    except ValidationError as e:
        return error(str(e), 400)

    try:
        created = categories_service.create_category(patch=patch)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        return server_error("Failed to create category")

    return jsonify(created), 201


@categories_bp.put("/<int:category_id>")
@require_auth
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    except ValidationError as e:
        return error(str(e), 400)

    try:
        updated = categories_service.update_category(category_id=category_id, patch=patch)
    except NotFoundError as e:
        return error(str(e), 404)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        return server_error("Failed to update category")

    return jsonify(updated), 200


@categories_bp.delete("/<int:category_id>")
@require_auth
def delete_category_route(category_id: int):
    """Delete a category; its products remain, uncategorized."""
    try:
        categories_service.delete_category(category_id=category_id)
    except NotFoundError as e:
        return error(str(e), 404)
    except Exception:
        return server_error("Failed to delete category")

    return jsonify({"message": "Category deleted successfully"}), 200
