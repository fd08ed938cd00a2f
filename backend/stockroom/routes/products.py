# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/stockroom/routes/products.py
"""
Product management routes.

Reads are public; writes require authentication.
"""
from flask import Blueprint, request, jsonify

from ..models import Product
from ..services import products_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    coerce_integer,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth
from .responses import error, server_error

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "sku", "description", "category_id", "price", "quantity", "min_stock_level"}),
    required_on_create=frozenset({"name", "sku", "price"}),
    required_not_null=frozenset({"quantity", "min_stock_level"}),
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List products, newest first.

    Query params:
    - category_id: int (optional) - filter by category
    - search: str (optional) - case-insensitive match on name or SKU
    """
    raw_category = request.args.get("category_id")
    search = request.args.get("search")

    try:
        category_id = coerce_integer("category_id", raw_category) if raw_category else None
    except ValidationError as e:
        return error(str(e), 400)

    try:
        return jsonify(products_service.list_products(category_id=category_id, search=search)), 200
    except Exception:
        return server_error("Failed to fetch products")


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    try:
        return jsonify(products_service.get_product(product_id)), 200
    except NotFoundError as e:
        return error(str(e), 404)


@products_bp.post("")
@require_auth
def create_product_route():
    """
    Create a new product.

    Emits PRODUCT_ADDED, and LOW_STOCK if it starts below its minimum.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return error(str(e), 400)

    try:
        created = products_service.create_product(patch=patch)
    except ConflictError as e:
        return error(str(e), 409)
    except NotFoundError as e:
        return error(str(e), 404)
    except Exception:
        return server_error("Failed to create product")

    return jsonify(created), 201


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    """Update a product (partial: only the provided fields change)."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return error(str(e), 400)

    try:
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except NotFoundError as e:
        return error(str(e), 404)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        return server_error("Failed to update product")

    return jsonify(updated), 200


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    """Delete a product; its sales and stock movements are kept."""
    try:
        products_service.delete_product(product_id=product_id)
    except NotFoundError as e:
        return error(str(e), 404)
    except Exception:
        return server_error("Failed to delete product")

    return jsonify({"message": "Product deleted successfully"}), 200
