# Overview: Flask API routes for stock movements; parses input and returns JSON responses.

# backend/stockroom/routes/stock_movements.py
"""
Stock movement routes.

- IN adds to stock, OUT removes from it (never below zero), ADJUSTMENT
  sets it to an absolute level.
- Listing is public; recording a movement requires authentication.
"""
from flask import Blueprint, request, jsonify, current_app

from ..models import StockMovement
from ..services import inventory_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_movement,
    coerce_integer,
    parse_limit,
    ValidationError,
    NotFoundError,
    InvalidStateError,
)
from ..decorators import require_auth
from .responses import error, server_error

MOVEMENT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"product_id", "movement_type", "quantity", "reference_number", "notes"}),
    required_on_create=frozenset({"product_id", "movement_type", "quantity"}),
    required_not_null=frozenset({"product_id"}),
)

stock_movements_bp = Blueprint("stock_movements", __name__, url_prefix="/api/stock-movements")


@stock_movements_bp.get("")
def list_movements_route():
    """
    Most recent movements first.

    Query params:
    - product_id: int (optional)
    - limit: int (optional, default LIST_LIMIT)
    """
    raw_product = request.args.get("product_id")
    limit = parse_limit(
        request.args.get("limit"),
        default=current_app.config["LIST_LIMIT"],
        maximum=current_app.config["MAX_LIST_LIMIT"],
    )

    try:
        product_id = coerce_integer("product_id", raw_product) if raw_product else None
    except ValidationError as e:
        return error(str(e), 400)

    try:
        return jsonify(inventory_service.list_movements(product_id=product_id, limit=limit)), 200
    except Exception:
        return server_error("Failed to fetch stock movements")


@stock_movements_bp.post("")
@require_auth
def create_movement_route():
    payload = request.get_json(silent=True) or {}
    current_app.logger.debug("Stock movement request: %s", payload)

    try:
        patch = validate_payload(model=StockMovement, payload=payload, policy=MOVEMENT_POLICY, partial=False)
        enforce_rules_movement(patch)
    except ValidationError as e:
        return error(str(e), 400)

    try:
        movement = inventory_service.record_movement(
            product_id=patch["product_id"],
            movement_type=patch["movement_type"],
            quantity=patch["quantity"],
            reference_number=patch.get("reference_number"),
            notes=patch.get("notes"),
        )
    except NotFoundError as e:
        return error(str(e), 404)
    except (InvalidStateError, ValidationError) as e:
        return error(str(e), 400)
    except Exception:
        return server_error("Failed to create stock movement")

    return jsonify(movement.to_dict()), 201
