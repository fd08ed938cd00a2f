# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..models import SalesTransaction
from ..services import sales_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_sale,
    parse_limit,
    ValidationError,
    ConflictError,
    NotFoundError,
    InvalidStateError,
)
from ..decorators import require_auth
from .responses import error, server_error

SALE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"product_id", "quantity", "customer_name", "notes"}),
    required_on_create=frozenset({"product_id", "quantity"}),
    required_not_null=frozenset({"product_id"}),
)

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
def list_sales_route():
    """Most recent sales first. Query params: limit (default LIST_LIMIT)."""
    limit = parse_limit(
        request.args.get("limit"),
        default=current_app.config["LIST_LIMIT"],
        maximum=current_app.config["MAX_LIST_LIMIT"],
    )
    try:
        return jsonify(sales_service.list_sales(limit=limit)), 200
    except Exception:
        return server_error("Failed to fetch sales")


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    sale = sales_service.get_sale(sale_id)
    if not sale:
        return error("Sale not found", 404)
    return jsonify(sale.to_dict()), 200


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Record a sale.

    Decrements stock, writes an OUT movement and emits SALE_RECORDED
    (plus LOW_STOCK when the new quantity is below the minimum) in one transaction.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=SalesTransaction, payload=payload, policy=SALE_POLICY, partial=False)
        enforce_rules_sale(patch)
    except ValidationError as e:
        return error(str(e), 400)

    try:
        sale = sales_service.record_sale(
            product_id=patch["product_id"],
            quantity=patch["quantity"],
            customer_name=patch.get("customer_name"),
            notes=patch.get("notes"),
        )
    except NotFoundError as e:
        return error(str(e), 404)
    except (InvalidStateError, ValidationError) as e:
        return error(str(e), 400)
    except ConflictError as e:
        return error(str(e), 409)
    except Exception:
        return server_error("Failed to create sale")

    return jsonify(sale.to_dict()), 201
