# Overview: Service-layer operations for inventory; the stock ledger shared by movements and sales.

# backend/stockroom/services/inventory_service.py
"""
Stockroom Inventory Invariants (authoritative)

Inventory model:
- Product.quantity is the stored, authoritative on-hand level.
- StockMovement rows are immutable history; they justify changes to
  Product.quantity but are never summed to re-derive it.

Movement semantics:
- IN:         new = current + quantity
- OUT:        new = current - quantity; rejected if that would go negative
- ADJUSTMENT: new = quantity (absolute set, prior level ignored)

Consistency:
- Each operation is one DB transaction: movement row, product update and
  notifications commit together or not at all.
- The product row is locked (SELECT ... FOR UPDATE) and the change is a
  single UPDATE guarded by `quantity >= n` for decrements, so two racing
  decrements can never drive quantity below zero, even on SQLite where the
  row lock is a no-op.
"""
from __future__ import annotations

import logging

from ..extensions import db
from ..models import Product, StockMovement, MOVEMENT_IN, MOVEMENT_OUT, MOVEMENT_ADJUSTMENT
from ..validation import MAX_QUANTITY, NotFoundError, InvalidStateError, ValidationError
from . import notification_service
from .concurrency import lock_for_update, run_with_retry

logger = logging.getLogger(__name__)

_MOVEMENT_VERBS = {
    MOVEMENT_IN: "added to",
    MOVEMENT_OUT: "removed from",
    MOVEMENT_ADJUSTMENT: "adjusted for",
}


def get_product_for_update(product_id: int) -> Product:
    product = lock_for_update(db.session.query(Product).filter(Product.id == product_id)).first()
    if product is None:
        raise NotFoundError("Product not found")
    return product


def compute_new_quantity(current: int, movement_type: str, quantity: int) -> int:
    """Resulting stock level for a movement; raises InvalidStateError if it would leave [0, MAX_QUANTITY]."""
    if movement_type == MOVEMENT_IN:
        new_quantity = current + quantity
        if new_quantity > MAX_QUANTITY:
            raise InvalidStateError(f"Stock cannot exceed {MAX_QUANTITY}")
        return new_quantity
    if movement_type == MOVEMENT_OUT:
        new_quantity = current - quantity
        if new_quantity < 0:
            raise InvalidStateError("Insufficient stock")
        return new_quantity
    if movement_type == MOVEMENT_ADJUSTMENT:
        return quantity
    raise ValidationError("Invalid movement type")


def apply_stock_change(product: Product, movement_type: str, quantity: int) -> tuple[int, int]:
    """
    Write the quantity change for `product` as one guarded UPDATE.

    Returns (old_quantity, new_quantity) as seen by the database at write
    time. Does not commit.
    """
    # Fail fast on the locked read before touching the row
    compute_new_quantity(product.quantity, movement_type, quantity)

    q = db.session.query(Product).filter(Product.id == product.id)
    if movement_type == MOVEMENT_IN:
        rows = (
            q.filter(Product.quantity <= MAX_QUANTITY - quantity)
            .update({Product.quantity: Product.quantity + quantity}, synchronize_session=False)
        )
        if rows != 1:
            raise InvalidStateError(f"Stock cannot exceed {MAX_QUANTITY}")
    elif movement_type == MOVEMENT_OUT:
        rows = (
            q.filter(Product.quantity >= quantity)
            .update({Product.quantity: Product.quantity - quantity}, synchronize_session=False)
        )
        if rows != 1:
            raise InvalidStateError("Insufficient stock")
    else:
        old_quantity = product.quantity
        q.update({Product.quantity: quantity}, synchronize_session=False)
        db.session.expire(product, ["quantity", "updated_at"])
        return old_quantity, product.quantity

    db.session.expire(product, ["quantity", "updated_at"])
    new_quantity = product.quantity
    old_quantity = new_quantity - quantity if movement_type == MOVEMENT_IN else new_quantity + quantity
    return old_quantity, new_quantity


def record_movement(
    *,
    product_id: int,
    movement_type: str,
    quantity: int,
    reference_number: str | None = None,
    notes: str | None = None,
) -> StockMovement:
    """
    Record an IN / OUT / ADJUSTMENT movement and update the product.

    Emits STOCK_UPDATE, plus LOW_STOCK whenever the new quantity is below
    the minimum stock level.

    Raises:
        ValidationError: unknown movement type or quantity outside [0, MAX_QUANTITY]
        NotFoundError: product does not exist
        InvalidStateError: OUT would drive quantity negative, or IN past MAX_QUANTITY
    """
    if movement_type not in _MOVEMENT_VERBS:
        raise ValidationError("Invalid movement type")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or not 0 <= quantity <= MAX_QUANTITY:
        raise ValidationError("Invalid quantity")

    def _op():
        product = get_product_for_update(product_id)
        old_quantity, new_quantity = apply_stock_change(product, movement_type, quantity)

        movement = StockMovement(
            product_id=product.id,
            movement_type=movement_type,
            quantity=quantity,
            reference_number=reference_number,
            notes=notes,
        )
        db.session.add(movement)
        db.session.flush()

        notification_service.emit(
            notification_service.STOCK_UPDATE,
            f'Stock {_MOVEMENT_VERBS[movement_type]} "{product.name}". New quantity: {new_quantity}',
            related_entity_type="product",
            related_entity_id=product.id,
        )
        if notification_service.is_low(new_quantity, product.min_stock_level):
            notification_service.emit_low_stock(product)

        db.session.commit()
        logger.info(
            "Stock movement %s qty=%s product_id=%s: %s -> %s",
            movement_type, quantity, product_id, old_quantity, new_quantity,
        )
        return movement

    return run_with_retry(_op)


def list_movements(*, product_id: int | None = None, limit: int = 50) -> list[dict]:
    q = db.session.query(StockMovement)
    if product_id is not None:
        q = q.filter(StockMovement.product_id == product_id)
    rows = (
        q.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .limit(limit)
        .all()
    )
    return [m.to_dict() for m in rows]


def list_low_stock_products() -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.quantity < Product.min_stock_level)
        .order_by(Product.quantity.asc(), Product.name.asc())
        .all()
    )
