# backend/stockroom/services/products_service.py
"""
Products Service

- SKU is globally unique; duplicates raise ConflictError (409), checked
  here first and backed by the uq_products_sku constraint.
- Quantity changes made through a product edit are recorded as an
  ADJUSTMENT movement; a product created with stock gets an IN movement.
- Deleting a product keeps its sales and movements; their product_id is
  cleared.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..models import Category, Product, SalesTransaction, StockMovement, MOVEMENT_IN, MOVEMENT_ADJUSTMENT
from ..validation import ConflictError, NotFoundError
from . import notification_service
from .concurrency import flush_unique, lock_for_update, run_with_retry

PRODUCT_MUTABLE_FIELDS = {"name", "sku", "description", "category_id", "price", "quantity", "min_stock_level"}

SKU_CONFLICT_MESSAGE = "Product with this SKU already exists"


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _ensure_sku_available(sku: str, *, exclude_id: int | None = None) -> None:
    q = db.session.query(Product.id).filter(Product.sku == sku)
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    if q.first() is not None:
        raise ConflictError(SKU_CONFLICT_MESSAGE)


def _ensure_category_exists(category_id: int | None) -> None:
    if category_id is None:
        return
    if db.session.get(Category, category_id) is None:
        raise NotFoundError("Category not found")


def list_products(*, category_id: int | None = None, search: str | None = None) -> list[dict]:
    """Newest first; `search` matches name or SKU, case-insensitive."""
    q = db.session.query(Product)
    if category_id is not None:
        q = q.filter(Product.category_id == category_id)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(Product.name.ilike(pattern), Product.sku.ilike(pattern)))
    products = q.order_by(Product.created_at.desc(), Product.id.desc()).all()
    return [p.to_dict() for p in products]


def get_product(product_id: int) -> dict:
    p = db.session.get(Product, product_id)
    if p is None:
        raise NotFoundError("Product not found")
    return p.to_dict()


def create_product(*, patch: dict) -> dict:
    """
    Create product using a validated patch dict.

    Raises:
        ConflictError: SKU already exists
        NotFoundError: category_id does not exist
    """
    def _op():
        _ensure_sku_available(patch["sku"])
        _ensure_category_exists(patch.get("category_id"))

        p = Product()
        apply_product_patch(p, patch)
        if p.quantity is None:
            p.quantity = 0
        if p.min_stock_level is None:
            p.min_stock_level = current_app.config["DEFAULT_MIN_STOCK_LEVEL"]

        db.session.add(p)
        flush_unique(SKU_CONFLICT_MESSAGE)

        if p.quantity > 0:
            db.session.add(StockMovement(
                product_id=p.id,
                movement_type=MOVEMENT_IN,
                quantity=p.quantity,
                notes="Opening stock",
            ))

        notification_service.emit(
            notification_service.PRODUCT_ADDED,
            f'New product "{p.name}" has been added to inventory',
            related_entity_type="product",
            related_entity_id=p.id,
        )
        # Level-triggered on create: a product born low alerts immediately
        if notification_service.is_low(p.quantity, p.min_stock_level):
            notification_service.emit_low_stock(p)

        db.session.commit()
        return p.to_dict()

    return run_with_retry(_op)


def update_product(*, product_id: int, patch: dict) -> dict:
    """
    Update a product.

    LOW_STOCK is edge-triggered here: it fires only when the product was
    not low before the edit (old quantity vs old threshold) and is low
    after it (new quantity vs new threshold).

    Raises:
        NotFoundError: product or category does not exist
        ConflictError: new SKU already exists
    """
    def _op():
        p = lock_for_update(db.session.query(Product).filter(Product.id == product_id)).first()
        if p is None:
            raise NotFoundError("Product not found")

        if "sku" in patch and patch["sku"] != p.sku:
            _ensure_sku_available(patch["sku"], exclude_id=p.id)
        if "category_id" in patch:
            _ensure_category_exists(patch["category_id"])

        old_quantity, old_min = p.quantity, p.min_stock_level

        apply_product_patch(p, patch)
        flush_unique(SKU_CONFLICT_MESSAGE)

        if p.quantity != old_quantity:
            db.session.add(StockMovement(
                product_id=p.id,
                movement_type=MOVEMENT_ADJUSTMENT,
                quantity=p.quantity,
                notes="Product edit",
            ))

        notification_service.emit(
            notification_service.PRODUCT_UPDATED,
            f'Product "{p.name}" has been updated',
            related_entity_type="product",
            related_entity_id=p.id,
        )
        if notification_service.crossed_below(old_quantity, old_min, p.quantity, p.min_stock_level):
            notification_service.emit_low_stock(p, now=True)

        db.session.commit()
        return p.to_dict()

    return run_with_retry(_op)


def delete_product(*, product_id: int) -> None:
    """
    Hard-delete a product, keeping its history.

    Raises NotFoundError if the product does not exist.
    """
    def _op():
        p = db.session.get(Product, product_id)
        if p is None:
            raise NotFoundError("Product not found")
        name = p.name

        # Sales and movements outlive the product
        db.session.query(SalesTransaction).filter(SalesTransaction.product_id == product_id).update(
            {SalesTransaction.product_id: None}, synchronize_session=False
        )
        db.session.query(StockMovement).filter(StockMovement.product_id == product_id).update(
            {StockMovement.product_id: None}, synchronize_session=False
        )
        db.session.delete(p)

        notification_service.emit(
            notification_service.PRODUCT_DELETED,
            f'Product "{name}" has been removed from inventory',
            related_entity_type="product",
            related_entity_id=None,
        )
        db.session.commit()

    run_with_retry(_op)
