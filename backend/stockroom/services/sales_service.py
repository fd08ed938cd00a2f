# Overview: Service-layer operations for sales; records a sale as one stock-ledger transaction.

"""
Sales invariants:

- A SalesTransaction is created only by record_sale() and never updated.
- unit_price/total_amount are a snapshot of Product.price at sale time.
- Every sale writes, in one transaction: the SalesTransaction, an OUT
  StockMovement referencing its transaction number, the guarded product
  decrement, a SALE_RECORDED notification and, when the new quantity is
  below min_stock_level, a LOW_STOCK notification.
"""
from __future__ import annotations

import logging
import secrets
from decimal import Decimal

from ..extensions import db
from ..models import SalesTransaction, StockMovement, MOVEMENT_OUT
from ..time_utils import epoch_millis
from ..validation import CENT, InvalidStateError, ValidationError
from . import notification_service
from .concurrency import flush_unique, run_with_retry
from .inventory_service import apply_stock_change, get_product_for_update

logger = logging.getLogger(__name__)


def next_transaction_number() -> str:
    """Time-based transaction number; the random suffix separates sales in the same millisecond."""
    return f"TXN-{epoch_millis()}-{secrets.token_hex(3).upper()}"


def record_sale(
    *,
    product_id: int,
    quantity: int,
    customer_name: str | None = None,
    notes: str | None = None,
) -> SalesTransaction:
    """
    Record a sale of `quantity` units of a product.

    Raises:
        ValidationError: quantity is not an integer >= 1
        NotFoundError: product does not exist
        InvalidStateError: quantity exceeds the product's stock
        ConflictError: transaction number collision
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("quantity must be >= 1")

    def _op():
        product = get_product_for_update(product_id)
        if quantity > product.quantity:
            raise InvalidStateError("Insufficient stock available")

        unit_price = Decimal(product.price)
        total_amount = (unit_price * quantity).quantize(CENT)

        sale = SalesTransaction(
            transaction_number=next_transaction_number(),
            product_id=product.id,
            quantity=quantity,
            unit_price=unit_price,
            total_amount=total_amount,
            customer_name=customer_name,
            notes=notes,
        )
        db.session.add(sale)
        flush_unique("Transaction number already exists")

        old_quantity, new_quantity = apply_stock_change(product, MOVEMENT_OUT, quantity)

        db.session.add(StockMovement(
            product_id=product.id,
            movement_type=MOVEMENT_OUT,
            quantity=quantity,
            reference_number=sale.transaction_number,
            notes="Sale transaction",
        ))

        notification_service.emit(
            notification_service.SALE_RECORDED,
            f'Sale recorded: {quantity} units of "{product.name}" for ${total_amount:.2f}',
            related_entity_type="sales",
            related_entity_id=sale.id,
        )
        if notification_service.is_low(new_quantity, product.min_stock_level):
            notification_service.emit_low_stock(product)

        db.session.commit()
        logger.info(
            "Sale %s recorded: product_id=%s qty=%s total=%s stock %s -> %s",
            sale.transaction_number, product_id, quantity, total_amount, old_quantity, new_quantity,
        )
        return sale

    return run_with_retry(_op)


def list_sales(*, limit: int = 50) -> list[dict]:
    rows = (
        db.session.query(SalesTransaction)
        .order_by(SalesTransaction.created_at.desc(), SalesTransaction.id.desc())
        .limit(limit)
        .all()
    )
    return [s.to_dict() for s in rows]


def get_sale(sale_id: int) -> SalesTransaction | None:
    return db.session.get(SalesTransaction, sale_id)
