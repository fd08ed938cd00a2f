from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"
MOVEMENT_ADJUSTMENT = "ADJUSTMENT"
MOVEMENT_TYPES = (MOVEMENT_IN, MOVEMENT_OUT, MOVEMENT_ADJUSTMENT)


class SalesTransaction(db.Model):
    """
    Immutable record of a sale.

    unit_price and total_amount are captured when the sale is recorded and
    are never recomputed from the product's current price.
    """
    __tablename__ = "sales_transactions"
    __table_args__ = (
        db.UniqueConstraint("transaction_number", name="uq_sales_transaction_number"),
        db.CheckConstraint("quantity >= 1", name="ck_sales_quantity_positive"),
        db.Index("ix_sales_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_number = db.Column(db.String(100), nullable=False)

    # Cleared (not cascaded) when the product is deleted
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    total_amount = db.Column(db.Numeric(14, 2), nullable=False)

    customer_name = db.Column(db.String(200), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product", backref=db.backref("sales", lazy=True, passive_deletes=True))

    def __repr__(self) -> str:
        return f"<SalesTransaction {self.transaction_number} product_id={self.product_id} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_number": self.transaction_number,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "product_sku": self.product.sku if self.product else None,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
            "total_amount": float(self.total_amount),
            "customer_name": self.customer_name,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class StockMovement(db.Model):
    """
    Immutable record of a stock change.

    quantity is the operand of the movement, not the resulting level:
    a delta for IN/OUT, the absolute new level for ADJUSTMENT.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_stock_movements_quantity_non_negative"),
        db.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    movement_type = db.Column(db.String(16), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)

    reference_number = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product", backref=db.backref("movements", lazy=True, passive_deletes=True))

    def __repr__(self) -> str:
        return f"<StockMovement id={self.id} {self.movement_type} qty={self.quantity} product_id={self.product_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "product_sku": self.product.sku if self.product else None,
            "movement_type": self.movement_type,
            "quantity": self.quantity,
            "reference_number": self.reference_number,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
