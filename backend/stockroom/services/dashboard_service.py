# Overview: Service-layer aggregation for the dashboard; read-only.

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import Category, Product, SalesTransaction

RECENT_TRANSACTIONS = 5
TOP_PRODUCTS = 5


def low_stock_count() -> int:
    return (
        db.session.query(func.count(Product.id))
        .filter(Product.quantity < Product.min_stock_level)
        .scalar()
        or 0
    )


def total_sales_amount() -> Decimal:
    total = db.session.query(func.coalesce(func.sum(SalesTransaction.total_amount), 0)).scalar()
    return Decimal(total or 0).quantize(Decimal("0.01"))


def top_selling_products(limit: int = TOP_PRODUCTS) -> list[dict]:
    """Products ranked by units sold; sales of deleted products are left out."""
    total_sold = func.sum(SalesTransaction.quantity).label("total_sold")
    revenue = func.sum(SalesTransaction.total_amount).label("revenue")
    rows = (
        db.session.query(Product.id, Product.name, total_sold, revenue)
        .join(SalesTransaction, SalesTransaction.product_id == Product.id)
        .group_by(Product.id, Product.name)
        .order_by(total_sold.desc(), Product.id.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "product_id": row.id,
            "product_name": row.name,
            "total_sold": str(int(row.total_sold or 0)),
            "revenue": str(Decimal(row.revenue or 0).quantize(Decimal("0.01"))),
        }
        for row in rows
    ]


def get_dashboard_stats() -> dict:
    recent = (
        db.session.query(SalesTransaction)
        .order_by(SalesTransaction.created_at.desc(), SalesTransaction.id.desc())
        .limit(RECENT_TRANSACTIONS)
        .all()
    )
    return {
        "totalProducts": db.session.query(func.count(Product.id)).scalar() or 0,
        "totalCategories": db.session.query(func.count(Category.id)).scalar() or 0,
        "lowStockCount": low_stock_count(),
        "totalSales": str(total_sales_amount()),
        "recentTransactions": [s.to_dict() for s in recent],
        "topSellingProducts": top_selling_products(),
    }
