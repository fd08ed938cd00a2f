# Overview: Service-layer operations for categories; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Category, Product
from ..validation import ConflictError, NotFoundError
from . import notification_service
from .concurrency import flush_unique, run_with_retry

NAME_CONFLICT_MESSAGE = "Category with this name already exists"


def _ensure_name_available(name: str, *, exclude_id: int | None = None) -> None:
    q = db.session.query(Category.id).filter(Category.name == name)
    if exclude_id is not None:
        q = q.filter(Category.id != exclude_id)
    if q.first() is not None:
        raise ConflictError(NAME_CONFLICT_MESSAGE)


def product_counts() -> dict[int, int]:
    rows = (
        db.session.query(Product.category_id, func.count(Product.id))
        .filter(Product.category_id.isnot(None))
        .group_by(Product.category_id)
        .all()
    )
    return {category_id: count for category_id, count in rows}


def list_categories() -> list[dict]:
    """All categories by name, each with its computed product_count."""
    counts = product_counts()
    categories = db.session.query(Category).order_by(Category.name.asc()).all()
    return [c.to_dict(product_count=counts.get(c.id, 0)) for c in categories]


def get_category(category_id: int) -> dict:
    c = db.session.get(Category, category_id)
    if c is None:
        raise NotFoundError("Category not found")
    count = db.session.query(Product).filter(Product.category_id == c.id).count()
    return c.to_dict(product_count=count)


def create_category(*, patch: dict) -> dict:
    def _op():
        _ensure_name_available(patch["name"])
        c = Category(name=patch["name"], description=patch.get("description"))
        db.session.add(c)
        flush_unique(NAME_CONFLICT_MESSAGE)

        notification_service.emit(
            notification_service.CATEGORY_ADDED,
            f'New category "{c.name}" has been created',
            related_entity_type="category",
            related_entity_id=c.id,
        )
        db.session.commit()
        return c.to_dict(product_count=0)

    return run_with_retry(_op)


def update_category(*, category_id: int, patch: dict) -> dict:
    def _op():
        c = db.session.get(Category, category_id)
        if c is None:
            raise NotFoundError("Category not found")
        if "name" in patch and patch["name"] != c.name:
            _ensure_name_available(patch["name"], exclude_id=c.id)

        for k in ("name", "description"):
            if k in patch:
                setattr(c, k, patch[k])
        flush_unique(NAME_CONFLICT_MESSAGE)

        notification_service.emit(
            notification_service.CATEGORY_UPDATED,
            f'Category "{c.name}" has been updated',
            related_entity_type="category",
            related_entity_id=c.id,
        )
        db.session.commit()
        return get_category(c.id)

    return run_with_retry(_op)


def delete_category(*, category_id: int) -> None:
    """
    Delete a category. Its products stay, with category_id cleared.

    Raises NotFoundError if the category does not exist.
    """
    def _op():
        c = db.session.get(Category, category_id)
        if c is None:
            raise NotFoundError("Category not found")
        name = c.name

        db.session.query(Product).filter(Product.category_id == category_id).update(
            {Product.category_id: None}, synchronize_session=False
        )
        db.session.delete(c)

        notification_service.emit(
            notification_service.CATEGORY_DELETED,
            f'Category "{name}" has been deleted',
            related_entity_type="category",
            related_entity_id=None,
        )
        db.session.commit()

    run_with_retry(_op)
