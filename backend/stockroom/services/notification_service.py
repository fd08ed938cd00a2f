# Overview: Service-layer operations for the notification feed; emits, lists, marks and purges notifications.

"""
Notification feed invariants:

- Notifications are written in the same DB transaction as the mutation
  they describe, so a rolled-back operation leaves no notification behind.
- After creation only is_read changes; read rows may be purged in bulk.
- Each notification is published on the event bus (events.py) once its
  transaction commits, never before, and never if it rolls back.

Low-stock policy ("low" means quantity < min_stock_level, strict):
- Every path except product edit is level-triggered: it alerts whenever
  the resulting quantity is low.
- Product edit is edge-triggered: it alerts only when the product goes
  from not-low to low.
"""
from __future__ import annotations

from flask import current_app, has_app_context
from sqlalchemy import event
from sqlalchemy.orm import Session

from ..extensions import db
from ..models import Notification
from ..events import publish_notifications
from ..validation import NotFoundError

PRODUCT_ADDED = "PRODUCT_ADDED"
PRODUCT_UPDATED = "PRODUCT_UPDATED"
PRODUCT_DELETED = "PRODUCT_DELETED"
CATEGORY_ADDED = "CATEGORY_ADDED"
CATEGORY_UPDATED = "CATEGORY_UPDATED"
CATEGORY_DELETED = "CATEGORY_DELETED"
SALE_RECORDED = "SALE_RECORDED"
STOCK_UPDATE = "STOCK_UPDATE"
LOW_STOCK = "LOW_STOCK"

_PENDING_KEY = "pending_notifications"


def is_low(quantity: int, min_stock_level: int) -> bool:
    return quantity < min_stock_level


def crossed_below(old_quantity: int, old_min: int, new_quantity: int, new_min: int) -> bool:
    """True only on the transition from not-low to low."""
    return not is_low(old_quantity, old_min) and is_low(new_quantity, new_min)


def emit(
    notification_type: str,
    message: str,
    *,
    related_entity_type: str | None = None,
    related_entity_id: int | None = None,
) -> Notification:
    """
    Add a notification to the current transaction.

    The caller commits. Publication to the event bus happens after commit.
    """
    n = Notification(
        type=notification_type,
        message=message,
        related_entity_type=related_entity_type,
        related_entity_id=related_entity_id,
        is_read=False,
    )
    db.session.add(n)
    db.session.flush()  # id + created_at for the published payload
    db.session.info.setdefault(_PENDING_KEY, []).append(n.to_dict())
    return n


def emit_low_stock(product, *, now: bool = False) -> Notification:
    verb = "is now running low" if now else "is running low"
    return emit(
        LOW_STOCK,
        f'Product "{product.name}" {verb}. Current stock: {product.quantity} units',
        related_entity_type="product",
        related_entity_id=product.id,
    )


@event.listens_for(Session, "after_commit")
def _publish_after_commit(session):
    pending = session.info.pop(_PENDING_KEY, None)
    if not pending:
        return
    sender = current_app._get_current_object() if has_app_context() else None
    publish_notifications(sender, pending)


@event.listens_for(Session, "after_rollback")
def _discard_after_rollback(session):
    session.info.pop(_PENDING_KEY, None)


def list_notifications(*, unread_only: bool = False, limit: int = 20) -> list[dict]:
    """Newest first, capped at limit."""
    q = db.session.query(Notification)
    if unread_only:
        q = q.filter(Notification.is_read.is_(False))
    rows = (
        q.order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )
    return [n.to_dict() for n in rows]


def get_unread_count() -> int:
    return db.session.query(Notification).filter(Notification.is_read.is_(False)).count()


def mark_read(notification_id: int, is_read: bool = True) -> dict:
    n = db.session.get(Notification, notification_id)
    if n is None:
        raise NotFoundError("Notification not found")
    n.is_read = bool(is_read)
    db.session.commit()
    return n.to_dict()


def mark_all_read() -> int:
    updated = (
        db.session.query(Notification)
        .filter(Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.session.commit()
    return updated


def purge_read() -> int:
    """Delete every read notification. Idempotent; returns the number removed."""
    deleted = (
        db.session.query(Notification)
        .filter(Notification.is_read.is_(True))
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return deleted
