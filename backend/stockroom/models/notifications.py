from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Notification(db.Model):
    """
    Append-only system event feed.

    Rows are written as side effects of other mutations. Afterwards only
    is_read may change, and read rows may be purged in bulk.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_read_created", "is_read", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(50), nullable=False, index=True)
    message = db.Column(db.Text, nullable=False)

    # Polymorphic pointer (product, category, sales); no FK, rows outlive their entity
    related_entity_type = db.Column(db.String(50), nullable=True)
    related_entity_id = db.Column(db.Integer, nullable=True)

    is_read = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Notification id={self.id} type={self.type} read={self.is_read}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "message": self.message,
            "related_entity_type": self.related_entity_type,
            "related_entity_id": self.related_entity_id,
            "is_read": self.is_read,
            "created_at": to_utc_z(self.created_at),
        }
