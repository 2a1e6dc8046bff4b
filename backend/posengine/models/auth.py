from __future__ import annotations

from ..extensions import db
from posengine.time_utils import to_utc_z, utcnow


class User(db.Model):
    """
    Staff member who rings up sales.

    Credentials and sessions live in the upstream identity service; this
    table only holds what a sale needs to reference its owner.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }

    def to_summary_dict(self) -> dict:
        return {"id": self.id, "email": self.email}
