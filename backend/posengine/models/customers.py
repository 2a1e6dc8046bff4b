from __future__ import annotations

from ..extensions import db
from posengine.time_utils import to_utc_z, utcnow


class Customer(db.Model):
    """
    Customer master data.

    Purchase statistics (order count, lifetime spend, last visit) are NOT
    columns here. They are derived from sales on every read by
    customers_service so they can never drift from the sales they describe.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_last_first", "last_name", "first_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    first_name = db.Column(db.String(128), nullable=False)
    last_name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)
    phone = db.Column(db.String(32), nullable=False)
    internal_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "internal_notes": self.internal_notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def to_summary_dict(self) -> dict:
        """Compact form embedded in sale payloads."""
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
        }
