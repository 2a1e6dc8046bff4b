from __future__ import annotations

from ..extensions import db
from posengine.money import format_money
from posengine.time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    A completed sale.

    IMMUTABLE: written exactly once by sales_service.create_sale together with
    its items and the matching stock decrements, then never updated.
    total_amount always equals the sum of its items' subtotals.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_customer_created", "customer_id", "created_at"),
        db.Index("ix_sales_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # NULL for walk-in sales
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)

    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    # Application-side default keeps microsecond ordering on SQLite
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", backref=db.backref("sales", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))
    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        order_by="SaleItem.id",
        lazy=True,
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "customer_id": self.customer_id,
            "total_amount": format_money(self.total_amount),
            "created_at": to_utc_z(self.created_at),
            "user": self.user.to_summary_dict() if self.user else None,
            "customer": self.customer.to_summary_dict() if self.customer else None,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """
    One line of a sale.

    unit_price is the product price captured when the sale was created, not a
    live reference. subtotal = quantity * unit_price.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)

    # RESTRICT: a product with sales history cannot be deleted
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": format_money(self.unit_price),
            "subtotal": format_money(self.subtotal),
            "product": self.product.to_dict() if self.product else None,
        }
