from __future__ import annotations

from ..extensions import db
from posengine.money import format_money
from posengine.time_utils import to_utc_z, utcnow


class Product(db.Model):
    """
    Product master data and the inventory counter it carries.

    STOCK INVARIANT:
    stock_quantity is the only column written by more than one concurrent
    path (sales and restocks). It must never be assigned from application
    code after reading it; every write goes through a single relative UPDATE
    in inventory_service. The CHECK constraint is the last line: a statement
    that would drive it negative fails in the database.

    PRICE:
    price is fixed-point (Numeric(10, 2) -> Decimal). Sale lines snapshot it
    at transaction time, so editing it never touches historical sales.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_nonnegative"),
        db.CheckConstraint("price >= 0", name="ck_products_price_nonnegative"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(64), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(128), nullable=True)

    price = db.Column(db.Numeric(10, 2), nullable=False)
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)

    # Reference into external image storage; never dereferenced here
    image_url = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} stock={self.stock_quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "category": self.category,
            "price": format_money(self.price),
            "stock_quantity": self.stock_quantity,
            "image_url": self.image_url,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
