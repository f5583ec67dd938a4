from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z
from .catalog import format_money
from .common import new_uuid

PAYMENT_METHODS = ("cash", "card", "mobile")


class Sale(db.Model):
    """
    Sale header. Written once by the checkout transaction and never updated.

    public_id is what customers and cashiers see on receipts
    (e.g. "SJPOS-2026-482913"); id is the internal key line items hang off.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("public_id", name="uq_sales_public_id"),
        db.CheckConstraint(
            "payment_method IN ('cash', 'card', 'mobile')", name="ck_sales_payment_method"
        ),
        # Receipt lookups are always (public_id, owner)
        db.Index("ix_sales_user_public_id", "user_id", "public_id"),
        db.Index("ix_sales_user_created", "user_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    public_id = db.Column(db.String(32), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)

    payment_method = db.Column(db.String(16), nullable=False)
    total = db.Column(db.Numeric(12, 2), nullable=False)

    # Stamped by create_sale; no server default
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "public_id": self.public_id,
            "total": format_money(self.total),
            "payment_method": self.payment_method,
            "created_at": to_utc_z(self.created_at),
        }


class SaleItem(db.Model):
    """Line item with a snapshot of the product's name and price at sale time."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)

    product_name = db.Column(db.String(100), nullable=False)
    product_price = db.Column(db.Numeric(10, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)

    sale = db.relationship("Sale", backref=db.backref("items", lazy=True, order_by="SaleItem.id"))
