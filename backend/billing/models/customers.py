from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from billing.money import money_str
from billing.time_utils import to_utc_z


class Customer(db.Model):
    """
    Buyer known to a shop.

    total_purchases and total_invoices are running aggregates maintained by
    the invoice engine: incremented on invoice creation, reversed once on
    cancellation.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_shop_active", "shop_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    name = db.Column(db.String(100), nullable=False)
    phone_number = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    gst_number = db.Column(db.String(32), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    total_purchases = db.Column(db.Numeric(12, 2, asdecimal=True), nullable=False, default=Decimal("0.00"))
    total_invoices = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Customer id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "phone_number": self.phone_number,
            "email": self.email,
            "address": self.address,
            "gst_number": self.gst_number,
            "notes": self.notes,
            "total_purchases": money_str(self.total_purchases),
            "total_invoices": self.total_invoices,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
