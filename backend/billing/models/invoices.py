from __future__ import annotations

import enum
from decimal import Decimal

from sqlalchemy.orm import validates

from ..extensions import db
from billing.money import ZERO, money_str
from billing.services.invoice_totals import compute_line_total
from billing.time_utils import to_utc_z


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    CARD = "CARD"
    UPI = "UPI"
    BANK_TRANSFER = "BANK_TRANSFER"
    CHEQUE = "CHEQUE"
    CREDIT = "CREDIT"
    OTHER = "OTHER"


class Invoice(db.Model):
    """
    Billing document issued by a shop.

    TOTALS:
    subtotal = sum(item.line_total)
    total_amount = (subtotal - discount_amount) + tax_amount
    tax_amount = (subtotal - discount_amount) * tax_rate / 100, half-up to cents

    tax_rate is a snapshot of the shop's rate at creation; later changes to
    the shop do not alter existing invoices. invoice_number is unique per
    shop and never reused.

    payment_status holds a PaymentStatus value; payment_method holds a
    PaymentMethod value and is overwritten by each recorded payment.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "invoice_number", name="uq_invoices_shop_number"),
        db.Index("ix_invoices_shop_active_date", "shop_id", "is_active", "invoice_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    invoice_number = db.Column(db.String(64), nullable=False)
    invoice_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)

    subtotal = db.Column(db.Numeric(12, 2, asdecimal=True), nullable=False, default=Decimal("0.00"))
    discount_amount = db.Column(db.Numeric(12, 2, asdecimal=True), nullable=False, default=Decimal("0.00"))
    discount_percentage = db.Column(db.Numeric(5, 2, asdecimal=True), nullable=True)
    tax_rate = db.Column(db.Numeric(5, 2, asdecimal=True), nullable=False, default=Decimal("0.00"))
    tax_amount = db.Column(db.Numeric(12, 2, asdecimal=True), nullable=False, default=Decimal("0.00"))
    total_amount = db.Column(db.Numeric(12, 2, asdecimal=True), nullable=False, default=Decimal("0.00"))
    paid_amount = db.Column(db.Numeric(12, 2, asdecimal=True), nullable=False, default=Decimal("0.00"))

    payment_status = db.Column(
        db.String(16), nullable=False, default=PaymentStatus.PENDING.value, index=True
    )  # PENDING, PARTIAL, PAID, OVERDUE, CANCELLED
    payment_method = db.Column(db.String(16), nullable=True)

    notes = db.Column(db.Text, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    customer = db.relationship("Customer")
    items = db.relationship(
        "InvoiceItem",
        order_by="InvoiceItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def status(self) -> PaymentStatus:
        return PaymentStatus(self.payment_status)

    @property
    def balance_due(self) -> Decimal:
        return (self.total_amount or ZERO) - (self.paid_amount or ZERO)

    def __repr__(self) -> str:
        return f"<Invoice id={self.id} number={self.invoice_number!r} status={self.payment_status}>"

    def to_dict(self, include_items: bool = True) -> dict:
        customer = self.customer
        data = {
            "id": self.id,
            "shop_id": self.shop_id,
            "invoice_number": self.invoice_number,
            "invoice_date": to_utc_z(self.invoice_date),
            "due_date": to_utc_z(self.due_date),
            "customer": None if customer is None else {
                "id": customer.id,
                "name": customer.name,
                "phone_number": customer.phone_number,
                "email": customer.email,
                "address": customer.address,
                "gst_number": customer.gst_number,
            },
            "subtotal": money_str(self.subtotal),
            "discount_amount": money_str(self.discount_amount),
            "discount_percentage": money_str(self.discount_percentage),
            "tax_rate": money_str(self.tax_rate),
            "tax_amount": money_str(self.tax_amount),
            "total_amount": money_str(self.total_amount),
            "paid_amount": money_str(self.paid_amount),
            "balance_due": money_str(self.balance_due),
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "notes": self.notes,
            "is_active": self.is_active,
            "cancelled_at": to_utc_z(self.cancelled_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class InvoiceItem(db.Model):
    """
    One line of an invoice.

    product_name, description and unit are snapshots taken at creation so
    the line still reads correctly after the product is edited or removed.
    line_total is derived and recomputed on every assignment of unit_price,
    quantity or discount_amount.
    """
    __tablename__ = "invoice_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="invoice_item_quantity_positive"),
        db.CheckConstraint("unit_price > 0", name="invoice_item_unit_price_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(
        db.Integer, db.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    product_id = db.Column(
        db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True
    )

    product_name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    unit = db.Column(db.String(20), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2, asdecimal=True), nullable=False)
    discount_amount = db.Column(db.Numeric(12, 2, asdecimal=True), nullable=False, default=Decimal("0.00"))
    line_total = db.Column(db.Numeric(12, 2, asdecimal=True), nullable=False, default=Decimal("0.00"))

    product = db.relationship("Product")

    @validates("unit_price", "quantity", "discount_amount")
    def _recompute_line_total(self, key, value):
        values = {
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "discount_amount": self.discount_amount,
        }
        values[key] = value
        if values["unit_price"] is not None and values["quantity"] is not None:
            self.line_total = compute_line_total(
                values["unit_price"],
                values["quantity"],
                values["discount_amount"] if values["discount_amount"] is not None else ZERO,
            )
        return value

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "position": self.position,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "description": self.description,
            "unit": self.unit,
            "quantity": self.quantity,
            "unit_price": money_str(self.unit_price),
            "discount_amount": money_str(self.discount_amount),
            "line_total": money_str(self.line_total),
        }
