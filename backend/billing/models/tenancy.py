from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from billing.money import money_str
from billing.time_utils import to_utc_z


class Shop(db.Model):
    """
    Tenant root: every customer, product, category and invoice belongs to
    exactly one shop, and every shop is owned by exactly one user.

    INVOICE NUMBERING:
    next_invoice_number is a per-shop counter. It is only ever advanced by
    an in-place UPDATE inside the invoice-creation transaction (see
    numbering_service), never read-modify-written through the ORM, so two
    concurrent creations cannot observe the same value. A number whose
    invoice fails to commit is retired afterwards, so numbers are never
    reused; gaps are possible. The (shop_id, invoice_number) unique
    constraint is the backstop.

    tax_rate is a percentage (18.00 = 18%) and is copied onto each invoice
    at creation time.
    """
    __tablename__ = "shops"
    __table_args__ = (
        db.UniqueConstraint("owner_user_id", name="uq_shops_owner"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # Profile
    shop_name = db.Column(db.String(100), nullable=False)
    shop_type = db.Column(db.String(64), nullable=True)
    tagline = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    phone_number = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    website = db.Column(db.String(255), nullable=True)
    gst_number = db.Column(db.String(32), nullable=True)
    logo_url = db.Column(db.String(512), nullable=True)

    # Business settings
    currency = db.Column(db.String(10), nullable=False, default="INR")
    tax_rate = db.Column(db.Numeric(5, 2, asdecimal=True), nullable=False, default=Decimal("18.00"))
    invoice_prefix = db.Column(db.String(20), nullable=False, default="INV")
    next_invoice_number = db.Column(db.Integer, nullable=False, default=1)
    include_tax_in_price = db.Column(db.Boolean, nullable=False, default=False)
    terms_and_conditions = db.Column(db.Text, nullable=True)
    footer_note = db.Column(db.Text, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    owner = db.relationship("User")

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Shop id={self.id} name={self.shop_name!r} owner={self.owner_user_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_user_id": self.owner_user_id,
            "shop_name": self.shop_name,
            "shop_type": self.shop_type,
            "tagline": self.tagline,
            "address": self.address,
            "phone_number": self.phone_number,
            "email": self.email,
            "website": self.website,
            "gst_number": self.gst_number,
            "logo_url": self.logo_url,
            "currency": self.currency,
            "tax_rate": money_str(self.tax_rate),
            "invoice_prefix": self.invoice_prefix,
            "next_invoice_number": self.next_invoice_number,
            "include_tax_in_price": self.include_tax_in_price,
            "terms_and_conditions": self.terms_and_conditions,
            "footer_note": self.footer_note,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
