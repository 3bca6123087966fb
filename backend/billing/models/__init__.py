# backend/billing/models/__init__.py
"""
Models package.

Every mapped class is imported here so Alembic autogenerate and
db.create_all() see the full metadata.
"""

from .auth import User, SessionToken
from .tenancy import Shop
from .catalog import Category, Product
from .customers import Customer
from .invoices import PaymentStatus, PaymentMethod, Invoice, InvoiceItem

__all__ = [
    "User",
    "SessionToken",
    "Shop",
    "Category",
    "Product",
    "Customer",
    "PaymentStatus",
    "PaymentMethod",
    "Invoice",
    "InvoiceItem",
]
