# Overview: Read-side dashboard aggregates for a shop.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ..extensions import db
from ..models import Customer, Invoice, PaymentStatus, Product
from billing.money import ZERO, money_str, quantize_money
from billing.time_utils import end_of_day, start_of_day, start_of_month, utcnow
from .shop_service import get_shop_for_owner


def _sum_totals(*criteria) -> Decimal:
    value = (
        db.session.query(db.func.coalesce(db.func.sum(Invoice.total_amount), 0))
        .filter(*criteria)
        .scalar()
    )
    return quantize_money(Decimal(value)) if value is not None else ZERO


def _count(model, *criteria) -> int:
    return db.session.query(db.func.count(model.id)).filter(*criteria).scalar() or 0


def get_dashboard_stats(user_id: int, now: datetime | None = None) -> dict:
    """
    Counts and sales sums for the caller's shop.

    total_sales counts only PAID invoices; today/this-month sales count every
    active invoice by invoice_date. Cancelled invoices are inactive and never
    counted.
    """
    now = now or utcnow()
    shop = get_shop_for_owner(user_id)
    active_invoice = (Invoice.shop_id == shop.id, Invoice.is_active.is_(True))

    return {
        "total_customers": _count(Customer, Customer.shop_id == shop.id, Customer.is_active.is_(True)),
        "total_products": _count(Product, Product.shop_id == shop.id, Product.is_active.is_(True)),
        "total_invoices": _count(Invoice, *active_invoice),
        "low_stock_products": _count(
            Product,
            Product.shop_id == shop.id,
            Product.is_active.is_(True),
            Product.track_inventory.is_(True),
            Product.current_stock <= Product.low_stock_alert,
        ),
        "total_sales": money_str(
            _sum_totals(*active_invoice, Invoice.payment_status == PaymentStatus.PAID.value)
        ),
        "today_sales": money_str(
            _sum_totals(*active_invoice, Invoice.invoice_date.between(start_of_day(now), end_of_day(now)))
        ),
        "this_month_sales": money_str(
            _sum_totals(*active_invoice, Invoice.invoice_date.between(start_of_month(now), end_of_day(now)))
        ),
        "pending_invoices": _count(Invoice, *active_invoice, Invoice.payment_status == PaymentStatus.PENDING.value),
        "paid_invoices": _count(Invoice, *active_invoice, Invoice.payment_status == PaymentStatus.PAID.value),
    }
