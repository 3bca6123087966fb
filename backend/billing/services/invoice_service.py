# Overview: Invoice engine; builds invoices and drives payment, cancellation and overdue sweeps.

"""
Invoice engine.

Every public operation resolves the caller's shop first and then the invoice
by id within that shop; an invoice of another shop is reported exactly like
a missing one.

ATOMICITY:
Create is one unit of work: invoice + items, stock reductions, the shop's
numbering increment and the customer aggregates are committed together or
rolled back together. A number allocated by a creation that then fails is
retired in a follow-up transaction and never handed out again.

Mutations run through run_with_retry; on SQLite the transaction is opened
with BEGIN IMMEDIATE so the counter and stock rows are written by one
creator at a time, on other databases the counter UPDATE and
SELECT ... FOR UPDATE on product rows serialize competing creators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from flask import current_app

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer, Invoice, InvoiceItem, PaymentMethod, PaymentStatus, Product, Shop
from billing.money import ZERO, MoneyError, to_money, to_rate
from billing.time_utils import end_of_day, parse_iso_datetime, utcnow
from . import payment_state
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry
from .customer_service import find_customer
from .invoice_totals import apply_totals
from .numbering_service import consume_invoice_number, next_invoice_number
from .pagination import page_envelope
from .product_service import find_product
from .shop_service import get_shop_for_owner
from .stock_service import reduce_stock


@dataclass(frozen=True)
class InvoiceItemRequest:
    product_id: int
    quantity: int
    unit_price: Decimal | None = None
    discount_amount: Decimal = ZERO
    description: str | None = None


@dataclass(frozen=True)
class InvoiceRequest:
    invoice_date: datetime
    items: list[InvoiceItemRequest] = field(default_factory=list)
    customer_id: int | None = None
    due_date: datetime | None = None
    discount_amount: Decimal = ZERO
    discount_percentage: Decimal | None = None
    payment_method: PaymentMethod | None = None
    notes: str | None = None
    mark_as_paid: bool = False


def _require_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    return value


def _money(value, name: str) -> Decimal:
    try:
        return to_money(value, name)
    except MoneyError as exc:
        raise ValidationError(str(exc))


def _datetime(value, name: str) -> datetime | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be an ISO-8601 datetime")
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 datetime")


def _due_date(value) -> datetime | None:
    """A date-only due date runs to the end of that day."""
    due = _datetime(value, "due_date")
    if due is not None and len(value.strip()) == 10:
        return end_of_day(due)
    return due


def _parse_item(index: int, raw) -> InvoiceItemRequest:
    if not isinstance(raw, dict):
        raise ValidationError(f"items[{index}] must be an object")
    if raw.get("product_id") is None:
        raise ValidationError(f"items[{index}].product_id is required")
    if raw.get("quantity") is None:
        raise ValidationError(f"items[{index}].quantity is required")

    product_id = _require_int(raw["product_id"], f"items[{index}].product_id")
    quantity = _require_int(raw["quantity"], f"items[{index}].quantity")
    if quantity < 1:
        raise ValidationError(f"items[{index}].quantity must be at least 1")

    unit_price = None
    if raw.get("unit_price") is not None:
        unit_price = _money(raw["unit_price"], f"items[{index}].unit_price")
        if unit_price <= ZERO:
            raise ValidationError(f"items[{index}].unit_price must be > 0")

    discount = ZERO
    if raw.get("discount_amount") is not None:
        discount = _money(raw["discount_amount"], f"items[{index}].discount_amount")
        if discount < ZERO:
            raise ValidationError(f"items[{index}].discount_amount must be >= 0")

    description = raw.get("description")
    return InvoiceItemRequest(
        product_id=product_id,
        quantity=quantity,
        unit_price=unit_price,
        discount_amount=discount,
        description=str(description).strip() if description else None,
    )


def parse_invoice_request(payload) -> InvoiceRequest:
    """Validate and normalize a create-invoice JSON payload."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    invoice_date = _datetime(payload.get("invoice_date"), "invoice_date")
    if invoice_date is None:
        raise ValidationError("invoice_date is required")

    raw_items = payload.get("items")
    if raw_items is None:
        raw_items = []
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")

    customer_id = payload.get("customer_id")
    if customer_id is not None:
        customer_id = _require_int(customer_id, "customer_id")

    discount_amount = ZERO
    if payload.get("discount_amount") is not None:
        discount_amount = _money(payload["discount_amount"], "discount_amount")
        if discount_amount < ZERO:
            raise ValidationError("discount_amount must be >= 0")

    discount_percentage = None
    if payload.get("discount_percentage") is not None:
        try:
            discount_percentage = to_rate(payload["discount_percentage"], "discount_percentage")
        except MoneyError as exc:
            raise ValidationError(str(exc))

    payment_method = None
    if payload.get("payment_method"):
        payment_method = payment_state.parse_payment_method(payload["payment_method"])

    mark_as_paid = payload.get("mark_as_paid", False)
    if not isinstance(mark_as_paid, bool):
        raise ValidationError("mark_as_paid must be a boolean")

    notes = payload.get("notes")
    return InvoiceRequest(
        invoice_date=invoice_date,
        items=[_parse_item(i, raw) for i, raw in enumerate(raw_items)],
        customer_id=customer_id,
        due_date=_due_date(payload.get("due_date")),
        discount_amount=discount_amount,
        discount_percentage=discount_percentage,
        payment_method=payment_method,
        notes=str(notes).strip() if notes else None,
        mark_as_paid=mark_as_paid,
    )


def build_invoice(
    shop: Shop,
    customer: Customer | None,
    items: list[InvoiceItemRequest],
    invoice_date: datetime,
    due_date: datetime | None = None,
    discount_amount: Decimal = ZERO,
    discount_percentage: Decimal | None = None,
    payment_method: PaymentMethod | None = None,
    notes: str | None = None,
    mark_as_paid: bool = False,
) -> Invoice:
    """
    Assemble a new invoice in the current session.

    Reduces stock, allocates the invoice number and updates the customer's
    aggregates; the caller owns the transaction and commits.
    """
    if not items:
        raise ValidationError("Invoice must have at least one item")

    invoice = Invoice(
        shop_id=shop.id,
        customer=customer,
        invoice_date=invoice_date,
        due_date=due_date,
        discount_amount=discount_amount,
        discount_percentage=discount_percentage,
        tax_rate=shop.tax_rate,
        notes=notes,
        is_active=True,
    )

    for position, requested in enumerate(items):
        product = find_product(requested.product_id, shop.id, for_update=True)
        unit_price = requested.unit_price if requested.unit_price is not None else product.selling_price
        invoice.items.append(
            InvoiceItem(
                position=position,
                product=product,
                product_name=product.name,
                description=requested.description or product.description,
                unit=product.unit,
                quantity=requested.quantity,
                unit_price=unit_price,
                discount_amount=requested.discount_amount,
            )
        )
        reduce_stock(product, requested.quantity)

    apply_totals(invoice)

    if mark_as_paid:
        invoice.payment_status = PaymentStatus.PAID.value
        invoice.paid_amount = invoice.total_amount
    else:
        invoice.payment_status = PaymentStatus.PENDING.value
        invoice.paid_amount = ZERO
    invoice.payment_method = payment_method.value if payment_method else None

    invoice.invoice_number = next_invoice_number(shop.id)

    if customer is not None:
        customer.total_invoices = (customer.total_invoices or 0) + 1
        customer.total_purchases = Decimal(customer.total_purchases or ZERO) + invoice.total_amount

    db.session.add(invoice)
    return invoice


def find_invoice(invoice_id: int, shop_id: int, *, for_update: bool = False) -> Invoice:
    """Invoice of the shop (cancelled ones included), or NotFoundError."""
    query = db.session.query(Invoice).filter(
        Invoice.id == invoice_id,
        Invoice.shop_id == shop_id,
    )
    if for_update:
        query = lock_for_update(query)
    invoice = query.first()
    if not invoice:
        raise NotFoundError("Invoice", invoice_id)
    return invoice


def _consume_failed_number(shop_id: int, number: str) -> None:
    try:
        begin_write_transaction()
        consume_invoice_number(shop_id, number)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Could not retire invoice number %s for shop %s", number, shop_id)
        return
    current_app.logger.warning("Invoice number %s for shop %s retired after failed creation", number, shop_id)


def create_invoice(owner_user_id: int, payload: dict) -> dict:
    request = parse_invoice_request(payload)

    def _op():
        begin_write_transaction()
        shop = get_shop_for_owner(owner_user_id)
        customer = None
        if request.customer_id is not None:
            customer = find_customer(request.customer_id, shop.id)

        invoice = build_invoice(
            shop,
            customer,
            request.items,
            request.invoice_date,
            due_date=request.due_date,
            discount_amount=request.discount_amount,
            discount_percentage=request.discount_percentage,
            payment_method=request.payment_method,
            notes=request.notes,
            mark_as_paid=request.mark_as_paid,
        )
        shop_id, number = shop.id, invoice.invoice_number
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            _consume_failed_number(shop_id, number)
            raise
        return invoice

    invoice = run_with_retry(_op)
    current_app.logger.info(
        "Invoice %s created for shop %s (total %s, status %s)",
        invoice.invoice_number, invoice.shop_id, invoice.total_amount, invoice.payment_status,
    )
    return invoice.to_dict()


def get_invoice(owner_user_id: int, invoice_id: int) -> dict:
    shop = get_shop_for_owner(owner_user_id)
    return find_invoice(invoice_id, shop.id).to_dict()


def list_invoices(
    owner_user_id: int,
    page: int = 0,
    size: int = 20,
    search: str | None = None,
    status: str | None = None,
) -> dict:
    """Active invoices, newest first. search matches invoice number or customer name."""
    shop = get_shop_for_owner(owner_user_id)
    query = (
        db.session.query(Invoice)
        .outerjoin(Customer, Invoice.customer_id == Customer.id)
        .filter(Invoice.shop_id == shop.id, Invoice.is_active.is_(True))
    )
    if status:
        try:
            status = PaymentStatus(status.strip().upper())
        except ValueError:
            allowed = ", ".join(s.value for s in PaymentStatus)
            raise ValidationError(f"Invalid status: {status}. Must be one of {allowed}")
        query = query.filter(Invoice.payment_status == status.value)
    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        query = query.filter(
            db.or_(
                db.func.lower(Invoice.invoice_number).like(term),
                db.func.lower(Customer.name).like(term),
            )
        )
    query = query.order_by(Invoice.invoice_date.desc(), Invoice.id.desc())
    return page_envelope(query, page, size, lambda inv: inv.to_dict(include_items=False))


def mark_paid(owner_user_id: int, invoice_id: int, method) -> dict:
    def _op():
        begin_write_transaction()
        shop = get_shop_for_owner(owner_user_id)
        invoice = find_invoice(invoice_id, shop.id, for_update=True)
        payment_state.mark_as_paid(invoice, method)
        db.session.commit()
        return invoice

    invoice = run_with_retry(_op)
    current_app.logger.info("Invoice %s marked as paid", invoice.invoice_number)
    return invoice.to_dict()


def record_payment(owner_user_id: int, invoice_id: int, amount, method) -> dict:
    def _op():
        begin_write_transaction()
        shop = get_shop_for_owner(owner_user_id)
        invoice = find_invoice(invoice_id, shop.id, for_update=True)
        payment_state.record_payment(invoice, amount, method)
        db.session.commit()
        return invoice

    invoice = run_with_retry(_op)
    current_app.logger.info(
        "Payment recorded on invoice %s (paid %s of %s, status %s)",
        invoice.invoice_number, invoice.paid_amount, invoice.total_amount, invoice.payment_status,
    )
    return invoice.to_dict()


def _lock_item_products(invoice: Invoice) -> None:
    product_ids = sorted({item.product_id for item in invoice.items if item.product_id is not None})
    if product_ids:
        lock_for_update(db.session.query(Product).filter(Product.id.in_(product_ids))).all()


def cancel_invoice(owner_user_id: int, invoice_id: int) -> dict:
    """
    Cancel an invoice: restore stock, deactivate, reverse customer aggregates.

    Cancelling an already-cancelled invoice returns it unchanged.
    """
    def _op():
        begin_write_transaction()
        shop = get_shop_for_owner(owner_user_id)
        invoice = find_invoice(invoice_id, shop.id, for_update=True)
        _lock_item_products(invoice)

        changed = payment_state.cancel(invoice, now=utcnow())
        if changed and invoice.customer is not None:
            customer = invoice.customer
            customer.total_invoices = max((customer.total_invoices or 0) - 1, 0)
            customer.total_purchases = Decimal(customer.total_purchases or ZERO) - invoice.total_amount
        db.session.commit()
        return invoice, changed

    invoice, changed = run_with_retry(_op)
    if changed:
        current_app.logger.info("Invoice %s cancelled", invoice.invoice_number)
    return invoice.to_dict()


def mark_overdue_invoices(shop_id: int | None = None, now: datetime | None = None) -> int:
    """Sweep unpaid invoices past their due date into OVERDUE. Returns the count moved."""
    now = now or utcnow()

    def _op():
        begin_write_transaction()
        query = db.session.query(Invoice).filter(
            Invoice.is_active.is_(True),
            Invoice.payment_status.in_([PaymentStatus.PENDING.value, PaymentStatus.PARTIAL.value]),
            Invoice.due_date.isnot(None),
            Invoice.due_date < now,
        )
        if shop_id is not None:
            query = query.filter(Invoice.shop_id == shop_id)
        moved = sum(1 for invoice in lock_for_update(query).all() if payment_state.mark_overdue(invoice, now))
        db.session.commit()
        return moved

    moved = run_with_retry(_op)
    current_app.logger.info("Marked %d invoice(s) overdue", moved)
    return moved
