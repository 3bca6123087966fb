# Overview: Payment status transitions for invoices (mark paid, record payment, cancel, overdue).

"""
Invoice payment state machine.

    PENDING  -> PARTIAL | PAID | OVERDUE | CANCELLED
    PARTIAL  -> PAID | OVERDUE | CANCELLED
    OVERDUE  -> PARTIAL | PAID | CANCELLED
    PAID     -> CANCELLED
    CANCELLED is terminal.

Functions here mutate the invoice in the caller's transaction and never
commit. Stock restoration on cancel goes through stock_service.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ..errors import ConflictError, ValidationError
from ..models import Invoice, PaymentMethod, PaymentStatus
from billing.money import ZERO, MoneyError, to_money
from billing.time_utils import utcnow
from .stock_service import restore_stock

ALLOWED_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({
        PaymentStatus.PARTIAL,
        PaymentStatus.PAID,
        PaymentStatus.OVERDUE,
        PaymentStatus.CANCELLED,
    }),
    PaymentStatus.PARTIAL: frozenset({
        PaymentStatus.PAID,
        PaymentStatus.OVERDUE,
        PaymentStatus.CANCELLED,
    }),
    PaymentStatus.OVERDUE: frozenset({
        PaymentStatus.PARTIAL,
        PaymentStatus.PAID,
        PaymentStatus.CANCELLED,
    }),
    PaymentStatus.PAID: frozenset({PaymentStatus.CANCELLED}),
    PaymentStatus.CANCELLED: frozenset(),
}


def can_transition(current: PaymentStatus | str, target: PaymentStatus | str) -> bool:
    return PaymentStatus(target) in ALLOWED_TRANSITIONS[PaymentStatus(current)]


def parse_payment_method(value) -> PaymentMethod:
    if isinstance(value, PaymentMethod):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("payment_method is required")
    try:
        return PaymentMethod(value.strip().upper())
    except ValueError:
        allowed = ", ".join(m.value for m in PaymentMethod)
        raise ValidationError(f"Invalid payment_method: {value}. Must be one of {allowed}")


def _set_status(invoice: Invoice, target: PaymentStatus) -> None:
    current = invoice.status
    if current != target and not can_transition(current, target):
        raise ConflictError(f"Cannot move invoice from {current.value} to {target.value}")
    invoice.payment_status = target.value


def mark_as_paid(invoice: Invoice, method) -> Invoice:
    """Settle the full balance in one step."""
    method = parse_payment_method(method)
    status = invoice.status
    if status == PaymentStatus.PAID:
        raise ConflictError("Invoice is already paid")
    if status == PaymentStatus.CANCELLED:
        raise ConflictError("Cannot mark a cancelled invoice as paid")

    invoice.paid_amount = invoice.total_amount
    invoice.payment_method = method.value
    _set_status(invoice, PaymentStatus.PAID)
    return invoice


def record_payment(invoice: Invoice, amount, method) -> Invoice:
    """
    Add a payment to the invoice.

    Overpayment is accepted. Once PAID, further payments only raise
    paid_amount; the status does not move back.
    """
    try:
        amount = to_money(amount, "amount")
    except MoneyError as exc:
        raise ValidationError(str(exc))
    if amount <= ZERO:
        raise ValidationError("Payment amount must be positive")
    method = parse_payment_method(method)

    if invoice.status == PaymentStatus.CANCELLED:
        raise ConflictError("Cannot record payment on a cancelled invoice")

    invoice.paid_amount = Decimal(invoice.paid_amount or ZERO) + amount
    invoice.payment_method = method.value

    if invoice.paid_amount >= invoice.total_amount:
        _set_status(invoice, PaymentStatus.PAID)
    elif invoice.status != PaymentStatus.PAID:
        _set_status(invoice, PaymentStatus.PARTIAL)
    return invoice


def cancel(invoice: Invoice, now: datetime | None = None) -> bool:
    """
    Cancel the invoice and put its stock back.

    Returns False (and changes nothing) when the invoice is already
    cancelled, so stock is restored exactly once.
    """
    if invoice.status == PaymentStatus.CANCELLED:
        return False

    for item in invoice.items:
        product = item.product
        if product is not None:
            restore_stock(product, item.quantity)

    _set_status(invoice, PaymentStatus.CANCELLED)
    invoice.is_active = False
    invoice.cancelled_at = now or utcnow()
    return True


def mark_overdue(invoice: Invoice, now: datetime | None = None) -> bool:
    """Move an unpaid invoice past its due date to OVERDUE."""
    now = now or utcnow()
    if invoice.due_date is None or invoice.due_date >= now:
        return False
    if invoice.status not in (PaymentStatus.PENDING, PaymentStatus.PARTIAL):
        return False
    _set_status(invoice, PaymentStatus.OVERDUE)
    return True
