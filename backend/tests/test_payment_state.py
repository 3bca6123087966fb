# Overview: Pytest coverage for the invoice payment state machine.

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from billing.errors import ConflictError, ValidationError
from billing.models import Invoice, InvoiceItem, PaymentMethod, PaymentStatus
from billing.services import payment_state


def _invoice(total="236.00", paid="0.00", status=PaymentStatus.PENDING, due_date=None) -> Invoice:
    return Invoice(
        invoice_number="INV-00001",
        invoice_date=datetime(2026, 3, 1),
        due_date=due_date,
        total_amount=Decimal(total),
        paid_amount=Decimal(paid),
        payment_status=status.value,
        is_active=True,
    )


class TestTransitionTable:
    @pytest.mark.parametrize("current,target", [
        (PaymentStatus.PENDING, PaymentStatus.PARTIAL),
        (PaymentStatus.PENDING, PaymentStatus.PAID),
        (PaymentStatus.PENDING, PaymentStatus.OVERDUE),
        (PaymentStatus.PARTIAL, PaymentStatus.PAID),
        (PaymentStatus.OVERDUE, PaymentStatus.PARTIAL),
        (PaymentStatus.OVERDUE, PaymentStatus.PAID),
        (PaymentStatus.PAID, PaymentStatus.CANCELLED),
    ])
    def test_allowed(self, current, target):
        assert payment_state.can_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        (PaymentStatus.PAID, PaymentStatus.PARTIAL),
        (PaymentStatus.PAID, PaymentStatus.PENDING),
        (PaymentStatus.PARTIAL, PaymentStatus.PENDING),
        (PaymentStatus.CANCELLED, PaymentStatus.PAID),
        (PaymentStatus.CANCELLED, PaymentStatus.PENDING),
    ])
    def test_forbidden(self, current, target):
        assert not payment_state.can_transition(current, target)

    def test_accepts_plain_strings(self):
        assert payment_state.can_transition("PENDING", "PAID")


class TestMarkAsPaid:
    def test_pending_to_paid(self, app):
        invoice = _invoice()
        payment_state.mark_as_paid(invoice, "upi")

        assert invoice.payment_status == "PAID"
        assert invoice.paid_amount == Decimal("236.00")
        assert invoice.payment_method == PaymentMethod.UPI.value
        assert invoice.balance_due == Decimal("0.00")

    def test_already_paid_conflicts_and_changes_nothing(self, app):
        invoice = _invoice(paid="236.00", status=PaymentStatus.PAID)
        invoice.payment_method = "CASH"

        with pytest.raises(ConflictError):
            payment_state.mark_as_paid(invoice, "CARD")

        assert invoice.payment_status == "PAID"
        assert invoice.paid_amount == Decimal("236.00")
        assert invoice.payment_method == "CASH"

    def test_cancelled_conflicts(self, app):
        invoice = _invoice(status=PaymentStatus.CANCELLED)
        with pytest.raises(ConflictError):
            payment_state.mark_as_paid(invoice, "CASH")

    def test_unknown_method(self, app):
        with pytest.raises(ValidationError):
            payment_state.mark_as_paid(_invoice(), "BITCOIN")


class TestRecordPayment:
    def test_partial_then_paid(self, app):
        invoice = _invoice()

        payment_state.record_payment(invoice, Decimal("100.00"), "CASH")
        assert invoice.payment_status == "PARTIAL"
        assert invoice.balance_due == Decimal("136.00")

        payment_state.record_payment(invoice, "136.00", "UPI")
        assert invoice.payment_status == "PAID"
        assert invoice.balance_due == Decimal("0.00")
        assert invoice.payment_method == "UPI"

    def test_overpayment_is_accepted(self, app):
        invoice = _invoice(total="50.00")
        payment_state.record_payment(invoice, "80.00", "CASH")

        assert invoice.payment_status == "PAID"
        assert invoice.balance_due == Decimal("-30.00")

    def test_paid_never_reverts(self, app):
        invoice = _invoice(paid="236.00", status=PaymentStatus.PAID)
        payment_state.record_payment(invoice, "1.00", "CARD")

        assert invoice.payment_status == "PAID"
        assert invoice.paid_amount == Decimal("237.00")

    def test_overdue_moves_to_partial(self, app):
        invoice = _invoice(status=PaymentStatus.OVERDUE)
        payment_state.record_payment(invoice, "10.00", "CASH")
        assert invoice.payment_status == "PARTIAL"

    @pytest.mark.parametrize("amount", ["0", "-5.00", Decimal("0.00")])
    def test_non_positive_amount_rejected(self, app, amount):
        invoice = _invoice()
        with pytest.raises(ValidationError):
            payment_state.record_payment(invoice, amount, "CASH")
        assert invoice.paid_amount == Decimal("0.00")

    def test_cancelled_conflicts(self, app):
        invoice = _invoice(status=PaymentStatus.CANCELLED)
        with pytest.raises(ConflictError):
            payment_state.record_payment(invoice, "10.00", "CASH")

    def test_method_required(self, app):
        with pytest.raises(ValidationError):
            payment_state.record_payment(_invoice(), "10.00", None)


class TestCancelAndOverdue:
    def test_cancel_is_idempotent(self, app):
        invoice = _invoice()
        invoice.items.append(InvoiceItem(product_name="Loose item", quantity=1, unit_price=Decimal("10.00")))

        assert payment_state.cancel(invoice) is True
        first_cancelled_at = invoice.cancelled_at
        assert invoice.payment_status == "CANCELLED"
        assert invoice.is_active is False

        assert payment_state.cancel(invoice) is False
        assert invoice.cancelled_at == first_cancelled_at

    def test_paid_invoice_can_be_cancelled(self, app):
        invoice = _invoice(paid="236.00", status=PaymentStatus.PAID)
        assert payment_state.cancel(invoice) is True
        assert invoice.payment_status == "CANCELLED"

    def test_mark_overdue_only_past_due_unpaid(self, app):
        now = datetime(2026, 4, 1)
        past_due = _invoice(due_date=now - timedelta(days=1))
        not_due = _invoice(due_date=now + timedelta(days=1))
        no_due_date = _invoice()
        paid = _invoice(status=PaymentStatus.PAID, due_date=now - timedelta(days=1))

        assert payment_state.mark_overdue(past_due, now) is True
        assert past_due.payment_status == "OVERDUE"
        assert payment_state.mark_overdue(not_due, now) is False
        assert payment_state.mark_overdue(no_due_date, now) is False
        assert payment_state.mark_overdue(paid, now) is False
        assert paid.payment_status == "PAID"
