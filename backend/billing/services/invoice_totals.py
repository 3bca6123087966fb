# Overview: Pure totals arithmetic for invoice lines and headers.

"""
Invoice totals.

Line:    line_total = unit_price * quantity - discount_amount
Header:  subtotal   = sum(line_total)
         taxable    = subtotal - discount_amount      (not clamped at zero)
         tax_amount = taxable * tax_rate / 100        (half-up to cents)
         total      = taxable + tax_amount

Only the tax step rounds; every other step is exact on 2-place decimals.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from billing.money import ZERO, percent_of


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def compute_line_total(unit_price, quantity: int, discount_amount=ZERO) -> Decimal:
    return Decimal(unit_price) * quantity - Decimal(discount_amount)


def compute_totals(line_totals: Iterable[Decimal], discount_amount, tax_rate) -> InvoiceTotals:
    subtotal = sum((Decimal(t) for t in line_totals), ZERO)
    taxable = subtotal - Decimal(discount_amount or ZERO)
    tax_amount = percent_of(taxable, Decimal(tax_rate or ZERO))
    return InvoiceTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        total_amount=taxable + tax_amount,
    )


def apply_totals(invoice) -> InvoiceTotals:
    """Recompute header totals from the invoice's items, in full."""
    totals = compute_totals(
        (item.line_total for item in invoice.items),
        invoice.discount_amount,
        invoice.tax_rate,
    )
    invoice.subtotal = totals.subtotal
    invoice.tax_amount = totals.tax_amount
    invoice.total_amount = totals.total_amount
    return totals
