# Overview: Per-shop invoice number allocation.

from __future__ import annotations

from sqlalchemy import update

from ..errors import NotFoundError
from ..extensions import db
from ..models import Shop


def format_invoice_number(prefix: str, seq: int) -> str:
    """"INV", 1 -> "INV-00001"; wider once seq passes 99999."""
    return f"{prefix}-{seq:05d}"


def sequence_of(invoice_number: str) -> int:
    return int(invoice_number.rsplit("-", 1)[1])


def next_invoice_number(shop_id: int) -> str:
    """
    Atomically allocate the next invoice number for a shop.

    The counter is advanced with an in-place UPDATE and read back inside the
    caller's transaction, so no two transactions can be handed the same
    number. Must be called inside the invoice-creation unit of work; does not
    commit. If that unit of work fails after allocation, the caller passes
    the number to consume_invoice_number() so it is never issued again.
    """
    stmt = (
        update(Shop)
        .where(Shop.id == shop_id)
        .values(next_invoice_number=Shop.next_invoice_number + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        raise NotFoundError("Shop", shop_id)

    row = (
        db.session.query(Shop.next_invoice_number, Shop.invoice_prefix)
        .filter(Shop.id == shop_id)
        .one()
    )
    current, prefix = row
    return format_invoice_number(prefix, current - 1)


def consume_invoice_number(shop_id: int, invoice_number: str) -> bool:
    """
    Move the counter past a number whose invoice was rolled back.

    Runs in the caller's (fresh) transaction; does not commit. A no-op when
    the counter has already moved past the number. Returns True when the
    counter was advanced.
    """
    seq = sequence_of(invoice_number)
    stmt = (
        update(Shop)
        .where(Shop.id == shop_id, Shop.next_invoice_number <= seq)
        .values(next_invoice_number=seq + 1)
        .execution_options(synchronize_session=False)
    )
    return bool(db.session.execute(stmt).rowcount)
