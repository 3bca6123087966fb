# Overview: Pytest coverage for per-shop invoice numbering.

import pytest

from billing.errors import NotFoundError
from billing.models import Shop
from billing.services.numbering_service import (
    consume_invoice_number,
    format_invoice_number,
    next_invoice_number,
    sequence_of,
)


def test_format_pads_to_five_digits():
    assert format_invoice_number("INV", 1) == "INV-00001"
    assert format_invoice_number("INV", 99999) == "INV-99999"


def test_format_grows_past_five_digits():
    assert format_invoice_number("INV", 123456) == "INV-123456"


def test_allocation_advances_counter(db_session, shop_a):
    assert shop_a.next_invoice_number == 1

    assert next_invoice_number(shop_a.id) == "INV-00001"
    assert next_invoice_number(shop_a.id) == "INV-00002"
    db_session.commit()

    assert db_session.get(Shop, shop_a.id).next_invoice_number == 3


def test_counters_are_per_shop(db_session, shop_a, shop_b):
    assert next_invoice_number(shop_a.id) == "INV-00001"
    assert next_invoice_number(shop_b.id) == "BM-00001"
    assert next_invoice_number(shop_a.id) == "INV-00002"
    db_session.commit()


def test_prefix_change_applies_to_next_number(db_session, shop_a):
    assert next_invoice_number(shop_a.id) == "INV-00001"
    shop_a.invoice_prefix = "ACME"
    db_session.commit()

    assert next_invoice_number(shop_a.id) == "ACME-00002"
    db_session.commit()


def test_consume_retires_rolled_back_number(db_session, shop_a):
    number = next_invoice_number(shop_a.id)
    db_session.rollback()

    assert consume_invoice_number(shop_a.id, number) is True
    db_session.commit()

    assert next_invoice_number(shop_a.id) == "INV-00002"
    db_session.commit()


def test_consume_is_noop_once_counter_moved_on(db_session, shop_a):
    next_invoice_number(shop_a.id)
    next_invoice_number(shop_a.id)
    db_session.commit()

    assert consume_invoice_number(shop_a.id, "INV-00001") is False
    db_session.commit()
    assert db_session.get(Shop, shop_a.id).next_invoice_number == 3


def test_sequence_of_handles_dashed_prefix():
    assert sequence_of("ACME-WEST-00042") == 42


def test_unknown_shop(db_session):
    with pytest.raises(NotFoundError):
        next_invoice_number(999999)
