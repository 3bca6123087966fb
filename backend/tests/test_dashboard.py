# Overview: Pytest coverage for dashboard statistics.

from datetime import datetime

from billing.services import invoice_service
from billing.services.dashboard_service import get_dashboard_stats
from conftest import invoice_payload


def test_sales_windows(db_session, owner_a, shop_a, product_a):
    invoice_service.create_invoice(
        owner_a.id, invoice_payload((product_a.id, 1), invoice_date="2026-03-15T09:00:00Z", mark_as_paid=True, payment_method="CASH")
    )
    invoice_service.create_invoice(
        owner_a.id, invoice_payload((product_a.id, 2), invoice_date="2026-03-02T12:00:00Z")
    )
    invoice_service.create_invoice(
        owner_a.id, invoice_payload((product_a.id, 1), invoice_date="2026-02-27T12:00:00Z")
    )

    stats = get_dashboard_stats(owner_a.id, now=datetime(2026, 3, 15, 18, 0))

    assert stats["today_sales"] == "118.00"
    assert stats["this_month_sales"] == "354.00"
    assert stats["total_sales"] == "118.00"
    assert stats["total_invoices"] == 3
    assert stats["pending_invoices"] == 2


def test_cancelled_invoices_not_counted(db_session, owner_a, shop_a, product_a):
    view = invoice_service.create_invoice(
        owner_a.id, invoice_payload((product_a.id, 1), mark_as_paid=True, payment_method="CASH")
    )
    invoice_service.cancel_invoice(owner_a.id, view["id"])

    stats = get_dashboard_stats(owner_a.id, now=datetime(2026, 3, 15, 18, 0))

    assert stats["total_invoices"] == 0
    assert stats["paid_invoices"] == 0
    assert stats["total_sales"] == "0.00"
    assert stats["today_sales"] == "0.00"


def test_low_stock_count(db_session, owner_a, shop_a, product_a, service_product_a):
    invoice_service.create_invoice(owner_a.id, invoice_payload((product_a.id, 45)))

    stats = get_dashboard_stats(owner_a.id)

    assert stats["low_stock_products"] == 1
    assert stats["total_products"] == 2
