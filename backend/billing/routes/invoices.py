# Overview: Flask API routes for invoice operations; parses input and returns JSON responses.

# backend/billing/routes/invoices.py
"""
Invoice API routes.

MULTI-TENANT: every route acts on the shop owned by g.current_user. An
invoice id from another shop answers 404 exactly like a missing one.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import BillingError
from ..extensions import db
from ..services import invoice_service
from ..validation import parse_page_args
from ..decorators import require_auth


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


def _billing_error(e: BillingError):
    return jsonify(e.to_dict()), e.status_code


def _internal_error(message: str):
    db.session.rollback()
    current_app.logger.exception(message)
    return jsonify({"error": "Internal server error"}), 500


@invoices_bp.post("")
@require_auth
def create_invoice_route():
    """
    Create an invoice from line items.

    Body: customer_id?, invoice_date, due_date?, items[{product_id, quantity,
    unit_price?, discount_amount?, description?}], discount_amount?,
    discount_percentage?, payment_method?, notes?, mark_as_paid?
    """
    try:
        data = request.get_json(silent=True) or {}
        invoice = invoice_service.create_invoice(g.current_user.id, data)
        return jsonify(invoice), 201

    except BillingError as e:
        return _billing_error(e)
    except Exception:
        return _internal_error("Failed to create invoice")


@invoices_bp.get("")
@require_auth
def list_invoices_route():
    """
    List active invoices, newest first.

    Query params:
    - page: int (0-indexed, default 0)
    - size: int (default DEFAULT_PAGE_SIZE, capped at MAX_PAGE_SIZE)
    - search: matches invoice number or customer name
    - status: PENDING, PARTIAL, PAID, OVERDUE
    """
    try:
        page, size = parse_page_args(
            request.args.get("page"),
            request.args.get("size"),
            default_size=current_app.config["DEFAULT_PAGE_SIZE"],
            max_size=current_app.config["MAX_PAGE_SIZE"],
        )
        result = invoice_service.list_invoices(
            g.current_user.id,
            page=page,
            size=size,
            search=request.args.get("search"),
            status=request.args.get("status"),
        )
        return jsonify(result), 200

    except BillingError as e:
        return _billing_error(e)
    except Exception:
        return _internal_error("Failed to list invoices")


@invoices_bp.get("/<int:invoice_id>")
@require_auth
def get_invoice_route(invoice_id: int):
    try:
        return jsonify(invoice_service.get_invoice(g.current_user.id, invoice_id)), 200

    except BillingError as e:
        return _billing_error(e)
    except Exception:
        return _internal_error("Failed to load invoice")


@invoices_bp.post("/<int:invoice_id>/mark-paid")
@require_auth
def mark_paid_route(invoice_id: int):
    """Settle the whole balance. Body: payment_method."""
    try:
        data = request.get_json(silent=True) or {}
        invoice = invoice_service.mark_paid(g.current_user.id, invoice_id, data.get("payment_method"))
        return jsonify(invoice), 200

    except BillingError as e:
        return _billing_error(e)
    except Exception:
        return _internal_error("Failed to mark invoice as paid")


@invoices_bp.post("/<int:invoice_id>/payment")
@require_auth
def record_payment_route(invoice_id: int):
    """Record a payment. Body: amount, payment_method."""
    try:
        data = request.get_json(silent=True) or {}
        if data.get("amount") is None:
            return jsonify({"error": "amount required"}), 400

        invoice = invoice_service.record_payment(
            g.current_user.id, invoice_id, data.get("amount"), data.get("payment_method")
        )
        return jsonify(invoice), 200

    except BillingError as e:
        return _billing_error(e)
    except Exception:
        return _internal_error("Failed to record payment")


@invoices_bp.post("/<int:invoice_id>/cancel")
@require_auth
def cancel_invoice_route(invoice_id: int):
    try:
        return jsonify(invoice_service.cancel_invoice(g.current_user.id, invoice_id)), 200

    except BillingError as e:
        return _billing_error(e)
    except Exception:
        return _internal_error("Failed to cancel invoice")
