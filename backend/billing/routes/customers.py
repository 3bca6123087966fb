# Overview: Flask API routes for customers operations; parses input and returns JSON responses.

from flask import Blueprint, request, g, jsonify, current_app

from ..services import customer_service
from ..validation import parse_page_args
from ..decorators import require_auth

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers_route():
    """
    Query params:
    - page: int (0-indexed), size: int
    - search: matches name, phone or email
    """
    page, size = parse_page_args(
        request.args.get("page"),
        request.args.get("size"),
        default_size=current_app.config["DEFAULT_PAGE_SIZE"],
        max_size=current_app.config["MAX_PAGE_SIZE"],
    )
    return customer_service.list_customers(
        g.current_user.id, page=page, size=size, search=request.args.get("search")
    )


@customers_bp.get("/all")
@require_auth
def all_customers_route():
    """Active customers, unpaginated."""
    return jsonify(customer_service.list_all_customers(g.current_user.id))


@customers_bp.post("")
@require_auth
def create_customer_route():
    payload = request.get_json(silent=True) or {}
    return customer_service.create_customer(g.current_user.id, payload), 201


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer_route(customer_id: int):
    return customer_service.get_customer(g.current_user.id, customer_id)


@customers_bp.put("/<int:customer_id>")
@require_auth
def update_customer_route(customer_id: int):
    payload = request.get_json(silent=True) or {}
    return customer_service.update_customer(g.current_user.id, customer_id, payload)


@customers_bp.delete("/<int:customer_id>")
@require_auth
def delete_customer_route(customer_id: int):
    customer_service.delete_customer(g.current_user.id, customer_id)
    return {"ok": True}, 200
