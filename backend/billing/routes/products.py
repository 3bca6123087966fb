# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/billing/routes/products.py
"""
Product management routes.

MULTI-TENANT: All product operations are scoped to the caller's shop.
Deletes are soft; deleted products disappear from lists and cannot be put
on new invoices.
"""
from flask import Blueprint, request, g, jsonify, current_app

from ..services import product_service
from ..validation import parse_page_args
from ..decorators import require_auth

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products_route():
    """
    Query params:
    - page: int (0-indexed), size: int
    - search: matches name, sku or barcode
    - category_id: int (optional)
    """
    page, size = parse_page_args(
        request.args.get("page"),
        request.args.get("size"),
        default_size=current_app.config["DEFAULT_PAGE_SIZE"],
        max_size=current_app.config["MAX_PAGE_SIZE"],
    )
    return product_service.list_products(
        g.current_user.id,
        page=page,
        size=size,
        search=request.args.get("search"),
        category_id=request.args.get("category_id", type=int),
    )


@products_bp.get("/all")
@require_auth
def all_products_route():
    return jsonify(product_service.list_all_products(g.current_user.id))


@products_bp.get("/low-stock")
@require_auth
def low_stock_route():
    """Tracked products at or below their low-stock alert."""
    return jsonify(product_service.list_low_stock(g.current_user.id))


@products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}
    return product_service.create_product(g.current_user.id, payload), 201


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    return product_service.get_product(g.current_user.id, product_id)


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    return product_service.update_product(g.current_user.id, product_id, payload)


@products_bp.patch("/<int:product_id>/stock")
@require_auth
def update_stock_route(product_id: int):
    """Set on-hand stock to an absolute value. Body: quantity."""
    payload = request.get_json(silent=True) or {}
    if payload.get("quantity") is None:
        return {"error": "quantity required"}, 400
    return product_service.update_stock(g.current_user.id, product_id, payload["quantity"])


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    product_service.delete_product(g.current_user.id, product_id)
    return {"ok": True}, 200
