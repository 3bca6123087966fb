# Overview: Flask API routes for product categories.

from flask import Blueprint, request, g, jsonify

from ..services import category_service
from ..decorators import require_auth

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories_route():
    return jsonify(category_service.list_categories(g.current_user.id))


@categories_bp.post("")
@require_auth
def create_category_route():
    payload = request.get_json(silent=True) or {}
    return category_service.create_category(g.current_user.id, payload), 201


@categories_bp.get("/<int:category_id>")
@require_auth
def get_category_route(category_id: int):
    return category_service.get_category(g.current_user.id, category_id)


@categories_bp.put("/<int:category_id>")
@require_auth
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}
    return category_service.update_category(g.current_user.id, category_id, payload)


@categories_bp.delete("/<int:category_id>")
@require_auth
def delete_category_route(category_id: int):
    category_service.delete_category(g.current_user.id, category_id)
    return {"ok": True}, 200
