# Overview: Flask API routes for the caller's shop profile and settings.

from flask import Blueprint, request, g

from ..services import shop_service
from ..decorators import require_auth

shops_bp = Blueprint("shops", __name__, url_prefix="/api/shop")


@shops_bp.post("")
@require_auth
def setup_shop_route():
    """Create the caller's shop (one per user)."""
    payload = request.get_json(silent=True) or {}
    return shop_service.setup_shop(g.current_user.id, payload), 201


@shops_bp.get("")
@require_auth
def get_shop_route():
    return shop_service.get_shop(g.current_user.id)


@shops_bp.put("")
@require_auth
def update_shop_route():
    """Update profile and billing settings (prefix, tax rate, currency)."""
    payload = request.get_json(silent=True) or {}
    return shop_service.update_shop(g.current_user.id, payload)
