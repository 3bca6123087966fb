# Overview: Flask API route for dashboard statistics.

from flask import Blueprint, g

from ..services import dashboard_service
from ..decorators import require_auth

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
@require_auth
def dashboard_stats_route():
    return dashboard_service.get_dashboard_stats(g.current_user.id)
