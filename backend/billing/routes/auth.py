# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/billing/routes/auth.py
"""
Authentication API routes.

Signup creates the account and signs the user in; the returned token goes
in the Authorization header (Bearer) of every protected route.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import BillingError
from ..extensions import db
from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_response(user, token: str, session, status: int):
    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "expires_at": session.to_dict()["expires_at"],
    }), status


@auth_bp.post("/signup")
def signup_route():
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.create_user(
            email=data.get("email"),
            password=data.get("password"),
            full_name=data.get("full_name"),
            phone_number=data.get("phone_number"),
        )
        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        return _session_response(user, token, session, 201)

    except BillingError as e:
        db.session.rollback()
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to sign up")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Returns user info and session token on success.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not all([email, password]):
        return jsonify({"error": "email and password required"}), 400

    user = auth_service.authenticate(email, password)
    if not user:
        current_app.logger.warning("Failed login for %s from %s", email, request.remote_addr)
        return jsonify({"error": "Invalid credentials"}), 401

    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return _session_response(user, token, session, 200)


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.session_token)
    return jsonify({"message": "Logged out successfully"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
