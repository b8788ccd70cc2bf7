# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/backoffice/routes/auth.py
"""
Authentication API routes

Accounts are created by administrators (see routes/admin.py) or the CLI;
there is no self-registration.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate with email or phone plus password and create a session.

    Token must be included in the Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        identifier = data.get("email") or data.get("phone") or data.get("identifier")
        password = data.get("password")

        if not all([identifier, password]):
            return jsonify({"error": "email/phone and password required"}), 400

        user = auth_service.authenticate(identifier, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "success": True,
            "user": user.to_dict(),
            "role": user.role,
            "token": token,
            "session": session.to_dict(),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.session_token)
    return jsonify({"success": True, "message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
