# Overview: Flask API routes for login, logout and the current admin.

from flask import Blueprint, current_app, g, request

from ..decorators import bearer_token, require_auth
from ..extensions import db
from ..services import auth_service, session_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by email + password and create a session token.

    The token must be sent as "Authorization: Bearer <token>" on every
    protected route.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return {"success": False, "message": "Email and password are required"}, 400

    admin = auth_service.authenticate(db.session, email, password)
    if not admin:
        current_app.logger.info("Failed login for %s", email)
        return {"success": False, "message": "Invalid credentials"}, 401

    _, token = session_service.create_session(
        db.session,
        admin,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )

    return {
        "success": True,
        "message": "Login successful",
        "data": {"token": token, "admin": admin.to_dict()},
    }, 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(db.session, bearer_token())
    return {"success": True, "message": "Logged out successfully"}, 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return {"success": True, "data": g.current_admin.to_dict()}, 200
