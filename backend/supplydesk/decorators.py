# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, g

from .extensions import db
from .services import session_service
from .services.ownership_service import Caller, OwnershipFilter


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets the following Flask g attributes:
    - g.current_admin: the authenticated Admin
    - g.caller: Caller(admin_id, role) used for ownership scoping
    - g.ownership: OwnershipFilter for this request

    Returns 401 for a missing, invalid, expired or revoked token, or a
    deactivated account.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return {"success": False, "message": "Authentication required"}, 401

        context = session_service.validate_session(db.session, token)
        if not context:
            return {"success": False, "message": "Invalid or expired token"}, 401

        g.current_admin = context.admin
        g.caller = Caller(admin_id=context.admin.id, role=context.admin.role)
        g.ownership = OwnershipFilter(db.session, g.caller)

        return f(*args, **kwargs)

    return decorated_function


def require_superadmin(f):
    """Require the authenticated admin to be a superadmin. Use after @require_auth."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not hasattr(g, "caller"):
            return {"success": False, "message": "Authentication required"}, 401
        if not g.caller.is_superadmin:
            return {"success": False, "message": "Superadmin access required"}, 403
        return f(*args, **kwargs)
    return decorated_function
