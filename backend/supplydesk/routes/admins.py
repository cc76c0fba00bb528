# Overview: Flask API routes for admin account management (superadmin only).

from flask import Blueprint, request

from ..decorators import require_auth, require_superadmin
from ..extensions import db
from ..models import Admin
from ..responses import pagination_args, to_response
from ..results import Ok
from ..pagination import paginate
from ..services import auth_service

admins_bp = Blueprint("admins", __name__, url_prefix="/api/admins")


@admins_bp.post("")
@require_auth
@require_superadmin
def create_admin_route():
    data = request.get_json(silent=True) or {}
    result = auth_service.create_admin(
        db.session,
        username=data.get("username"),
        email=data.get("email"),
        password=data.get("password"),
        role=data.get("role"),
    )
    return to_response(result, 201)


@admins_bp.get("")
@require_auth
@require_superadmin
def list_admins_route():
    rows, pagination = paginate(db.session.query(Admin).order_by(Admin.id.asc()), pagination_args())
    return to_response(Ok([row.to_dict() for row in rows], pagination=pagination))
