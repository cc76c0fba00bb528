# Overview: Flask API routes for schools.

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..extensions import db
from ..responses import pagination_args, query_bool, to_response
from ..services.reporting_service import ReportingService
from ..services.school_service import SchoolService

schools_bp = Blueprint("schools", __name__, url_prefix="/api/schools")


def _service() -> SchoolService:
    return SchoolService(db.session, g.ownership)


@schools_bp.get("")
@require_auth
def list_schools():
    """
    Query params:
    - search: matches name or code
    - is_active: true/false
    - page, limit
    """
    result = _service().list(
        pagination_args(),
        search=request.args.get("search"),
        is_active=query_bool("is_active"),
    )
    return to_response(result)


@schools_bp.get("/<int:school_id>")
@require_auth
def get_school(school_id: int):
    """School with student, sales and commission rollups."""
    return to_response(ReportingService(db.session, g.ownership).school_detail(school_id))


@schools_bp.post("")
@require_auth
def create_school():
    result = _service().create(request.get_json(silent=True) or {})
    return to_response(result, 201)


@schools_bp.put("/<int:school_id>")
@require_auth
def update_school(school_id: int):
    return to_response(_service().update(school_id, request.get_json(silent=True) or {}))


@schools_bp.delete("/<int:school_id>")
@require_auth
def delete_school(school_id: int):
    return to_response(_service().delete(school_id))
