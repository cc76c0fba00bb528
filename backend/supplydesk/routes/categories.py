# Overview: Flask API routes for product categories.

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..extensions import db
from ..responses import pagination_args, query_bool, to_response
from ..services.category_service import CategoryService

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


def _service() -> CategoryService:
    return CategoryService(db.session, g.ownership)


@categories_bp.get("")
@require_auth
def list_categories():
    """Caller's categories plus global ones."""
    return to_response(_service().list(pagination_args(), is_active=query_bool("is_active")))


@categories_bp.get("/<int:category_id>")
@require_auth
def get_category(category_id: int):
    return to_response(_service().get(category_id))


@categories_bp.post("")
@require_auth
def create_category():
    return to_response(_service().create(request.get_json(silent=True) or {}), 201)


@categories_bp.put("/<int:category_id>")
@require_auth
def update_category(category_id: int):
    return to_response(_service().update(category_id, request.get_json(silent=True) or {}))


@categories_bp.delete("/<int:category_id>")
@require_auth
def delete_category(category_id: int):
    return to_response(_service().delete(category_id))
