# Overview: Flask API routes for products.

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..extensions import db
from ..responses import pagination_args, query_bool, to_response
from ..results import validation
from ..services.product_service import STOCK_STATUSES, ProductService

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _service() -> ProductService:
    return ProductService(db.session, g.ownership)


@products_bp.get("")
@require_auth
def list_products():
    """
    Query params:
    - category_id: int
    - stock_status: low (stock <= min_stock_level) or out (stock == 0)
    - search: matches name or SKU
    - is_active: true/false
    - page, limit
    """
    stock_status = request.args.get("stock_status") or None
    if stock_status is not None and stock_status not in STOCK_STATUSES:
        return to_response(validation(f"stock_status must be one of: {', '.join(STOCK_STATUSES)}"))

    result = _service().list(
        pagination_args(),
        category_id=request.args.get("category_id", type=int),
        stock_status=stock_status,
        search=request.args.get("search"),
        is_active=query_bool("is_active"),
    )
    return to_response(result)


@products_bp.get("/<int:product_id>")
@require_auth
def get_product(product_id: int):
    return to_response(_service().get(product_id))


@products_bp.post("")
@require_auth
def create_product():
    return to_response(_service().create(request.get_json(silent=True) or {}), 201)


@products_bp.put("/<int:product_id>")
@require_auth
def update_product(product_id: int):
    return to_response(_service().update(product_id, request.get_json(silent=True) or {}))


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product(product_id: int):
    return to_response(_service().delete(product_id))
