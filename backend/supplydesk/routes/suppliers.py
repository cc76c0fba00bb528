# Overview: Flask API routes for suppliers.

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..extensions import db
from ..responses import pagination_args, query_bool, to_response
from ..services.supplier_service import SupplierService

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


def _service() -> SupplierService:
    return SupplierService(db.session, g.ownership)


@suppliers_bp.get("")
@require_auth
def list_suppliers():
    result = _service().list(
        pagination_args(),
        search=request.args.get("search"),
        is_active=query_bool("is_active"),
    )
    return to_response(result)


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
def get_supplier(supplier_id: int):
    return to_response(_service().get(supplier_id))


@suppliers_bp.post("")
@require_auth
def create_supplier():
    return to_response(_service().create(request.get_json(silent=True) or {}), 201)


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
def update_supplier(supplier_id: int):
    return to_response(_service().update(supplier_id, request.get_json(silent=True) or {}))


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
def delete_supplier(supplier_id: int):
    return to_response(_service().delete(supplier_id))
