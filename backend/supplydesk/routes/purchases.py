# Overview: Flask API routes for supplier purchases.

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..extensions import db
from ..models import PURCHASE_PAYMENT_STATUSES
from ..responses import pagination_args, query_datetime, to_response
from ..results import validation
from ..services.purchase_service import PurchaseService
from ..validation import (
    ValidationError,
    parse_payment_update,
    parse_purchase_request,
    parse_purchase_update,
)

purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


def _service() -> PurchaseService:
    return PurchaseService(db.session, g.ownership)


@purchases_bp.get("")
@require_auth
def list_purchases():
    """
    Query params:
    - supplier_id: int
    - payment_status: pending | partial | paid
    - start_date, end_date: ISO dates (inclusive)
    - page, limit
    """
    payment_status = request.args.get("payment_status") or None
    if payment_status is not None and payment_status not in PURCHASE_PAYMENT_STATUSES:
        return to_response(validation(f"payment_status must be one of: {', '.join(PURCHASE_PAYMENT_STATUSES)}"))

    result = _service().list(
        pagination_args(),
        supplier_id=request.args.get("supplier_id", type=int),
        payment_status=payment_status,
        start_date=query_datetime("start_date"),
        end_date=query_datetime("end_date", end_of_day=True),
    )
    return to_response(result)


@purchases_bp.get("/<int:purchase_id>")
@require_auth
def get_purchase(purchase_id: int):
    return to_response(_service().get(purchase_id))


@purchases_bp.post("")
@require_auth
def create_purchase():
    """
    Record a purchase and add its quantities to stock.

    Body: supplier_id, items [{product_id, quantity, unit_price}],
    optional purchase_date, paid_amount, notes.
    """
    try:
        purchase_request = parse_purchase_request(request.get_json(silent=True))
    except ValidationError as e:
        return to_response(validation(str(e)))

    return to_response(_service().create(purchase_request), 201)


@purchases_bp.put("/<int:purchase_id>")
@require_auth
def update_purchase(purchase_id: int):
    """Only supplier_id, purchase_date and notes can change; items are fixed once stock is received."""
    try:
        update_request = parse_purchase_update(request.get_json(silent=True))
    except ValidationError as e:
        return to_response(validation(str(e)))

    return to_response(_service().update(purchase_id, update_request))


@purchases_bp.put("/<int:purchase_id>/payment")
@require_auth
def update_purchase_payment(purchase_id: int):
    try:
        payment_request = parse_payment_update(request.get_json(silent=True))
    except ValidationError as e:
        return to_response(validation(str(e)))

    return to_response(_service().update_payment(purchase_id, payment_request))
