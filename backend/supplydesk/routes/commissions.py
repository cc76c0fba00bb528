# Overview: Flask API routes for commissions.

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..extensions import db
from ..responses import pagination_args, to_response
from ..results import validation
from ..services.commission_service import CommissionAccrual
from ..validation import ValidationError, parse_commission_status, parse_settlement_request

commissions_bp = Blueprint("commissions", __name__, url_prefix="/api/commissions")


def _service() -> CommissionAccrual:
    return CommissionAccrual(db.session, g.ownership)


@commissions_bp.get("")
@require_auth
def list_commissions():
    """
    Query params:
    - school_id: int
    - status: pending | settled
    - month (1-12), year
    - page, limit
    """
    try:
        status = parse_commission_status(request.args.get("status"))
    except ValidationError as e:
        return to_response(validation(str(e)))

    result = _service().list(
        pagination_args(),
        school_id=request.args.get("school_id", type=int),
        status=status,
        month=request.args.get("month", type=int),
        year=request.args.get("year", type=int),
    )
    return to_response(result)


@commissions_bp.get("/summary")
@require_auth
def commission_summary():
    return to_response(_service().summary())


@commissions_bp.get("/school/<int:school_id>")
@require_auth
def school_commissions(school_id: int):
    try:
        status = parse_commission_status(request.args.get("status"))
    except ValidationError as e:
        return to_response(validation(str(e)))

    result = _service().for_school(
        school_id,
        pagination_args(),
        status=status,
        year=request.args.get("year", type=int),
    )
    return to_response(result)


@commissions_bp.put("/<int:commission_id>/settle")
@require_auth
def settle_commission(commission_id: int):
    """Body: payment_reference (required), optional settlement_date, notes."""
    try:
        settlement = parse_settlement_request(request.get_json(silent=True))
    except ValidationError as e:
        return to_response(validation(str(e)))

    return to_response(_service().settle(commission_id, settlement))
