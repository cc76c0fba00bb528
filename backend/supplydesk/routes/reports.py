# Overview: Flask API routes for reports and the dashboard.

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..extensions import db
from ..responses import query_datetime, to_response
from ..services.reporting_service import ReportingService

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")
dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


def _service() -> ReportingService:
    return ReportingService(db.session, g.ownership)


@reports_bp.get("/sales")
@require_auth
def sales_report():
    """
    Query params:
    - period: daily | weekly | monthly
    - start_date, end_date: ISO dates, used when period is absent
    """
    result = _service().sales_report(
        period=request.args.get("period") or None,
        start=query_datetime("start_date"),
        end=query_datetime("end_date", end_of_day=True),
    )
    return to_response(result)


@reports_bp.get("/school-performance")
@require_auth
def school_performance_report():
    result = _service().school_performance(
        start=query_datetime("start_date"),
        end=query_datetime("end_date", end_of_day=True),
        school_id=request.args.get("school_id", type=int),
    )
    return to_response(result)


@reports_bp.get("/inventory-valuation")
@require_auth
def inventory_valuation_report():
    return to_response(_service().inventory_valuation())


@dashboard_bp.get("/summary")
@require_auth
def dashboard_summary():
    return to_response(_service().dashboard())
