# Overview: Flask API routes for invoices, PDF export, student search and GSTIN lookup.

from flask import Blueprint, Response, g, request

from ..decorators import require_auth
from ..extensions import db
from ..models import INVOICE_PAYMENT_STATUSES
from ..responses import pagination_args, query_datetime, to_response
from ..results import validation
from ..services import gst_service
from ..services.invoice_service import InvoiceService
from ..services.pdf_service import render_invoice_pdf
from ..services.student_service import StudentService
from ..validation import ValidationError, parse_invoice_request, parse_invoice_update

invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


def _service() -> InvoiceService:
    return InvoiceService(db.session, g.ownership)


@invoices_bp.get("")
@require_auth
def list_invoices():
    """
    Query params:
    - school_id, student_id: int
    - payment_status: paid | unpaid | partial
    - start_date, end_date: ISO dates (inclusive)
    - search: invoice number fragment
    - page, limit
    """
    payment_status = request.args.get("payment_status") or None
    if payment_status is not None and payment_status not in INVOICE_PAYMENT_STATUSES:
        return to_response(validation(f"payment_status must be one of: {', '.join(INVOICE_PAYMENT_STATUSES)}"))

    result = _service().list(
        pagination_args(),
        school_id=request.args.get("school_id", type=int),
        student_id=request.args.get("student_id", type=int),
        payment_status=payment_status,
        start_date=query_datetime("start_date"),
        end_date=query_datetime("end_date", end_of_day=True),
        search=request.args.get("search"),
    )
    return to_response(result)


@invoices_bp.get("/search-student")
@require_auth
def search_student():
    return to_response(StudentService(db.session, g.ownership).search(request.args.get("query")))


@invoices_bp.get("/lookup-gst/<gstin>")
@require_auth
def lookup_gst(gstin: str):
    return to_response(gst_service.lookup_gstin(gstin))


@invoices_bp.get("/<int:invoice_id>")
@require_auth
def get_invoice(invoice_id: int):
    return to_response(_service().get(invoice_id))


@invoices_bp.get("/<int:invoice_id>/pdf")
@require_auth
def invoice_pdf(invoice_id: int):
    loaded = _service().load(invoice_id)
    if not loaded.ok:
        return to_response(loaded)

    invoice = loaded.data
    return Response(
        render_invoice_pdf(invoice),
        mimetype="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=invoice_{invoice.invoice_number}.pdf"},
    )


@invoices_bp.post("")
@require_auth
def create_invoice():
    """
    Sell products to a student.

    Body: student_id, items [{product_id, quantity}], optional school_id,
    discount, payment_status, payment_method, invoice_date, gst_number,
    business_info, notes. Unit prices always come from the product.
    """
    try:
        invoice_request = parse_invoice_request(request.get_json(silent=True))
    except ValidationError as e:
        return to_response(validation(str(e)))

    return to_response(_service().create(invoice_request), 201)


@invoices_bp.put("/<int:invoice_id>")
@require_auth
def update_invoice(invoice_id: int):
    """Edit an invoice that is not yet paid. Replacing items re-reserves stock."""
    try:
        update_request = parse_invoice_update(request.get_json(silent=True))
    except ValidationError as e:
        return to_response(validation(str(e)))

    return to_response(_service().update(invoice_id, update_request))
