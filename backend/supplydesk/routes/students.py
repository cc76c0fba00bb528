# Overview: Flask API routes for students, including bulk upload.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..extensions import db
from ..responses import pagination_args, query_bool, to_response
from ..results import validation
from ..services.student_service import StudentService, read_upload_rows
from ..validation import ValidationError, parse_int

students_bp = Blueprint("students", __name__, url_prefix="/api/students")


def _service() -> StudentService:
    return StudentService(db.session, g.ownership)


@students_bp.get("")
@require_auth
def list_students():
    """
    Query params:
    - school_id, class_name, section
    - search: matches name or roll number
    - is_active: true/false
    - page, limit
    """
    result = _service().list(
        pagination_args(),
        school_id=request.args.get("school_id", type=int),
        class_name=request.args.get("class_name"),
        section=request.args.get("section"),
        search=request.args.get("search"),
        is_active=query_bool("is_active"),
    )
    return to_response(result)


@students_bp.get("/<int:student_id>")
@require_auth
def get_student(student_id: int):
    return to_response(_service().get(student_id))


@students_bp.post("")
@require_auth
def create_student():
    return to_response(_service().create(request.get_json(silent=True) or {}), 201)


@students_bp.put("/<int:student_id>")
@require_auth
def update_student(student_id: int):
    return to_response(_service().update(student_id, request.get_json(silent=True) or {}))


@students_bp.delete("/<int:student_id>")
@require_auth
def delete_student(student_id: int):
    return to_response(_service().delete(student_id))


@students_bp.post("/bulk-upload")
@require_auth
def bulk_upload_students():
    """
    Multipart upload: file (.csv or .xlsx) and schoolId.

    Required columns: rollNumber, name, class. Optional: section, fatherName,
    motherName, phone, email, dateOfBirth.
    """
    if "file" not in request.files:
        return to_response(validation("file is required"))

    raw_school_id = request.form.get("schoolId") or request.form.get("school_id")
    try:
        school_id = parse_int("schoolId", raw_school_id) if raw_school_id else None
    except ValidationError as e:
        return to_response(validation(str(e)))

    upload = request.files["file"]
    try:
        rows = read_upload_rows(upload.filename, upload.stream)
    except ValidationError as e:
        return to_response(validation(str(e)))
    except (UnicodeDecodeError, ValueError, OSError) as e:
        current_app.logger.warning("Unreadable student upload %s: %s", upload.filename, e)
        return to_response(validation("Could not read the uploaded file"))

    return to_response(_service().bulk_import(school_id, rows))
