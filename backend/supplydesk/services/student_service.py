# Overview: Student records, lookup for invoicing and bulk upload from csv/xlsx.

from __future__ import annotations

import csv
import io
import re
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..models import Invoice, School, Student
from ..pagination import Page
from ..results import Err, Ok, Result, validation
from ..validation import STUDENT_POLICY, ValidationError, validate_payload
from .resource_service import OwnedResourceService

SEARCH_LIMIT = 10

# Normalized upload header -> Student field
UPLOAD_COLUMNS = {
    "rollnumber": "roll_number",
    "rollno": "roll_number",
    "name": "name",
    "studentname": "name",
    "class": "class_name",
    "classname": "class_name",
    "section": "section",
    "fathername": "father_name",
    "mothername": "mother_name",
    "phone": "contact_phone",
    "contactphone": "contact_phone",
    "email": "contact_email",
    "contactemail": "contact_email",
    "dateofbirth": "date_of_birth",
    "dob": "date_of_birth",
    "street": "address_street",
    "city": "address_city",
    "state": "address_state",
    "pincode": "address_pincode",
}
REQUIRED_UPLOAD_FIELDS = (("roll_number", "rollNumber"), ("name", "name"), ("class_name", "class"))
XLSX_EXTENSIONS = {"xlsx", "xlsm", "xltx", "xltm"}


def _normalize_header(header) -> str:
    return re.sub(r"[^a-z0-9]", "", str(header or "").lower())


def read_upload_rows(filename: str, stream) -> list[dict]:
    """Parse an uploaded csv or xlsx file into dict rows keyed by the raw header."""
    ext = (filename or "").rsplit(".", 1)[-1].lower()

    if ext == "csv":
        text = io.StringIO(stream.read().decode("utf-8-sig"))
        return [row for row in csv.DictReader(text)]

    if ext in XLSX_EXTENSIONS:
        try:
            wb = load_workbook(stream, read_only=True, data_only=True)
        except (BadZipFile, InvalidFileException):
            raise ValidationError("Could not read the uploaded spreadsheet")
        try:
            data = list(wb.active.values)
        finally:
            wb.close()
        if not data:
            return []
        headers = [str(h) if h is not None else "" for h in data[0]]
        return [
            {headers[i]: row[i] for i in range(min(len(headers), len(row)))}
            for row in data[1:]
            if any(cell not in (None, "") for cell in row)
        ]

    raise ValidationError("Unsupported file type. Upload a .csv or .xlsx file")


def _student_payload(row: dict, school_id: int) -> dict:
    payload = {}
    for header, value in row.items():
        field = UPLOAD_COLUMNS.get(_normalize_header(header))
        if field is None or value is None:
            continue
        text = str(value).strip()
        # Spreadsheet numbers come back as floats (e.g. roll 1001.0)
        if isinstance(value, float) and value.is_integer():
            text = str(int(value))
        if text:
            payload[field] = text
    payload["school_id"] = school_id
    return payload


class StudentService(OwnedResourceService):
    model = Student
    label = "Student"
    policy = STUDENT_POLICY
    unique_fields = {"roll_number": "roll number"}

    def check_references(self, patch: dict, entity=None) -> Err | None:
        school_id = patch.get("school_id")
        if school_id is None or (entity is not None and school_id == entity.school_id):
            return None
        loaded = self.ownership.load(School, school_id, "School")
        return None if loaded.ok else loaded

    def dependents(self, student: Student) -> str | None:
        if self.session.query(Invoice.id).filter(Invoice.student_id == student.id).first():
            return "Cannot delete student with existing invoices"
        return None

    def list(
        self,
        page: Page,
        *,
        school_id: int | None = None,
        class_name: str | None = None,
        section: str | None = None,
        search: str | None = None,
        is_active: bool | None = None,
    ) -> Result:
        query = self.ownership.scoped(Student)
        if school_id:
            query = query.filter(Student.school_id == school_id)
        if class_name:
            query = query.filter(Student.class_name == class_name)
        if section:
            query = query.filter(Student.section == section)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(Student.name.ilike(term), Student.roll_number.ilike(term)))
        if is_active is not None:
            query = query.filter(Student.is_active.is_(is_active))
        return self.list_query(query, page, (Student.created_at.desc(), Student.id.desc()))

    def search(self, term: str | None) -> Result:
        """Active students whose roll number or name matches; used by the invoice form."""
        if not term or not term.strip():
            return validation("Search query is required")
        pattern = f"%{term.strip()}%"
        rows = (
            self.ownership.scoped(Student)
            .filter(Student.is_active.is_(True))
            .filter(or_(Student.roll_number.ilike(pattern), Student.name.ilike(pattern)))
            .order_by(Student.name.asc())
            .limit(SEARCH_LIMIT)
            .all()
        )
        return Ok([row.to_dict() for row in rows])

    def bulk_import(self, school_id: int | None, rows: list[dict]) -> Result:
        """
        Insert one student per row into a school the caller owns.

        Rows are numbered as they appear in the file (header is row 1).
        A bad row is reported and skipped; the rest of the batch still goes in.
        """
        if school_id is None:
            return validation("schoolId is required")
        loaded = self.ownership.load(School, school_id, "School")
        if not loaded.ok:
            return loaded
        school = loaded.data

        errors = []
        inserted = 0
        for index, row in enumerate(rows):
            row_number = index + 2
            payload = _student_payload(row, school.id)

            missing = [label for field, label in REQUIRED_UPLOAD_FIELDS if not payload.get(field)]
            if missing:
                errors.append({"row": row_number, "message": f"Missing required fields: {', '.join(missing)}"})
                continue

            try:
                patch = validate_payload(model=Student, payload=payload, policy=self.policy, partial=False)
            except ValidationError as exc:
                errors.append({"row": row_number, "message": str(exc)})
                continue

            duplicate = self._duplicate(patch)
            if duplicate is not None:
                errors.append({"row": row_number, "message": duplicate.message})
                continue

            try:
                with self.session.begin_nested():
                    self.session.add(Student(**patch, created_by=self.ownership.caller.admin_id))
            except IntegrityError:
                errors.append({"row": row_number, "message": f"{self.label} conflicts with an existing record"})
                continue
            inserted += 1

        self.session.commit()
        return Ok(
            {"inserted": inserted, "total_rows": len(rows), "errors": errors},
            message=f"{inserted} students uploaded successfully",
        )
