# Overview: School records.

from __future__ import annotations

from sqlalchemy import or_

from ..models import Invoice, School, Student
from ..pagination import Page
from ..results import Result
from ..validation import SCHOOL_POLICY, enforce_rules_school
from .resource_service import OwnedResourceService


class SchoolService(OwnedResourceService):
    model = School
    label = "School"
    policy = SCHOOL_POLICY
    unique_fields = {"code": "code"}

    def enforce(self, patch: dict) -> None:
        enforce_rules_school(patch)

    def dependents(self, school: School) -> str | None:
        if self.session.query(Student.id).filter(Student.school_id == school.id).first():
            return "Cannot delete school with existing students"
        if self.session.query(Invoice.id).filter(Invoice.school_id == school.id).first():
            return "Cannot delete school with existing invoices"
        return None

    def list(self, page: Page, *, search: str | None = None, is_active: bool | None = None) -> Result:
        query = self.ownership.scoped(School)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(School.name.ilike(term), School.code.ilike(term)))
        if is_active is not None:
            query = query.filter(School.is_active.is_(is_active))
        return self.list_query(query, page, (School.created_at.desc(), School.id.desc()))
