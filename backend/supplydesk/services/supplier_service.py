# Overview: Supplier records.

from __future__ import annotations

from sqlalchemy import or_

from ..models import Purchase, Supplier
from ..pagination import Page
from ..results import Result
from ..validation import SUPPLIER_POLICY
from .resource_service import OwnedResourceService


class SupplierService(OwnedResourceService):
    model = Supplier
    label = "Supplier"
    policy = SUPPLIER_POLICY
    unique_fields = {"code": "code"}

    def dependents(self, supplier: Supplier) -> str | None:
        if self.session.query(Purchase.id).filter(Purchase.supplier_id == supplier.id).first():
            return "Cannot delete supplier with existing purchases"
        return None

    def list(self, page: Page, *, search: str | None = None, is_active: bool | None = None) -> Result:
        query = self.ownership.scoped(Supplier)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(
                Supplier.name.ilike(term),
                Supplier.code.ilike(term),
                Supplier.contact_person.ilike(term),
            ))
        if is_active is not None:
            query = query.filter(Supplier.is_active.is_(is_active))
        return self.list_query(query, page, (Supplier.created_at.desc(), Supplier.id.desc()))
