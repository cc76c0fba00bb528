"""
Ownership scoping.

Every admin-created row carries created_by. A superadmin is unrestricted;
everyone else sees and mutates only their own rows, with two twists:

- Categories with no creator are global: readable by all, writable only by
  a superadmin.
- Invoices and commissions belong to a school, so they are scoped through
  the set of schools the caller owns. Invoices without a school fall back to
  their creator.

Single-entity lookups check existence first (NOT_FOUND) and ownership second
(FORBIDDEN). An empty owned-school set matches nothing.
"""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import and_, false, or_, true

from ..models import Category, Commission, Invoice, School, ROLE_SUPERADMIN
from ..results import Ok, Result, forbidden, not_found


@dataclass(frozen=True)
class Caller:
    admin_id: int
    role: str

    @property
    def is_superadmin(self) -> bool:
        return self.role == ROLE_SUPERADMIN


class OwnershipFilter:
    def __init__(self, session, caller: Caller):
        self.session = session
        self.caller = caller
        self._owned_school_ids: list[int] | None = None

    @property
    def unrestricted(self) -> bool:
        return self.caller.is_superadmin

    def owner_clause(self, model):
        if self.unrestricted:
            return true()
        return model.created_by == self.caller.admin_id

    def category_clause(self):
        if self.unrestricted:
            return true()
        return or_(Category.created_by == self.caller.admin_id, Category.created_by.is_(None))

    def owned_school_ids(self) -> list[int] | None:
        """Ids of schools the caller created; None when unrestricted."""
        if self.unrestricted:
            return None
        if self._owned_school_ids is None:
            rows = (
                self.session.query(School.id)
                .filter(School.created_by == self.caller.admin_id)
                .all()
            )
            self._owned_school_ids = [row.id for row in rows]
        return self._owned_school_ids

    def school_clause(self, column):
        """Restrict a school_id column to owned schools."""
        ids = self.owned_school_ids()
        if ids is None:
            return true()
        if not ids:
            return false()
        return column.in_(ids)

    def invoice_clause(self):
        if self.unrestricted:
            return true()
        return or_(
            self.school_clause(Invoice.school_id),
            and_(Invoice.school_id.is_(None), Invoice.created_by == self.caller.admin_id),
        )

    def commission_clause(self):
        return self.school_clause(Commission.school_id)

    def clause_for(self, model):
        if model is Category:
            return self.category_clause()
        if model is Invoice:
            return self.invoice_clause()
        if model is Commission:
            return self.commission_clause()
        return self.owner_clause(model)

    def scoped(self, model):
        """Base query for model restricted to what the caller may see."""
        return self.session.query(model).filter(self.clause_for(model))

    def can_access(self, entity) -> bool:
        if self.unrestricted:
            return True
        if isinstance(entity, Category):
            return entity.created_by is None or entity.created_by == self.caller.admin_id
        if isinstance(entity, Invoice):
            if entity.school_id is None:
                return entity.created_by == self.caller.admin_id
            return entity.school_id in self.owned_school_ids()
        if isinstance(entity, Commission):
            return entity.school_id in self.owned_school_ids()
        return entity.created_by == self.caller.admin_id

    def can_modify(self, entity) -> bool:
        if isinstance(entity, Category) and entity.created_by is None:
            return self.unrestricted
        return self.can_access(entity)

    def load(self, model, entity_id: int, label: str, *, for_update: bool = False) -> Result:
        entity = self.session.get(model, entity_id)
        if entity is None:
            return not_found(label)
        allowed = self.can_modify(entity) if for_update else self.can_access(entity)
        if not allowed:
            return forbidden(f"Access denied to this {label.lower()}")
        return Ok(entity)
