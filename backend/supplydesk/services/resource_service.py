# Overview: Shared create/read/update/delete flow for owned catalog records.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..pagination import Page, paginate
from ..results import Err, Ok, Result, business_rule, conflict, validation
from ..validation import ModelValidationPolicy, ValidationError, validate_payload
from .ownership_service import OwnershipFilter


class OwnedResourceService:
    """
    Base for schools, students, categories, products and suppliers.

    Subclasses set model/label/policy and override the hooks they need:
    enforce() for field rules, check_references() for foreign keys the caller
    must own, dependents() for rows that block deletion.
    """
    model = None
    label = "Record"
    policy: ModelValidationPolicy = None
    # fields that must be unique across the table, with their display names
    unique_fields: dict[str, str] = {}

    def __init__(self, session, ownership: OwnershipFilter):
        self.session = session
        self.ownership = ownership

    # -- hooks --------------------------------------------------------------

    def enforce(self, patch: dict) -> None:
        pass

    def check_references(self, patch: dict, entity=None) -> Err | None:
        return None

    def dependents(self, entity) -> str | None:
        return None

    def serialize(self, entity) -> dict:
        return entity.to_dict()

    # -- helpers ------------------------------------------------------------

    def _clean(self, payload, *, partial: bool) -> dict:
        patch = validate_payload(model=self.model, payload=payload, policy=self.policy, partial=partial)
        self.enforce(patch)
        return patch

    def _duplicate(self, patch: dict, exclude_id: int | None = None) -> Err | None:
        for field, display in self.unique_fields.items():
            if patch.get(field) is None:
                continue
            query = self.session.query(self.model.id).filter(getattr(self.model, field) == patch[field])
            if exclude_id is not None:
                query = query.filter(self.model.id != exclude_id)
            if query.first() is not None:
                return conflict(f"{self.label} with this {display} already exists")
        return None

    def _commit(self) -> Err | None:
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            return conflict(f"{self.label} conflicts with an existing record")
        return None

    def list_query(self, query, page: Page, order_by) -> Result:
        rows, pagination = paginate(query.order_by(*order_by), page)
        return Ok([self.serialize(row) for row in rows], pagination=pagination)

    # -- operations ---------------------------------------------------------

    def get(self, entity_id: int) -> Result:
        loaded = self.ownership.load(self.model, entity_id, self.label)
        if not loaded.ok:
            return loaded
        return Ok(self.serialize(loaded.data))

    def create(self, payload) -> Result:
        try:
            patch = self._clean(payload, partial=False)
        except ValidationError as exc:
            return validation(str(exc))

        err = self.check_references(patch) or self._duplicate(patch)
        if err is not None:
            return err

        entity = self.model(**patch, created_by=self.ownership.caller.admin_id)
        self.session.add(entity)
        err = self._commit()
        if err is not None:
            return err
        return Ok(self.serialize(entity), message=f"{self.label} created successfully")

    def update(self, entity_id: int, payload) -> Result:
        loaded = self.ownership.load(self.model, entity_id, self.label, for_update=True)
        if not loaded.ok:
            return loaded
        entity = loaded.data

        try:
            patch = self._clean(payload, partial=True)
        except ValidationError as exc:
            return validation(str(exc))

        err = self.check_references(patch, entity) or self._duplicate(patch, exclude_id=entity.id)
        if err is not None:
            return err

        for key, value in patch.items():
            setattr(entity, key, value)
        err = self._commit()
        if err is not None:
            return err
        return Ok(self.serialize(entity), message=f"{self.label} updated successfully")

    def delete(self, entity_id: int) -> Result:
        loaded = self.ownership.load(self.model, entity_id, self.label, for_update=True)
        if not loaded.ok:
            return loaded
        entity = loaded.data

        blocker = self.dependents(entity)
        if blocker:
            return business_rule(blocker)

        self.session.delete(entity)
        self.session.commit()
        return Ok(message=f"{self.label} deleted successfully")
