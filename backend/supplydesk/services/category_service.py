# Overview: Product categories, including global (ownerless) ones.

from __future__ import annotations

from ..models import Category, Product
from ..pagination import Page
from ..results import Result
from ..validation import CATEGORY_POLICY
from .resource_service import OwnedResourceService


class CategoryService(OwnedResourceService):
    model = Category
    label = "Category"
    policy = CATEGORY_POLICY
    unique_fields = {"name": "name"}

    def dependents(self, category: Category) -> str | None:
        if self.session.query(Product.id).filter(Product.category_id == category.id).first():
            return "Cannot delete category with existing products"
        return None

    def list(self, page: Page, *, is_active: bool | None = None) -> Result:
        query = self.ownership.scoped(Category)
        if is_active is not None:
            query = query.filter(Category.is_active.is_(is_active))
        return self.list_query(query, page, (Category.name.asc(),))
