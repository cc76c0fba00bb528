# Overview: Product catalog. Stock is read-only here; see inventory_service.

from __future__ import annotations

from sqlalchemy import or_

from ..models import Category, InvoiceLine, Product, PurchaseLine
from ..pagination import Page
from ..results import Err, Result
from ..validation import PRODUCT_POLICY, enforce_rules_product
from .resource_service import OwnedResourceService

STOCK_STATUSES = ("low", "out")


class ProductService(OwnedResourceService):
    model = Product
    label = "Product"
    policy = PRODUCT_POLICY
    unique_fields = {"sku": "SKU"}

    def enforce(self, patch: dict) -> None:
        enforce_rules_product(patch)

    def check_references(self, patch: dict, entity=None) -> Err | None:
        if patch.get("category_id") is None:
            return None
        loaded = self.ownership.load(Category, patch["category_id"], "Category")
        return None if loaded.ok else loaded

    def dependents(self, product: Product) -> str | None:
        if self.session.query(InvoiceLine.id).filter(InvoiceLine.product_id == product.id).first():
            return "Cannot delete product that appears on invoices"
        if self.session.query(PurchaseLine.id).filter(PurchaseLine.product_id == product.id).first():
            return "Cannot delete product that appears on purchases"
        return None

    def list(
        self,
        page: Page,
        *,
        category_id: int | None = None,
        stock_status: str | None = None,
        search: str | None = None,
        is_active: bool | None = None,
    ) -> Result:
        query = self.ownership.scoped(Product)
        if category_id:
            query = query.filter(Product.category_id == category_id)
        if stock_status == "low":
            query = query.filter(Product.stock <= Product.min_stock_level)
        elif stock_status == "out":
            query = query.filter(Product.stock == 0)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(Product.name.ilike(term), Product.sku.ilike(term)))
        if is_active is not None:
            query = query.filter(Product.is_active.is_(is_active))
        return self.list_query(query, page, (Product.created_at.desc(), Product.id.desc()))
