# Overview: Inventory ledger; the only writer of Product.stock.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import update

from ..models import Product
from ..results import Ok, Result, business_rule


@dataclass(frozen=True)
class StockReservation:
    """Pricing snapshot taken when stock is reserved for a sale."""
    product_id: int
    product_name: str
    quantity: int
    base_price: Decimal
    gst_rate: Decimal


class InventoryLedger:
    """
    Applies stock deltas with conditional UPDATEs.

    STOCK INVARIANT: reserve() only succeeds when the row still has
    stock >= quantity at UPDATE time, so concurrent sales cannot drive stock
    negative. Nothing here commits; the caller's transaction decides.
    """

    def __init__(self, session):
        self.session = session

    def reserve(self, product: Product, quantity: int) -> Result:
        if product.stock < quantity:
            return self._insufficient(product, quantity)

        stmt = (
            update(Product)
            .where(Product.id == product.id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        self.session.expire(product, ["stock"])
        if result.rowcount != 1:
            return self._insufficient(product, quantity)

        return Ok(StockReservation(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            base_price=product.base_price,
            gst_rate=product.gst_rate,
        ))

    def release(self, product_id: int, quantity: int) -> None:
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        self.session.execute(stmt)
        product = self.session.get(Product, product_id)
        if product is not None:
            self.session.expire(product, ["stock"])

    @staticmethod
    def _insufficient(product: Product, quantity: int):
        return business_rule(
            f"Insufficient stock for {product.name}. Available: {product.stock}",
            details={"product_id": product.id, "available": product.stock, "requested": quantity},
        )
