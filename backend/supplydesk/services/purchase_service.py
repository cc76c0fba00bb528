# Overview: Supplier purchases; received stock and payment tracking.

from __future__ import annotations

from datetime import datetime

from ..models import Product, Purchase, PurchaseLine, Supplier
from ..money import ZERO
from ..pagination import Page, paginate
from ..results import Ok, Result, validation
from ..time_utils import utcnow
from ..validation import PaymentUpdateRequest, PurchaseRequest, PurchaseUpdateRequest
from .concurrency import run_with_retry
from .document_service import PURCHASE_PREFIX, SequenceGenerator
from .inventory_service import InventoryLedger
from .ownership_service import OwnershipFilter
from .pricing import PricingError, document_totals, price_line, purchase_payment_status


class PurchaseService:
    def __init__(self, session, ownership: OwnershipFilter):
        self.session = session
        self.ownership = ownership
        self.ledger = InventoryLedger(session)
        self.numbers = SequenceGenerator(session)

    def _fail(self, err) -> Result:
        self.session.rollback()
        return err

    def create(self, request: PurchaseRequest) -> Result:
        return run_with_retry(self.session, lambda: self._create(request))

    def _create(self, request: PurchaseRequest) -> Result:
        loaded = self.ownership.load(Supplier, request.supplier_id, "Supplier")
        if not loaded.ok:
            return self._fail(loaded)
        supplier = loaded.data

        products = []
        for item in request.items:
            loaded = self.ownership.load(Product, item.product_id, "Product")
            if not loaded.ok:
                return self._fail(loaded)
            products.append(loaded.data)

        try:
            lines = [
                (product, price_line(item.quantity, item.unit_price, product.gst_rate))
                for product, item in zip(products, request.items)
            ]
            totals = document_totals(line for _, line in lines)
        except PricingError as exc:
            return self._fail(validation(str(exc)))

        now = utcnow()
        purchase = Purchase(
            purchase_number=self.numbers.next_number(PURCHASE_PREFIX, now),
            supplier_id=supplier.id,
            subtotal=totals.subtotal,
            gst_amount=totals.gst_amount,
            total_amount=totals.total_amount,
            purchase_date=request.purchase_date or now,
            paid_amount=request.paid_amount,
            payment_status=purchase_payment_status(request.paid_amount, totals.total_amount),
            payment_date=now if request.paid_amount > ZERO else None,
            notes=request.notes,
            created_by=self.ownership.caller.admin_id,
        )
        purchase.lines = [
            PurchaseLine(
                product_id=product.id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                gst_rate=line.gst_rate,
                gst_amount=line.gst_amount,
                total_price=line.total,
            )
            for product, line in lines
        ]
        self.session.add(purchase)

        for product, line in lines:
            self.ledger.release(product.id, line.quantity)

        self.session.commit()
        return Ok(purchase.to_dict(), message="Purchase created successfully")

    def update(self, purchase_id: int, request: PurchaseUpdateRequest) -> Result:
        loaded = self.ownership.load(Purchase, purchase_id, "Purchase", for_update=True)
        if not loaded.ok:
            return loaded
        purchase = loaded.data

        if request.supplier_id is not None and request.supplier_id != purchase.supplier_id:
            supplier = self.ownership.load(Supplier, request.supplier_id, "Supplier")
            if not supplier.ok:
                return supplier
            purchase.supplier_id = supplier.data.id
        if request.purchase_date is not None:
            purchase.purchase_date = request.purchase_date
        if request.notes is not None:
            purchase.notes = request.notes

        self.session.commit()
        return Ok(purchase.to_dict(), message="Purchase updated successfully")

    def update_payment(self, purchase_id: int, request: PaymentUpdateRequest) -> Result:
        loaded = self.ownership.load(Purchase, purchase_id, "Purchase", for_update=True)
        if not loaded.ok:
            return loaded
        purchase = loaded.data

        purchase.paid_amount = request.paid_amount
        purchase.payment_status = purchase_payment_status(request.paid_amount, purchase.total_amount)
        purchase.payment_date = request.payment_date or utcnow()

        self.session.commit()
        return Ok(purchase.to_dict(), message="Payment updated successfully")

    def get(self, purchase_id: int) -> Result:
        loaded = self.ownership.load(Purchase, purchase_id, "Purchase")
        if not loaded.ok:
            return loaded
        return Ok(loaded.data.to_dict())

    def list(
        self,
        page: Page,
        *,
        supplier_id: int | None = None,
        payment_status: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> Result:
        query = self.ownership.scoped(Purchase)
        if supplier_id:
            query = query.filter(Purchase.supplier_id == supplier_id)
        if payment_status:
            query = query.filter(Purchase.payment_status == payment_status)
        if start_date:
            query = query.filter(Purchase.purchase_date >= start_date)
        if end_date:
            query = query.filter(Purchase.purchase_date <= end_date)

        query = query.order_by(Purchase.purchase_date.desc(), Purchase.id.desc())
        rows, pagination = paginate(query, page)
        return Ok([row.to_dict(include_lines=False) for row in rows], pagination=pagination)
