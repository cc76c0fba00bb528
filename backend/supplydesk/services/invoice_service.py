# Overview: Invoice workflow: pricing, stock reservation, numbering and commission accrual.

from __future__ import annotations

from datetime import datetime

from ..models import Invoice, InvoiceLine, Product, School, Student
from ..money import ZERO, percent_of
from ..pagination import Page, paginate
from ..results import Ok, Result, business_rule, validation
from ..time_utils import utcnow
from ..validation import InvoiceRequest, InvoiceUpdateRequest, LineItemRequest
from .commission_service import CommissionAccrual
from .concurrency import run_with_retry
from .document_service import INVOICE_PREFIX, SequenceGenerator
from .inventory_service import InventoryLedger
from .ownership_service import OwnershipFilter
from .pricing import PricingError, document_totals, price_line


class InvoiceService:
    """
    Creates and edits invoices.

    Each create or edit is one database transaction: stock reservations, the
    document number, the invoice and its commission commit together or not at
    all. Any Err rolls the session back before it is returned.
    """

    def __init__(self, session, ownership: OwnershipFilter):
        self.session = session
        self.ownership = ownership
        self.ledger = InventoryLedger(session)
        self.numbers = SequenceGenerator(session)
        self.commissions = CommissionAccrual(session, ownership)

    # -- helpers ------------------------------------------------------------

    def _fail(self, err) -> Result:
        self.session.rollback()
        return err

    def _load_products(self, items: tuple[LineItemRequest, ...]) -> Result:
        products = {}
        for item in items:
            if item.product_id in products:
                continue
            loaded = self.ownership.load(Product, item.product_id, "Product")
            if not loaded.ok:
                return loaded
            if not loaded.data.is_active:
                return business_rule(f"Product {loaded.data.name} is inactive")
            products[item.product_id] = loaded.data
        return Ok(products)

    def _build_lines(self, items, products) -> Result:
        """Reserve stock for every item and price it from the reservation snapshot."""
        lines = []
        for item in items:
            reserved = self.ledger.reserve(products[item.product_id], item.quantity)
            if not reserved.ok:
                return reserved
            snapshot = reserved.data
            try:
                totals = price_line(item.quantity, snapshot.base_price, snapshot.gst_rate)
            except PricingError as exc:
                return validation(str(exc))
            lines.append((snapshot, totals))
        return Ok(lines)

    @staticmethod
    def _line_models(priced) -> list[InvoiceLine]:
        return [
            InvoiceLine(
                product_id=snapshot.product_id,
                product_name=snapshot.product_name,
                quantity=totals.quantity,
                unit_price=totals.unit_price,
                gst_rate=totals.gst_rate,
                gst_amount=totals.gst_amount,
                total_price=totals.total,
            )
            for snapshot, totals in priced
        ]

    # -- workflow -----------------------------------------------------------

    def create(self, request: InvoiceRequest) -> Result:
        return run_with_retry(self.session, lambda: self._create(request))

    def _create(self, request: InvoiceRequest) -> Result:
        loaded = self.ownership.load(Student, request.student_id, "Student")
        if not loaded.ok:
            return self._fail(loaded)
        student = loaded.data

        school = None
        if request.school_id is not None:
            loaded = self.ownership.load(School, request.school_id, "School")
            if not loaded.ok:
                return self._fail(loaded)
            school = loaded.data
            if student.school_id != school.id:
                return self._fail(validation("Student does not belong to the selected school"))

        loaded = self._load_products(request.items)
        if not loaded.ok:
            return self._fail(loaded)
        products = loaded.data

        # Validate totals before touching stock
        try:
            document_totals(
                (price_line(item.quantity, products[item.product_id].base_price, products[item.product_id].gst_rate)
                 for item in request.items),
                request.discount,
            )
        except PricingError as exc:
            return self._fail(validation(str(exc)))

        built = self._build_lines(request.items, products)
        if not built.ok:
            return self._fail(built)
        priced = built.data
        totals = document_totals((line for _, line in priced), request.discount)

        now = utcnow()
        invoice_date: datetime = request.invoice_date or now
        commission_rate = school.commission_rate if school is not None else ZERO

        invoice = Invoice(
            invoice_number=self.numbers.next_number(INVOICE_PREFIX, now),
            school_id=school.id if school is not None else None,
            student_id=student.id,
            subtotal=totals.subtotal,
            gst_amount=totals.gst_amount,
            discount=totals.discount,
            total_amount=totals.total_amount,
            commission_rate=commission_rate,
            commission_amount=percent_of(totals.subtotal, commission_rate) if school is not None else ZERO,
            invoice_date=invoice_date,
            payment_status=request.payment_status,
            payment_method=request.payment_method,
            gst_number=request.gst_number,
            business_info=request.business_info,
            notes=request.notes,
            created_by=self.ownership.caller.admin_id,
        )
        invoice.lines = self._line_models(priced)
        self.session.add(invoice)
        self.session.flush()

        self.commissions.accrue(invoice, school)
        self.session.commit()
        return Ok(invoice.to_dict(), message="Invoice created successfully")

    def update(self, invoice_id: int, request: InvoiceUpdateRequest) -> Result:
        return run_with_retry(self.session, lambda: self._update(invoice_id, request))

    def _update(self, invoice_id: int, request: InvoiceUpdateRequest) -> Result:
        loaded = self.ownership.load(Invoice, invoice_id, "Invoice", for_update=True)
        if not loaded.ok:
            return self._fail(loaded)
        invoice = loaded.data

        if invoice.is_paid:
            return self._fail(business_rule("Paid invoices cannot be edited"))
        if invoice.commission is not None and invoice.commission.is_settled:
            return self._fail(business_rule("Invoice commission is already settled"))

        discount = request.discount if request.discount is not None else invoice.discount

        if request.items is not None:
            loaded = self._load_products(request.items)
            if not loaded.ok:
                return self._fail(loaded)
            products = loaded.data

            # Put the old quantities back first so the new reservation sees them
            for line in invoice.lines:
                self.ledger.release(line.product_id, line.quantity)

            built = self._build_lines(request.items, products)
            if not built.ok:
                return self._fail(built)
            priced = built.data
            try:
                totals = document_totals((line for _, line in priced), discount)
            except PricingError as exc:
                return self._fail(validation(str(exc)))
            invoice.lines = self._line_models(priced)
        else:
            try:
                totals = document_totals(
                    (price_line(line.quantity, line.unit_price, line.gst_rate) for line in invoice.lines),
                    discount,
                )
            except PricingError as exc:
                return self._fail(validation(str(exc)))

        invoice.subtotal = totals.subtotal
        invoice.gst_amount = totals.gst_amount
        invoice.discount = totals.discount
        invoice.total_amount = totals.total_amount
        if invoice.school_id is not None:
            invoice.commission_amount = percent_of(totals.subtotal, invoice.commission_rate)

        if request.payment_status is not None:
            invoice.payment_status = request.payment_status
        if request.payment_method is not None:
            invoice.payment_method = request.payment_method
        if request.gst_number is not None:
            invoice.gst_number = request.gst_number
        if request.business_info is not None:
            invoice.business_info = request.business_info
        if request.notes is not None:
            invoice.notes = request.notes

        self.commissions.update_for_invoice(invoice)
        self.session.commit()
        return Ok(invoice.to_dict(), message="Invoice updated successfully")

    # -- queries ------------------------------------------------------------

    def get(self, invoice_id: int) -> Result:
        loaded = self.ownership.load(Invoice, invoice_id, "Invoice")
        if not loaded.ok:
            return loaded
        invoice = loaded.data
        data = invoice.to_dict()
        data["commission"] = invoice.commission.to_dict() if invoice.commission else None
        return Ok(data)

    def load(self, invoice_id: int) -> Result:
        return self.ownership.load(Invoice, invoice_id, "Invoice")

    def list(
        self,
        page: Page,
        *,
        school_id: int | None = None,
        student_id: int | None = None,
        payment_status: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        search: str | None = None,
    ) -> Result:
        query = self.ownership.scoped(Invoice)
        if school_id:
            query = query.filter(Invoice.school_id == school_id)
        if student_id:
            query = query.filter(Invoice.student_id == student_id)
        if payment_status:
            query = query.filter(Invoice.payment_status == payment_status)
        if start_date:
            query = query.filter(Invoice.invoice_date >= start_date)
        if end_date:
            query = query.filter(Invoice.invoice_date <= end_date)
        if search:
            query = query.filter(Invoice.invoice_number.ilike(f"%{search.strip()}%"))

        query = query.order_by(Invoice.invoice_date.desc(), Invoice.id.desc())
        rows, pagination = paginate(query, page)
        return Ok([row.to_dict(include_lines=False) for row in rows], pagination=pagination)
