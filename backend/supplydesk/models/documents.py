from __future__ import annotations

from ..extensions import db
from supplydesk.money import money_json
from supplydesk.time_utils import to_utc_z

PURCHASE_PAYMENT_STATUSES = ("pending", "partial", "paid")
INVOICE_PAYMENT_STATUSES = ("paid", "unpaid", "partial")
PAYMENT_METHODS = ("cash", "card", "upi", "bank_transfer")
COMMISSION_STATUSES = ("pending", "settled")


class DocumentSequence(db.Model):
    """
    Atomic per-period document sequences.

    One row per (document_type, period) where period is YYMM. next_number is
    the number the next caller will receive; it only ever grows, so numbers
    are never reused even when the parent document is deleted.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("document_type", "period", name="uq_doc_sequences_type_period"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(16), nullable=False, index=True)
    period = db.Column(db.String(4), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_type": self.document_type,
            "period": self.period,
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }


class Purchase(db.Model):
    """
    Stock received from a supplier.

    Creating a purchase increments stock for every line in the same
    transaction. Line items are immutable afterwards; only payment and
    bookkeeping fields change.
    """
    __tablename__ = "purchases"
    __table_args__ = (
        db.UniqueConstraint("purchase_number", name="uq_purchases_number"),
        db.Index("ix_purchases_supplier_date", "supplier_id", "purchase_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    purchase_number = db.Column(db.String(32), nullable=False)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    gst_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    purchase_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    payment_status = db.Column(db.String(16), nullable=False, default="pending")
    paid_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("admins.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    supplier = db.relationship("Supplier", backref=db.backref("purchases", lazy=True))
    lines = db.relationship(
        "PurchaseLine",
        backref="purchase",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="PurchaseLine.id",
    )

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "purchase_number": self.purchase_number,
            "supplier_id": self.supplier_id,
            "supplier": self.supplier.to_summary() if self.supplier else None,
            "subtotal": money_json(self.subtotal),
            "gst_amount": money_json(self.gst_amount),
            "total_amount": money_json(self.total_amount),
            "purchase_date": to_utc_z(self.purchase_date),
            "payment_status": self.payment_status,
            "paid_amount": money_json(self.paid_amount),
            "payment_date": to_utc_z(self.payment_date),
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_lines:
            data["items"] = [line.to_dict() for line in self.lines]
        return data


class PurchaseLine(db.Model):
    __tablename__ = "purchase_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_purchase_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    gst_rate = db.Column(db.Numeric(5, 2), nullable=False)
    gst_amount = db.Column(db.Numeric(12, 2), nullable=False)
    total_price = db.Column(db.Numeric(12, 2), nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price": money_json(self.unit_price),
            "gst_rate": money_json(self.gst_rate),
            "gst_amount": money_json(self.gst_amount),
            "total_price": money_json(self.total_price),
        }


class Invoice(db.Model):
    """
    Sale to a student.

    TOTALS INVARIANT: total_amount == subtotal + gst_amount - discount.

    commission_rate is the school's rate when the invoice was created; edits
    recompute commission_amount with this snapshot, never the school's
    current rate. school_id is optional; invoices without a school are scoped
    to their creator and accrue no commission.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_invoices_number"),
        db.CheckConstraint("discount >= 0", name="ck_invoices_discount_non_negative"),
        db.Index("ix_invoices_school_date", "school_id", "invoice_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(32), nullable=False)

    school_id = db.Column(db.Integer, db.ForeignKey("schools.id"), nullable=True, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=False, index=True)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    gst_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    commission_rate = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    commission_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    invoice_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    payment_status = db.Column(db.String(16), nullable=False, default="paid")
    payment_method = db.Column(db.String(16), nullable=False, default="cash")

    # GST invoice (B2B) details
    gst_number = db.Column(db.String(32), nullable=True)
    business_info = db.Column(db.JSON, nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("admins.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    school = db.relationship("School", backref=db.backref("invoices", lazy=True))
    student = db.relationship("Student", backref=db.backref("invoices", lazy=True))
    lines = db.relationship(
        "InvoiceLine",
        backref="invoice",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="InvoiceLine.id",
    )

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    def __repr__(self) -> str:
        return f"<Invoice id={self.id} number={self.invoice_number!r} total={self.total_amount}>"

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "school_id": self.school_id,
            "school": self.school.to_summary() if self.school else None,
            "student_id": self.student_id,
            "student": self.student.to_summary() if self.student else None,
            "subtotal": money_json(self.subtotal),
            "gst_amount": money_json(self.gst_amount),
            "discount": money_json(self.discount),
            "total_amount": money_json(self.total_amount),
            "commission_rate": money_json(self.commission_rate),
            "commission_amount": money_json(self.commission_amount),
            "invoice_date": to_utc_z(self.invoice_date),
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "gst_number": self.gst_number,
            "business_info": self.business_info,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_lines:
            data["items"] = [line.to_dict() for line in self.lines]
        return data


class InvoiceLine(db.Model):
    __tablename__ = "invoice_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_invoice_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # Snapshot so the invoice still reads correctly after a product rename
    product_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    gst_rate = db.Column(db.Numeric(5, 2), nullable=False)
    gst_amount = db.Column(db.Numeric(12, 2), nullable=False)
    total_price = db.Column(db.Numeric(12, 2), nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": money_json(self.unit_price),
            "gst_rate": money_json(self.gst_rate),
            "gst_amount": money_json(self.gst_amount),
            "total_price": money_json(self.total_price),
        }


class Commission(db.Model):
    """
    Commission owed to a school for one invoice.

    LIFECYCLE: pending -> settled. There is no transition back.
    """
    __tablename__ = "commissions"
    __table_args__ = (
        db.UniqueConstraint("invoice_id", name="uq_commissions_invoice"),
        db.Index("ix_commissions_school_period", "school_id", "year", "month"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey("schools.id"), nullable=False, index=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False)

    month = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)

    commission_rate = db.Column(db.Numeric(5, 2), nullable=False)
    base_amount = db.Column(db.Numeric(12, 2), nullable=False)
    commission_amount = db.Column(db.Numeric(12, 2), nullable=False)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    settlement_date = db.Column(db.DateTime(timezone=True), nullable=True)
    payment_reference = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("admins.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    school = db.relationship("School", backref=db.backref("commissions", lazy=True))
    invoice = db.relationship("Invoice", backref=db.backref("commission", uselist=False, lazy=True))

    @property
    def is_settled(self) -> bool:
        return self.status == "settled"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "school_id": self.school_id,
            "school": self.school.to_summary() if self.school else None,
            "invoice_id": self.invoice_id,
            "invoice_number": self.invoice.invoice_number if self.invoice else None,
            "month": self.month,
            "year": self.year,
            "commission_rate": money_json(self.commission_rate),
            "base_amount": money_json(self.base_amount),
            "commission_amount": money_json(self.commission_amount),
            "status": self.status,
            "settlement_date": to_utc_z(self.settlement_date),
            "payment_reference": self.payment_reference,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
