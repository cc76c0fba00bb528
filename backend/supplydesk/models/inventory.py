from __future__ import annotations

from ..extensions import db
from supplydesk.money import money_json
from supplydesk.time_utils import to_utc_z

PRODUCT_UNITS = ("piece", "box", "set", "kg", "liter")


class Category(db.Model):
    """
    Product category.

    created_by is nullable: categories seeded without an owner are global and
    visible to every admin, but only a superadmin may change them.
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_categories_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_by = db.Column(db.Integer, db.ForeignKey("admins.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Catalog item with its on-hand stock.

    STOCK INVARIANT: stock >= 0 at all times. The column is only written by
    the inventory ledger (purchases release, invoices reserve) through
    conditional UPDATE statements; the CHECK constraint is the backstop.

    SKUs are stored upper-cased and are unique across the catalog.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("gst_rate >= 0 AND gst_rate <= 100", name="ck_products_gst_rate"),
        db.Index("ix_products_category", "category_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False, index=True)
    sku = db.Column(db.String(64), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False)
    description = db.Column(db.Text, nullable=True)

    base_price = db.Column(db.Numeric(12, 2), nullable=False)
    gst_rate = db.Column(db.Numeric(5, 2), nullable=False, default=18)
    selling_price = db.Column(db.Numeric(12, 2), nullable=False)

    stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=10)
    unit = db.Column(db.String(16), nullable=False, default="piece")

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_by = db.Column(db.Integer, db.ForeignKey("admins.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock_level

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "category_id": self.category_id,
            "category": {"id": self.category.id, "name": self.category.name} if self.category else None,
            "description": self.description,
            "base_price": money_json(self.base_price),
            "gst_rate": money_json(self.gst_rate),
            "selling_price": money_json(self.selling_price),
            "stock": self.stock,
            "min_stock_level": self.min_stock_level,
            "unit": self.unit,
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Supplier(db.Model):
    __tablename__ = "suppliers"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_suppliers_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), nullable=False, index=True)

    contact_phone = db.Column(db.String(32), nullable=True)
    contact_email = db.Column(db.String(255), nullable=True)
    contact_person = db.Column(db.String(255), nullable=True)

    address_street = db.Column(db.String(255), nullable=True)
    address_city = db.Column(db.String(128), nullable=True)
    address_state = db.Column(db.String(128), nullable=True)
    address_pincode = db.Column(db.String(16), nullable=True)

    gst_number = db.Column(db.String(32), nullable=True)

    bank_account_number = db.Column(db.String(64), nullable=True)
    bank_name = db.Column(db.String(255), nullable=True)
    bank_ifsc_code = db.Column(db.String(32), nullable=True)
    bank_account_holder_name = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_by = db.Column(db.Integer, db.ForeignKey("admins.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_summary(self) -> dict:
        return {"id": self.id, "name": self.name, "code": self.code}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "contact_phone": self.contact_phone,
            "contact_email": self.contact_email,
            "contact_person": self.contact_person,
            "address_street": self.address_street,
            "address_city": self.address_city,
            "address_state": self.address_state,
            "address_pincode": self.address_pincode,
            "gst_number": self.gst_number,
            "bank_account_number": self.bank_account_number,
            "bank_name": self.bank_name,
            "bank_ifsc_code": self.bank_ifsc_code,
            "bank_account_holder_name": self.bank_account_holder_name,
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
