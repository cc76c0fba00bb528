from .auth import Admin, SessionToken, ROLE_ADMIN, ROLE_SUPERADMIN, ROLES
from .schools import School, Student
from .inventory import Category, Product, Supplier, PRODUCT_UNITS
from .documents import (
    DocumentSequence,
    Purchase,
    PurchaseLine,
    Invoice,
    InvoiceLine,
    Commission,
    PURCHASE_PAYMENT_STATUSES,
    INVOICE_PAYMENT_STATUSES,
    PAYMENT_METHODS,
    COMMISSION_STATUSES,
)

__all__ = [
    'Admin', 'SessionToken', 'ROLE_ADMIN', 'ROLE_SUPERADMIN', 'ROLES',
    'School', 'Student',
    'Category', 'Product', 'Supplier', 'PRODUCT_UNITS',
    'DocumentSequence', 'Purchase', 'PurchaseLine', 'Invoice', 'InvoiceLine', 'Commission',
    'PURCHASE_PAYMENT_STATUSES', 'INVOICE_PAYMENT_STATUSES', 'PAYMENT_METHODS', 'COMMISSION_STATUSES',
]
