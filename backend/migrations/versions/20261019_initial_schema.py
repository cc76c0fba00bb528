"""Initial schema: admins, schools, catalog, purchases, invoices, commissions

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration adds:
1. Admin accounts and hashed session tokens
2. Schools and students
3. Categories, products (stock >= 0) and suppliers
4. Monthly document sequences
5. Purchases and purchase lines
6. Invoices, invoice lines and one commission per school invoice
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _address():
    return [
        sa.Column('address_street', sa.String(length=255), nullable=True),
        sa.Column('address_city', sa.String(length=128), nullable=True),
        sa.Column('address_state', sa.String(length=128), nullable=True),
        sa.Column('address_pincode', sa.String(length=16), nullable=True),
    ]


def _contact():
    return [
        sa.Column('contact_phone', sa.String(length=32), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
    ]


def _line_amounts():
    return [
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('gst_rate', sa.Numeric(5, 2), nullable=False),
        sa.Column('gst_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_price', sa.Numeric(12, 2), nullable=False),
    ]


def upgrade():
    # ==========================================================================
    # 1. ADMINS AND SESSIONS
    # ==========================================================================
    op.create_table('admins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_admins_email'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_admins_username', 'admins', ['username'])

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('admin_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['admin_id'], ['admins.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_session_tokens_admin_id', 'session_tokens', ['admin_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_admin_active', 'session_tokens', ['admin_id', 'is_revoked'])

    # ==========================================================================
    # 2. SCHOOLS AND STUDENTS
    # ==========================================================================
    op.create_table('schools',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        *_address(),
        *_contact(),
        sa.Column('principal_name', sa.String(length=255), nullable=True),
        sa.Column('commission_rate', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_by', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['created_by'], ['admins.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code', name='uq_schools_code'),
        sa.CheckConstraint('commission_rate >= 0 AND commission_rate <= 100', name='ck_schools_commission_rate'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_schools_code', 'schools', ['code'])
    op.create_index('ix_schools_created_by', 'schools', ['created_by'])

    op.create_table('students',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('roll_number', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('school_id', sa.Integer(), nullable=False),
        sa.Column('class_name', sa.String(length=32), nullable=False),
        sa.Column('section', sa.String(length=16), nullable=True),
        sa.Column('father_name', sa.String(length=255), nullable=True),
        sa.Column('mother_name', sa.String(length=255), nullable=True),
        *_contact(),
        *_address(),
        sa.Column('date_of_birth', sa.DateTime(timezone=True), nullable=True),
        sa.Column('admission_date', sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_by', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id']),
        sa.ForeignKeyConstraint(['created_by'], ['admins.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('roll_number', name='uq_students_roll_number'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_students_name', 'students', ['name'])
    op.create_index('ix_students_school_id', 'students', ['school_id'])
    op.create_index('ix_students_created_by', 'students', ['created_by'])
    op.create_index('ix_students_school_class', 'students', ['school_id', 'class_name'])

    # ==========================================================================
    # 3. CATALOG
    # ==========================================================================
    op.create_table('categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_by', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['created_by'], ['admins.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_categories_name'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_categories_created_by', 'categories', ['created_by'])

    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('base_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('gst_rate', sa.Numeric(5, 2), nullable=False, server_default='18'),
        sa.Column('selling_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_stock_level', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('unit', sa.String(length=16), nullable=False, server_default='piece'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_by', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.ForeignKeyConstraint(['created_by'], ['admins.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku', name='uq_products_sku'),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sa.CheckConstraint('gst_rate >= 0 AND gst_rate <= 100', name='ck_products_gst_rate'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_products_name', 'products', ['name'])
    op.create_index('ix_products_category', 'products', ['category_id'])
    op.create_index('ix_products_created_by', 'products', ['created_by'])

    op.create_table('suppliers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        *_contact(),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        *_address(),
        sa.Column('gst_number', sa.String(length=32), nullable=True),
        sa.Column('bank_account_number', sa.String(length=64), nullable=True),
        sa.Column('bank_name', sa.String(length=255), nullable=True),
        sa.Column('bank_ifsc_code', sa.String(length=32), nullable=True),
        sa.Column('bank_account_holder_name', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_by', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['created_by'], ['admins.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code', name='uq_suppliers_code'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_suppliers_code', 'suppliers', ['code'])
    op.create_index('ix_suppliers_created_by', 'suppliers', ['created_by'])

    # ==========================================================================
    # 4. DOCUMENT SEQUENCES
    # ==========================================================================
    op.create_table('document_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('document_type', sa.String(length=16), nullable=False),
        sa.Column('period', sa.String(length=4), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('document_type', 'period', name='uq_doc_sequences_type_period'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_document_sequences_document_type', 'document_sequences', ['document_type'])

    # ==========================================================================
    # 5. PURCHASES
    # ==========================================================================
    op.create_table('purchases',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('purchase_number', sa.String(length=32), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('gst_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('purchase_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('payment_status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('paid_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id']),
        sa.ForeignKeyConstraint(['created_by'], ['admins.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('purchase_number', name='uq_purchases_number'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_purchases_supplier_id', 'purchases', ['supplier_id'])
    op.create_index('ix_purchases_created_by', 'purchases', ['created_by'])
    op.create_index('ix_purchases_supplier_date', 'purchases', ['supplier_id', 'purchase_date'])

    op.create_table('purchase_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('purchase_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        *_line_amounts(),
        sa.ForeignKeyConstraint(['purchase_id'], ['purchases.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='ck_purchase_lines_quantity_positive'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_purchase_lines_purchase_id', 'purchase_lines', ['purchase_id'])
    op.create_index('ix_purchase_lines_product_id', 'purchase_lines', ['product_id'])

    # ==========================================================================
    # 6. INVOICES AND COMMISSIONS
    # ==========================================================================
    op.create_table('invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_number', sa.String(length=32), nullable=False),
        sa.Column('school_id', sa.Integer(), nullable=True),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('gst_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('discount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('commission_rate', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('commission_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('invoice_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('payment_status', sa.String(length=16), nullable=False, server_default='paid'),
        sa.Column('payment_method', sa.String(length=16), nullable=False, server_default='cash'),
        sa.Column('gst_number', sa.String(length=32), nullable=True),
        sa.Column('business_info', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id']),
        sa.ForeignKeyConstraint(['student_id'], ['students.id']),
        sa.ForeignKeyConstraint(['created_by'], ['admins.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invoice_number', name='uq_invoices_number'),
        sa.CheckConstraint('discount >= 0', name='ck_invoices_discount_non_negative'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_invoices_school_id', 'invoices', ['school_id'])
    op.create_index('ix_invoices_student_id', 'invoices', ['student_id'])
    op.create_index('ix_invoices_invoice_date', 'invoices', ['invoice_date'])
    op.create_index('ix_invoices_created_by', 'invoices', ['created_by'])
    op.create_index('ix_invoices_school_date', 'invoices', ['school_id', 'invoice_date'])

    op.create_table('invoice_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        *_line_amounts(),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='ck_invoice_lines_quantity_positive'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_invoice_lines_invoice_id', 'invoice_lines', ['invoice_id'])
    op.create_index('ix_invoice_lines_product_id', 'invoice_lines', ['product_id'])

    op.create_table('commissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('school_id', sa.Integer(), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('commission_rate', sa.Numeric(5, 2), nullable=False),
        sa.Column('base_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('commission_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('settlement_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('payment_reference', sa.String(length=128), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id']),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id']),
        sa.ForeignKeyConstraint(['created_by'], ['admins.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invoice_id', name='uq_commissions_invoice'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_commissions_school_id', 'commissions', ['school_id'])
    op.create_index('ix_commissions_status', 'commissions', ['status'])
    op.create_index('ix_commissions_created_by', 'commissions', ['created_by'])
    op.create_index('ix_commissions_school_period', 'commissions', ['school_id', 'year', 'month'])


def downgrade():
    op.drop_table('commissions')
    op.drop_table('invoice_lines')
    op.drop_table('invoices')
    op.drop_table('purchase_lines')
    op.drop_table('purchases')
    op.drop_table('document_sequences')
    op.drop_table('suppliers')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('students')
    op.drop_table('schools')
    op.drop_table('session_tokens')
    op.drop_table('admins')
