"""
Pytest fixtures for SupplyDesk backend tests.

Provides an in-memory database, two plain admins plus a superadmin, and a
small catalog owned by admin A: one school (10% commission), one student,
one product (base 100, GST 18, stock 5) and one supplier.
"""

from decimal import Decimal

import pytest
from supplydesk import create_app
from supplydesk.extensions import db
from supplydesk.models import Admin, Category, Product, School, Student, Supplier, ROLE_ADMIN, ROLE_SUPERADMIN
from supplydesk.services.auth_service import hash_password

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'BCRYPT_ROUNDS': 4,
        'RAPIDAPI_KEY': 'test-key',
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def _make_admin(db_session, username: str, email: str, role: str) -> Admin:
    admin = Admin(
        username=username,
        email=email,
        password_hash=hash_password(PASSWORD),
        role=role,
    )
    db_session.add(admin)
    db_session.commit()
    return admin


@pytest.fixture(scope='function')
def superadmin(db_session):
    return _make_admin(db_session, "root", "root@example.com", ROLE_SUPERADMIN)


@pytest.fixture(scope='function')
def admin_a(db_session):
    return _make_admin(db_session, "admin_a", "a@example.com", ROLE_ADMIN)


@pytest.fixture(scope='function')
def admin_b(db_session):
    return _make_admin(db_session, "admin_b", "b@example.com", ROLE_ADMIN)


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for an admin."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json['data']['token']
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def headers_a(client, admin_a):
    return auth_headers(get_auth_token(client, admin_a.email))


@pytest.fixture(scope='function')
def headers_b(client, admin_b):
    return auth_headers(get_auth_token(client, admin_b.email))


@pytest.fixture(scope='function')
def headers_super(client, superadmin):
    return auth_headers(get_auth_token(client, superadmin.email))


@pytest.fixture(scope='function')
def category(db_session):
    """Global category (no owner)."""
    category = Category(name="Books", description="Textbooks")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def school_a(db_session, admin_a):
    school = School(name="St. Mary's High School", code="SMHS001", commission_rate=Decimal("10"), created_by=admin_a.id)
    db_session.add(school)
    db_session.commit()
    return school


@pytest.fixture(scope='function')
def student_a(db_session, admin_a, school_a):
    student = Student(
        roll_number="R1001",
        name="Asha Verma",
        school_id=school_a.id,
        class_name="5",
        section="A",
        created_by=admin_a.id,
    )
    db_session.add(student)
    db_session.commit()
    return student


@pytest.fixture(scope='function')
def product_a(db_session, admin_a, category):
    product = Product(
        name="Math Textbook",
        sku="BK-MATH-5",
        category_id=category.id,
        base_price=Decimal("100.00"),
        gst_rate=Decimal("18.00"),
        selling_price=Decimal("118.00"),
        stock=5,
        min_stock_level=2,
        created_by=admin_a.id,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def supplier_a(db_session, admin_a):
    supplier = Supplier(name="Book Depot", code="BD01", created_by=admin_a.id)
    db_session.add(supplier)
    db_session.commit()
    return supplier


def create_invoice(client, headers, student, product, quantity=2, **extra):
    """POST an invoice for one product line and return the response."""
    payload = {
        'student_id': student.id,
        'school_id': student.school_id,
        'items': [{'product_id': product.id, 'quantity': quantity}],
    }
    payload.update(extra)
    return client.post('/api/invoices', json=payload, headers=headers)
