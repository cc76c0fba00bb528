# Overview: Pytest coverage for ownership scoping between admins.

"""
Ownership Scoping Tests

SECURITY TESTS: A plain admin only sees and changes rows they created.

Admin A owns the catalog fixtures; admin B is a second plain admin with no
data. The checks:
1. Unowned entities answer 403, absent ones 404
2. Lists only return owned rows
3. Global categories are readable by all, writable only by a superadmin
4. A superadmin sees everything
"""

import pytest

from conftest import create_invoice
from supplydesk.models import Purchase, School, ROLE_ADMIN, ROLE_SUPERADMIN
from supplydesk.services.ownership_service import Caller, OwnershipFilter


class TestOwnershipFilter:
    def test_missing_entity_is_not_found(self, db_session, admin_a):
        ownership = OwnershipFilter(db_session, Caller(admin_a.id, ROLE_ADMIN))
        result = ownership.load(School, 12345, "School")
        assert not result.ok
        assert result.kind.value == "NOT_FOUND"

    def test_foreign_entity_is_forbidden(self, db_session, admin_b, school_a):
        ownership = OwnershipFilter(db_session, Caller(admin_b.id, ROLE_ADMIN))
        result = ownership.load(School, school_a.id, "School")
        assert not result.ok
        assert result.kind.value == "FORBIDDEN"

    def test_superadmin_is_unrestricted(self, db_session, superadmin, school_a):
        ownership = OwnershipFilter(db_session, Caller(superadmin.id, ROLE_SUPERADMIN))
        assert ownership.load(School, school_a.id, "School").ok


class TestCrossAdminAccess:
    @pytest.mark.parametrize("path", [
        "/api/schools/{school}",
        "/api/students/{student}",
        "/api/products/{product}",
        "/api/suppliers/{supplier}",
    ])
    def test_foreign_reads_are_forbidden(
        self, client, headers_b, school_a, student_a, product_a, supplier_a, path
    ):
        url = path.format(school=school_a.id, student=student_a.id, product=product_a.id, supplier=supplier_a.id)
        response = client.get(url, headers=headers_b)
        assert response.status_code == 403
        assert response.json['success'] is False

    def test_absent_is_not_found(self, client, headers_b):
        response = client.get('/api/schools/99999', headers=headers_b)
        assert response.status_code == 404

    def test_foreign_purchase_is_forbidden(self, client, headers_a, headers_b, supplier_a, product_a):
        created = client.post('/api/purchases', json={
            'supplier_id': supplier_a.id,
            'items': [{'product_id': product_a.id, 'quantity': 1, 'unit_price': 50}],
        }, headers=headers_a)
        assert created.status_code == 201

        response = client.get(f"/api/purchases/{created.json['data']['id']}", headers=headers_b)
        assert response.status_code == 403

    def test_foreign_update_and_delete_are_forbidden(self, client, headers_b, school_a):
        response = client.put(f"/api/schools/{school_a.id}", json={'name': "Taken"}, headers=headers_b)
        assert response.status_code == 403

        response = client.delete(f"/api/schools/{school_a.id}", headers=headers_b)
        assert response.status_code == 403

    def test_lists_only_show_owned_rows(self, client, headers_a, headers_b, school_a):
        assert len(client.get('/api/schools', headers=headers_a).json['data']) == 1
        assert client.get('/api/schools', headers=headers_b).json['data'] == []

    def test_cannot_invoice_with_foreign_student(self, client, headers_b, student_a, product_a):
        response = client.post('/api/invoices', json={
            'student_id': student_a.id,
            'items': [{'product_id': product_a.id, 'quantity': 1}],
        }, headers=headers_b)
        assert response.status_code == 403

    def test_invoices_scoped_through_owned_schools(self, client, headers_a, headers_b, student_a, product_a):
        created = create_invoice(client, headers_a, student_a, product_a, quantity=1).json['data']

        assert client.get('/api/invoices', headers=headers_b).json['data'] == []
        assert client.get(f"/api/invoices/{created['id']}", headers=headers_b).status_code == 403
        assert client.get('/api/commissions', headers=headers_b).json['data'] == []

    def test_superadmin_sees_everything(self, client, db_session, headers_super, supplier_a, product_a, headers_a):
        client.post('/api/purchases', json={
            'supplier_id': supplier_a.id,
            'items': [{'product_id': product_a.id, 'quantity': 1, 'unit_price': 50}],
        }, headers=headers_a)

        response = client.get('/api/purchases', headers=headers_super)
        assert response.status_code == 200
        assert response.json['pagination']['total'] == db_session.query(Purchase).count() == 1


class TestGlobalCategories:
    def test_global_category_visible_to_admins(self, client, headers_b, category):
        response = client.get(f"/api/categories/{category.id}", headers=headers_b)
        assert response.status_code == 200
        assert response.json['data']['name'] == "Books"

    def test_global_category_not_writable_by_admin(self, client, headers_b, category):
        response = client.put(f"/api/categories/{category.id}", json={'description': "x"}, headers=headers_b)
        assert response.status_code == 403

    def test_global_category_writable_by_superadmin(self, client, headers_super, category):
        response = client.put(f"/api/categories/{category.id}", json={'description': "All books"}, headers=headers_super)
        assert response.status_code == 200
        assert response.json['data']['description'] == "All books"
