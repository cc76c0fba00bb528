# Overview: Pytest coverage for school, category, product and supplier records.

from conftest import create_invoice


class TestSchools:
    def test_create_uppercases_code(self, client, headers_a):
        response = client.post('/api/schools', json={
            'name': "Delhi Public School",
            'code': "dps002",
            'commission_rate': 12,
        }, headers=headers_a)
        assert response.status_code == 201
        assert response.json['data']['code'] == "DPS002"
        assert response.json['data']['commission_rate'] == 12.0
        assert response.json['message'] == "School created successfully"

    def test_duplicate_code_conflicts(self, client, headers_a, school_a):
        response = client.post('/api/schools', json={'name': "Copy", 'code': school_a.code}, headers=headers_a)
        assert response.status_code == 400
        assert response.json['message'] == "School with this code already exists"

    def test_commission_rate_bounds(self, client, headers_a):
        response = client.post('/api/schools', json={'name': "X", 'code': "X1", 'commission_rate': 150}, headers=headers_a)
        assert response.status_code == 400

        response = client.post('/api/schools', json={'name': "X", 'code': "X1", 'commission_rate': -1}, headers=headers_a)
        assert response.status_code == 400

    def test_missing_required_fields(self, client, headers_a):
        response = client.post('/api/schools', json={'name': "No code"}, headers=headers_a)
        assert response.status_code == 400
        assert response.json['message'] == "Missing required fields: code"

    def test_detail_includes_rollups(self, client, headers_a, school_a, student_a, product_a):
        create_invoice(client, headers_a, student_a, product_a, quantity=2)

        response = client.get(f"/api/schools/{school_a.id}", headers=headers_a)
        assert response.status_code == 200
        data = response.json['data']
        assert data['student_count'] == 1
        assert data['sales'] == {'total_sales': 236.0, 'invoice_count': 1}
        assert data['commissions']['pending'] == {'amount': 20.0, 'count': 1}

    def test_delete_blocked_by_students(self, client, headers_a, school_a, student_a):
        response = client.delete(f"/api/schools/{school_a.id}", headers=headers_a)
        assert response.status_code == 400
        assert response.json['message'] == "Cannot delete school with existing students"

    def test_delete_empty_school(self, client, headers_a, school_a):
        response = client.delete(f"/api/schools/{school_a.id}", headers=headers_a)
        assert response.status_code == 200
        assert client.get(f"/api/schools/{school_a.id}", headers=headers_a).status_code == 404


class TestCategories:
    def test_admin_category_is_private(self, client, headers_a, headers_b):
        created = client.post('/api/categories', json={'name': "Art Supplies"}, headers=headers_a)
        assert created.status_code == 201

        names = [c['name'] for c in client.get('/api/categories', headers=headers_b).json['data']]
        assert "Art Supplies" not in names

    def test_delete_blocked_by_products(self, client, headers_super, category, product_a):
        response = client.delete(f"/api/categories/{category.id}", headers=headers_super)
        assert response.status_code == 400
        assert response.json['message'] == "Cannot delete category with existing products"


class TestProducts:
    def test_create_product(self, client, headers_a, category):
        response = client.post('/api/products', json={
            'name': "Geometry Box",
            'sku': "st-geo-01",
            'category_id': category.id,
            'base_price': "45.50",
            'selling_price': "53.69",
            'unit': "box",
        }, headers=headers_a)
        assert response.status_code == 201
        data = response.json['data']
        assert data['sku'] == "ST-GEO-01"
        assert data['gst_rate'] == 18.0
        assert data['stock'] == 0
        assert data['category']['name'] == "Books"

    def test_stock_is_not_writable(self, client, headers_a, product_a):
        response = client.put(f"/api/products/{product_a.id}", json={'stock': 500}, headers=headers_a)
        assert response.status_code == 400
        assert response.json['message'] == "Field not allowed: stock"

    def test_invalid_unit(self, client, headers_a, product_a):
        response = client.put(f"/api/products/{product_a.id}", json={'unit': "crate"}, headers=headers_a)
        assert response.status_code == 400

    def test_low_stock_filter(self, client, headers_a, product_a):
        assert client.get('/api/products?stock_status=low', headers=headers_a).json['data'] == []

        client.put(f"/api/products/{product_a.id}", json={'min_stock_level': 5}, headers=headers_a)
        low = client.get('/api/products?stock_status=low', headers=headers_a).json['data']
        assert [p['id'] for p in low] == [product_a.id]

    def test_unknown_stock_status(self, client, headers_a):
        response = client.get('/api/products?stock_status=plenty', headers=headers_a)
        assert response.status_code == 400

    def test_delete_blocked_by_invoice_lines(self, client, headers_a, student_a, product_a):
        create_invoice(client, headers_a, student_a, product_a, quantity=1)

        response = client.delete(f"/api/products/{product_a.id}", headers=headers_a)
        assert response.status_code == 400
        assert response.json['message'] == "Cannot delete product that appears on invoices"


class TestSuppliers:
    def test_create_and_search(self, client, headers_a):
        created = client.post('/api/suppliers', json={
            'name': "Paper House",
            'code': "ph01",
            'gst_number': "27aapfu0939f1zv",
        }, headers=headers_a)
        assert created.status_code == 201
        assert created.json['data']['code'] == "PH01"
        assert created.json['data']['gst_number'] == "27AAPFU0939F1ZV"

        found = client.get('/api/suppliers?search=paper', headers=headers_a).json['data']
        assert [s['code'] for s in found] == ["PH01"]
