# Overview: Pytest coverage for the invoice workflow: totals, stock, numbering and commissions.

import re

from conftest import create_invoice
from supplydesk.models import Commission, Invoice, Product
from supplydesk.time_utils import period_key, utcnow


def _stock(db_session, product_id: int) -> int:
    db_session.expire_all()
    return db_session.get(Product, product_id).stock


class TestInvoiceCreate:
    def test_invoice_totals_stock_and_commission(self, client, db_session, headers_a, student_a, product_a):
        """Qty 2 at 100 + 18% GST with a 10% school."""
        response = create_invoice(client, headers_a, student_a, product_a, quantity=2)
        assert response.status_code == 201
        body = response.json
        assert body['success'] is True

        invoice = body['data']
        assert invoice['subtotal'] == 200.0
        assert invoice['gst_amount'] == 36.0
        assert invoice['total_amount'] == 236.0
        assert invoice['commission_rate'] == 10.0
        assert invoice['commission_amount'] == 20.0
        assert invoice['items'][0]['product_name'] == "Math Textbook"
        assert invoice['items'][0]['total_price'] == 236.0

        assert _stock(db_session, product_a.id) == 3

        commission = db_session.query(Commission).filter_by(invoice_id=invoice['id']).one()
        assert commission.status == "pending"
        assert float(commission.base_amount) == 200.0
        assert float(commission.commission_amount) == 20.0
        assert commission.school_id == student_a.school_id

    def test_insufficient_stock_leaves_everything_unchanged(self, client, db_session, headers_a, student_a, product_a):
        create_invoice(client, headers_a, student_a, product_a, quantity=2)

        response = create_invoice(client, headers_a, student_a, product_a, quantity=10)
        assert response.status_code == 400
        assert response.json['success'] is False
        assert "Insufficient stock" in response.json['message']

        assert _stock(db_session, product_a.id) == 3
        assert db_session.query(Invoice).count() == 1
        assert db_session.query(Commission).count() == 1

    def test_oversized_quantity_rejected(self, client, db_session, headers_a, student_a, product_a):
        response = create_invoice(client, headers_a, student_a, product_a, quantity=10**20)
        assert response.status_code == 400
        assert response.json['message'] == "items[0].quantity cannot exceed 100000"
        assert _stock(db_session, product_a.id) == 5

    def test_discount_applies_to_total(self, client, headers_a, student_a, product_a):
        response = create_invoice(client, headers_a, student_a, product_a, quantity=1, discount=18)
        assert response.status_code == 201
        assert response.json['data']['total_amount'] == 100.0

    def test_discount_above_total_rejected(self, client, db_session, headers_a, student_a, product_a):
        response = create_invoice(client, headers_a, student_a, product_a, quantity=1, discount=500)
        assert response.status_code == 400
        assert _stock(db_session, product_a.id) == 5

    def test_invoice_without_school_has_no_commission(self, client, db_session, headers_a, student_a, product_a):
        response = client.post('/api/invoices', json={
            'student_id': student_a.id,
            'items': [{'product_id': product_a.id, 'quantity': 1}],
        }, headers=headers_a)
        assert response.status_code == 201
        assert response.json['data']['school_id'] is None
        assert response.json['data']['commission_amount'] == 0.0
        assert db_session.query(Commission).count() == 0

    def test_missing_items_rejected(self, client, headers_a, student_a):
        response = client.post('/api/invoices', json={'student_id': student_a.id, 'items': []}, headers=headers_a)
        assert response.status_code == 400
        assert response.json['message'] == "At least one item is required"

    def test_unknown_student_is_not_found(self, client, headers_a, product_a):
        response = client.post('/api/invoices', json={
            'student_id': 9999,
            'items': [{'product_id': product_a.id, 'quantity': 1}],
        }, headers=headers_a)
        assert response.status_code == 404


class TestInvoiceNumbering:
    def test_numbers_are_sequential_within_month(self, client, headers_a, student_a, product_a):
        first = create_invoice(client, headers_a, student_a, product_a, quantity=1).json['data']
        second = create_invoice(client, headers_a, student_a, product_a, quantity=1).json['data']

        period = period_key(utcnow())
        assert first['invoice_number'] == f"INV{period}0001"
        assert second['invoice_number'] == f"INV{period}0002"
        assert re.fullmatch(r"INV\d{4}\d{4}", first['invoice_number'])

    def test_failed_invoice_does_not_consume_a_number(self, client, headers_a, student_a, product_a):
        create_invoice(client, headers_a, student_a, product_a, quantity=1)
        create_invoice(client, headers_a, student_a, product_a, quantity=50)
        third = create_invoice(client, headers_a, student_a, product_a, quantity=1).json['data']

        assert third['invoice_number'].endswith("0002")


class TestInvoiceUpdate:
    def test_reducing_quantity_returns_stock_and_updates_commission(
        self, client, db_session, headers_a, student_a, product_a
    ):
        created = create_invoice(client, headers_a, student_a, product_a, quantity=2, payment_status="unpaid").json['data']
        assert _stock(db_session, product_a.id) == 3

        response = client.put(f"/api/invoices/{created['id']}", json={
            'items': [{'product_id': product_a.id, 'quantity': 1}],
        }, headers=headers_a)
        assert response.status_code == 200
        updated = response.json['data']
        assert updated['subtotal'] == 100.0
        assert updated['total_amount'] == 118.0
        assert updated['commission_amount'] == 10.0

        assert _stock(db_session, product_a.id) == 4
        commission = db_session.query(Commission).filter_by(invoice_id=created['id']).one()
        assert float(commission.base_amount) == 100.0
        assert float(commission.commission_amount) == 10.0

    def test_failed_edit_restores_original_lines(self, client, db_session, headers_a, student_a, product_a):
        created = create_invoice(client, headers_a, student_a, product_a, quantity=2, payment_status="unpaid").json['data']

        response = client.put(f"/api/invoices/{created['id']}", json={
            'items': [{'product_id': product_a.id, 'quantity': 99}],
        }, headers=headers_a)
        assert response.status_code == 400

        assert _stock(db_session, product_a.id) == 3
        invoice = db_session.get(Invoice, created['id'])
        assert [line.quantity for line in invoice.lines] == [2]

    def test_paid_invoice_cannot_be_edited(self, client, headers_a, student_a, product_a):
        created = create_invoice(client, headers_a, student_a, product_a, quantity=1).json['data']
        assert created['payment_status'] == "paid"

        response = client.put(f"/api/invoices/{created['id']}", json={'notes': "late change"}, headers=headers_a)
        assert response.status_code == 400
        assert response.json['message'] == "Paid invoices cannot be edited"

    def test_school_is_immutable(self, client, headers_a, student_a, product_a):
        created = create_invoice(client, headers_a, student_a, product_a, quantity=1, payment_status="unpaid").json['data']

        response = client.put(f"/api/invoices/{created['id']}", json={'school_id': 5}, headers=headers_a)
        assert response.status_code == 400
        assert response.json['message'] == "Field not allowed: school_id"


class TestInvoiceReads:
    def test_get_includes_commission(self, client, headers_a, student_a, product_a):
        created = create_invoice(client, headers_a, student_a, product_a, quantity=1).json['data']

        response = client.get(f"/api/invoices/{created['id']}", headers=headers_a)
        assert response.status_code == 200
        assert response.json['data']['commission']['status'] == "pending"

    def test_list_is_paginated(self, client, headers_a, student_a, product_a):
        for _ in range(3):
            create_invoice(client, headers_a, student_a, product_a, quantity=1)

        response = client.get('/api/invoices?limit=2', headers=headers_a)
        assert response.status_code == 200
        assert len(response.json['data']) == 2
        assert response.json['pagination'] == {'page': 1, 'limit': 2, 'total': 3, 'pages': 2}

    def test_pdf_download(self, client, headers_a, student_a, product_a):
        created = create_invoice(client, headers_a, student_a, product_a, quantity=1).json['data']

        response = client.get(f"/api/invoices/{created['id']}/pdf", headers=headers_a)
        assert response.status_code == 200
        assert response.mimetype == "application/pdf"
        assert response.data.startswith(b"%PDF")

    def test_search_student(self, client, headers_a, student_a):
        response = client.get('/api/invoices/search-student?query=R10', headers=headers_a)
        assert response.status_code == 200
        assert [s['roll_number'] for s in response.json['data']] == ["R1001"]

    def test_search_student_requires_query(self, client, headers_a):
        response = client.get('/api/invoices/search-student', headers=headers_a)
        assert response.status_code == 400
