# Overview: Pytest coverage for commission settlement and rollups.

import pytest

from conftest import create_invoice
from sqlalchemy import update
from sqlalchemy.orm.attributes import set_committed_value

from supplydesk.models import Commission, ROLE_ADMIN
from supplydesk.results import ErrorKind
from supplydesk.services.commission_service import CommissionAccrual
from supplydesk.services.ownership_service import Caller, OwnershipFilter
from supplydesk.validation import SettlementRequest


@pytest.fixture
def commission_id(client, db_session, headers_a, student_a, product_a):
    invoice = create_invoice(client, headers_a, student_a, product_a, quantity=2).json['data']
    return db_session.query(Commission.id).filter_by(invoice_id=invoice['id']).scalar()


class TestSettlement:
    def test_settle_once(self, client, headers_a, commission_id):
        response = client.put(
            f"/api/commissions/{commission_id}/settle",
            json={'payment_reference': "NEFT-001", 'notes': "March payout"},
            headers=headers_a,
        )
        assert response.status_code == 200
        data = response.json['data']
        assert data['status'] == "settled"
        assert data['payment_reference'] == "NEFT-001"
        assert data['settlement_date'] is not None

    def test_resettle_is_rejected(self, client, headers_a, commission_id):
        url = f"/api/commissions/{commission_id}/settle"
        first = client.put(url, json={'payment_reference': "NEFT-001"}, headers=headers_a)
        assert first.status_code == 200

        second = client.put(url, json={'payment_reference': "NEFT-002"}, headers=headers_a)
        assert second.status_code == 400
        assert second.json['message'] == "Commission already settled"

    def test_settle_checks_status_at_write_time(self, db_session, admin_a, commission_id):
        # Another request settles the row after this session has read it as pending
        db_session.execute(
            update(Commission)
            .where(Commission.id == commission_id)
            .values(status="settled", payment_reference="REF-1")
            .execution_options(synchronize_session=False)
        )
        db_session.commit()
        commission = db_session.get(Commission, commission_id)
        assert commission.status == "settled"
        set_committed_value(commission, "status", "pending")

        service = CommissionAccrual(db_session, OwnershipFilter(db_session, Caller(admin_a.id, ROLE_ADMIN)))
        result = service.settle(commission_id, SettlementRequest(payment_reference="REF-2"))
        assert not result.ok
        assert result.kind is ErrorKind.BUSINESS_RULE

        db_session.expire_all()
        assert db_session.get(Commission, commission_id).payment_reference == "REF-1"

    def test_reference_required(self, client, headers_a, commission_id):
        response = client.put(f"/api/commissions/{commission_id}/settle", json={}, headers=headers_a)
        assert response.status_code == 400

    def test_settled_commission_locks_invoice(self, client, db_session, headers_a, student_a, product_a):
        invoice = create_invoice(
            client, headers_a, student_a, product_a, quantity=1, payment_status="unpaid"
        ).json['data']
        commission = db_session.query(Commission).filter_by(invoice_id=invoice['id']).one()
        client.put(f"/api/commissions/{commission.id}/settle", json={'payment_reference': "X1"}, headers=headers_a)

        response = client.put(f"/api/invoices/{invoice['id']}", json={'discount': 5}, headers=headers_a)
        assert response.status_code == 400
        assert response.json['message'] == "Invoice commission is already settled"


class TestRollups:
    def test_summary_totals(self, client, headers_a, commission_id):
        response = client.get('/api/commissions/summary', headers=headers_a)
        assert response.status_code == 200
        data = response.json['data']
        assert data['pending'] == {'amount': 20.0, 'count': 1}
        assert data['settled'] == {'amount': 0.0, 'count': 0}
        assert data['school_wise_pending'][0]['pending_amount'] == 20.0

    def test_school_breakdown(self, client, headers_a, school_a, commission_id):
        response = client.get(f"/api/commissions/school/{school_a.id}", headers=headers_a)
        assert response.status_code == 200
        data = response.json['data']
        assert data['school']['id'] == school_a.id
        assert len(data['commissions']) == 1
        assert data['monthly_breakdown'][0]['pending'] == 20.0

    def test_list_filters_by_status(self, client, headers_a, commission_id):
        assert len(client.get('/api/commissions?status=pending', headers=headers_a).json['data']) == 1
        assert client.get('/api/commissions?status=settled', headers=headers_a).json['data'] == []

    def test_invalid_status_filter(self, client, headers_a):
        response = client.get('/api/commissions?status=done', headers=headers_a)
        assert response.status_code == 400
