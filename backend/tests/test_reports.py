# Overview: Pytest coverage for sales, school and inventory reports and the dashboard.

from datetime import datetime

from conftest import create_invoice
from supplydesk.services.reporting_service import ReportingService


class TestEmptyReports:
    def test_sales_report_with_no_data(self, client, headers_a):
        response = client.get('/api/reports/sales', headers=headers_a)
        assert response.status_code == 200
        summary = response.json['data']['summary']
        assert summary['total_sales'] == 0.0
        assert summary['total_invoices'] == 0
        assert summary['average_invoice_value'] == 0.0
        assert response.json['data']['daily'] == []
        assert response.json['data']['top_products'] == []

    def test_dashboard_with_no_data(self, client, headers_a):
        response = client.get('/api/dashboard/summary', headers=headers_a)
        assert response.status_code == 200
        data = response.json['data']
        assert data['today_sales'] == {'amount': 0.0, 'count': 0}
        assert data['pending_commissions'] == {'amount': 0.0, 'count': 0}
        assert data['recent_invoices'] == []

    def test_inventory_valuation_with_no_products(self, client, headers_b):
        response = client.get('/api/reports/inventory-valuation', headers=headers_b)
        assert response.status_code == 200
        assert response.json['data']['summary']['total_value'] == 0.0


class TestSalesReport:
    def test_monthly_sales(self, client, headers_a, student_a, product_a):
        create_invoice(client, headers_a, student_a, product_a, quantity=2)
        create_invoice(client, headers_a, student_a, product_a, quantity=1)

        response = client.get('/api/reports/sales?period=monthly', headers=headers_a)
        assert response.status_code == 200
        data = response.json['data']
        assert data['summary']['total_sales'] == 354.0
        assert data['summary']['total_commission'] == 30.0
        assert data['summary']['total_invoices'] == 2
        assert data['summary']['average_invoice_value'] == 177.0
        assert data['top_products'][0]['quantity_sold'] == 3
        assert sum(day['invoice_count'] for day in data['daily']) == 2

    def test_other_admin_sees_nothing(self, client, headers_a, headers_b, student_a, product_a):
        create_invoice(client, headers_a, student_a, product_a, quantity=2)

        response = client.get('/api/reports/sales', headers=headers_b)
        assert response.json['data']['summary']['total_invoices'] == 0

    def test_invalid_period(self, client, headers_a):
        response = client.get('/api/reports/sales?period=yearly', headers=headers_a)
        assert response.status_code == 400

    def test_invalid_date(self, client, headers_a):
        response = client.get('/api/reports/sales?start_date=not-a-date', headers=headers_a)
        assert response.status_code == 400


class TestSchoolAndInventoryReports:
    def test_school_performance(self, client, headers_a, school_a, student_a, product_a):
        create_invoice(client, headers_a, student_a, product_a, quantity=2)

        response = client.get('/api/reports/school-performance', headers=headers_a)
        assert response.status_code == 200
        row = response.json['data']['schools'][0]
        assert row['school']['id'] == school_a.id
        assert row['total_sales'] == 236.0
        assert row['total_commission'] == 20.0
        assert row['total_students'] == 1
        assert response.json['data']['class_wise'][0]['student_count'] == 1

    def test_inventory_valuation(self, client, headers_a, product_a):
        response = client.get('/api/reports/inventory-valuation', headers=headers_a)
        data = response.json['data']
        assert data['summary']['total_value'] == 500.0
        assert data['summary']['total_stock'] == 5
        assert data['products'][0]['stock_status'] == "normal"
        assert data['category_wise'][0]['category'] == "Books"


class TestResolveRange:
    def test_weekly_starts_on_sunday(self):
        now = datetime(2024, 3, 13, 15, 30)  # Wednesday
        start, end = ReportingService.resolve_range("weekly", None, None, now=now).data
        assert start == datetime(2024, 3, 10)
        assert end == now

    def test_no_period_no_dates_is_all_time(self):
        assert ReportingService.resolve_range(None, None, None).data == (None, None)

    def test_start_after_end_rejected(self):
        result = ReportingService.resolve_range(None, datetime(2024, 2, 1), datetime(2024, 1, 1))
        assert not result.ok
