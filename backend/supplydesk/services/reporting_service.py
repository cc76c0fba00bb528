# Overview: Read-only reports and dashboard rollups, scoped by ownership.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..models import Commission, Invoice, InvoiceLine, Product, School, Student
from ..money import ZERO, money_json, quantize, to_decimal
from ..results import Ok, Result, validation
from ..time_utils import start_of_day, start_of_month, start_of_week, to_utc_z, utcnow
from .ownership_service import OwnershipFilter

REPORT_PERIODS = ("daily", "weekly", "monthly")
TOP_LIMIT = 10


def _sum(column):
    return func.coalesce(func.sum(column), 0)


def _average(total, count) -> float:
    if not count:
        return 0.0
    return money_json(to_decimal(total) / count)


class ReportingService:
    """
    Aggregations over invoices, commissions and stock.

    Every query starts from the ownership-scoped base query, so an admin with
    no schools gets zeroed summaries rather than everyone's data.
    """

    def __init__(self, session, ownership: OwnershipFilter):
        self.session = session
        self.ownership = ownership

    def _invoices(self, start: datetime | None = None, end: datetime | None = None):
        query = self.ownership.scoped(Invoice)
        if start is not None:
            query = query.filter(Invoice.invoice_date >= start)
        if end is not None:
            query = query.filter(Invoice.invoice_date <= end)
        return query

    @staticmethod
    def resolve_range(period: str | None, start: datetime | None, end: datetime | None, now: datetime | None = None):
        """Map a named period or explicit dates to (start, end); (None, None) means all time."""
        now = now or utcnow()
        if period:
            if period not in REPORT_PERIODS:
                return validation(f"period must be one of: {', '.join(REPORT_PERIODS)}")
            if period == "daily":
                return Ok((start_of_day(now.date()), now))
            if period == "weekly":
                return Ok((start_of_week(now), now))
            return Ok((start_of_month(now), now))
        if start is not None and end is not None and start > end:
            return validation("start_date must be before end_date")
        return Ok((start, end))

    # -- sales --------------------------------------------------------------

    def sales_report(self, *, period: str | None = None, start: datetime | None = None, end: datetime | None = None) -> Result:
        resolved = self.resolve_range(period, start, end)
        if not resolved.ok:
            return resolved
        start, end = resolved.data

        day = func.date(Invoice.invoice_date)
        daily_rows = (
            self._invoices(start, end)
            .with_entities(
                day.label("day"),
                _sum(Invoice.total_amount),
                _sum(Invoice.commission_amount),
                func.count(Invoice.id),
            )
            .group_by(day)
            .order_by(day)
            .all()
        )
        daily = [
            {
                "date": str(day_value),
                "total_sales": money_json(total),
                "total_commission": money_json(commission),
                "invoice_count": count,
            }
            for day_value, total, commission, count in daily_rows
        ]

        totals = self._invoices(start, end).with_entities(
            _sum(Invoice.total_amount),
            _sum(Invoice.subtotal),
            _sum(Invoice.gst_amount),
            _sum(Invoice.discount),
            _sum(Invoice.commission_amount),
            func.count(Invoice.id),
        ).one()
        total_sales, subtotal, gst, discount, commission, count = totals

        revenue = _sum(InvoiceLine.total_price)
        product_rows = (
            self._invoices(start, end)
            .join(InvoiceLine, InvoiceLine.invoice_id == Invoice.id)
            .with_entities(
                InvoiceLine.product_id,
                InvoiceLine.product_name,
                _sum(InvoiceLine.quantity),
                revenue.label("revenue"),
            )
            .group_by(InvoiceLine.product_id, InvoiceLine.product_name)
            .order_by(revenue.desc())
            .limit(TOP_LIMIT)
            .all()
        )

        return Ok({
            "period": period,
            "start_date": to_utc_z(start),
            "end_date": to_utc_z(end),
            "summary": {
                "total_sales": money_json(total_sales),
                "total_subtotal": money_json(subtotal),
                "total_gst": money_json(gst),
                "total_discount": money_json(discount),
                "total_commission": money_json(commission),
                "total_invoices": count,
                "average_invoice_value": _average(total_sales, count),
            },
            "daily": daily,
            "top_products": [
                {
                    "product_id": product_id,
                    "product_name": name,
                    "quantity_sold": int(quantity or 0),
                    "revenue": money_json(amount),
                }
                for product_id, name, quantity, amount in product_rows
            ],
        })

    # -- schools ------------------------------------------------------------

    def school_performance(self, *, start: datetime | None = None, end: datetime | None = None,
                           school_id: int | None = None) -> Result:
        resolved = self.resolve_range(None, start, end)
        if not resolved.ok:
            return resolved

        schools_query = self.ownership.scoped(School)
        if school_id:
            schools_query = schools_query.filter(School.id == school_id)
        schools = schools_query.order_by(School.name.asc()).all()
        school_ids = [school.id for school in schools]

        sales = {}
        students = {}
        class_rows = []
        if school_ids:
            invoices = self._invoices(start, end).filter(Invoice.school_id.in_(school_ids))
            sales = {
                row[0]: row[1:]
                for row in invoices.with_entities(
                    Invoice.school_id,
                    _sum(Invoice.total_amount),
                    _sum(Invoice.commission_amount),
                    func.count(Invoice.id),
                ).group_by(Invoice.school_id).all()
            }
            students = dict(
                self.session.query(Student.school_id, func.count(Student.id))
                .filter(Student.school_id.in_(school_ids), Student.is_active.is_(True))
                .group_by(Student.school_id)
                .all()
            )
            class_rows = (
                invoices.join(Student, Student.id == Invoice.student_id)
                .with_entities(
                    Invoice.school_id,
                    Student.class_name,
                    _sum(Invoice.total_amount),
                    func.count(Invoice.id),
                    func.count(func.distinct(Invoice.student_id)),
                )
                .group_by(Invoice.school_id, Student.class_name)
                .order_by(Invoice.school_id, Student.class_name)
                .all()
            )

        performance = []
        for school in schools:
            total_sales, total_commission, invoice_count = sales.get(school.id, (ZERO, ZERO, 0))
            performance.append({
                "school": school.to_summary(),
                "commission_rate": money_json(school.commission_rate),
                "total_sales": money_json(total_sales),
                "total_commission": money_json(total_commission),
                "invoice_count": invoice_count,
                "total_students": students.get(school.id, 0),
                "average_sale_per_invoice": _average(total_sales, invoice_count),
            })
        performance.sort(key=lambda row: row["total_sales"], reverse=True)

        return Ok({
            "start_date": to_utc_z(start),
            "end_date": to_utc_z(end),
            "schools": performance,
            "class_wise": [
                {
                    "school_id": sid,
                    "class_name": class_name,
                    "total_sales": money_json(total),
                    "invoice_count": count,
                    "student_count": distinct_students,
                }
                for sid, class_name, total, count, distinct_students in class_rows
            ],
        })

    def school_detail(self, school_id: int) -> Result:
        loaded = self.ownership.load(School, school_id, "School")
        if not loaded.ok:
            return loaded
        school = loaded.data

        student_count = (
            self.session.query(func.count(Student.id)).filter(Student.school_id == school.id).scalar()
        )
        class_wise = (
            self.session.query(Student.class_name, func.count(Student.id))
            .filter(Student.school_id == school.id)
            .group_by(Student.class_name)
            .order_by(Student.class_name)
            .all()
        )
        total_sales, invoice_count = (
            self.session.query(_sum(Invoice.total_amount), func.count(Invoice.id))
            .filter(Invoice.school_id == school.id)
            .one()
        )
        commission_rows = dict(
            (status, (amount, count))
            for status, amount, count in (
                self.session.query(Commission.status, _sum(Commission.commission_amount), func.count(Commission.id))
                .filter(Commission.school_id == school.id)
                .group_by(Commission.status)
                .all()
            )
        )
        settlements = (
            self.session.query(Commission)
            .filter(Commission.school_id == school.id, Commission.status == "settled")
            .order_by(Commission.settlement_date.desc(), Commission.id.desc())
            .limit(TOP_LIMIT)
            .all()
        )

        pending_amount, pending_count = commission_rows.get("pending", (ZERO, 0))
        settled_amount, settled_count = commission_rows.get("settled", (ZERO, 0))

        data = school.to_dict()
        data.update({
            "student_count": student_count,
            "class_wise": [{"class_name": name, "count": count} for name, count in class_wise],
            "sales": {
                "total_sales": money_json(total_sales),
                "invoice_count": invoice_count,
            },
            "commissions": {
                "pending": {"amount": money_json(pending_amount), "count": pending_count},
                "settled": {"amount": money_json(settled_amount), "count": settled_count},
                "total": money_json(to_decimal(pending_amount) + to_decimal(settled_amount)),
            },
            "recent_settlements": [row.to_dict() for row in settlements],
        })
        return Ok(data)

    # -- inventory ----------------------------------------------------------

    def inventory_valuation(self) -> Result:
        products = (
            self.ownership.scoped(Product)
            .order_by(Product.name.asc())
            .all()
        )

        rows = []
        categories: dict = {}
        total_value = ZERO
        total_stock = 0
        low_stock = []
        for product in products:
            value = quantize(to_decimal(product.base_price) * product.stock)
            status = "low" if product.is_low_stock else "normal"
            row = {
                "product_id": product.id,
                "name": product.name,
                "sku": product.sku,
                "category": product.category.name if product.category else None,
                "stock": product.stock,
                "min_stock_level": product.min_stock_level,
                "base_price": money_json(product.base_price),
                "value": money_json(value),
                "stock_status": status,
            }
            rows.append(row)
            if status == "low":
                low_stock.append(row)

            total_value += value
            total_stock += product.stock
            key = product.category.name if product.category else "Uncategorized"
            bucket = categories.setdefault(key, {"category": key, "product_count": 0, "total_stock": 0, "value": ZERO})
            bucket["product_count"] += 1
            bucket["total_stock"] += product.stock
            bucket["value"] += value

        category_wise = sorted(categories.values(), key=lambda b: b["value"], reverse=True)
        for bucket in category_wise:
            bucket["value"] = money_json(bucket["value"])

        return Ok({
            "summary": {
                "total_products": len(rows),
                "total_stock": total_stock,
                "total_value": money_json(total_value),
                "low_stock_count": len(low_stock),
            },
            "products": rows,
            "category_wise": category_wise,
            "low_stock": low_stock,
        })

    # -- dashboard ----------------------------------------------------------

    def dashboard(self, now: datetime | None = None) -> Result:
        now = now or utcnow()
        today = start_of_day(now.date())
        month = start_of_month(now)

        def sales_since(start):
            total, count = self._invoices(start, None).with_entities(
                _sum(Invoice.total_amount), func.count(Invoice.id)
            ).one()
            return {"amount": money_json(total), "count": count}

        low_stock = (
            self.ownership.scoped(Product)
            .filter(Product.is_active.is_(True), Product.stock <= Product.min_stock_level)
            .order_by(Product.stock.asc(), Product.name.asc())
            .limit(TOP_LIMIT)
            .all()
        )

        pending_amount, pending_count = (
            self.ownership.scoped(Commission)
            .filter(Commission.status == "pending")
            .with_entities(_sum(Commission.commission_amount), func.count(Commission.id))
            .one()
        )

        recent = (
            self._invoices()
            .order_by(Invoice.invoice_date.desc(), Invoice.id.desc())
            .limit(TOP_LIMIT)
            .all()
        )

        school_total = _sum(Invoice.total_amount)
        top_schools = (
            self._invoices(month, None)
            .filter(Invoice.school_id.isnot(None))
            .join(School, School.id == Invoice.school_id)
            .with_entities(School.id, School.name, School.code, school_total.label("total"), func.count(Invoice.id))
            .group_by(School.id, School.name, School.code)
            .order_by(school_total.desc())
            .limit(TOP_LIMIT)
            .all()
        )

        return Ok({
            "today_sales": sales_since(today),
            "month_sales": sales_since(month),
            "counts": {
                "schools": self.ownership.scoped(School).count(),
                "students": self.ownership.scoped(Student).count(),
                "products": self.ownership.scoped(Product).count(),
            },
            "low_stock_products": [
                {
                    "id": p.id,
                    "name": p.name,
                    "sku": p.sku,
                    "stock": p.stock,
                    "min_stock_level": p.min_stock_level,
                }
                for p in low_stock
            ],
            "pending_commissions": {"amount": money_json(pending_amount), "count": pending_count},
            "recent_invoices": [invoice.to_dict(include_lines=False) for invoice in recent],
            "top_schools": [
                {
                    "school": {"id": sid, "name": name, "code": code},
                    "total_sales": money_json(total),
                    "invoice_count": count,
                }
                for sid, name, code, total, count in top_schools
            ],
        })
