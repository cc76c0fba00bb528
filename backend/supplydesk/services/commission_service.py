# Overview: Commission accrual, settlement and commission rollups.

from __future__ import annotations

from sqlalchemy import case, func, update

from ..models import Commission, Invoice, School
from ..money import ZERO, money_json, percent_of, to_decimal
from ..pagination import Page, paginate
from ..results import Ok, Result, business_rule
from ..time_utils import utcnow
from ..validation import SettlementRequest
from .ownership_service import OwnershipFilter


class CommissionAccrual:
    """
    One commission per invoice that has a school.

    base = invoice subtotal, rate = school's commission_rate copied at
    accrual, amount = base x rate / 100. Status starts pending and moves to
    settled exactly once.
    """

    def __init__(self, session, ownership: OwnershipFilter):
        self.session = session
        self.ownership = ownership

    # -- workflow -----------------------------------------------------------

    def accrue(self, invoice: Invoice, school: School | None) -> Commission | None:
        if school is None:
            return None

        rate = to_decimal(invoice.commission_rate)
        commission = Commission(
            school_id=school.id,
            invoice_id=invoice.id,
            month=invoice.invoice_date.month,
            year=invoice.invoice_date.year,
            commission_rate=rate,
            base_amount=invoice.subtotal,
            commission_amount=percent_of(invoice.subtotal, rate),
            status="pending",
            created_by=invoice.created_by,
        )
        self.session.add(commission)
        return commission

    def update_for_invoice(self, invoice: Invoice) -> None:
        """Recompute the paired commission after an invoice edit, using the invoice's rate snapshot."""
        commission = invoice.commission
        if commission is None:
            return
        commission.base_amount = invoice.subtotal
        commission.commission_amount = percent_of(invoice.subtotal, commission.commission_rate)

    def settle(self, commission_id: int, request: SettlementRequest) -> Result:
        loaded = self.ownership.load(Commission, commission_id, "Commission")
        if not loaded.ok:
            return loaded
        commission = loaded.data

        values = {
            "status": "settled",
            "settlement_date": request.settlement_date or utcnow(),
            "payment_reference": request.payment_reference,
        }
        if request.notes is not None:
            values["notes"] = request.notes

        # Only a row still pending at UPDATE time moves to settled
        stmt = (
            update(Commission)
            .where(Commission.id == commission.id, Commission.status == "pending")
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if self.session.execute(stmt).rowcount == 0:
            self.session.rollback()
            return business_rule("Commission already settled")

        self.session.commit()
        self.session.refresh(commission)
        return Ok(commission.to_dict(), message="Commission settled successfully")

    # -- queries ------------------------------------------------------------

    def _filtered(self, *, school_id=None, status=None, month=None, year=None):
        query = self.ownership.scoped(Commission)
        if school_id:
            query = query.filter(Commission.school_id == school_id)
        if status:
            query = query.filter(Commission.status == status)
        if month:
            query = query.filter(Commission.month == month)
        if year:
            query = query.filter(Commission.year == year)
        return query

    def list(self, page: Page, *, school_id=None, status=None, month=None, year=None) -> Result:
        query = self._filtered(school_id=school_id, status=status, month=month, year=year)
        query = query.order_by(Commission.created_at.desc(), Commission.id.desc())
        rows, pagination = paginate(query, page)
        return Ok([row.to_dict() for row in rows], pagination=pagination)

    def for_school(self, school_id: int, page: Page, *, status=None, year=None) -> Result:
        loaded = self.ownership.load(School, school_id, "School")
        if not loaded.ok:
            return loaded
        school = loaded.data

        query = self._filtered(school_id=school.id, status=status, year=year)
        rows, pagination = paginate(
            query.order_by(Commission.year.desc(), Commission.month.desc(), Commission.id.desc()),
            page,
        )

        pending = case((Commission.status == "pending", Commission.commission_amount), else_=0)
        settled = case((Commission.status == "settled", Commission.commission_amount), else_=0)
        monthly = (
            self._filtered(school_id=school.id, status=status, year=year)
            .with_entities(
                Commission.year,
                Commission.month,
                func.coalesce(func.sum(Commission.commission_amount), 0),
                func.coalesce(func.sum(Commission.base_amount), 0),
                func.count(Commission.id),
                func.coalesce(func.sum(pending), 0),
                func.coalesce(func.sum(settled), 0),
            )
            .group_by(Commission.year, Commission.month)
            .order_by(Commission.year.desc(), Commission.month.desc())
            .all()
        )

        breakdown = [
            {
                "year": year_,
                "month": month_,
                "total_commission": money_json(total),
                "total_base_amount": money_json(base),
                "count": count,
                "pending": money_json(pending_amount),
                "settled": money_json(settled_amount),
            }
            for year_, month_, total, base, count, pending_amount, settled_amount in monthly
        ]

        return Ok(
            {
                "school": school.to_summary(),
                "commissions": [row.to_dict() for row in rows],
                "monthly_breakdown": breakdown,
            },
            pagination=pagination,
        )

    def summary(self) -> Result:
        by_status = dict(
            (status, (total, count))
            for status, total, count in (
                self.ownership.scoped(Commission)
                .with_entities(
                    Commission.status,
                    func.coalesce(func.sum(Commission.commission_amount), 0),
                    func.count(Commission.id),
                )
                .group_by(Commission.status)
                .all()
            )
        )
        pending_total, pending_count = by_status.get("pending", (ZERO, 0))
        settled_total, settled_count = by_status.get("settled", (ZERO, 0))

        school_rows = (
            self.ownership.scoped(Commission)
            .join(School, School.id == Commission.school_id)
            .filter(Commission.status == "pending")
            .with_entities(
                School.id,
                School.name,
                School.code,
                func.coalesce(func.sum(Commission.commission_amount), 0).label("pending_amount"),
                func.count(Commission.id),
            )
            .group_by(School.id, School.name, School.code)
            .order_by(func.sum(Commission.commission_amount).desc())
            .all()
        )

        school_wise = [
            {
                "school": {"id": school_id, "name": name, "code": code},
                "pending_amount": money_json(amount),
                "count": count,
            }
            for school_id, name, code, amount, count in school_rows
        ]

        return Ok({
            "pending": {"amount": money_json(pending_total), "count": pending_count},
            "settled": {"amount": money_json(settled_total), "count": settled_count},
            "total": {
                "amount": money_json(to_decimal(pending_total) + to_decimal(settled_total)),
                "count": pending_count + settled_count,
            },
            "school_wise_pending": school_wise,
        })
