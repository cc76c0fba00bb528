# Overview: Sequential document numbers (<PREFIX><YY><MM><NNNN>) backed by counter rows.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..models import DocumentSequence, Invoice, Purchase
from ..time_utils import period_key, utcnow

INVOICE_PREFIX = "INV"
PURCHASE_PREFIX = "PO"

# prefix -> column holding numbers already issued with that prefix
_ISSUED_COLUMNS = {
    INVOICE_PREFIX: Invoice.invoice_number,
    PURCHASE_PREFIX: Purchase.purchase_number,
}


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


class SequenceGenerator:
    """
    Allocates monthly document numbers.

    One DocumentSequence row per (prefix, YYMM). Allocation is a single
    conditional UPDATE of next_number, so concurrent callers serialize on the
    row instead of racing on read-then-write. The first caller of a period
    creates the row inside a savepoint; losing that race falls back to the
    UPDATE path.

    Runs inside the caller's transaction: a rolled back document also rolls
    back its number.
    """

    def __init__(self, session, pad: int = 4):
        self.session = session
        self.pad = pad

    def next_number(self, prefix: str, when: datetime | None = None) -> str:
        if prefix not in _ISSUED_COLUMNS:
            raise DocumentSequenceError(f"Unknown document prefix: {prefix}")

        period = period_key(when or utcnow())
        number = self._increment(prefix, period)
        if number is None:
            number = self._create_counter(prefix, period)
        return f"{prefix}{period}{number:0{self.pad}d}"

    def _increment(self, prefix: str, period: str) -> int | None:
        stmt = (
            update(DocumentSequence)
            .where(
                DocumentSequence.document_type == prefix,
                DocumentSequence.period == period,
            )
            .values(next_number=DocumentSequence.next_number + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if not result.rowcount:
            return None
        current = (
            self.session.query(DocumentSequence.next_number)
            .filter_by(document_type=prefix, period=period)
            .scalar()
        )
        return current - 1

    def _create_counter(self, prefix: str, period: str) -> int:
        number = self._highest_issued(prefix, period) + 1
        try:
            with self.session.begin_nested():
                self.session.add(
                    DocumentSequence(document_type=prefix, period=period, next_number=number + 1)
                )
        except IntegrityError:
            number = self._increment(prefix, period)
            if number is None:
                raise DocumentSequenceError(f"Could not allocate {prefix} number for {period}")
        return number

    def _highest_issued(self, prefix: str, period: str) -> int:
        """Highest sequence already used for prefix+period (0 if none)."""
        column = _ISSUED_COLUMNS[prefix]
        stem = f"{prefix}{period}"
        rows = self.session.query(column).filter(column.like(f"{stem}%")).all()
        highest = 0
        for (issued,) in rows:
            suffix = issued[len(stem):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return highest
