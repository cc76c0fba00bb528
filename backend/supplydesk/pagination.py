from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Page:
    number: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.number - 1) * self.limit


def paginate(query, page: Page) -> tuple[list, dict]:
    """Run a query for one page; returns (rows, {page, limit, total, pages})."""
    total = query.order_by(None).count()
    items = query.offset(page.offset).limit(page.limit).all()
    pages = (total + page.limit - 1) // page.limit if total else 0
    return items, {"page": page.number, "limit": page.limit, "total": total, "pages": pages}
