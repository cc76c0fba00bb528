"""
Line and document totals.

Per line: subtotal = quantity x unit_price, gst = subtotal x gst_rate / 100
(rounded half-up to cents), total = subtotal + gst. Document totals are plain
sums of the rounded line values, minus the discount.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from ..money import MAX_AMOUNT, ZERO, percent_of, quantize, to_decimal


class PricingError(ValueError):
    pass


@dataclass(frozen=True)
class LineTotals:
    quantity: int
    unit_price: Decimal
    gst_rate: Decimal
    subtotal: Decimal
    gst_amount: Decimal
    total: Decimal


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    gst_amount: Decimal
    discount: Decimal
    total_amount: Decimal


def price_line(quantity: int, unit_price, gst_rate) -> LineTotals:
    unit_price = quantize(unit_price)
    gst_rate = to_decimal(gst_rate)
    subtotal = quantize(unit_price * quantity)
    gst_amount = percent_of(subtotal, gst_rate)
    if subtotal + gst_amount > MAX_AMOUNT:
        raise PricingError(f"line total cannot exceed {MAX_AMOUNT}")
    return LineTotals(
        quantity=quantity,
        unit_price=unit_price,
        gst_rate=gst_rate,
        subtotal=subtotal,
        gst_amount=gst_amount,
        total=subtotal + gst_amount,
    )


def document_totals(lines: Iterable[LineTotals], discount=ZERO) -> DocumentTotals:
    lines = list(lines)
    subtotal = sum((line.subtotal for line in lines), ZERO)
    gst_amount = sum((line.gst_amount for line in lines), ZERO)
    discount = quantize(discount)

    if subtotal + gst_amount > MAX_AMOUNT:
        raise PricingError(f"document total cannot exceed {MAX_AMOUNT}")
    if discount < ZERO:
        raise PricingError("discount must be >= 0")
    if discount > subtotal + gst_amount:
        raise PricingError("discount cannot exceed the invoice amount")

    return DocumentTotals(
        subtotal=subtotal,
        gst_amount=gst_amount,
        discount=discount,
        total_amount=subtotal + gst_amount - discount,
    )


def purchase_payment_status(paid_amount, total_amount) -> str:
    paid_amount = to_decimal(paid_amount)
    if paid_amount >= to_decimal(total_amount):
        return "paid"
    if paid_amount > ZERO:
        return "partial"
    return "pending"
