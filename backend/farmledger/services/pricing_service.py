# Overview: Pricing rule for purchases and sales.

"""
Pricing Rule

INVARIANT: for every Purchase and Sale, at the moment it is persisted,
    total_amount == weight * unit_price
computed in fixed-point and rounded to cents (ROUND_HALF_UP).

reprice() is called explicitly by the purchase/sale services right before
every create or update is flushed. It reads the record's current (post-patch)
weight and unit_price, so a partial update that only touches one of them
falls back to the stored value of the other. A caller-supplied total_amount
never reaches the record: validation drops it and reprice() overwrites it.

A product too large for total_amount is rejected, never truncated.

The payment-status update path does not call reprice().
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from ..validation import ValidationError

CENT = Decimal("0.01")

# total_amount is Numeric(15, 2): at most 13 integer digits
MAX_TOTAL = Decimal(10) ** 13


class Priced(Protocol):
    weight: Decimal
    unit_price: Decimal
    total_amount: Decimal


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        raise ValueError("Cannot price a record without weight and unit_price")
    return Decimal(str(value))


def compute_total(weight, unit_price) -> Decimal:
    """
    weight * unit_price, quantized to cents.

    Raises ValidationError (keyed by weight and unit_price) when the product
    does not fit in total_amount.
    """
    total = (to_decimal(weight) * to_decimal(unit_price)).quantize(CENT, rounding=ROUND_HALF_UP)
    if abs(total) >= MAX_TOTAL:
        message = "weight * unit_price exceeds the largest storable total"
        raise ValidationError({"weight": [message], "unit_price": [message]})
    return total


def reprice(record: Priced) -> Decimal:
    """Recompute and assign record.total_amount from its weight and unit_price."""
    record.total_amount = compute_total(record.weight, record.unit_price)
    return record.total_amount
