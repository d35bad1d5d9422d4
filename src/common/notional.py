"""Helpers to enforce the exchange min notional constraint."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_UP
from typing import List

from .precision import round_to_step, to_decimal


@dataclass(slots=True)
class NotionalSizingResult:
    """Result payload returned by :func:`ensure_min_notional`."""

    qty_raw: Decimal
    qty: Decimal
    price_used: Decimal
    notional: Decimal
    min_notional: Decimal
    step_size: Decimal
    adjustments: List[str] = field(default_factory=list)


def _coerce_positive(value: Decimal) -> Decimal:
    if value <= 0:
        return Decimal("0")
    return value


def ensure_min_notional(
    *,
    qty: object,
    price: object,
    step_size: object,
    min_notional: object,
) -> NotionalSizingResult:
    """Return ``qty`` raised so that ``qty * price`` reaches ``min_notional``.

    When the notional falls short the quantity is recomputed from
    ``min_notional / price`` and rounded up to the next ``step_size``
    multiple. Quantities already above the threshold are returned untouched
    (no step rounding is applied to them here).
    """

    qty_dec = to_decimal(qty)
    price_dec = to_decimal(price)
    step = to_decimal(step_size)
    min_notional_dec = _coerce_positive(to_decimal(min_notional))

    adjustments: List[str] = []
    qty_out = qty_dec
    notional = price_dec * qty_out

    if min_notional_dec > 0 and price_dec > 0:
        if notional < min_notional_dec:
            required_qty = min_notional_dec / price_dec
            if step > 0:
                required_qty = round_to_step(required_qty, step, rounding=ROUND_UP)
            adjustments.append("qty_increased_for_min_notional")
            qty_out = required_qty
            notional = price_dec * qty_out
    elif min_notional_dec > 0 and price_dec <= 0:
        adjustments.append("price_non_positive")

    return NotionalSizingResult(
        qty_raw=qty_dec,
        qty=qty_out,
        price_used=price_dec,
        notional=notional,
        min_notional=min_notional_dec,
        step_size=step,
        adjustments=adjustments,
    )
