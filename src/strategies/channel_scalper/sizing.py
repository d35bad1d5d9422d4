"""Entry quantity sizing under the pair's lot size rules.

Everything here is side-effect free: balances are read from the
:class:`~core.domain.models.market.MarketRules` snapshot passed in and are
only ever updated by account events in the engine.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_DOWN, ROUND_UP
from typing import Any

from common.notional import ensure_min_notional
from common.precision import round_to_step, to_decimal
from core.domain.models.market import MarketRules
from core.domain.models.orders import OrderSide

ZERO = Decimal("0")


def format_quantity(quantity: Any, price: Any, rules: MarketRules) -> Decimal:
    """Return ``quantity`` adjusted to the exchange lot rules at ``price``.

    The quantity is raised to meet the min notional, clamped to
    ``[minQty, maxQty]`` and rounded up to the step size. Rounding up keeps
    the result above the minimums that were just enforced.
    """

    base = rules.base
    qty = ensure_min_notional(
        qty=quantity,
        price=price,
        step_size=base.step_size,
        min_notional=rules.min_notional,
    ).qty
    if qty < base.min_qty:
        qty = base.min_qty
    if base.max_qty > 0 and qty > base.max_qty:
        qty = base.max_qty
    qty = round_to_step(qty, base.step_size, rounding=ROUND_UP)
    if base.max_qty > 0 and qty > base.max_qty:
        qty = round_to_step(base.max_qty, base.step_size, rounding=ROUND_DOWN)
    return qty


def is_exchange_legal(quantity: Decimal, price: Decimal, rules: MarketRules) -> bool:
    """Return ``True`` when ``quantity`` at ``price`` passes the lot filters."""

    base = rules.base
    if quantity <= 0 or price <= 0:
        return False
    if quantity < base.min_qty:
        return False
    if base.max_qty > 0 and quantity > base.max_qty:
        return False
    return quantity * price >= rules.min_notional


def can_afford(side: OrderSide, quantity: Decimal, price: Decimal, rules: MarketRules) -> bool:
    """Return ``True`` when the free balance covers the order."""

    if side is OrderSide.BUY:
        balance = rules.quote.balance
        return balance is not None and quantity * price <= balance
    balance = rules.base.balance
    return balance is not None and quantity <= balance


def entry_quantity(
    side: OrderSide,
    price: Any,
    rules: MarketRules,
    spend_fraction: Decimal,
) -> Decimal:
    """Return the order quantity for an entry at ``price``.

    A buy spends ``spend_fraction`` of the quote balance, a sell offers
    ``spend_fraction`` of the base balance. ``Decimal(0)`` means "do not
    trade": the balance is unknown or too small, or the normalized order
    would break the lot filters.
    """

    price_dec = to_decimal(price)
    if price_dec <= 0:
        return ZERO

    if side is OrderSide.BUY:
        balance = rules.quote.balance
        if balance is None or balance <= 0:
            return ZERO
        raw_qty = balance * spend_fraction / price_dec
    else:
        balance = rules.base.balance
        if balance is None or balance <= 0:
            return ZERO
        raw_qty = balance * spend_fraction

    qty = format_quantity(raw_qty, price_dec, rules)
    if not can_afford(side, qty, price_dec, rules):
        return ZERO
    if not is_exchange_legal(qty, price_dec, rules):
        return ZERO
    return qty


__all__ = ["can_afford", "entry_quantity", "format_quantity", "is_exchange_legal"]
