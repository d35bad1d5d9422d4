"""Fee-aware take-profit pricing.

Both legs of a round trip are expected to fill as maker orders, so the maker
commission is applied twice. With ``f = 1 - maker/100``:

* buy entry, sell exit (profit in quote)::

      profit = V * f * X * f - V * P      ->  X = (profit + V * P) / (V * f**2)

* sell entry, buy exit (profit in base)::

      profit = V * P * f * f / X - V      ->  X = V * P * f**2 / (profit + V)

Exits are rounded away from the entry (up for a sell exit, down for a buy
exit) so rounding never eats into the configured profit.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from common.precision import round_to_tick, to_decimal, unit
from core.domain.models.market import FeeSchedule, MarketRules
from core.domain.models.orders import OrderSide
from strategies.channel_scalper.sizing import format_quantity

ZERO = Decimal("0")


@dataclass(frozen=True)
class ConfirmedQuantities:
    entry_qty: Decimal
    exit_qty: Decimal


def take_profit_pips(side: OrderSide, rules: MarketRules, pips: int = 1) -> Decimal:
    """Minimum profit for a round trip started on ``side``.

    A buy earns quote asset, a sell earns base asset; the minimum is one unit
    in the last digit of that asset's precision, times ``pips``.
    """

    precision = rules.quote.precision if side is OrderSide.BUY else rules.base.precision
    return unit(precision) * max(int(pips), 1)


def liquidation_price(
    side: OrderSide,
    volume: Any,
    price: Any,
    *,
    fees: FeeSchedule,
    rules: MarketRules,
    min_profit: Decimal,
    min_ticks: int = 1,
) -> Decimal | None:
    """Return the exit price for an entry of ``volume`` at ``price`` on ``side``.

    ``None`` is returned when no exit exists (non-positive volume or price,
    or a sell exit that would fall to zero).
    """

    volume_dec = to_decimal(volume)
    price_dec = to_decimal(price)
    if volume_dec <= 0 or price_dec <= 0:
        return None

    factor = fees.maker_factor
    if factor <= 0:
        return None
    tick = rules.tick_size
    floor_move = tick * max(int(min_ticks), 1)

    if side is OrderSide.BUY:
        exit_price = (min_profit + volume_dec * price_dec) / (volume_dec * factor * factor)
        exit_price = max(exit_price, price_dec + floor_move)
        return round_to_tick(exit_price, tick, side=OrderSide.SELL.value)

    exit_price = (volume_dec * price_dec * factor * factor) / (min_profit + volume_dec)
    exit_price = min(exit_price, price_dec - floor_move)
    exit_price = round_to_tick(exit_price, tick, side=OrderSide.BUY.value)
    if exit_price <= 0:
        return None
    return exit_price


def confirm_entry_exit_qty(
    entry_price: Decimal,
    exit_price: Decimal,
    entry_qty: Decimal,
    side: OrderSide,
    *,
    fees: FeeSchedule,
    rules: MarketRules,
) -> ConfirmedQuantities:
    """Make both legs of the round trip exchange legal after fees.

    The exit quantity is what the entry leaves after commission (base asset
    for a buy, quote asset converted at the exit price for a sell). It is
    normalized first, then the entry quantity is derived back from it and
    normalized again so the exit can always be covered.
    """

    if entry_qty <= 0 or entry_price <= 0 or exit_price <= 0:
        return ConfirmedQuantities(entry_qty=ZERO, exit_qty=ZERO)

    factor = fees.maker_factor
    if side is OrderSide.BUY:
        exit_qty = entry_qty * factor
    else:
        exit_qty = (entry_qty * entry_price * factor) / exit_price
    exit_qty = format_quantity(exit_qty, exit_price, rules)

    if side is OrderSide.BUY:
        confirmed = exit_qty / factor
    else:
        confirmed = (exit_qty * exit_price) / (entry_price * factor)
    confirmed = format_quantity(confirmed, entry_price, rules)
    return ConfirmedQuantities(entry_qty=confirmed, exit_qty=exit_qty)


__all__ = [
    "ConfirmedQuantities",
    "confirm_entry_exit_qty",
    "liquidation_price",
    "take_profit_pips",
]
