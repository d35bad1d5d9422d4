"""Entry price band derived from a price window."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from common.precision import RoundingMode, normalize
from core.domain.models.market import MarketRules

LOWER_QUANTILE = Decimal("0.01")
UPPER_QUANTILE = Decimal("0.99")


@dataclass(frozen=True)
class Channel:
    lower: Decimal
    upper: Decimal


def quantile(values: Sequence[Decimal], q: Decimal, *, is_sorted: bool = False) -> Decimal:
    """Return the ``q`` quantile of ``values`` using linear interpolation.

    Matches numpy's default (``linear``) method: the sorted values are
    indexed at ``q * (n - 1)`` and neighbours are interpolated.
    """

    if not values:
        raise ValueError("quantile() requires at least one value")
    if not Decimal("0") <= q <= Decimal("1"):
        raise ValueError(f"quantile must be within [0, 1], got {q}")
    data = values if is_sorted else sorted(values)
    position = q * (len(data) - 1)
    index = int(position)
    fraction = position - index
    if index + 1 >= len(data):
        return data[-1]
    return data[index] + (data[index + 1] - data[index]) * fraction


def compute_channel(
    window: Sequence[Decimal],
    current_tick: Decimal,
    rules: MarketRules,
    *,
    is_sorted: bool = False,
) -> Channel:
    """Return the entry band for ``window``.

    The lower bound is the 1st percentile rounded down to the quote
    precision, the upper bound the 99th percentile rounded up. Each bound is
    then pushed at least one tick away from ``current_tick`` so entries rest
    on the maker side of the market. Pass ``is_sorted`` when ``window`` is
    already in ascending order.
    """

    tick = rules.tick_size
    tick_digits = rules.tick_digits
    precision = rules.quote.precision

    p_low = normalize(quantile(window, LOWER_QUANTILE, is_sorted=is_sorted), precision, RoundingMode.DOWN)
    p_high = normalize(quantile(window, UPPER_QUANTILE, is_sorted=is_sorted), precision, RoundingMode.UP)

    below_market = normalize(current_tick - tick, tick_digits, RoundingMode.DOWN)
    above_market = normalize(current_tick + tick, tick_digits, RoundingMode.UP)

    return Channel(lower=min(p_low, below_market), upper=max(p_high, above_market))


def entry_prices(channel: Channel, rules: MarketRules) -> tuple[Decimal, Decimal]:
    """Return the ``(buy, sell)`` limit prices for ``channel`` at tick precision."""

    digits = rules.tick_digits
    return (
        normalize(channel.lower, digits, RoundingMode.DOWN),
        normalize(channel.upper, digits, RoundingMode.UP),
    )


__all__ = ["Channel", "compute_channel", "entry_prices", "quantile"]
