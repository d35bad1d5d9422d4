"""Rolling trade-price history and the adaptive channel window.

The buffer is scanned from the newest tick outwards. The window keeps
growing until it is long enough, oscillates around its mean and is volatile
enough that twice its standard deviation covers the move a round trip
needs. The first such length only arms the sizer: the window must then grow
to ``length * CHANNEL_LENGTH_MULTIPLE`` and still qualify before the entry
flags are raised. The buffer is cut to the last scanned length afterwards,
which keeps it tracking current volatility.
"""

from __future__ import annotations

import bisect
import logging
import math
import statistics
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterator, List

from common.precision import to_decimal
from core.domain.models.market import FeeSchedule, MarketRules
from core.domain.models.orders import OrderSide
from strategies.channel_scalper.channel_bounds import Channel, compute_channel, entry_prices
from strategies.channel_scalper.config.env_loader import ScalperConfig
from strategies.channel_scalper.liquidation import liquidation_price, take_profit_pips
from strategies.channel_scalper.sizing import entry_quantity
from strategies.channel_scalper.validators import is_evenly_distributed

logger = logging.getLogger("bot.strategy.channel_scalper.channel")


class PriceBuffer:
    """Trade prices, most recent first."""

    def __init__(self, max_length: int = 0) -> None:
        self._ticks: List[Decimal] = []
        self._max_length = max(int(max_length), 0)

    def add(self, price) -> Decimal:
        tick = to_decimal(price)
        self._ticks.insert(0, tick)
        if self._max_length and len(self._ticks) > self._max_length:
            del self._ticks[self._max_length:]
        return tick

    @property
    def current(self) -> Decimal | None:
        return self._ticks[0] if self._ticks else None

    def window(self, length: int) -> List[Decimal]:
        return self._ticks[:length]

    def truncate(self, length: int) -> None:
        del self._ticks[length:]

    def __len__(self) -> int:
        return len(self._ticks)

    def __iter__(self) -> Iterator[Decimal]:
        return iter(self._ticks)


@dataclass
class EntryFlags:
    buy: bool = False
    sell: bool = False

    def for_side(self, side: OrderSide) -> bool:
        return self.buy if side is OrderSide.BUY else self.sell

    @property
    def any(self) -> bool:
        return self.buy or self.sell


@dataclass(frozen=True)
class RequiredMoves:
    buy: Decimal | None
    sell: Decimal | None


@dataclass(frozen=True)
class ChannelScan:
    channel: Channel | None
    flags: EntryFlags
    window_length: int
    stddev: Decimal
    target_length: int | None = None


class ChannelSizer:
    """Find the shortest trustworthy window of a :class:`PriceBuffer`."""

    def __init__(self, config: ScalperConfig, rules: MarketRules, fees: FeeSchedule) -> None:
        self._config = config
        self._rules = rules
        self._fees = fees

    def required_moves(self, channel: Channel) -> RequiredMoves:
        """Price distance each side must cover for a profitable round trip.

        A side that cannot be sized (quantity 0) or priced gets ``None``.
        """

        rules = self._rules
        buy_price, sell_price = entry_prices(channel, rules)

        buy_move: Decimal | None = None
        qty_buy = entry_quantity(OrderSide.BUY, buy_price, rules, self._config.spend_fraction)
        buy_exit = liquidation_price(
            OrderSide.BUY,
            qty_buy,
            buy_price,
            fees=self._fees,
            rules=rules,
            min_profit=take_profit_pips(OrderSide.BUY, rules, self._config.min_take_profit_pips),
            min_ticks=self._config.min_take_profit_ticks,
        )
        if buy_exit is not None:
            buy_move = buy_exit - buy_price

        sell_move: Decimal | None = None
        qty_sell = entry_quantity(OrderSide.SELL, sell_price, rules, self._config.spend_fraction)
        sell_exit = liquidation_price(
            OrderSide.SELL,
            qty_sell,
            sell_price,
            fees=self._fees,
            rules=rules,
            min_profit=take_profit_pips(OrderSide.SELL, rules, self._config.min_take_profit_pips),
            min_ticks=self._config.min_take_profit_ticks,
        )
        if sell_exit is not None:
            sell_move = sell_price - sell_exit

        return RequiredMoves(buy=buy_move, sell=sell_move)

    def _target_length(self, length: int) -> int:
        return max(math.ceil(length * self._config.channel_length_multiple), length)

    def scan(self, buffer: PriceBuffer) -> ChannelScan:
        """Scan ``buffer`` and truncate it to the final window length.

        The window's sum and sorted copy grow with it, so a length that fails
        the distribution check costs one pass over the window.
        """

        ticks = buffer.window(len(buffer))
        if not ticks:
            return ChannelScan(channel=None, flags=EntryFlags(), window_length=0, stddev=Decimal("0"))

        current = ticks[0]
        flags = EntryFlags()
        channel: Channel | None = None
        stddev = Decimal("0")
        target: int | None = None
        scanned = 0
        ordered: List[Decimal] = []
        total = Decimal("0")

        for length in range(1, len(ticks) + 1):
            flags = EntryFlags()
            channel = None
            scanned = length
            tick = ticks[length - 1]
            bisect.insort(ordered, tick)
            total += tick

            if length < self._config.min_window_length:
                continue
            window = ticks[:length]
            if not is_evenly_distributed(
                window,
                min_ratio=self._config.even_distribution_min_ratio,
                mean=total / length,
            ):
                continue

            channel = compute_channel(ordered, current, self._rules, is_sorted=True)
            stddev = statistics.pstdev(window)
            spread = stddev * 2
            moves = self.required_moves(channel)
            buy_ready = moves.buy is not None and spread >= moves.buy
            sell_ready = moves.sell is not None and spread >= moves.sell
            if not (buy_ready or sell_ready):
                continue

            if target is None:
                target = self._target_length(length)
                logger.debug("channel armed at length=%d target=%d", length, target)
            if length >= target:
                flags = EntryFlags(buy=buy_ready, sell=sell_ready)
                break

        if channel is None:
            channel = compute_channel(ordered, current, self._rules, is_sorted=True)
        buffer.truncate(scanned)
        return ChannelScan(
            channel=channel,
            flags=flags,
            window_length=scanned,
            stddev=stddev,
            target_length=target,
        )


__all__ = [
    "ChannelScan",
    "ChannelSizer",
    "EntryFlags",
    "PriceBuffer",
    "RequiredMoves",
]
