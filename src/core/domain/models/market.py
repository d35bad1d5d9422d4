from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from common.precision import decimals_of


@dataclass
class AssetSpec:
    """Exchange rules and free balance for one side of the traded pair.

    The base asset fills the lot size fields, the quote asset the price
    filter fields. Only ``balance`` changes after startup.
    """

    name: str
    precision: int
    balance: Decimal | None = None
    min_qty: Decimal = Decimal("0")
    max_qty: Decimal = Decimal("0")
    step_size: Decimal = Decimal("0")
    min_price: Decimal = Decimal("0")
    max_price: Decimal = Decimal("0")
    tick_size: Decimal = Decimal("0")


@dataclass
class MarketRules:
    """Everything the sizing and pricing code needs to know about the pair."""

    symbol: str
    base: AssetSpec
    quote: AssetSpec
    min_notional: Decimal = Decimal("0")

    @property
    def tick_size(self) -> Decimal:
        return self.quote.tick_size

    @property
    def step_size(self) -> Decimal:
        return self.base.step_size

    @property
    def tick_digits(self) -> int:
        return decimals_of(self.quote.tick_size)

    @property
    def step_digits(self) -> int:
        return decimals_of(self.base.step_size)


@dataclass(frozen=True)
class FeeSchedule:
    """Maker/taker commission in percent (``0.1`` means 0.1 %)."""

    maker: Decimal
    taker: Decimal = field(default=Decimal("0"))

    @property
    def maker_factor(self) -> Decimal:
        """Fraction of a maker fill kept after commission."""
        return (Decimal(100) - self.maker) / Decimal(100)
