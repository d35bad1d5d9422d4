"""Settings loader for the channel scalper strategy."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal

from common.precision import to_decimal
from common.symbols import pair_symbol
from core.ports.settings import (
    SettingsProvider,
    get_base_asset,
    get_channel_length_multiple,
    get_client_order_prefix,
    get_even_distribution_min_ratio,
    get_max_buffer_length,
    get_max_round_trips,
    get_min_take_profit_pips,
    get_min_take_profit_ticks,
    get_min_window_length,
    get_quote_asset,
    get_spend_fraction,
)


# leaves room for the 11-character nonce and side letter within 36 characters
MAX_CLIENT_ORDER_PREFIX_LEN = 20


@dataclass(frozen=True)
class ScalperConfig:
    base_asset: str
    quote_asset: str
    channel_length_multiple: float = 1.0
    spend_fraction: Decimal = Decimal("0.1")
    min_take_profit_pips: int = 1
    min_take_profit_ticks: int = 1
    min_window_length: int = 3
    even_distribution_min_ratio: float = 0.4
    max_buffer_length: int = 0
    max_round_trips: int = 0
    client_order_prefix: str = "csx"

    @property
    def symbol(self) -> str:
        return pair_symbol(self.base_asset, self.quote_asset)


def load_config(settings: SettingsProvider) -> ScalperConfig:
    """Build a :class:`ScalperConfig` from ``settings``.

    Raises ``ValueError`` for values the strategy cannot run with.
    """

    multiple = get_channel_length_multiple(settings)
    if math.isnan(multiple) or multiple < 1:
        raise ValueError(f"CHANNEL_LENGTH_MULTIPLE must be >= 1, got {multiple}")

    spend_fraction = to_decimal(get_spend_fraction(settings))
    if not Decimal("0") < spend_fraction <= Decimal("1"):
        raise ValueError(
            f"SPEND_FRACTION_PER_TRADE must be within (0, 1], got {spend_fraction}"
        )

    ratio = get_even_distribution_min_ratio(settings)
    if not 0 <= ratio <= 1:
        raise ValueError(f"EVEN_DISTRIBUTION_MIN_RATIO must be within [0, 1], got {ratio}")

    prefix = get_client_order_prefix(settings).strip()
    if not prefix.isalnum():
        raise ValueError(f"CLIENT_ORDER_PREFIX must be alphanumeric, got {prefix!r}")
    if len(prefix) > MAX_CLIENT_ORDER_PREFIX_LEN:
        raise ValueError(
            f"CLIENT_ORDER_PREFIX must be at most {MAX_CLIENT_ORDER_PREFIX_LEN} characters, got {len(prefix)}"
        )

    return ScalperConfig(
        base_asset=get_base_asset(settings),
        quote_asset=get_quote_asset(settings),
        channel_length_multiple=float(multiple),
        spend_fraction=spend_fraction,
        min_take_profit_pips=max(get_min_take_profit_pips(settings), 1),
        min_take_profit_ticks=max(get_min_take_profit_ticks(settings), 1),
        min_window_length=max(get_min_window_length(settings), 1),
        even_distribution_min_ratio=float(ratio),
        max_buffer_length=max(get_max_buffer_length(settings), 0),
        max_round_trips=max(get_max_round_trips(settings), 0),
        client_order_prefix=prefix,
    )


__all__ = ["MAX_CLIENT_ORDER_PREFIX_LEN", "ScalperConfig", "load_config"]
