"""Startup snapshot: market rules, fees, balances and resting orders.

Everything here is fatal. The engine is only built once every snapshot call
succeeded, so trading never starts on partial rules.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Mapping

from common.precision import to_decimal
from core.domain.models.market import AssetSpec, FeeSchedule, MarketRules
from core.ports.broker import BrokerPort
from strategies.channel_scalper.config.env_loader import ScalperConfig
from strategies.channel_scalper.engine import EngineState
from strategies.channel_scalper.price_buffer import PriceBuffer
from strategies.channel_scalper.reconciliation import OrderBookMirror

logger = logging.getLogger("bot.exec.bootstrap")


class StartupError(RuntimeError):
    """The startup snapshot could not be completed."""


def _filter(filters: Mapping[str, Mapping[str, Any]], *names: str) -> Mapping[str, Any]:
    for name in names:
        if name in filters:
            return filters[name]
    raise StartupError(f"Missing {' / '.join(names)} filter")


def build_rules(
    symbol_info: Mapping[str, Any],
    base_asset: str,
    quote_asset: str,
    balances: Mapping[str, Decimal] | None = None,
) -> MarketRules:
    """Build :class:`MarketRules` from a ``get_symbol_info`` payload."""

    if not symbol_info:
        raise StartupError("Empty symbol info")
    symbol = str(symbol_info.get("symbol", ""))
    filters = {
        f.get("filterType"): f for f in symbol_info.get("filters", []) if f.get("filterType")
    }
    try:
        lot = _filter(filters, "LOT_SIZE")
        price = _filter(filters, "PRICE_FILTER")
        notional = _filter(filters, "MIN_NOTIONAL", "NOTIONAL")
        base = AssetSpec(
            name=base_asset,
            precision=int(symbol_info["baseAssetPrecision"]),
            min_qty=to_decimal(lot["minQty"]),
            max_qty=to_decimal(lot["maxQty"]),
            step_size=to_decimal(lot["stepSize"]),
        )
        quote = AssetSpec(
            name=quote_asset,
            precision=int(
                symbol_info.get("quoteAssetPrecision", symbol_info.get("quotePrecision"))
            ),
            min_price=to_decimal(price["minPrice"]),
            max_price=to_decimal(price["maxPrice"]),
            tick_size=to_decimal(price["tickSize"]),
        )
        min_notional = to_decimal(notional["minNotional"])
    except (KeyError, TypeError, ValueError) as exc:
        raise StartupError(f"Incomplete symbol info for {symbol}: {exc}") from exc

    if base.step_size <= 0 or quote.tick_size <= 0:
        raise StartupError(f"Invalid tick/step size for {symbol}")

    if balances is not None:
        base.balance = balances.get(base_asset, Decimal("0"))
        quote.balance = balances.get(quote_asset, Decimal("0"))
    return MarketRules(symbol=symbol, base=base, quote=quote, min_notional=min_notional)


def build_fees(fee: Mapping[str, Any]) -> FeeSchedule:
    """Convert Binance commission fractions into a percent :class:`FeeSchedule`."""

    try:
        maker = to_decimal(fee["maker"]) * 100
        taker = to_decimal(fee["taker"]) * 100
    except (KeyError, TypeError, ValueError) as exc:
        raise StartupError(f"Incomplete fee schedule: {exc}") from exc
    if maker < 0 or maker >= 100:
        raise StartupError(f"Maker fee out of range: {maker}%")
    return FeeSchedule(maker=maker, taker=taker)


def bootstrap(broker: BrokerPort, config: ScalperConfig) -> EngineState:
    """Query the exchange and return the initial :class:`EngineState`."""

    symbol = config.symbol
    try:
        info = broker.get_symbol_info(symbol)
        fee = broker.get_trade_fee(symbol)
        balances = broker.get_balances()
        open_orders = broker.open_orders(symbol)
    except StartupError:
        raise
    except Exception as exc:
        raise StartupError(f"Startup snapshot for {symbol} failed: {exc}") from exc

    rules = build_rules(info, config.base_asset, config.quote_asset, balances)
    fees = build_fees(fee)
    orders = OrderBookMirror(rules.symbol, config.client_order_prefix)
    orders.seed(open_orders)

    logger.info(
        "Rules %s: tick=%s step=%s minNotional=%s maker=%s%% balances %s=%s %s=%s",
        rules.symbol,
        rules.tick_size,
        rules.step_size,
        rules.min_notional,
        fees.maker,
        rules.base.name,
        rules.base.balance,
        rules.quote.name,
        rules.quote.balance,
    )
    return EngineState(
        rules=rules,
        fees=fees,
        orders=orders,
        buffer=PriceBuffer(config.max_buffer_length),
    )


__all__ = ["StartupError", "bootstrap", "build_fees", "build_rules"]
