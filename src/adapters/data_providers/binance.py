"""Binance spot stream adapter."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from binance import ThreadedWebsocketManager

from config.settings import Settings
from core.domain.models.events import BalanceUpdate, ExecutionReport, TradeTick
from core.domain.models.orders import OrderSide
from core.ports.market_data import AccountEvent, MarketStreamPort
from common.precision import to_decimal
from common.symbols import normalize_symbol

logger = logging.getLogger(__name__)


def _is_error(msg: Mapping[str, Any]) -> bool:
    if msg.get("e") == "error":
        logger.warning("Stream error: %s", msg.get("m") or msg.get("type") or msg)
        return True
    return False


def parse_trade_message(msg: Mapping[str, Any]) -> TradeTick | None:
    """Turn an ``aggTrade`` payload into a :class:`TradeTick`."""

    if not isinstance(msg, Mapping) or _is_error(msg):
        return None
    data = msg.get("data", msg)
    if data.get("e") != "aggTrade":
        logger.debug("Ignoring trade stream message %s", data.get("e"))
        return None
    try:
        return TradeTick(symbol=str(data["s"]), price=to_decimal(data["p"]))
    except (KeyError, ValueError) as exc:
        logger.warning("Malformed aggTrade message %s: %s", data, exc)
        return None


def parse_execution_report(data: Mapping[str, Any]) -> ExecutionReport:
    order_id = data.get("i")
    return ExecutionReport(
        symbol=str(data.get("s", "")),
        order_id=int(order_id) if order_id is not None else None,
        client_order_id=str(data.get("c") or ""),
        status=str(data.get("X", "")).upper(),
        side=OrderSide(str(data.get("S", "")).upper()),
        price=to_decimal(data.get("p")),
        stop_price=to_decimal(data.get("P")),
        filled_qty=to_decimal(data.get("z")),
        order_type=str(data.get("o", "LIMIT")),
        execution_type=str(data.get("x", "")),
        orig_client_order_id=str(data.get("C") or ""),
    )


def parse_user_message(msg: Mapping[str, Any]) -> AccountEvent | None:
    """Turn a user data stream payload into an account event.

    ``outboundAccountPosition`` carries the free balance of every asset that
    changed; ``balanceUpdate`` only carries deltas and is dropped.
    """

    if not isinstance(msg, Mapping) or _is_error(msg):
        return None
    event_type = msg.get("e")
    try:
        if event_type == "executionReport":
            return parse_execution_report(msg)
        if event_type == "outboundAccountPosition":
            return BalanceUpdate(
                balances={str(b["a"]): to_decimal(b["f"]) for b in msg.get("B", [])}
            )
    except (KeyError, ValueError) as exc:
        logger.warning("Malformed %s message: %s", event_type, exc)
        return None
    logger.debug("Ignoring user stream message %s", event_type)
    return None


class BinanceStreams(MarketStreamPort):
    """Aggregated trade and user data streams over ``ThreadedWebsocketManager``."""

    def __init__(self, settings: Settings, manager: ThreadedWebsocketManager | None = None) -> None:
        self._settings = settings
        self._twm = manager or ThreadedWebsocketManager(
            api_key=settings.BINANCE_API_KEY,
            api_secret=settings.BINANCE_API_SECRET,
            testnet=settings.BINANCE_TESTNET,
        )
        self._started = False
        self._sockets: list[str] = []

    def _ensure_started(self) -> None:
        if not self._started:
            self._twm.start()
            self._started = True

    def start_trades(self, symbol: str, callback: Callable[[TradeTick], None]) -> None:
        sym = normalize_symbol(symbol)

        def _on_message(msg: Mapping[str, Any]) -> None:
            tick = parse_trade_message(msg)
            if tick is not None:
                callback(tick)

        self._ensure_started()
        self._sockets.append(self._twm.start_aggtrade_socket(callback=_on_message, symbol=sym))
        logger.info("Subscribed to %s aggregated trades", sym)

    def start_account(self, callback: Callable[[AccountEvent], None]) -> None:
        def _on_message(msg: Mapping[str, Any]) -> None:
            event = parse_user_message(msg)
            if event is not None:
                callback(event)

        self._ensure_started()
        self._sockets.append(self._twm.start_user_socket(callback=_on_message))
        logger.info("Subscribed to user data stream")

    def stop(self) -> None:
        if self._started:
            self._twm.stop()
            self._started = False
            self._sockets.clear()


def make_market_data(settings: Settings) -> MarketStreamPort:
    """Factory for a :class:`MarketStreamPort` bound to Binance."""

    return BinanceStreams(settings)
