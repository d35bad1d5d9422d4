"""Binance spot broker adapter."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict

from binance.client import Client

from config.settings import Settings
from core.ports.broker import BrokerPort
from common.precision import format_decimal, round_to_step, round_to_tick, to_decimal
from common.rounding_diag import build_order_diag, emit_rounding_diag
from common.utils import sanitize_client_order_id
from common.symbols import normalize_symbol as _normalize_symbol

logger = logging.getLogger(__name__)


def _to_binance_symbol(sym: str) -> str:
    return _normalize_symbol(sym)


def symbol_filters(info: dict[str, Any]) -> Dict[str, dict[str, Any]]:
    """Index the ``filters`` list of a ``get_symbol_info`` response by type."""

    return {f.get("filterType"): f for f in info.get("filters", []) if f.get("filterType")}


class BinanceSpotBroker(BrokerPort):
    """Broker implementation using the Binance spot REST API."""

    def __init__(self, settings: Settings, client: Client | None = None) -> None:
        self._settings = settings
        timeout = settings.HTTP_TIMEOUT if settings.HTTP_TIMEOUT else 30
        self._client = client or Client(
            api_key=settings.BINANCE_API_KEY,
            api_secret=settings.BINANCE_API_SECRET,
            testnet=settings.BINANCE_TESTNET,
            requests_params={"timeout": timeout},
        )
        self._filters: Dict[str, Dict[str, dict[str, Any]]] = {}

    @property
    def client(self) -> Client:
        return self._client

    def normalize_symbol(self, symbol: str) -> str:
        """Return ``symbol`` uppercased without the ``/`` character."""
        return _normalize_symbol(symbol)

    # ------------------------------------------------------------------
    # Snapshots
    def get_symbol_info(self, symbol: str) -> dict[str, Any]:
        sym = _to_binance_symbol(symbol)
        try:
            info = self._client.get_symbol_info(sym)
        except Exception as exc:  # pragma: no cover - network failures
            logger.error("Failed to fetch symbol info for %s: %s", sym, exc)
            raise
        if not info:
            raise ValueError(f"Symbol {sym} is not listed")
        self._filters[sym] = symbol_filters(info)
        return info

    def get_trade_fee(self, symbol: str) -> dict[str, Any]:
        """Return maker/taker commission as fractions.

        ``/sapi/v1/asset/tradeFee`` answers with a list of
        ``{"symbol", "makerCommission", "takerCommission"}`` entries.
        """

        sym = _to_binance_symbol(symbol)
        try:
            data = self._client.get_trade_fee(symbol=sym)
        except Exception as exc:  # pragma: no cover - network failures
            logger.error("Failed to fetch trade fee for %s: %s", sym, exc)
            raise
        entries = data if isinstance(data, list) else (data or {}).get("tradeFee", [data])
        for entry in entries or []:
            if entry and entry.get("symbol", sym) == sym:
                maker = entry.get("makerCommission", entry.get("maker"))
                taker = entry.get("takerCommission", entry.get("taker"))
                if maker is None or taker is None:
                    break
                return {"maker": to_decimal(maker), "taker": to_decimal(taker)}
        raise ValueError(f"No trade fee returned for {sym}")

    def get_balances(self) -> dict[str, Decimal]:
        try:
            account = self._client.get_account()
        except Exception as exc:  # pragma: no cover - network failures
            logger.error("Failed to fetch account balances: %s", exc)
            raise
        return {
            str(bal.get("asset")): to_decimal(bal.get("free"))
            for bal in account.get("balances", [])
            if bal.get("asset")
        }

    def open_orders(self, symbol: str) -> list[Any]:
        try:
            return self._client.get_open_orders(symbol=_to_binance_symbol(symbol))  # type: ignore[return-value]
        except Exception as exc:  # pragma: no cover - network failures
            logger.error("Failed to fetch open orders: %s", exc)
            raise

    # ------------------------------------------------------------------
    # Orders
    def place_limit(
        self,
        symbol: str,
        side: str,
        quantity: Decimal,
        price: Decimal,
        clientOrderId: str | None = None,
        stopPrice: Decimal | None = None,
        timeInForce: str = "GTC",
    ) -> dict[str, Any]:
        """Place a LIMIT order.

        Price and quantity are snapped to the cached filters when they are
        known; callers are expected to send values that are already legal.
        """

        sym = _to_binance_symbol(symbol)
        side_norm = (side or "").upper()
        tick, step = self._tick_and_step(sym)
        price_dec = round_to_tick(price, tick, side=side_norm) if tick else to_decimal(price)
        qty_dec = round_to_step(quantity, step) if step else to_decimal(quantity)
        payload: dict[str, Any] = {
            "symbol": sym,
            "side": side_norm,
            "type": "LIMIT",
            "price": format_decimal(price_dec),
            "quantity": format_decimal(qty_dec),
            "timeInForce": timeInForce,
            "newOrderRespType": "ACK",
        }
        if clientOrderId:
            payload["newClientOrderId"] = sanitize_client_order_id(clientOrderId)
        if stopPrice is not None and to_decimal(stopPrice) > 0:
            payload["stopPrice"] = format_decimal(to_decimal(stopPrice))
        emit_rounding_diag(
            build_order_diag(payload, tick_size=tick, step_size=step), logger=logger
        )
        try:
            return self._client.create_order(**payload)
        except Exception as exc:
            logger.error("Failed to place limit order %s: %s", payload, exc)
            raise

    def cancel_order(
        self,
        symbol: str,
        orderId: int | None = None,
        clientOrderId: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"symbol": _to_binance_symbol(symbol)}
        if orderId is not None:
            params["orderId"] = orderId
        if clientOrderId is not None:
            params["origClientOrderId"] = sanitize_client_order_id(clientOrderId)
        try:
            return self._client.cancel_order(**params)
        except Exception as exc:
            logger.error("Failed to cancel order %s: %s", params, exc)
            raise

    # ------------------------------------------------------------------
    # Helpers
    def _tick_and_step(self, sym: str) -> tuple[Decimal | None, Decimal | None]:
        filters = self._filters.get(sym)
        if not filters:
            return None, None
        tick = filters.get("PRICE_FILTER", {}).get("tickSize")
        step = filters.get("LOT_SIZE", {}).get("stepSize")
        return (
            to_decimal(tick) if tick else None,
            to_decimal(step) if step else None,
        )


def make_broker(settings: Settings) -> BrokerPort:
    """Factory for a :class:`BrokerPort` bound to Binance spot."""

    return BinanceSpotBroker(settings)
