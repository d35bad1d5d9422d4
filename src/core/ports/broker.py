"""Broker port definitions."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Protocol

from core.domain.models.orders import CancelRequest, OrderRequest


class BrokerPort(Protocol):
    """Blocking spot exchange client used at startup and by the dispatcher."""

    # ------------------------------------------------------------------
    # Snapshots
    def get_symbol_info(self, symbol: str) -> dict[str, Any]:
        """Return precision and filters for ``symbol``."""

        ...

    def get_trade_fee(self, symbol: str) -> dict[str, Any]:
        """Return ``{"maker": ..., "taker": ...}`` as fractions (``0.001``)."""

        ...

    def get_balances(self) -> dict[str, Decimal]:
        """Return the free balance per asset."""

        ...

    def open_orders(self, symbol: str) -> list[dict[str, Any]]:
        """Return the list of open orders for ``symbol``."""

        ...

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
        """Place a LIMIT order acknowledged with ``newOrderRespType=ACK``."""

        ...

    def cancel_order(
        self,
        symbol: str,
        orderId: int | None = None,
        clientOrderId: str | None = None,
    ) -> dict[str, Any]:
        """Cancel an order by id or client id."""

        ...


class OrderGateway(Protocol):
    """Fire-and-forget order transport used by the engine.

    Implementations must return immediately; failures are reported back as
    :class:`~core.domain.models.events.RequestFailed` events.
    """

    def submit(self, request: OrderRequest) -> None:
        ...

    def cancel(self, request: CancelRequest) -> None:
        ...
