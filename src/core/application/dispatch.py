"""Fire-and-forget order transport.

Requests run on a small thread pool so the event loop never blocks on REST
round trips. Outcomes come back as events: nothing here touches engine
state.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from binance.exceptions import BinanceAPIException, BinanceOrderException
from requests.exceptions import RequestException

from core.domain.models.events import RequestFailed
from core.domain.models.orders import CancelRequest, OrderRequest
from core.ports.broker import BrokerPort, OrderGateway

logger = logging.getLogger("bot.exec.dispatch")

EventSink = Callable[[Any], None]


def describe_error(exc: BaseException) -> str:
    """One-line description of a broker failure."""

    if isinstance(exc, BinanceAPIException):
        return f"binance code={exc.code} msg={exc.message}"
    if isinstance(exc, BinanceOrderException):
        return f"binance order code={exc.code} msg={exc.message}"
    if isinstance(exc, RequestException):
        return f"transport {type(exc).__name__}: {exc}"
    return f"{type(exc).__name__}: {exc}"


def error_code(exc: BaseException) -> int | None:
    if isinstance(exc, (BinanceAPIException, BinanceOrderException)):
        try:
            return int(exc.code)
        except (TypeError, ValueError):
            return None
    return None


class OrderDispatcher(OrderGateway):
    """Submit and cancel orders through ``broker`` without waiting."""

    def __init__(self, broker: BrokerPort, sink: EventSink, max_workers: int = 4) -> None:
        self._broker = broker
        self._sink = sink
        self._pool = ThreadPoolExecutor(
            max_workers=max(int(max_workers), 1), thread_name_prefix="order"
        )

    def submit(self, request: OrderRequest) -> None:
        future = self._pool.submit(
            self._broker.place_limit,
            request.symbol,
            request.side.value,
            request.quantity,
            request.price,
            clientOrderId=request.client_order_id,
            stopPrice=request.stop_price,
            timeInForce=request.time_in_force,
        )
        future.add_done_callback(
            lambda fut: self._on_done(
                fut, "submit", request.client_order_id, None, request.to_payload()
            )
        )

    def cancel(self, request: CancelRequest) -> None:
        future = self._pool.submit(
            self._broker.cancel_order,
            request.symbol,
            orderId=request.order_id,
            clientOrderId=request.client_order_id,
        )
        future.add_done_callback(
            lambda fut: self._on_done(
                fut,
                "cancel",
                request.client_order_id,
                request.order_id,
                {"symbol": request.symbol, "orderId": request.order_id},
            )
        )

    def _on_done(
        self,
        future: Future,
        kind: str,
        client_order_id: str | None,
        order_id: int | None,
        params: dict[str, Any],
    ) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is None:
            logger.debug("%s acknowledged cid=%s", kind, client_order_id)
            return
        if isinstance(exc, (BinanceAPIException, BinanceOrderException)):
            logger.error("%s rejected cid=%s params=%s: %s", kind, client_order_id, params, describe_error(exc))
        else:
            logger.error("%s failed cid=%s: %s", kind, client_order_id, describe_error(exc))
        self._sink(
            RequestFailed(
                kind=kind,
                client_order_id=client_order_id,
                order_id=order_id,
                error=describe_error(exc),
                code=error_code(exc),
            )
        )

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)


__all__ = ["OrderDispatcher", "describe_error", "error_code"]
