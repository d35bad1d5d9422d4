"""Local mirror of the scalper's resting entry orders.

The mirror is the only owner of order state. It is driven by two inputs:

* execution reports from the exchange, which are authoritative;
* local decisions (submissions and cancellations), which are applied
  optimistically and corrected by the next report or by a failed request.

Only orders whose client id starts with the configured prefix are tracked.
Liquidation orders are placed without that prefix and are never monitored.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping

from common.precision import to_decimal
from core.domain.models.events import ExecutionReport
from core.domain.models.orders import ExitTarget, OrderSide, OrderState, TrackedOrder
from strategies.channel_scalper.client_order_id import decode_client_order_id

logger = logging.getLogger("bot.strategy.channel_scalper.reconcile")

OPEN_STATUSES = {"NEW"}
TERMINAL_STATUSES = {"FILLED", "CANCELED", "REJECTED", "EXPIRED", "EXPIRED_IN_MATCH"}

# Binance -2011 "Unknown order sent."
UNKNOWN_ORDER = -2011

LIQUIDATED_HISTORY = 1024


@dataclass(frozen=True)
class DesiredOrder:
    """The entry order the engine would like resting on one side."""

    side: OrderSide
    price: Decimal
    quantity: Decimal
    exit: ExitTarget


@dataclass(frozen=True)
class LiquidationOrder:
    """Take-profit order to submit after ``source_client_order_id`` filled."""

    side: OrderSide
    price: Decimal
    quantity: Decimal
    source_client_order_id: str


@dataclass
class ReconcilePlan:
    cancel: List[TrackedOrder] = field(default_factory=list)
    reuse: Dict[OrderSide, TrackedOrder] = field(default_factory=dict)

    def needs_entry(self, side: OrderSide) -> bool:
        return side not in self.reuse


def _is_reusable(order: TrackedOrder, desired: DesiredOrder | None) -> bool:
    if desired is None or order.exit is None:
        return False
    return order.price == desired.price and order.exit.exit_price == desired.exit.exit_price


class OrderBookMirror:
    def __init__(self, symbol: str, prefix: str, liquidated_history: int = LIQUIDATED_HISTORY) -> None:
        self.symbol = symbol
        self.prefix = prefix
        self._orders: Dict[str, TrackedOrder] = {}
        self.exits: Dict[str, ExitTarget] = {}
        # recently liquidated fills, oldest first
        self._liquidated: OrderedDict[str, None] = OrderedDict()
        self._liquidated_history = max(int(liquidated_history), 1)

    # ------------------------------------------------------------------
    # Queries
    def is_monitored(self, client_order_id: str | None) -> bool:
        return bool(client_order_id) and client_order_id.startswith(self.prefix)

    def resolve_exit(self, client_order_id: str) -> ExitTarget | None:
        """Return the exit for ``client_order_id`` from the side-table or the id."""
        target = self.exits.get(client_order_id)
        if target is not None:
            return target
        return decode_client_order_id(client_order_id, self.prefix)

    def get(self, client_order_id: str) -> TrackedOrder | None:
        return self._orders.get(client_order_id)

    def open_orders(self, side: OrderSide | None = None) -> List[TrackedOrder]:
        """Orders still resting from the bot's point of view.

        ``CANCEL_PENDING`` orders are excluded so a cycle never acts twice on
        an order it already asked to cancel.
        """
        return [
            order
            for order in self._orders.values()
            if order.state is OrderState.OPEN and (side is None or order.side is side)
        ]

    def __len__(self) -> int:
        return len(self._orders)

    # ------------------------------------------------------------------
    # Boot
    def seed(self, open_orders: Iterable[Mapping[str, Any]]) -> int:
        """Track the bot's own ``NEW`` orders found on the exchange at startup."""

        seeded = 0
        for raw in open_orders or []:
            if str(raw.get("status", "")).upper() not in OPEN_STATUSES:
                continue
            cid = str(raw.get("clientOrderId", ""))
            if not self.is_monitored(cid):
                continue
            target = self.resolve_exit(cid)
            if target is None:
                logger.warning("Skipping open order with undecodable client id %s", cid)
                continue
            order_id = raw.get("orderId")
            self._orders[cid] = TrackedOrder(
                client_order_id=cid,
                side=OrderSide(str(raw.get("side", "")).upper()),
                price=to_decimal(raw.get("price")),
                status="NEW",
                order_id=int(order_id) if order_id is not None else None,
                stop_price=to_decimal(raw.get("stopPrice")),
                exit=target,
            )
            self.exits[cid] = target
            seeded += 1
        logger.info("Seeded %d open orders for %s", seeded, self.symbol)
        return seeded

    # ------------------------------------------------------------------
    # Local decisions
    def track_submission(self, order: TrackedOrder) -> None:
        """Track an order right after it was handed to the broker."""

        if order.exit is not None:
            self.exits[order.client_order_id] = order.exit
        self._orders[order.client_order_id] = order

    def mark_cancel_pending(self, order: TrackedOrder) -> None:
        order.state = OrderState.CANCEL_PENDING

    def plan(
        self,
        desired_buy: DesiredOrder | None,
        desired_sell: DesiredOrder | None,
    ) -> ReconcilePlan:
        """Split open orders into reusable ones and ones to cancel.

        An order is reusable when its price and its take-profit price equal
        the desired order for its side. At most one order per side is
        reused; everything else is marked ``CANCEL_PENDING`` and returned
        for cancellation.
        """

        desired = {OrderSide.BUY: desired_buy, OrderSide.SELL: desired_sell}
        plan = ReconcilePlan()
        for order in self.open_orders():
            if order.side not in plan.reuse and _is_reusable(order, desired[order.side]):
                plan.reuse[order.side] = order
                continue
            self.mark_cancel_pending(order)
            plan.cancel.append(order)
        return plan

    def cancel_side(self, side: OrderSide) -> List[TrackedOrder]:
        """Mark every open order of ``side`` for cancellation and return them."""

        to_cancel = self.open_orders(side)
        for order in to_cancel:
            self.mark_cancel_pending(order)
        return to_cancel

    def submission_failed(self, client_order_id: str | None) -> None:
        if not client_order_id:
            return
        order = self._orders.get(client_order_id)
        if order is not None and order.order_id is None:
            self._close(client_order_id)
            self.exits.pop(client_order_id, None)
            logger.info("Forgot rejected order %s", client_order_id)

    def cancel_failed(
        self,
        client_order_id: str | None,
        order_id: int | None = None,
        code: int | None = None,
    ) -> None:
        """Undo a local cancel the exchange did not perform.

        ``UNKNOWN_ORDER`` means the order already left the book and its
        report was missed, so it is dropped instead of reopened. The exit
        target stays until a late report settles it.
        """

        order = self._find(client_order_id, order_id)
        if order is None or order.state is not OrderState.CANCEL_PENDING:
            return
        if code == UNKNOWN_ORDER:
            self._close(order.client_order_id)
            logger.warning("Cancel of %s hit an unknown order, dropping it", order.client_order_id)
            return
        order.state = OrderState.OPEN
        logger.info("Cancel failed, %s is open again", order.client_order_id)

    def _close(self, client_order_id: str) -> None:
        order = self._orders.pop(client_order_id, None)
        if order is not None:
            order.state = OrderState.CLOSED

    def _find(self, client_order_id: str | None, order_id: int | None) -> TrackedOrder | None:
        if client_order_id and client_order_id in self._orders:
            return self._orders[client_order_id]
        if order_id is not None:
            for order in self._orders.values():
                if order.order_id == order_id:
                    return order
        return None

    # ------------------------------------------------------------------
    # Exchange reports
    def tracked_client_id(self, report: ExecutionReport) -> str:
        """Return the client id the report refers to.

        Cancellations come back with a fresh ``clientOrderId`` and the
        bot's id in ``origClientOrderId``.
        """

        if self.is_monitored(report.orig_client_order_id):
            return report.orig_client_order_id
        return report.client_order_id

    def apply_execution_report(self, report: ExecutionReport) -> LiquidationOrder | None:
        """Update the mirror from ``report``.

        Returns the liquidation order to place when a monitored entry order
        has just filled. A fill is only liquidated once even if the report is
        delivered again.
        """

        if report.symbol != self.symbol:
            return None
        cid = self.tracked_client_id(report)
        if not self.is_monitored(cid):
            return None
        target = self.resolve_exit(cid)
        if target is None:
            logger.debug("Ignoring report for foreign client id %s", cid)
            self._close(cid)
            return None

        status = report.status.upper()
        liquidation: LiquidationOrder | None = None
        if status == "FILLED" and cid not in self._liquidated:
            self._remember_liquidated(cid)
            liquidation = LiquidationOrder(
                side=report.side.opposite,
                price=target.exit_price,
                quantity=target.exit_qty,
                source_client_order_id=cid,
            )

        self._upsert(cid, report, status, target)
        if status in TERMINAL_STATUSES:
            self.exits.pop(cid, None)
        return liquidation

    def _remember_liquidated(self, cid: str) -> None:
        self._liquidated[cid] = None
        while len(self._liquidated) > self._liquidated_history:
            self._liquidated.popitem(last=False)

    def _upsert(self, cid: str, report: ExecutionReport, status: str, target: ExitTarget) -> None:
        if status not in OPEN_STATUSES:
            self._close(cid)
            return
        existing = self._orders.get(cid)
        if existing is None:
            self._orders[cid] = TrackedOrder(
                client_order_id=cid,
                side=report.side,
                price=report.price,
                status=status,
                order_id=report.order_id,
                stop_price=report.stop_price,
                exit=target,
            )
            self.exits.setdefault(cid, target)
            return
        existing.status = status
        existing.price = report.price
        existing.stop_price = report.stop_price
        if report.order_id is not None:
            existing.order_id = report.order_id


__all__ = [
    "DesiredOrder",
    "LiquidationOrder",
    "OrderBookMirror",
    "ReconcilePlan",
]
