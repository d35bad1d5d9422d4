"""Channel scalper engine.

All mutable state lives in :class:`EngineState` and is only touched by the
handlers of :class:`ScalperEngine`. The caller must deliver events one at a
time (see ``core.application.execution``); no locking happens here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict

from common.precision import round_to_tick
from core.domain.models.events import BalanceUpdate, ExecutionReport, RequestFailed, TradeTick
from core.domain.models.market import FeeSchedule, MarketRules
from core.domain.models.orders import (
    CancelRequest,
    ExitTarget,
    OrderRequest,
    OrderSide,
    TrackedOrder,
)
from core.ports.broker import OrderGateway
from strategies.channel_scalper.channel_bounds import Channel, entry_prices
from strategies.channel_scalper.client_order_id import encode_client_order_id
from strategies.channel_scalper.config.env_loader import ScalperConfig
from strategies.channel_scalper.liquidation import (
    confirm_entry_exit_qty,
    liquidation_price,
    take_profit_pips,
)
from strategies.channel_scalper.price_buffer import ChannelSizer, EntryFlags, PriceBuffer
from strategies.channel_scalper.reconciliation import (
    DesiredOrder,
    LiquidationOrder,
    OrderBookMirror,
)
from strategies.channel_scalper.sizing import can_afford, entry_quantity, format_quantity

logger = logging.getLogger("bot.strategy.channel_scalper")

STRATEGY_NAME = "channel-scalper"


@dataclass
class EngineState:
    rules: MarketRules
    fees: FeeSchedule
    orders: OrderBookMirror
    buffer: PriceBuffer = field(default_factory=PriceBuffer)
    channel: Channel | None = None
    flags: EntryFlags = field(default_factory=EntryFlags)
    round_trips: int = 0
    entries_halted: bool = False


class ScalperEngine:
    def __init__(self, config: ScalperConfig, state: EngineState, gateway: OrderGateway) -> None:
        self.config = config
        self.state = state
        self.gateway = gateway
        self.sizer = ChannelSizer(config, state.rules, state.fees)

    @property
    def symbol(self) -> str:
        return self.state.rules.symbol

    # ------------------------------------------------------------------
    # Event handlers
    def handle(self, event: Any) -> None:
        """Dispatch one queued event to its handler."""

        if isinstance(event, TradeTick):
            if event.symbol == self.symbol:
                self.on_trade(event.price)
        elif isinstance(event, (BalanceUpdate, ExecutionReport)):
            self.on_account_event(event)
        elif isinstance(event, RequestFailed):
            self.on_request_failed(event)
        else:
            logger.debug("Ignoring unknown event %r", event)

    def on_trade(self, price: Decimal) -> None:
        state = self.state
        state.buffer.add(price)
        scan = self.sizer.scan(state.buffer)
        state.channel = scan.channel
        state.flags = scan.flags

        if state.flags.any:
            self.enter_positions()
        for side in (OrderSide.BUY, OrderSide.SELL):
            if not state.flags.for_side(side):
                for order in state.orders.cancel_side(side):
                    self._cancel(order)

    def on_account_event(self, event: BalanceUpdate | ExecutionReport) -> None:
        if isinstance(event, BalanceUpdate):
            self._apply_balances(event.balances)
            return
        liquidation = self.state.orders.apply_execution_report(event)
        if liquidation is not None:
            self._liquidate(liquidation)

    def on_request_failed(self, event: RequestFailed) -> None:
        if event.kind == "submit":
            self.state.orders.submission_failed(event.client_order_id)
        elif event.kind == "cancel":
            self.state.orders.cancel_failed(event.client_order_id, event.order_id, event.code)

    # ------------------------------------------------------------------
    # Decisions
    def desired_orders(self) -> Dict[OrderSide, DesiredOrder | None]:
        """Entry orders for the current channel, ``None`` for unsizable sides."""

        state = self.state
        desired: Dict[OrderSide, DesiredOrder | None] = {OrderSide.BUY: None, OrderSide.SELL: None}
        if state.channel is None:
            return desired

        rules = state.rules
        buy_price, sell_price = entry_prices(state.channel, rules)
        for side, price in ((OrderSide.BUY, buy_price), (OrderSide.SELL, sell_price)):
            quantity = entry_quantity(side, price, rules, self.config.spend_fraction)
            exit_price = liquidation_price(
                side,
                quantity,
                price,
                fees=state.fees,
                rules=rules,
                min_profit=take_profit_pips(side, rules, self.config.min_take_profit_pips),
                min_ticks=self.config.min_take_profit_ticks,
            )
            if exit_price is None:
                continue
            confirmed = confirm_entry_exit_qty(
                price, exit_price, quantity, side, fees=state.fees, rules=rules
            )
            entry_qty = confirmed.entry_qty
            if not can_afford(side, entry_qty, price, rules):
                entry_qty = Decimal("0")
            desired[side] = DesiredOrder(
                side=side,
                price=price,
                quantity=entry_qty,
                exit=ExitTarget(exit_price=exit_price, exit_qty=confirmed.exit_qty),
            )
        return desired

    def enter_positions(self) -> None:
        state = self.state
        desired = self.desired_orders()
        plan = state.orders.plan(desired[OrderSide.BUY], desired[OrderSide.SELL])
        for order in plan.cancel:
            self._cancel(order)
        for side, order in plan.reuse.items():
            logger.debug("reusing %s order %s", side.value, order.client_order_id)

        if state.entries_halted:
            return

        current = state.buffer.current
        for side in (OrderSide.BUY, OrderSide.SELL):
            wanted = desired[side]
            if wanted is None or not state.flags.for_side(side) or not plan.needs_entry(side):
                continue
            if not self._is_submittable(wanted, current):
                continue
            self._submit_entry(wanted)

    def _is_submittable(self, wanted: DesiredOrder, current: Decimal | None) -> bool:
        if wanted.quantity <= 0 or current is None:
            return False
        if wanted.price < self.state.rules.quote.min_price:
            return False
        if wanted.side is OrderSide.BUY:
            return wanted.price < current
        return wanted.price > current

    # ------------------------------------------------------------------
    # Requests
    def _submit_entry(self, wanted: DesiredOrder) -> None:
        cid = encode_client_order_id(
            self.config.client_order_prefix,
            wanted.side,
            wanted.exit.exit_price,
            wanted.exit.exit_qty,
        )
        self.state.orders.track_submission(
            TrackedOrder(
                client_order_id=cid,
                side=wanted.side,
                price=wanted.price,
                exit=wanted.exit,
            )
        )
        request = OrderRequest(
            symbol=self.symbol,
            side=wanted.side,
            quantity=wanted.quantity,
            price=wanted.price,
            client_order_id=cid,
        )
        logger.info(
            "entry %s qty=%s price=%s exit=%s cid=%s",
            wanted.side.value,
            wanted.quantity,
            wanted.price,
            wanted.exit.exit_price,
            cid,
        )
        self.gateway.submit(request)

    def _cancel(self, order: TrackedOrder) -> None:
        logger.info("cancel %s order %s at %s", order.side.value, order.client_order_id, order.price)
        self.gateway.cancel(
            CancelRequest(
                symbol=self.symbol,
                order_id=order.order_id,
                client_order_id=order.client_order_id,
            )
        )

    def _liquidate(self, liquidation: LiquidationOrder) -> None:
        state = self.state
        rules = state.rules
        price = round_to_tick(liquidation.price, rules.tick_size, side=liquidation.side.value)
        quantity = format_quantity(liquidation.quantity, price, rules)
        request = OrderRequest(
            symbol=self.symbol,
            side=liquidation.side,
            quantity=quantity,
            price=price,
        )
        logger.info(
            "liquidate %s qty=%s price=%s after fill of %s",
            liquidation.side.value,
            quantity,
            price,
            liquidation.source_client_order_id,
        )
        self.gateway.submit(request)

        state.round_trips += 1
        cap = self.config.max_round_trips
        if cap and state.round_trips >= cap and not state.entries_halted:
            state.entries_halted = True
            logger.warning("Round trip cap %d reached, no new entries will be placed", cap)

    def _apply_balances(self, balances: Dict[str, Decimal]) -> None:
        rules = self.state.rules
        for asset in (rules.base, rules.quote):
            if asset.name in balances:
                asset.balance = balances[asset.name]


__all__ = ["EngineState", "ScalperEngine", "STRATEGY_NAME"]
