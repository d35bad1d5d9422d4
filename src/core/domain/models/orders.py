from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from common.precision import format_decimal


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @property
    def opposite(self) -> "OrderSide":
        return OrderSide.SELL if self is OrderSide.BUY else OrderSide.BUY


class OrderState(str, Enum):
    """Local lifecycle of a mirrored order.

    ``CANCEL_PENDING`` is set optimistically when a cancel request is issued
    and is only left when the next execution report (or a failed cancel)
    arrives. Orders that leave the book are marked ``CLOSED`` and dropped
    from the mirror.
    """

    OPEN = "OPEN"
    CANCEL_PENDING = "CANCEL_PENDING"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class ExitTarget:
    """Take-profit order to place once the entry order fills."""

    exit_price: Decimal
    exit_qty: Decimal


@dataclass
class TrackedOrder:
    client_order_id: str
    side: OrderSide
    price: Decimal
    status: str = "NEW"
    order_id: int | None = None
    stop_price: Decimal = Decimal("0")
    state: OrderState = OrderState.OPEN
    exit: ExitTarget | None = None


@dataclass(frozen=True)
class OrderRequest:
    """LIMIT order ready to be handed to the broker."""

    symbol: str
    side: OrderSide
    quantity: Decimal
    price: Decimal
    client_order_id: str | None = None
    stop_price: Decimal | None = None
    order_type: str = "LIMIT"
    time_in_force: str = "GTC"

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "symbol": self.symbol,
            "side": self.side.value,
            "type": self.order_type,
            "quantity": format_decimal(self.quantity),
            "price": format_decimal(self.price),
            "timeInForce": self.time_in_force,
            "newOrderRespType": "ACK",
        }
        if self.client_order_id:
            payload["newClientOrderId"] = self.client_order_id
        if self.stop_price is not None:
            payload["stopPrice"] = format_decimal(self.stop_price)
        return payload


@dataclass(frozen=True)
class CancelRequest:
    symbol: str
    order_id: int | None = None
    client_order_id: str | None = None
