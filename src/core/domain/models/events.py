"""Events funnelled into the engine's single consumer queue."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict

from core.domain.models.orders import OrderSide


@dataclass(frozen=True)
class TradeTick:
    symbol: str
    price: Decimal


@dataclass(frozen=True)
class BalanceUpdate:
    balances: Dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class ExecutionReport:
    symbol: str
    order_id: int | None
    client_order_id: str
    status: str
    side: OrderSide
    price: Decimal
    stop_price: Decimal = Decimal("0")
    filled_qty: Decimal = Decimal("0")
    order_type: str = "LIMIT"
    execution_type: str = ""
    orig_client_order_id: str = ""


@dataclass(frozen=True)
class RequestFailed:
    """An order or cancel request the exchange did not accept."""

    kind: str  # "submit" or "cancel"
    client_order_id: str | None
    order_id: int | None
    error: str
    code: int | None = None  # exchange error code, None for transport errors
