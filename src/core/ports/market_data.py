"""Market data port definition."""

from __future__ import annotations

from typing import Callable, Protocol, Union

from core.domain.models.events import BalanceUpdate, ExecutionReport, TradeTick

AccountEvent = Union[BalanceUpdate, ExecutionReport]


class MarketStreamPort(Protocol):
    """Push-based market and account streams.

    Callbacks may run on a background thread; consumers are expected to hand
    events over to a single thread before touching engine state.
    """

    def start_trades(self, symbol: str, callback: Callable[[TradeTick], None]) -> None:
        """Deliver each trade of ``symbol`` in arrival order."""

        ...

    def start_account(self, callback: Callable[[AccountEvent], None]) -> None:
        """Deliver balance updates and execution reports."""

        ...

    def stop(self) -> None:
        ...
