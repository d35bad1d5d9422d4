from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:  # pragma: no cover - import side-effect
    sys.path.insert(0, str(SRC))

from core.domain.models.market import AssetSpec, FeeSchedule, MarketRules  # noqa: E402
from strategies.channel_scalper.config.env_loader import ScalperConfig  # noqa: E402


def _rules(
    *,
    base_balance: str | None = "10",
    quote_balance: str | None = "1000",
    tick_size: str = "0.01",
    step_size: str = "0.001",
    min_qty: str = "0.001",
    max_qty: str = "1000",
    min_price: str = "0.01",
    min_notional: str = "10",
    base_precision: int = 8,
    quote_precision: int = 2,
) -> MarketRules:
    return MarketRules(
        symbol="ETHBTC",
        base=AssetSpec(
            name="ETH",
            precision=base_precision,
            balance=Decimal(base_balance) if base_balance is not None else None,
            min_qty=Decimal(min_qty),
            max_qty=Decimal(max_qty),
            step_size=Decimal(step_size),
        ),
        quote=AssetSpec(
            name="BTC",
            precision=quote_precision,
            balance=Decimal(quote_balance) if quote_balance is not None else None,
            min_price=Decimal(min_price),
            max_price=Decimal("100000"),
            tick_size=Decimal(tick_size),
        ),
        min_notional=Decimal(min_notional),
    )


@pytest.fixture
def make_rules():
    return _rules


@pytest.fixture
def rules() -> MarketRules:
    return _rules()


@pytest.fixture
def fees() -> FeeSchedule:
    return FeeSchedule(maker=Decimal("0.1"), taker=Decimal("0.1"))


@pytest.fixture
def config() -> ScalperConfig:
    return ScalperConfig(
        base_asset="ETH",
        quote_asset="BTC",
        channel_length_multiple=1.0,
        spend_fraction=Decimal("0.1"),
        min_take_profit_pips=1,
        min_take_profit_ticks=1,
        min_window_length=3,
        even_distribution_min_ratio=0.4,
        client_order_prefix="csx",
    )


class RecordingGateway:
    """Order gateway that only records what the engine asked for."""

    def __init__(self) -> None:
        self.submitted = []
        self.cancelled = []

    def submit(self, request) -> None:
        self.submitted.append(request)

    def cancel(self, request) -> None:
        self.cancelled.append(request)

    def reset(self) -> None:
        self.submitted.clear()
        self.cancelled.clear()


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()
