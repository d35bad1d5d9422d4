from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

import adapters.brokers.binance as broker_mod
import adapters.data_providers.binance as streams_mod
from adapters.brokers.binance import BinanceSpotBroker
from adapters.data_providers.binance import (
    BinanceStreams,
    parse_trade_message,
    parse_user_message,
)
from core.domain.models.events import BalanceUpdate, ExecutionReport, TradeTick
from core.domain.models.orders import OrderSide


def _settings(**overrides):
    values = dict(
        BINANCE_API_KEY="key",
        BINANCE_API_SECRET="secret",
        BINANCE_TESTNET=True,
        HTTP_TIMEOUT=10,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


SYMBOL_INFO = {
    "symbol": "ETHBTC",
    "baseAssetPrecision": 8,
    "quoteAssetPrecision": 8,
    "filters": [
        {"filterType": "PRICE_FILTER", "minPrice": "0.00000100", "maxPrice": "922327.00000000", "tickSize": "0.00000100"},
        {"filterType": "LOT_SIZE", "minQty": "0.00010000", "maxQty": "100000.00000000", "stepSize": "0.00010000"},
        {"filterType": "NOTIONAL", "minNotional": "0.00010000"},
    ],
}


class DummyClient:
    def __init__(self, *args, **kwargs):
        self.init_kwargs = kwargs
        self.created = []
        self.cancelled = []

    def get_symbol_info(self, symbol):
        return SYMBOL_INFO if symbol == "ETHBTC" else None

    def get_trade_fee(self, symbol):
        return [{"symbol": symbol, "makerCommission": "0.001", "takerCommission": "0.001"}]

    def get_account(self):
        return {
            "balances": [
                {"asset": "ETH", "free": "1.50000000", "locked": "0.00000000"},
                {"asset": "BTC", "free": "0.02000000", "locked": "0.00100000"},
            ]
        }

    def get_open_orders(self, symbol):
        return []

    def create_order(self, **kwargs):
        self.created.append(kwargs)
        return {"orderId": len(self.created), "clientOrderId": kwargs.get("newClientOrderId")}

    def cancel_order(self, **kwargs):
        self.cancelled.append(kwargs)
        return {"status": "CANCELED"}


# ---------------------------------------------------------------------------
# Stream parsing


def test_parse_agg_trade():
    tick = parse_trade_message({"e": "aggTrade", "s": "ETHBTC", "p": "0.05123400", "q": "1"})
    assert tick == TradeTick(symbol="ETHBTC", price=Decimal("0.05123400"))


def test_parse_trade_drops_errors_and_other_events():
    assert parse_trade_message({"e": "error", "m": "Max reconnect retries reached"}) is None
    assert parse_trade_message({"e": "trade", "s": "ETHBTC", "p": "1"}) is None
    assert parse_trade_message({"e": "aggTrade", "s": "ETHBTC"}) is None


def test_parse_execution_report():
    event = parse_user_message(
        {
            "e": "executionReport",
            "s": "ETHBTC",
            "c": "web_cancel",
            "C": "csx0001B-50x25-2x5",
            "S": "BUY",
            "o": "LIMIT",
            "p": "50.00",
            "P": "0.00",
            "x": "CANCELED",
            "X": "CANCELED",
            "i": 4242,
            "z": "0.00",
        }
    )
    assert isinstance(event, ExecutionReport)
    assert event.side is OrderSide.BUY
    assert event.order_id == 4242
    assert event.status == "CANCELED"
    assert event.orig_client_order_id == "csx0001B-50x25-2x5"


def test_parse_account_position():
    event = parse_user_message(
        {"e": "outboundAccountPosition", "B": [{"a": "ETH", "f": "1.5", "l": "0"}, {"a": "BTC", "f": "0.02", "l": "0"}]}
    )
    assert event == BalanceUpdate(balances={"ETH": Decimal("1.5"), "BTC": Decimal("0.02")})


def test_parse_user_message_drops_unknown_and_malformed():
    assert parse_user_message({"e": "balanceUpdate", "a": "BTC", "d": "0.1"}) is None
    assert parse_user_message({"e": "executionReport", "S": "HOLD"}) is None
    assert parse_user_message({"e": "error", "type": "BinanceWebsocketClosed"}) is None


class DummyManager:
    def __init__(self):
        self.started = 0
        self.stopped = 0
        self.callbacks = {}

    def start(self):
        self.started += 1

    def start_aggtrade_socket(self, callback, symbol):
        self.callbacks["trade"] = callback
        return f"{symbol.lower()}@aggTrade"

    def start_user_socket(self, callback):
        self.callbacks["user"] = callback
        return "user"

    def stop(self):
        self.stopped += 1


def test_streams_forward_parsed_events():
    manager = DummyManager()
    streams = BinanceStreams(_settings(), manager=manager)
    trades, account = [], []
    streams.start_trades("eth/btc", trades.append)
    streams.start_account(account.append)

    manager.callbacks["trade"]({"e": "aggTrade", "s": "ETHBTC", "p": "0.05"})
    manager.callbacks["trade"]({"e": "error", "m": "boom"})
    manager.callbacks["user"]({"e": "outboundAccountPosition", "B": []})
    streams.stop()

    assert manager.started == 1
    assert manager.stopped == 1
    assert trades == [TradeTick("ETHBTC", Decimal("0.05"))]
    assert account == [BalanceUpdate(balances={})]


def test_make_market_data_builds_threaded_manager(monkeypatch):
    captured = {}

    class FakeManager(DummyManager):
        def __init__(self, **kwargs):
            super().__init__()
            captured.update(kwargs)

    monkeypatch.setattr(streams_mod, "ThreadedWebsocketManager", FakeManager)
    streams = streams_mod.make_market_data(_settings())
    assert isinstance(streams, BinanceStreams)
    assert captured["testnet"] is True


# ---------------------------------------------------------------------------
# Broker


@pytest.fixture
def broker(monkeypatch):
    monkeypatch.setattr(broker_mod, "Client", DummyClient)
    return BinanceSpotBroker(_settings())


def test_broker_passes_timeout_and_testnet(broker):
    assert broker.client.init_kwargs["testnet"] is True
    assert broker.client.init_kwargs["requests_params"] == {"timeout": 10}


def test_trade_fee_is_returned_as_fraction(broker):
    assert broker.get_trade_fee("ETH/BTC") == {"maker": Decimal("0.001"), "taker": Decimal("0.001")}


def test_balances_use_free_amounts(broker):
    assert broker.get_balances() == {"ETH": Decimal("1.5"), "BTC": Decimal("0.02")}


def test_unknown_symbol_raises(broker):
    with pytest.raises(ValueError):
        broker.get_symbol_info("DOGEBTC")


def test_place_limit_payload(broker):
    broker.get_symbol_info("ETHBTC")
    broker.place_limit(
        "ETHBTC",
        "buy",
        Decimal("0.12345"),
        Decimal("0.0512345"),
        clientOrderId="csx0001B-0x05124-0x1234",
    )
    payload = broker.client.created[-1]
    assert payload == {
        "symbol": "ETHBTC",
        "side": "BUY",
        "type": "LIMIT",
        "price": "0.051234",
        "quantity": "0.1234",
        "timeInForce": "GTC",
        "newOrderRespType": "ACK",
        "newClientOrderId": "csx0001B-0x05124-0x1234",
    }


def test_place_limit_without_client_id(broker):
    broker.place_limit("ETHBTC", "SELL", Decimal("1"), Decimal("0.06"))
    assert "newClientOrderId" not in broker.client.created[-1]


def test_cancel_uses_original_client_id(broker):
    broker.cancel_order("ETHBTC", orderId=12, clientOrderId="csx0001B")
    assert broker.client.cancelled[-1] == {
        "symbol": "ETHBTC",
        "orderId": 12,
        "origClientOrderId": "csx0001B",
    }
