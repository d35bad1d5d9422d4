from __future__ import annotations

import logging
import queue
import threading
from typing import Any

from adapters.brokers.binance import make_broker
from adapters.data_providers.binance import make_market_data
from config.settings import Settings
from core.application.bootstrap import bootstrap
from core.application.dispatch import OrderDispatcher
from core.ports.broker import BrokerPort
from core.ports.market_data import MarketStreamPort
from core.ports.settings import get_order_workers
from strategies import STRATEGY_REGISTRY
from strategies.channel_scalper.config.env_loader import load_config

logger = logging.getLogger("bot.exec")

_POLL_SECONDS = 1.0


def _resolve_market_data(settings: Settings) -> MarketStreamPort:
    if settings.FEATURE_DATASOURCE == "binance":
        return make_market_data(settings)
    raise ValueError(f"Unsupported datasource: {settings.FEATURE_DATASOURCE}")


def _resolve_broker(settings: Settings) -> BrokerPort:
    if settings.FEATURE_BROKER == "binance":
        return make_broker(settings)
    raise ValueError(f"Unsupported broker: {settings.FEATURE_BROKER}")


def drain(events: "queue.Queue[Any]", engine: Any, stop: threading.Event) -> int:
    """Feed queued events to ``engine`` one at a time until ``stop`` is set.

    A failing handler is logged and the loop moves on to the next event.
    Returns the number of events handled.
    """

    handled = 0
    while not stop.is_set():
        try:
            event = events.get(timeout=_POLL_SECONDS)
        except queue.Empty:
            continue
        if event is None:
            break
        try:
            engine.handle(event)
        except Exception:
            logger.exception("Handler failed for %r", event)
        handled += 1
    return handled


def run(
    settings: Settings,
    *,
    broker: BrokerPort | None = None,
    streams: MarketStreamPort | None = None,
    stop: threading.Event | None = None,
) -> int:
    """Bootstrap the strategy and process stream events until stopped."""

    config = load_config(settings)
    logger.info(
        "Active config: %s",
        {
            "STRATEGY_NAME": settings.STRATEGY_NAME,
            "FEATURE_BROKER": settings.FEATURE_BROKER,
            "SYMBOL": config.symbol,
            "BINANCE_TESTNET": settings.BINANCE_TESTNET,
        },
    )
    engine_cls = STRATEGY_REGISTRY.get(settings.STRATEGY_NAME)
    if engine_cls is None:
        raise ValueError(f"Unknown strategy: {settings.STRATEGY_NAME}")

    broker = broker or _resolve_broker(settings)
    state = bootstrap(broker, config)

    events: "queue.Queue[Any]" = queue.Queue()
    dispatcher = OrderDispatcher(broker, events.put, max_workers=get_order_workers(settings))
    engine = engine_cls(config, state, dispatcher)

    streams = streams or _resolve_market_data(settings)
    stop = stop or threading.Event()
    try:
        streams.start_account(events.put)
        streams.start_trades(state.rules.symbol, events.put)
        logger.info("Trading %s", state.rules.symbol)
        return drain(events, engine, stop)
    finally:
        streams.stop()
        dispatcher.shutdown(wait=True)
        logger.info(
            "Stopped after %d round trips, %d orders tracked",
            state.round_trips,
            len(state.orders),
        )
