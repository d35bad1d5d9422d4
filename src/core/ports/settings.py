from __future__ import annotations

from typing import Any, Protocol


class SettingsProvider(Protocol):
    """Generic provider for configuration values."""

    def get(self, key: str, default: Any | None = None) -> Any:
        ...


# ---------------------------------------------------------------------------
# Helper accessors with defaults


def get_base_asset(settings: SettingsProvider) -> str:
    return str(settings.get("BASE_ASSET", "ETH")).strip().upper()


def get_quote_asset(settings: SettingsProvider) -> str:
    return str(settings.get("QUOTE_ASSET", "BTC")).strip().upper()


def get_channel_length_multiple(settings: SettingsProvider) -> float:
    return float(settings.get("CHANNEL_LENGTH_MULTIPLE", 1.0))


def get_spend_fraction(settings: SettingsProvider) -> float:
    return float(settings.get("SPEND_FRACTION_PER_TRADE", 0.1))


def get_min_take_profit_pips(settings: SettingsProvider) -> int:
    return int(settings.get("MIN_TAKE_PROFIT_PIPS", 1))


def get_min_take_profit_ticks(settings: SettingsProvider) -> int:
    return int(settings.get("MIN_TAKE_PROFIT_TICKS", 1))


def get_min_window_length(settings: SettingsProvider) -> int:
    return int(settings.get("MIN_WINDOW_LENGTH", 3))


def get_even_distribution_min_ratio(settings: SettingsProvider) -> float:
    return float(settings.get("EVEN_DISTRIBUTION_MIN_RATIO", 0.4))


def get_max_buffer_length(settings: SettingsProvider) -> int:
    return int(settings.get("MAX_BUFFER_LENGTH", 0))


def get_max_round_trips(settings: SettingsProvider) -> int:
    return int(settings.get("MAX_ROUND_TRIPS", 0))


def get_client_order_prefix(settings: SettingsProvider) -> str:
    return str(settings.get("CLIENT_ORDER_PREFIX", "csx"))


def get_order_workers(settings: SettingsProvider) -> int:
    return int(settings.get("ORDER_WORKERS", 4))
