from __future__ import annotations

from functools import lru_cache
from typing import Any
import logging

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    STRATEGY_NAME: str = Field(
        default="channel-scalper",
        validation_alias=AliasChoices("STRATEGY", "STRATEGY_NAME"),
    )
    FEATURE_BROKER: str = "binance"
    FEATURE_DATASOURCE: str = "binance"

    BASE_ASSET: str = "ETH"
    QUOTE_ASSET: str = "BTC"

    CHANNEL_LENGTH_MULTIPLE: float = 1.0
    SPEND_FRACTION_PER_TRADE: float = 0.1
    MIN_TAKE_PROFIT_PIPS: int = 1
    MIN_TAKE_PROFIT_TICKS: int = 1
    MIN_WINDOW_LENGTH: int = 3
    EVEN_DISTRIBUTION_MIN_RATIO: float = 0.4
    MAX_BUFFER_LENGTH: int = 0  # 0 keeps every tick; each scan walks the whole buffer
    MAX_ROUND_TRIPS: int = 0
    CLIENT_ORDER_PREFIX: str = "csx"
    ORDER_WORKERS: int = 4

    BINANCE_API_KEY: str | None = Field(
        default=None,
        validation_alias=AliasChoices("BINANCE_API_KEY", "API_KEY"),
    )
    BINANCE_API_SECRET: str | None = Field(
        default=None,
        validation_alias=AliasChoices("BINANCE_API_SECRET", "API_SECRET"),
    )
    BINANCE_TESTNET: bool = False
    HTTP_TIMEOUT: int = 30

    LOG_LEVEL: str = "INFO"
    LOG_MODE: str = "plain"
    LOG_FILE: str | None = None

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return configuration value for ``key`` with ``default`` fallback."""
        value = getattr(self, key, None)
        return default if value is None else value


@lru_cache
def load_settings() -> Settings:
    """Factory function to load settings from environment or .env file.

    Note: This function is cached; environment changes after the first call
    are only picked up on restart.
    """
    settings = Settings()
    logging.getLogger(__name__).info(
        "BINANCE_TESTNET=%s pair=%s/%s",
        settings.BINANCE_TESTNET,
        settings.BASE_ASSET,
        settings.QUOTE_ASSET,
    )
    return settings
