from __future__ import annotations

import re

__all__ = ["normalize_symbol", "pair_symbol"]


def normalize_symbol(symbol: str) -> str:
    """Return ``symbol`` uppercased without special characters.

    ``"eth/btc"`` and ``" ETHBTC "`` both become ``"ETHBTC"``.
    """

    return re.sub(r"[^A-Z0-9]", "", symbol.strip().upper())


def pair_symbol(base_asset: str, quote_asset: str) -> str:
    """Return the exchange symbol for ``base_asset``/``quote_asset``."""

    if not base_asset or not quote_asset:
        raise ValueError("Both base and quote assets are required")
    return normalize_symbol(f"{base_asset}{quote_asset}")
