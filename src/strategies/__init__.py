from __future__ import annotations

from .channel_scalper import ScalperEngine, STRATEGY_NAME as CHANNEL_SCALPER

STRATEGY_REGISTRY: dict[str, type] = {}
STRATEGY_REGISTRY[CHANNEL_SCALPER] = ScalperEngine

__all__ = [
    "STRATEGY_REGISTRY",
    "ScalperEngine",
]
