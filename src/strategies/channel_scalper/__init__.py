"""Channel scalper strategy package."""

from .engine import EngineState, ScalperEngine, STRATEGY_NAME

__all__ = [
    "EngineState",
    "ScalperEngine",
    "STRATEGY_NAME",
]
