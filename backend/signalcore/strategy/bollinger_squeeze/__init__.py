"""Bollinger Band squeeze strategy package."""

from signalcore.strategy.bollinger_squeeze.generator import (
    BollingerSqueezeStrategy,
    find_squeeze,
    squeeze_intensity,
)
from signalcore.strategy.bollinger_squeeze.models import (
    BOLLINGER_SQUEEZE_STRATEGY_NAME,
    BollingerSqueezeConfig,
    SqueezeRun,
)

__all__ = [
    "BollingerSqueezeStrategy",
    "BollingerSqueezeConfig",
    "BOLLINGER_SQUEEZE_STRATEGY_NAME",
    "SqueezeRun",
    "find_squeeze",
    "squeeze_intensity",
]
