"""Bollinger Bands breakout strategy package."""

from signalcore.strategy.bollinger_breakout.generator import (
    BollingerBreakoutStrategy,
    breakout_confirmation,
)
from signalcore.strategy.bollinger_breakout.models import (
    BOLLINGER_BREAKOUT_STRATEGY_NAME,
    BollingerBreakoutConfig,
)

__all__ = [
    "BollingerBreakoutStrategy",
    "BollingerBreakoutConfig",
    "BOLLINGER_BREAKOUT_STRATEGY_NAME",
    "breakout_confirmation",
]
