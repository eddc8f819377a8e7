"""ATR trailing stop strategy package."""

from signalcore.strategy.atr_trailing_stop.generator import (
    AtrTrailingStopStrategy,
    atr_stability,
    trailing_stops,
)
from signalcore.strategy.atr_trailing_stop.models import (
    ATR_TRAILING_STOP_STRATEGY_NAME,
    AtrTrailingStopConfig,
    StopState,
)

__all__ = [
    "AtrTrailingStopStrategy",
    "AtrTrailingStopConfig",
    "ATR_TRAILING_STOP_STRATEGY_NAME",
    "StopState",
    "atr_stability",
    "trailing_stops",
]
