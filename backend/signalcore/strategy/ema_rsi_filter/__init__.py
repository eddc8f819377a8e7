"""EMA crossover + RSI filter strategy package."""

from signalcore.strategy.ema_rsi_filter.generator import EmaRsiFilterStrategy
from signalcore.strategy.ema_rsi_filter.models import (
    EMA_RSI_FILTER_STRATEGY_NAME,
    EmaRsiFilterConfig,
)

__all__ = ["EmaRsiFilterStrategy", "EmaRsiFilterConfig", "EMA_RSI_FILTER_STRATEGY_NAME"]
