"""MACD crossover strategy package."""

from signalcore.strategy.macd.generator import MacdStrategy
from signalcore.strategy.macd.models import MACD_STRATEGY_NAME, MacdConfig

__all__ = ["MacdStrategy", "MacdConfig", "MACD_STRATEGY_NAME"]
