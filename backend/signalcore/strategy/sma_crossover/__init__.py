"""SMA crossover strategy package."""

from signalcore.strategy.sma_crossover.generator import SmaCrossoverStrategy
from signalcore.strategy.sma_crossover.models import SMA_CROSSOVER_STRATEGY_NAME, SmaCrossoverConfig

__all__ = ["SmaCrossoverStrategy", "SmaCrossoverConfig", "SMA_CROSSOVER_STRATEGY_NAME"]
