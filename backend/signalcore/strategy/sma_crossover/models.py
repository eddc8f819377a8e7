"""SMA crossover strategy configuration."""

from signalcore.strategy.base import StrategyConfig, config_field

SMA_CROSSOVER_STRATEGY_NAME = "sma_crossover"


class SmaCrossoverConfig(StrategyConfig):
    """Configuration for the simple moving average crossover strategy."""

    fast_period: int = config_field(10, min=5, max=50, description="Period for fast moving average")
    slow_period: int = config_field(20, min=10, max=100, description="Period for slow moving average")
    min_confidence: float = config_field(
        0.7, min=0, max=1, description="Minimum confidence level for signals"
    )
