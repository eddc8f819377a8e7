"""EMA crossover strategy configuration."""

from signalcore.strategy.base import StrategyConfig, config_field

EMA_CROSSOVER_STRATEGY_NAME = "ema_crossover"


class EmaCrossoverConfig(StrategyConfig):
    """Configuration for the EMA crossover strategy."""

    fast_period: int = config_field(12, min=5, max=50, description="Fast EMA period")
    slow_period: int = config_field(26, min=10, max=100, description="Slow EMA period")
