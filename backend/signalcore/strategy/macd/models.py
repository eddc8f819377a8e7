"""MACD crossover strategy configuration."""

from signalcore.strategy.base import StrategyConfig, config_field

MACD_STRATEGY_NAME = "macd"


class MacdConfig(StrategyConfig):
    """Configuration for the MACD crossover strategy."""

    fast_period: int = config_field(12, min=5, max=20, description="Fast EMA period for MACD")
    slow_period: int = config_field(26, min=15, max=50, description="Slow EMA period for MACD")
    signal_period: int = config_field(9, min=5, max=15, description="Signal line period")
    use_histogram_confirmation: bool = config_field(
        True, description="Require histogram confirmation"
    )
    min_histogram_strength: float = config_field(
        0.0001, min=0, max=0.01, description="Minimum histogram value"
    )
