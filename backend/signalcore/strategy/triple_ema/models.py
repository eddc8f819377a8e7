"""Triple EMA strategy configuration."""

from signalcore.strategy.base import StrategyConfig, config_field

TRIPLE_EMA_STRATEGY_NAME = "triple_ema"


class TripleEmaConfig(StrategyConfig):
    """Configuration for the triple EMA alignment strategy."""

    fast_period: int = config_field(8, min=3, max=15, description="Fast EMA period")
    medium_period: int = config_field(21, min=10, max=30, description="Medium EMA period")
    slow_period: int = config_field(55, min=30, max=100, description="Slow EMA period")
    require_full_alignment: bool = config_field(
        True, description="Require all 3 EMAs aligned for signal"
    )
    signal_on_partial_cross: bool = config_field(
        False, description="Signal on fast/medium crossover"
    )
