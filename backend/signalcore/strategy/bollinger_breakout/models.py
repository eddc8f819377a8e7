"""Bollinger Bands breakout strategy configuration."""

from signalcore.strategy.base import StrategyConfig, config_field

BOLLINGER_BREAKOUT_STRATEGY_NAME = "bollinger_breakout"


class BollingerBreakoutConfig(StrategyConfig):
    """Configuration for the Bollinger Bands breakout strategy."""

    period: int = config_field(20, min=10, max=50, description="Bollinger Bands period")
    std_dev: float = config_field(2.0, min=1, max=3, description="Standard deviation multiplier")
    require_confirmation: bool = config_field(
        False, description="Require multiple bars confirmation"
    )
    confirmation_bars: int = config_field(
        2, min=1, max=5, description="Number of bars for confirmation"
    )
