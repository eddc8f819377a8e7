"""RSI threshold strategy configuration."""

from signalcore.strategy.base import StrategyConfig, config_field

RSI_STRATEGY_NAME = "rsi"


class RsiConfig(StrategyConfig):
    """Configuration for the RSI threshold strategy."""

    period: int = config_field(14, min=5, max=50, description="RSI calculation period")
    oversold_threshold: float = config_field(
        30, min=10, max=40, description="RSI level below which asset is oversold"
    )
    overbought_threshold: float = config_field(
        70, min=60, max=90, description="RSI level above which asset is overbought"
    )
