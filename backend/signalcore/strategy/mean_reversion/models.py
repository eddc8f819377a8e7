"""Mean reversion strategy configuration."""

from signalcore.strategy.base import StrategyConfig, config_field

MEAN_REVERSION_STRATEGY_NAME = "mean_reversion"


class MeanReversionConfig(StrategyConfig):
    """Configuration for the z-score mean reversion strategy."""

    period: int = config_field(20, min=5, max=100, description="Moving average period")
    threshold: float = config_field(
        2.0, min=1, max=4, description="Z-score magnitude that triggers a signal (no signals when <= 0)"
    )
    min_confidence: float = config_field(
        0.5, min=0, max=1, description="Minimum confidence required to emit a signal"
    )
