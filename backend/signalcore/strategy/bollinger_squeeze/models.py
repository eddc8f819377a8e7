"""Bollinger Band squeeze strategy configuration and squeeze state."""

from dataclasses import dataclass

from signalcore.strategy.base import StrategyConfig, config_field

BOLLINGER_SQUEEZE_STRATEGY_NAME = "bollinger_squeeze"


class BollingerSqueezeConfig(StrategyConfig):
    """Configuration for the Bollinger Band squeeze strategy."""

    period: int = config_field(20, min=10, max=50, description="Bollinger Bands period")
    std_dev: float = config_field(2.0, min=1, max=3, description="Standard deviation multiplier")
    squeeze_threshold: float = config_field(
        0.04, min=0.01, max=0.1, description="Bandwidth threshold for squeeze (4% = 0.04)"
    )
    min_squeeze_bars: int = config_field(
        6, min=3, max=20, description="Minimum bars in squeeze before breakout signal"
    )
    breakout_confirmation: bool = config_field(
        True, description="Require price momentum confirmation"
    )


@dataclass(frozen=True)
class SqueezeRun:
    """A run of consecutive in-squeeze bars.

    ``start`` and ``end`` are inclusive bar indices.
    """

    start: int
    end: int
    min_bandwidth: float
    avg_bandwidth: float

    @property
    def bars(self) -> int:
        return self.end - self.start + 1
