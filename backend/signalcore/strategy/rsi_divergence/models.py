"""RSI divergence strategy configuration and pivot types."""

from dataclasses import dataclass
from typing import Literal

from signalcore.strategy.base import StrategyConfig, config_field

RSI_DIVERGENCE_STRATEGY_NAME = "rsi_divergence"


class RsiDivergenceConfig(StrategyConfig):
    """Configuration for the RSI divergence strategy."""

    rsi_period: int = config_field(14, min=5, max=30, description="RSI calculation period")
    lookback_period: int = config_field(
        14, min=5, max=30, description="Lookback period for finding pivots"
    )
    pivot_strength: int = config_field(
        2, min=1, max=5, description="Bars on each side to confirm pivot"
    )
    min_divergence_percent: float = config_field(
        5.0, min=1, max=20, description="Minimum price divergence percentage"
    )


@dataclass(frozen=True)
class Pivot:
    index: int
    price: float
    rsi: float
    kind: Literal["high", "low"]


@dataclass(frozen=True)
class Divergence:
    """Two same-kind pivots where price and RSI disagree.

    ``price_change_percent`` is the move from ``first`` to ``second`` in
    percent; ``rsi_change`` is the RSI difference in points.
    """

    kind: Literal["bullish", "bearish"]
    first: Pivot
    second: Pivot
    price_change_percent: float
    rsi_change: float
