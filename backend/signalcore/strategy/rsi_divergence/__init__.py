"""RSI divergence strategy package."""

from signalcore.strategy.rsi_divergence.generator import (
    RsiDivergenceStrategy,
    detect_divergence,
    find_pivots,
)
from signalcore.strategy.rsi_divergence.models import (
    RSI_DIVERGENCE_STRATEGY_NAME,
    Divergence,
    Pivot,
    RsiDivergenceConfig,
)

__all__ = [
    "RsiDivergenceStrategy",
    "RsiDivergenceConfig",
    "RSI_DIVERGENCE_STRATEGY_NAME",
    "Divergence",
    "Pivot",
    "detect_divergence",
    "find_pivots",
]
