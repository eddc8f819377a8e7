"""Mean reversion (z-score) strategy package."""

from signalcore.strategy.mean_reversion.generator import MeanReversionStrategy, z_score
from signalcore.strategy.mean_reversion.models import (
    MEAN_REVERSION_STRATEGY_NAME,
    MeanReversionConfig,
)

__all__ = [
    "MeanReversionStrategy",
    "MeanReversionConfig",
    "MEAN_REVERSION_STRATEGY_NAME",
    "z_score",
]
