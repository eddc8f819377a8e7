"""EMA crossover strategy package.

Importing this package registers EmaCrossoverStrategy.
"""

from signalcore.strategy.ema_crossover.generator import (
    EmaCrossoverStrategy,
    crossover_confidence,
    crossover_strength,
)
from signalcore.strategy.ema_crossover.models import EMA_CROSSOVER_STRATEGY_NAME, EmaCrossoverConfig

__all__ = [
    "EmaCrossoverStrategy",
    "EmaCrossoverConfig",
    "EMA_CROSSOVER_STRATEGY_NAME",
    "crossover_confidence",
    "crossover_strength",
]
