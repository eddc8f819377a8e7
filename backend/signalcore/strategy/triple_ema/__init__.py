"""Triple EMA alignment strategy package."""

from signalcore.strategy.triple_ema.generator import (
    AlignmentState,
    TripleEmaStrategy,
    alignment,
    alignment_state,
)
from signalcore.strategy.triple_ema.models import TRIPLE_EMA_STRATEGY_NAME, TripleEmaConfig

__all__ = [
    "AlignmentState",
    "TripleEmaStrategy",
    "TripleEmaConfig",
    "TRIPLE_EMA_STRATEGY_NAME",
    "alignment",
    "alignment_state",
]
