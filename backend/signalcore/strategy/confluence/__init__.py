"""Multi-indicator confluence strategy package."""

from signalcore.strategy.confluence.generator import (
    ConfluenceStrategy,
    score_confluence,
)
from signalcore.strategy.confluence.models import (
    CONFLUENCE_STRATEGY_NAME,
    ConfluenceConfig,
    ConfluenceScore,
    IndicatorVote,
)

__all__ = [
    "ConfluenceStrategy",
    "ConfluenceConfig",
    "ConfluenceScore",
    "IndicatorVote",
    "CONFLUENCE_STRATEGY_NAME",
    "score_confluence",
]
