"""RSI threshold strategy package.

Importing this package registers RsiStrategy.
"""

from signalcore.strategy.rsi.generator import RsiStrategy
from signalcore.strategy.rsi.models import RSI_STRATEGY_NAME, RsiConfig

__all__ = ["RsiStrategy", "RsiConfig", "RSI_STRATEGY_NAME"]
