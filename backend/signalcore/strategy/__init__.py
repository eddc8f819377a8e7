"""Signal strategies.

Importing this package registers every built-in strategy so that
``create_strategy(name)`` can find it.
"""

from signalcore.strategy.base import (
    AssetAnalysis,
    BaseStrategy,
    StrategyConfig,
    build_chart_data,
    build_config_schema,
    config_field,
)
from signalcore.strategy.protocol import ConfigSchema, Strategy
from signalcore.strategy.registry import (
    create_strategy,
    get_strategy_class,
    list_strategies,
    register_strategy,
)

# Register built-in strategies
from signalcore.strategy import atr_trailing_stop  # noqa: F401
from signalcore.strategy import bollinger_breakout  # noqa: F401
from signalcore.strategy import bollinger_squeeze  # noqa: F401
from signalcore.strategy import confluence  # noqa: F401
from signalcore.strategy import ema_crossover  # noqa: F401
from signalcore.strategy import ema_rsi_filter  # noqa: F401
from signalcore.strategy import macd  # noqa: F401
from signalcore.strategy import mean_reversion  # noqa: F401
from signalcore.strategy import rsi  # noqa: F401
from signalcore.strategy import rsi_divergence  # noqa: F401
from signalcore.strategy import rsi_macd_combo  # noqa: F401
from signalcore.strategy import sma_crossover  # noqa: F401
from signalcore.strategy import triple_ema  # noqa: F401

__all__ = [
    "AssetAnalysis",
    "BaseStrategy",
    "ConfigSchema",
    "Strategy",
    "StrategyConfig",
    "build_chart_data",
    "build_config_schema",
    "config_field",
    "create_strategy",
    "get_strategy_class",
    "list_strategies",
    "register_strategy",
]
