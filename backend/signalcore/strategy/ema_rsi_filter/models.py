"""EMA crossover with RSI filter configuration."""

from signalcore.strategy.base import StrategyConfig, config_field

EMA_RSI_FILTER_STRATEGY_NAME = "ema_rsi_filter"


class EmaRsiFilterConfig(StrategyConfig):
    """Configuration for the EMA + RSI filter strategy."""

    fast_ema_period: int = config_field(12, min=5, max=25, description="Fast EMA period")
    slow_ema_period: int = config_field(26, min=15, max=50, description="Slow EMA period")
    rsi_period: int = config_field(14, min=5, max=30, description="RSI calculation period")
    rsi_max_for_buy: float = config_field(
        70, min=50, max=80, description="Max RSI to allow buy signals (avoid buying overbought)"
    )
    rsi_min_for_sell: float = config_field(
        30, min=20, max=50, description="Min RSI to allow sell signals (avoid selling oversold)"
    )
