"""Confluence strategy configuration and vote types."""

from dataclasses import dataclass, field
from typing import Any, Literal

from signalcore.strategy.base import StrategyConfig, config_field

CONFLUENCE_STRATEGY_NAME = "confluence"

Vote = Literal["bullish", "bearish", "neutral", "filtered"]


class ConfluenceConfig(StrategyConfig):
    """Configuration for the multi-indicator confluence strategy.

    ``min_sell_confluence`` falls back to ``min_confluence`` when absent.
    """

    min_confluence: int = config_field(
        2, min=2, max=4,
        description="Minimum number of directional indicators that must agree for BUY. "
        "ATR is a filter only.",
    )
    min_sell_confluence: int | None = config_field(
        None, min=2, max=4,
        description="Minimum number of directional indicators that must agree for SELL. "
        "Defaults to minConfluence.",
    )
    min_confidence: float = config_field(
        0.5, min=0, max=1, description="Minimum confidence required to generate signal"
    )

    ema_enabled: bool = config_field(True, description="Enable EMA trend indicator")
    ema_fast_period: int = config_field(12, min=5, max=20, description="Fast EMA period")
    ema_slow_period: int = config_field(26, min=15, max=50, description="Slow EMA period")

    rsi_enabled: bool = config_field(True, description="Enable RSI momentum indicator")
    rsi_period: int = config_field(14, min=5, max=30, description="RSI calculation period")
    rsi_buy_threshold: float = config_field(
        55, min=40, max=70, description="RSI above this confirms upward momentum"
    )
    rsi_sell_threshold: float = config_field(
        45, min=30, max=60, description="RSI below this confirms weak momentum"
    )

    macd_enabled: bool = config_field(True, description="Enable MACD oscillator indicator")
    macd_fast_period: int = config_field(12, min=5, max=20, description="MACD fast EMA period")
    macd_slow_period: int = config_field(26, min=15, max=50, description="MACD slow EMA period")
    macd_signal_period: int = config_field(9, min=5, max=15, description="MACD signal line period")

    atr_enabled: bool = config_field(True, description="Enable ATR volatility filter")
    atr_period: int = config_field(14, min=5, max=30, description="ATR calculation period")
    atr_volatility_multiplier: float = config_field(
        2.0, min=1.0, max=3.0,
        description="Filter signals when ATR > average ATR * multiplier",
    )

    bb_enabled: bool = config_field(
        True, description="Enable Bollinger Bands trend confirmation indicator"
    )
    bb_period: int = config_field(20, min=10, max=50, description="Bollinger Bands period")
    bb_std_dev: float = config_field(2.0, min=1, max=3, description="Standard deviation multiplier")
    bb_buy_threshold: float = config_field(
        0.55, min=0.3, max=1, description="%B above this confirms an uptrend"
    )
    bb_sell_threshold: float = config_field(
        0.45, min=0, max=0.7, description="%B below this confirms a downtrend"
    )

    @property
    def sell_confluence(self) -> int:
        if self.min_sell_confluence is None:
            return self.min_confluence
        return self.min_sell_confluence

    @property
    def directional_count(self) -> int:
        """Enabled indicators that vote on direction (ATR excluded)."""
        return sum((self.ema_enabled, self.rsi_enabled, self.macd_enabled, self.bb_enabled))


@dataclass
class IndicatorVote:
    """One indicator's opinion on the current bar."""

    name: str
    signal: Vote
    strength: float
    reason: str
    values: dict[str, Any] = field(default_factory=dict)


@dataclass
class ConfluenceScore:
    direction: Literal["buy", "sell", "hold"]
    confluence_count: int
    total_enabled: int
    votes: list[IndicatorVote]
    average_strength: float
    volatility_filtered: bool
