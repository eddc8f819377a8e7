"""ATR trailing stop strategy configuration and stop state."""

from dataclasses import dataclass
from typing import Literal

from signalcore.strategy.base import StrategyConfig, config_field

ATR_TRAILING_STOP_STRATEGY_NAME = "atr_trailing_stop"


class AtrTrailingStopConfig(StrategyConfig):
    """Configuration for the ATR trailing stop strategy."""

    atr_period: int = config_field(14, min=5, max=30, description="ATR calculation period")
    atr_multiplier: float = config_field(
        2.5, min=1, max=5, description="ATR multiplier for stop distance"
    )
    trade_direction: Literal["long", "short", "both"] = config_field(
        "long", description="Which direction to generate stops for"
    )
    use_high_low: bool = config_field(
        True, description="Use high/low vs average price for calculations"
    )


@dataclass(frozen=True)
class StopState:
    """Trailing stop at one bar for one direction.

    Attributes:
        raw_stop: Window extreme -/+ ATR * multiplier at this bar.
        stop: Ratcheted stop (never looser than the previous bar's stop
            while the trend holds).
        previous_stop: Ratcheted stop of the previous bar, if any.
        trigger_price: Low (long) or high (short), or the average when
            high/low mode is off.
        triggered: Whether the trigger price crossed the stop.
    """

    raw_stop: float
    stop: float
    previous_stop: float | None
    trigger_price: float
    triggered: bool
