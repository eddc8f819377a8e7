"""RSI + MACD combo strategy configuration."""

from pydantic import model_validator

from signalcore.strategy.base import StrategyConfig, config_field

RSI_MACD_COMBO_STRATEGY_NAME = "rsi_macd_combo"


class RsiMacdComboConfig(StrategyConfig):
    """Configuration for the RSI + MACD combo strategy.

    ``macd_fast`` must be below ``macd_slow``.
    """

    rsi_period: int = config_field(14, min=5, max=30, description="RSI calculation period")
    rsi_oversold: float = config_field(
        35, min=20, max=45, description="RSI oversold threshold (relaxed for combo)"
    )
    rsi_overbought: float = config_field(
        65, min=55, max=80, description="RSI overbought threshold (relaxed for combo)"
    )
    macd_fast: int = config_field(12, min=5, max=20, description="MACD fast EMA period")
    macd_slow: int = config_field(26, min=15, max=50, description="MACD slow EMA period")
    macd_signal: int = config_field(9, min=5, max=15, description="MACD signal line period")
    confirmation_window: int = config_field(
        3, min=1, max=10, description="Bars within which both signals must occur"
    )
    min_confidence: float = config_field(
        0.7, min=0, max=1, description="Minimum confidence required"
    )

    @model_validator(mode="after")
    def _validate(self):
        if self.macd_fast >= self.macd_slow:
            raise ValueError(
                f"macdFast must be less than macdSlow, got {self.macd_fast} >= {self.macd_slow}"
            )
        return self
