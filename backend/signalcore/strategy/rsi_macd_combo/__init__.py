"""RSI + MACD combo strategy package."""

from signalcore.strategy.rsi_macd_combo.generator import (
    ComboWindow,
    RsiMacdComboStrategy,
    scan_window,
)
from signalcore.strategy.rsi_macd_combo.models import RSI_MACD_COMBO_STRATEGY_NAME, RsiMacdComboConfig

__all__ = [
    "ComboWindow",
    "RsiMacdComboStrategy",
    "RsiMacdComboConfig",
    "RSI_MACD_COMBO_STRATEGY_NAME",
    "scan_window",
]
