"""Data models shared by indicators and strategies."""

from signalcore.models.context import (
    AlgorithmContext,
    AlgorithmResult,
    ChartPoint,
    ExecutionMetrics,
)
from signalcore.models.price import (
    Asset,
    PriceBar,
    average_prices,
    high_prices,
    low_prices,
)
from signalcore.models.signal import SignalType, TradingSignal

__all__ = [
    "AlgorithmContext",
    "AlgorithmResult",
    "Asset",
    "ChartPoint",
    "ExecutionMetrics",
    "PriceBar",
    "SignalType",
    "TradingSignal",
    "average_prices",
    "high_prices",
    "low_prices",
]
