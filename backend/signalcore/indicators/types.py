"""Indicator kinds, calculator options, computation requests and results.

Every public series is a tuple aligned with the input price series.
Entries inside the warmup period are ``None`` ("no value"), never NaN
and never zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from signalcore.models.price import PriceBar

Series = tuple[float | None, ...]


class IndicatorKind(str, Enum):
    """Indicator kinds known to the computation service."""

    SMA = "sma"
    EMA = "ema"
    RSI = "rsi"
    MACD = "macd"
    BOLLINGER_BANDS = "bollinger_bands"
    ATR = "atr"
    STD_DEV = "sd"


# ---------------------------------------------------------------------------
# Calculator options (raw numeric input)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PeriodOptions:
    """Options for single-period indicators (SMA, EMA, RSI, SD)."""

    values: Sequence[float]
    period: int


@dataclass(frozen=True)
class MacdOptions:
    values: Sequence[float]
    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9


@dataclass(frozen=True)
class BollingerBandsOptions:
    values: Sequence[float]
    period: int = 20
    std_dev: float = 2.0


@dataclass(frozen=True)
class AtrOptions:
    """Options for ATR. ``close`` is the bar average."""

    high: Sequence[float]
    low: Sequence[float]
    close: Sequence[float]
    period: int = 14


# ---------------------------------------------------------------------------
# Calculator output
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class MacdSeries:
    macd: Sequence[float | None]
    signal: Sequence[float | None]
    histogram: Sequence[float | None]


@dataclass(frozen=True)
class BollingerBandsSeries:
    upper: Sequence[float | None]
    middle: Sequence[float | None]
    lower: Sequence[float | None]
    percent_b: Sequence[float | None]
    bandwidth: Sequence[float | None]


# ---------------------------------------------------------------------------
# Computation requests (what strategies send to the service)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PeriodRequest:
    """Request for SMA, EMA, RSI, SD or ATR values of one asset."""

    asset_id: str
    prices: Sequence[PriceBar]
    period: int
    skip_cache: bool = False


@dataclass(frozen=True)
class MacdRequest:
    asset_id: str
    prices: Sequence[PriceBar]
    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9
    skip_cache: bool = False


@dataclass(frozen=True)
class BollingerBandsRequest:
    asset_id: str
    prices: Sequence[PriceBar]
    period: int = 20
    std_dev: float = 2.0
    skip_cache: bool = False


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class IndicatorResult:
    """Single series result (SMA, EMA, RSI, SD, ATR)."""

    values: Series
    valid_count: int
    period: int
    from_cache: bool = False


@dataclass(frozen=True)
class MacdResult:
    macd: Series
    signal: Series
    histogram: Series
    valid_count: int
    fast_period: int
    slow_period: int
    signal_period: int
    from_cache: bool = False


@dataclass(frozen=True)
class BollingerBandsResult:
    upper: Series
    middle: Series
    lower: Series
    percent_b: Series
    bandwidth: Series
    valid_count: int
    period: int
    std_dev: float
    from_cache: bool = False


AnyIndicatorResult = IndicatorResult | MacdResult | BollingerBandsResult


@dataclass
class CacheStats:
    """Counters reported by the indicator cache."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0
    max_entries: int = 0
    ttl_seconds: float = 0.0
    deduplicated: int = 0
