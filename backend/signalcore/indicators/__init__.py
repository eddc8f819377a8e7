"""Technical indicators: TA-Lib calculators, caching and the computation service."""

from signalcore.indicators.cache import IndicatorCache
from signalcore.indicators.protocol import IndicatorCalculator, IndicatorProvider
from signalcore.indicators.service import (
    IndicatorService,
    UnknownIndicatorError,
    build_cache_key,
    calculator_identity,
    data_fingerprint,
)
from signalcore.indicators.talib_indicators import (
    AtrCalculator,
    BollingerBandsCalculator,
    EmaCalculator,
    MacdCalculator,
    RsiCalculator,
    SmaCalculator,
    StdDevCalculator,
    default_calculators,
)
from signalcore.indicators.types import (
    AtrOptions,
    BollingerBandsOptions,
    BollingerBandsRequest,
    BollingerBandsResult,
    BollingerBandsSeries,
    CacheStats,
    IndicatorKind,
    IndicatorResult,
    MacdOptions,
    MacdRequest,
    MacdResult,
    MacdSeries,
    PeriodOptions,
    PeriodRequest,
)
from signalcore.indicators.validation import IndicatorValidationError

__all__ = [
    "AtrCalculator",
    "AtrOptions",
    "BollingerBandsCalculator",
    "BollingerBandsOptions",
    "BollingerBandsRequest",
    "BollingerBandsResult",
    "BollingerBandsSeries",
    "CacheStats",
    "EmaCalculator",
    "IndicatorCache",
    "IndicatorCalculator",
    "IndicatorKind",
    "IndicatorProvider",
    "IndicatorResult",
    "IndicatorService",
    "IndicatorValidationError",
    "MacdCalculator",
    "MacdOptions",
    "MacdRequest",
    "MacdResult",
    "MacdSeries",
    "PeriodOptions",
    "PeriodRequest",
    "RsiCalculator",
    "SmaCalculator",
    "StdDevCalculator",
    "UnknownIndicatorError",
    "build_cache_key",
    "calculator_identity",
    "data_fingerprint",
    "default_calculators",
]
