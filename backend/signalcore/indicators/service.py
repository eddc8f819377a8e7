"""Indicator computation service.

The single path by which strategies obtain indicator values:
- consults the cache unless the request sets ``skip_cache``
- consults the caller's provider override on every call before
  falling back to the default TA-Lib calculator
- aligns calculator output with the price series, using ``None`` for
  warmup entries

Calculator validation errors propagate unchanged to the caller.
"""

from __future__ import annotations

import hashlib
import logging
import math
from dataclasses import replace
from typing import Any, Awaitable, Callable, Mapping, Sequence

from signalcore.indicators.cache import IndicatorCache
from signalcore.indicators.protocol import IndicatorCalculator, IndicatorProvider
from signalcore.indicators.talib_indicators import default_calculators
from signalcore.indicators.types import (
    AnyIndicatorResult,
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
    Series,
)
from signalcore.models.price import (
    PriceBar,
    average_prices,
    high_prices,
    low_prices,
)

logger = logging.getLogger(__name__)

KEY_PREFIX = "indicator"
# Trailing averages hashed into the data fingerprint
DEFAULT_HASH_SAMPLE_SIZE = 10


class UnknownIndicatorError(KeyError):
    """No calculator is registered for the requested indicator kind."""


def data_fingerprint(
    prices: Sequence[PriceBar],
    sample_size: int = DEFAULT_HASH_SAMPLE_SIZE,
) -> str:
    """Fingerprint a price series for cache invalidation.

    Covers the series length, the last timestamp and the last
    ``sample_size`` averages, so appended or revised bars produce a new
    fingerprint.
    """
    if not prices:
        return "empty"
    tail = prices[-sample_size:] if sample_size > 0 else []
    averages = ",".join(repr(bar.average) for bar in tail)
    raw = f"{len(prices)}:{prices[-1].timestamp.isoformat()}:{averages}"
    return hashlib.md5(raw.encode()).hexdigest()[:8]


def build_cache_key(
    kind: IndicatorKind,
    asset_id: str,
    prices: Sequence[PriceBar],
    params: Mapping[str, Any],
    sample_size: int = DEFAULT_HASH_SAMPLE_SIZE,
) -> str:
    """Build ``indicator:{kind}:{asset}:{k:v_k:v}:{fingerprint}``."""
    params_str = "_".join(f"{k}:{params[k]}" for k in sorted(params))
    fingerprint = data_fingerprint(prices, sample_size)
    return f"{KEY_PREFIX}:{kind.value}:{asset_id}:{params_str}:{fingerprint}"


def calculator_identity(calculator: IndicatorCalculator) -> str:
    """Cache identity of a custom calculator.

    Calculators may expose a ``cache_identity`` attribute describing their
    configuration; instances that share it share cache entries. Without
    one, every instance gets its own entries.
    """
    calc_type = type(calculator)
    name = f"{calc_type.__module__}.{calc_type.__qualname__}"
    identity = getattr(calculator, "cache_identity", None)
    if identity is None:
        return f"{name}@{id(calculator):x}"
    return f"{name}@{identity}"


def _align(values: Sequence[Any], length: int) -> Series:
    """Map NaN/inf to None and left-pad (or trim) to ``length``."""
    cleaned = [
        None if v is None or not math.isfinite(v) else float(v) for v in values
    ]
    if len(cleaned) >= length:
        return tuple(cleaned[len(cleaned) - length:])
    return (None,) * (length - len(cleaned)) + tuple(cleaned)


def _count_valid(series: Series) -> int:
    return sum(1 for v in series if v is not None)


class IndicatorService:
    """Computes indicators for strategies, with caching and overrides.

    Args:
        cache: Result cache. A default cache is created when omitted.
        calculators: Default calculators per kind (TA-Lib by default).
        hash_sample_size: Trailing averages included in the fingerprint.
        use_cache: False disables caching entirely.
    """

    def __init__(
        self,
        cache: IndicatorCache | None = None,
        calculators: Mapping[IndicatorKind, IndicatorCalculator] | None = None,
        hash_sample_size: int = DEFAULT_HASH_SAMPLE_SIZE,
        use_cache: bool = True,
    ):
        if not use_cache:
            cache = None
        elif cache is None:
            cache = IndicatorCache()
        self._cache = cache
        self._calculators = dict(calculators or default_calculators())
        self._hash_sample_size = hash_sample_size

    # ------------------------------------------------------------------
    # Calculator resolution
    # ------------------------------------------------------------------

    def _get_calculator(
        self,
        kind: IndicatorKind,
        provider: IndicatorProvider | None,
    ) -> tuple[IndicatorCalculator, bool]:
        """Resolve the calculator for a kind. Returns (calculator, is_custom)."""
        hook = getattr(provider, "get_custom_calculator", None)
        if hook is not None:
            custom = hook(kind)
            if custom is not None:
                return custom, True

        calculator = self._calculators.get(kind)
        if calculator is None:
            raise UnknownIndicatorError(f"Unknown indicator type: {kind}")
        return calculator, False

    # ------------------------------------------------------------------
    # Shared request path
    # ------------------------------------------------------------------

    async def _calculate(
        self,
        kind: IndicatorKind,
        asset_id: str,
        prices: Sequence[PriceBar],
        params: dict[str, Any],
        skip_cache: bool,
        provider: IndicatorProvider | None,
        compute: Callable[[IndicatorCalculator], AnyIndicatorResult],
    ) -> Any:
        calculator, is_custom = self._get_calculator(kind, provider)
        if is_custom:
            # Overrides for the same asset must not share entries with defaults
            params = {**params, "calc": calculator_identity(calculator)}

        async def run() -> AnyIndicatorResult:
            return compute(calculator)

        if self._cache is None:
            return await run()

        key = build_cache_key(kind, asset_id, prices, params, self._hash_sample_size)

        if skip_cache:
            result = await run()
            await self._cache.set(key, result)
            return result

        result, cached = await self._cache.get_or_compute(key, run)
        if cached:
            logger.debug(f"Indicator cache hit: {key}")
            return replace(result, from_cache=True)
        logger.debug(f"Indicator cache miss: {key}")
        return result

    async def _calculate_period(
        self,
        kind: IndicatorKind,
        request: PeriodRequest,
        provider: IndicatorProvider | None,
    ) -> IndicatorResult:
        length = len(request.prices)

        def compute(calculator: IndicatorCalculator) -> IndicatorResult:
            raw = calculator.calculate(
                PeriodOptions(values=average_prices(request.prices), period=request.period)
            )
            values = _align(raw, length)
            return IndicatorResult(
                values=values,
                valid_count=_count_valid(values),
                period=request.period,
            )

        return await self._calculate(
            kind,
            request.asset_id,
            request.prices,
            {"period": request.period},
            request.skip_cache,
            provider,
            compute,
        )

    # ------------------------------------------------------------------
    # Public API: one method per indicator kind
    # ------------------------------------------------------------------

    async def calculate_sma(
        self, request: PeriodRequest, provider: IndicatorProvider | None = None
    ) -> IndicatorResult:
        """Simple Moving Average of bar averages."""
        return await self._calculate_period(IndicatorKind.SMA, request, provider)

    async def calculate_ema(
        self, request: PeriodRequest, provider: IndicatorProvider | None = None
    ) -> IndicatorResult:
        """Exponential Moving Average of bar averages."""
        return await self._calculate_period(IndicatorKind.EMA, request, provider)

    async def calculate_rsi(
        self, request: PeriodRequest, provider: IndicatorProvider | None = None
    ) -> IndicatorResult:
        """Relative Strength Index of bar averages."""
        return await self._calculate_period(IndicatorKind.RSI, request, provider)

    async def calculate_sd(
        self, request: PeriodRequest, provider: IndicatorProvider | None = None
    ) -> IndicatorResult:
        """Rolling standard deviation of bar averages."""
        return await self._calculate_period(IndicatorKind.STD_DEV, request, provider)

    async def calculate_atr(
        self, request: PeriodRequest, provider: IndicatorProvider | None = None
    ) -> IndicatorResult:
        """Average True Range from highs, lows and averages."""
        length = len(request.prices)

        def compute(calculator: IndicatorCalculator) -> IndicatorResult:
            raw = calculator.calculate(
                AtrOptions(
                    high=high_prices(request.prices),
                    low=low_prices(request.prices),
                    close=average_prices(request.prices),
                    period=request.period,
                )
            )
            values = _align(raw, length)
            return IndicatorResult(
                values=values,
                valid_count=_count_valid(values),
                period=request.period,
            )

        return await self._calculate(
            IndicatorKind.ATR,
            request.asset_id,
            request.prices,
            {"period": request.period},
            request.skip_cache,
            provider,
            compute,
        )

    async def calculate_macd(
        self, request: MacdRequest, provider: IndicatorProvider | None = None
    ) -> MacdResult:
        """MACD line, signal line and histogram."""
        length = len(request.prices)

        def compute(calculator: IndicatorCalculator) -> MacdResult:
            raw: MacdSeries = calculator.calculate(
                MacdOptions(
                    values=average_prices(request.prices),
                    fast_period=request.fast_period,
                    slow_period=request.slow_period,
                    signal_period=request.signal_period,
                )
            )
            histogram = _align(raw.histogram, length)
            return MacdResult(
                macd=_align(raw.macd, length),
                signal=_align(raw.signal, length),
                histogram=histogram,
                valid_count=_count_valid(histogram),
                fast_period=request.fast_period,
                slow_period=request.slow_period,
                signal_period=request.signal_period,
            )

        return await self._calculate(
            IndicatorKind.MACD,
            request.asset_id,
            request.prices,
            {
                "fastPeriod": request.fast_period,
                "slowPeriod": request.slow_period,
                "signalPeriod": request.signal_period,
            },
            request.skip_cache,
            provider,
            compute,
        )

    async def calculate_bollinger_bands(
        self, request: BollingerBandsRequest, provider: IndicatorProvider | None = None
    ) -> BollingerBandsResult:
        """Bollinger Bands with %B and bandwidth."""
        length = len(request.prices)

        def compute(calculator: IndicatorCalculator) -> BollingerBandsResult:
            raw: BollingerBandsSeries = calculator.calculate(
                BollingerBandsOptions(
                    values=average_prices(request.prices),
                    period=request.period,
                    std_dev=request.std_dev,
                )
            )
            middle = _align(raw.middle, length)
            return BollingerBandsResult(
                upper=_align(raw.upper, length),
                middle=middle,
                lower=_align(raw.lower, length),
                percent_b=_align(raw.percent_b, length),
                bandwidth=_align(raw.bandwidth, length),
                valid_count=_count_valid(middle),
                period=request.period,
                std_dev=request.std_dev,
            )

        return await self._calculate(
            IndicatorKind.BOLLINGER_BANDS,
            request.asset_id,
            request.prices,
            {"period": request.period, "stdDev": request.std_dev},
            request.skip_cache,
            provider,
            compute,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def get_warmup_period(self, kind: IndicatorKind, **params: Any) -> int:
        """Warmup period of the default calculator for ``kind``."""
        calculator, _ = self._get_calculator(kind, None)
        return calculator.get_warmup_period(**params)

    def has_enough_data(self, kind: IndicatorKind, length: int, **params: Any) -> bool:
        """Check that a series of ``length`` bars yields at least one value."""
        return length > self.get_warmup_period(kind, **params)

    async def clear_cache(self) -> int:
        """Drop all cached results. Returns the number removed."""
        if self._cache is None:
            return 0
        removed = await self._cache.clear()
        logger.info(f"Indicator cache cleared ({removed} entries)")
        return removed

    def cache_stats(self) -> CacheStats:
        """Counters from the underlying cache (zeros when disabled)."""
        if self._cache is None:
            return CacheStats()
        return self._cache.stats()
