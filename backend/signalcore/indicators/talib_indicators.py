"""Technical indicator calculators using TA-Lib.

Each calculator validates its options, delegates the formula to TA-Lib
and returns series aligned with the input, with ``None`` in place of
TA-Lib's leading NaN values.

Warmup periods (bars consumed before the first valid output):
- SMA, EMA, SD, Bollinger Bands: period - 1
- RSI, ATR: period
- MACD: slow_period + signal_period - 2
"""

from __future__ import annotations

import math
from typing import Any, Sequence

import numpy as np
import talib

from signalcore.indicators.types import (
    AtrOptions,
    BollingerBandsOptions,
    BollingerBandsSeries,
    IndicatorKind,
    MacdOptions,
    MacdSeries,
    PeriodOptions,
)
from signalcore.indicators.validation import (
    IndicatorValidationError,
    validate_length,
    validate_period,
    validate_positive,
    validate_values,
)


def _to_array(values: Sequence[float]) -> np.ndarray:
    return np.array([float(v) for v in values], dtype=np.float64)


def _to_optional(arr: np.ndarray) -> list[float | None]:
    """Convert a TA-Lib output array, mapping NaN/inf to None."""
    return [float(v) if math.isfinite(v) else None for v in arr]


class _PeriodCalculator:
    """Shared validation for single-period calculators over one series."""

    kind: IndicatorKind
    default_period = 14
    # TA-Lib rejects shorter windows
    min_period = 2

    def get_warmup_period(self, **params: Any) -> int:
        return params.get("period", self.default_period) - 1

    def validate_options(self, options: PeriodOptions) -> None:
        validate_period(options.period, minimum=self.min_period)
        validate_values(options.values)
        validate_length(
            options.values, self.get_warmup_period(period=options.period) + 1
        )

    def calculate(self, options: PeriodOptions) -> list[float | None]:
        self.validate_options(options)
        return _to_optional(self._compute(_to_array(options.values), options.period))

    def _compute(self, arr: np.ndarray, period: int) -> np.ndarray:
        raise NotImplementedError


class SmaCalculator(_PeriodCalculator):
    """Simple Moving Average."""

    kind = IndicatorKind.SMA
    default_period = 20

    def _compute(self, arr: np.ndarray, period: int) -> np.ndarray:
        return talib.SMA(arr, timeperiod=period)


class EmaCalculator(_PeriodCalculator):
    """Exponential Moving Average (seeded with the SMA of the first period)."""

    kind = IndicatorKind.EMA
    default_period = 20

    def _compute(self, arr: np.ndarray, period: int) -> np.ndarray:
        return talib.EMA(arr, timeperiod=period)


class RsiCalculator(_PeriodCalculator):
    """Relative Strength Index (Wilder smoothing)."""

    kind = IndicatorKind.RSI

    def get_warmup_period(self, **params: Any) -> int:
        return params.get("period", self.default_period)

    def _compute(self, arr: np.ndarray, period: int) -> np.ndarray:
        return talib.RSI(arr, timeperiod=period)


class StdDevCalculator(_PeriodCalculator):
    """Population standard deviation over a rolling window."""

    kind = IndicatorKind.STD_DEV
    default_period = 20

    def _compute(self, arr: np.ndarray, period: int) -> np.ndarray:
        return talib.STDDEV(arr, timeperiod=period, nbdev=1.0)


class MacdCalculator:
    """Moving Average Convergence Divergence."""

    kind = IndicatorKind.MACD

    def get_warmup_period(self, **params: Any) -> int:
        slow = params.get("slow_period", 26)
        signal = params.get("signal_period", 9)
        return slow + signal - 2

    def validate_options(self, options: MacdOptions) -> None:
        validate_period(options.fast_period, "fast_period", minimum=2)
        validate_period(options.slow_period, "slow_period", minimum=2)
        validate_period(options.signal_period, "signal_period")
        if options.fast_period >= options.slow_period:
            raise IndicatorValidationError(
                "fast_period",
                options.fast_period,
                f"must be less than slow_period ({options.slow_period})",
            )
        validate_values(options.values)
        validate_length(
            options.values,
            self.get_warmup_period(
                slow_period=options.slow_period, signal_period=options.signal_period
            )
            + 1,
        )

    def calculate(self, options: MacdOptions) -> MacdSeries:
        self.validate_options(options)
        macd, signal, hist = talib.MACD(
            _to_array(options.values),
            fastperiod=options.fast_period,
            slowperiod=options.slow_period,
            signalperiod=options.signal_period,
        )
        return MacdSeries(
            macd=_to_optional(macd),
            signal=_to_optional(signal),
            histogram=_to_optional(hist),
        )


class BollingerBandsCalculator:
    """Bollinger Bands with %B and bandwidth.

    %B = (price - lower) / (upper - lower)
    bandwidth = (upper - lower) / middle

    Both are ``None`` where the denominator is zero.
    """

    kind = IndicatorKind.BOLLINGER_BANDS

    def get_warmup_period(self, **params: Any) -> int:
        return params.get("period", 20) - 1

    def validate_options(self, options: BollingerBandsOptions) -> None:
        validate_period(options.period, minimum=2)
        validate_positive(options.std_dev, "std_dev")
        validate_values(options.values)
        validate_length(options.values, options.period)

    def calculate(self, options: BollingerBandsOptions) -> BollingerBandsSeries:
        self.validate_options(options)
        arr = _to_array(options.values)
        upper, middle, lower = talib.BBANDS(
            arr,
            timeperiod=options.period,
            nbdevup=float(options.std_dev),
            nbdevdn=float(options.std_dev),
            matype=0,
        )

        width = upper - lower
        with np.errstate(divide="ignore", invalid="ignore"):
            percent_b = np.where(width > 0, (arr - lower) / width, np.nan)
            bandwidth = np.where(middle != 0, width / middle, np.nan)

        return BollingerBandsSeries(
            upper=_to_optional(upper),
            middle=_to_optional(middle),
            lower=_to_optional(lower),
            percent_b=_to_optional(percent_b),
            bandwidth=_to_optional(bandwidth),
        )


class AtrCalculator:
    """Average True Range (Wilder smoothing), using the bar average as close."""

    kind = IndicatorKind.ATR

    def get_warmup_period(self, **params: Any) -> int:
        return params.get("period", 14)

    def validate_options(self, options: AtrOptions) -> None:
        validate_period(options.period)
        validate_values(options.high, "high")
        validate_values(options.low, "low")
        validate_values(options.close, "close")
        n = len(options.close)
        if len(options.high) != n or len(options.low) != n:
            raise IndicatorValidationError(
                "high/low",
                (len(options.high), len(options.low)),
                f"must have the same length as close ({n})",
            )
        validate_length(options.close, options.period + 1, "close")

    def calculate(self, options: AtrOptions) -> list[float | None]:
        self.validate_options(options)
        result = talib.ATR(
            _to_array(options.high),
            _to_array(options.low),
            _to_array(options.close),
            timeperiod=options.period,
        )
        return _to_optional(result)


def default_calculators() -> dict[IndicatorKind, Any]:
    """Build a fresh calculator for every indicator kind."""
    return {
        IndicatorKind.SMA: SmaCalculator(),
        IndicatorKind.EMA: EmaCalculator(),
        IndicatorKind.RSI: RsiCalculator(),
        IndicatorKind.MACD: MacdCalculator(),
        IndicatorKind.BOLLINGER_BANDS: BollingerBandsCalculator(),
        IndicatorKind.ATR: AtrCalculator(),
        IndicatorKind.STD_DEV: StdDevCalculator(),
    }
