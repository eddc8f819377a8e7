"""Tests for TA-Lib backed indicator calculators."""

import pytest

from signalcore.indicators import (
    AtrCalculator,
    AtrOptions,
    BollingerBandsCalculator,
    BollingerBandsOptions,
    EmaCalculator,
    IndicatorKind,
    IndicatorValidationError,
    MacdCalculator,
    MacdOptions,
    PeriodOptions,
    RsiCalculator,
    SmaCalculator,
    StdDevCalculator,
    default_calculators,
)


def _ramp(n: int, start: float = 1.0) -> list[float]:
    return [start + i for i in range(n)]


class TestSMA:
    """Tests for SMA calculation."""

    def test_sma_basic(self):
        result = SmaCalculator().calculate(PeriodOptions(values=_ramp(10), period=3))

        assert len(result) == 10
        assert result[0] is None
        assert result[1] is None
        # (1+2+3)/3
        assert result[2] == pytest.approx(2.0)
        assert result[9] == pytest.approx(9.0)

    def test_warmup_period(self):
        assert SmaCalculator().get_warmup_period(period=20) == 19

    def test_insufficient_data(self):
        with pytest.raises(IndicatorValidationError, match="needs at least 5 data points"):
            SmaCalculator().calculate(PeriodOptions(values=_ramp(4), period=5))


class TestEMA:
    """Tests for EMA calculation."""

    def test_ema_seeded_with_sma(self):
        result = EmaCalculator().calculate(PeriodOptions(values=_ramp(10), period=5))

        assert all(v is None for v in result[:4])
        # First value is the SMA of the first 5 values
        assert result[4] == pytest.approx(3.0)
        assert result[5] > result[4]

    def test_warmup_period(self):
        assert EmaCalculator().get_warmup_period(period=12) == 11


class TestRSI:
    """Tests for RSI calculation."""

    def test_rsi_all_gains(self):
        result = RsiCalculator().calculate(PeriodOptions(values=_ramp(20), period=14))

        assert all(v is None for v in result[:14])
        assert result[14] == pytest.approx(100.0)

    def test_rsi_bounded(self):
        values = [100 + (i % 7) * (-1) ** i for i in range(40)]
        result = RsiCalculator().calculate(PeriodOptions(values=values, period=14))

        assert all(0 <= v <= 100 for v in result if v is not None)

    def test_warmup_period(self):
        assert RsiCalculator().get_warmup_period(period=14) == 14

    def test_needs_period_plus_one_points(self):
        with pytest.raises(IndicatorValidationError):
            RsiCalculator().calculate(PeriodOptions(values=_ramp(14), period=14))


class TestStdDev:
    """Tests for rolling standard deviation."""

    def test_population_std_dev(self):
        result = StdDevCalculator().calculate(
            PeriodOptions(values=[2, 4, 4, 4, 5, 5, 7, 9], period=8)
        )

        assert result[-1] == pytest.approx(2.0)
        assert all(v is None for v in result[:7])


class TestMACD:
    """Tests for MACD calculation."""

    def test_series_lengths_and_warmup(self):
        values = [100 + i * 0.5 for i in range(60)]
        result = MacdCalculator().calculate(MacdOptions(values=values))

        assert len(result.macd) == len(result.signal) == len(result.histogram) == 60
        warmup = MacdCalculator().get_warmup_period(slow_period=26, signal_period=9)
        assert warmup == 33
        assert result.histogram[warmup - 1] is None
        assert result.histogram[warmup] is not None

    def test_histogram_is_macd_minus_signal(self):
        values = [100 + (i % 5) for i in range(60)]
        result = MacdCalculator().calculate(MacdOptions(values=values))

        last = len(values) - 1
        assert result.histogram[last] == pytest.approx(result.macd[last] - result.signal[last])

    def test_fast_must_be_less_than_slow(self):
        with pytest.raises(IndicatorValidationError, match="fast_period"):
            MacdCalculator().calculate(
                MacdOptions(values=_ramp(60), fast_period=26, slow_period=12)
            )


class TestBollingerBands:
    """Tests for Bollinger Bands."""

    def test_band_ordering(self):
        values = [100 + (i % 4) for i in range(30)]
        result = BollingerBandsCalculator().calculate(
            BollingerBandsOptions(values=values, period=20, std_dev=2)
        )

        for upper, middle, lower in zip(result.upper[19:], result.middle[19:], result.lower[19:]):
            assert upper > middle > lower

    def test_percent_b_and_bandwidth(self):
        values = [100 + (i % 4) for i in range(30)]
        result = BollingerBandsCalculator().calculate(
            BollingerBandsOptions(values=values, period=20, std_dev=2)
        )

        i = 29
        width = result.upper[i] - result.lower[i]
        assert result.percent_b[i] == pytest.approx((values[i] - result.lower[i]) / width)
        assert result.bandwidth[i] == pytest.approx(width / result.middle[i])

    def test_rejects_non_positive_std_dev(self):
        with pytest.raises(IndicatorValidationError, match="std_dev"):
            BollingerBandsCalculator().calculate(
                BollingerBandsOptions(values=_ramp(30), period=20, std_dev=0)
            )


class TestATR:
    """Tests for ATR calculation."""

    def test_constant_range(self):
        n = 30
        close = [100.0] * n
        result = AtrCalculator().calculate(
            AtrOptions(high=[105.0] * n, low=[95.0] * n, close=close, period=14)
        )

        assert all(v is None for v in result[:14])
        assert result[14] == pytest.approx(10.0)
        assert result[-1] == pytest.approx(10.0)

    def test_mismatched_lengths(self):
        with pytest.raises(IndicatorValidationError, match="high/low"):
            AtrCalculator().calculate(
                AtrOptions(high=[1.0] * 20, low=[1.0] * 19, close=[1.0] * 20, period=14)
            )


class TestValidation:
    """Tests for shared calculator validation."""

    @pytest.mark.parametrize("period", [0, -3, 2.5, "14", True])
    def test_bad_period(self, period):
        with pytest.raises(IndicatorValidationError) as exc_info:
            SmaCalculator().calculate(PeriodOptions(values=_ramp(30), period=period))

        assert exc_info.value.field == "period"
        assert repr(period) in str(exc_info.value)

    def test_nan_value_names_index(self):
        values = _ramp(30)
        values[7] = float("nan")

        with pytest.raises(IndicatorValidationError, match=r"values\[7\]"):
            EmaCalculator().calculate(PeriodOptions(values=values, period=5))

    def test_non_numeric_value(self):
        values = _ramp(30)
        values[3] = "abc"

        with pytest.raises(IndicatorValidationError, match="must be numeric"):
            SmaCalculator().calculate(PeriodOptions(values=values, period=5))

    def test_validation_error_is_value_error(self):
        assert issubclass(IndicatorValidationError, ValueError)


def test_default_calculators_cover_every_kind():
    calculators = default_calculators()

    assert set(calculators) == set(IndicatorKind)
    assert all(calc.kind == kind for kind, calc in calculators.items())
