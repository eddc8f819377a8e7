"""Tests for the z-score mean reversion strategy."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from signalcore.indicators import IndicatorResult
from signalcore.models import AlgorithmContext, Asset, PriceBar, SignalType
from signalcore.strategy.mean_reversion import MeanReversionStrategy, z_score

START = datetime(2024, 1, 1, tzinfo=timezone.utc)
PERIOD = 20
N = 25


def _constant(value: float) -> IndicatorResult:
    values = tuple([None] * (PERIOD - 1) + [value] * (N - PERIOD + 1))
    return IndicatorResult(values=values, valid_count=N - PERIOD + 1, period=PERIOD)


def _make_strategy(sma: float, sd: float) -> MeanReversionStrategy:
    service = AsyncMock()
    service.calculate_sma.return_value = _constant(sma)
    service.calculate_sd.return_value = _constant(sd)
    return MeanReversionStrategy(indicator_service=service)


def _make_context(last_price: float, config=None) -> AlgorithmContext:
    averages = [100.0] * (N - 1) + [last_price]
    bars = [
        PriceBar(timestamp=START + timedelta(days=i), average=a, high=a + 1, low=a - 1)
        for i, a in enumerate(averages)
    ]
    return AlgorithmContext(
        assets=[Asset(id="ada", symbol="ADA")],
        price_data={"ada": bars},
        config=config or {},
    )


class TestMeanReversionSignals:
    """Tests for z-score thresholds."""

    @pytest.mark.asyncio
    async def test_stretched_below_mean_buys(self):
        strategy = _make_strategy(sma=100.0, sd=2.0)

        result = await strategy.execute(_make_context(92.0))

        assert len(result.signals) == 1
        signal = result.signals[0]
        assert signal.type == SignalType.BUY
        assert signal.metadata["zScore"] == pytest.approx(-4.0)
        assert signal.metadata["signalType"] == "oversold"
        assert signal.strength == pytest.approx(1.0)
        assert signal.confidence == pytest.approx(0.6)
        assert "4.00 standard deviations below" in signal.reason

    @pytest.mark.asyncio
    async def test_stretched_above_mean_sells(self):
        strategy = _make_strategy(sma=100.0, sd=2.0)

        result = await strategy.execute(_make_context(106.0, {"minConfidence": 0}))

        signal = result.signals[0]
        assert signal.type == SignalType.SELL
        assert signal.strength == pytest.approx(0.5)
        assert signal.confidence == pytest.approx(0.45)

    @pytest.mark.asyncio
    async def test_weak_stretch_filtered_by_default_confidence(self):
        strategy = _make_strategy(sma=100.0, sd=2.0)

        result = await strategy.execute(_make_context(105.0))

        assert result.signals == []

    @pytest.mark.asyncio
    async def test_within_threshold_no_signal(self):
        strategy = _make_strategy(sma=100.0, sd=2.0)

        result = await strategy.execute(_make_context(103.0, {"minConfidence": 0}))

        assert result.signals == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("threshold", [0, -1.5])
    async def test_non_positive_threshold_gives_no_signal(self, threshold):
        strategy = _make_strategy(sma=100.0, sd=2.0)

        result = await strategy.execute(
            _make_context(101.0, {"minConfidence": 0, "threshold": threshold})
        )

        assert result.success is True
        assert result.signals == []

    @pytest.mark.asyncio
    async def test_zero_std_dev_gives_no_signal(self):
        strategy = _make_strategy(sma=100.0, sd=0.0)

        result = await strategy.execute(_make_context(50.0, {"minConfidence": 0}))

        assert result.success is True
        assert result.signals == []
        point = result.chart_data["ada"][-1]
        assert point.metadata["zScore"] is None
        assert point.metadata["upperBand"] == 100.0

    @pytest.mark.asyncio
    async def test_chart_bands(self):
        strategy = _make_strategy(sma=100.0, sd=2.0)

        result = await strategy.execute(_make_context(92.0))

        points = result.chart_data["ada"]
        assert points[0].metadata["upperBand"] is None
        assert points[-1].metadata["upperBand"] == pytest.approx(104.0)
        assert points[-1].metadata["lowerBand"] == pytest.approx(96.0)
        assert points[-1].metadata["middleBand"] == 100.0


class TestZScore:
    """Tests for the z-score helper."""

    def test_z_score(self):
        assert z_score(110.0, 100.0, 5.0) == pytest.approx(2.0)

    def test_undefined_inputs(self):
        assert z_score(110.0, None, 5.0) is None
        assert z_score(110.0, 100.0, 0.0) is None
        assert z_score(110.0, 100.0, None) is None

    def test_min_data_points(self):
        strategy = MeanReversionStrategy()

        assert strategy.min_data_points(strategy.get_config_with_defaults({})) == 21
