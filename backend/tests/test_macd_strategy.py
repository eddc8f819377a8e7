"""Tests for the MACD crossover strategy."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from signalcore.indicators import MacdResult
from signalcore.models import AlgorithmContext, Asset, PriceBar, SignalType
from signalcore.strategy.macd import MacdStrategy
from signalcore.strategy.macd.generator import histogram_strength, momentum_confidence

START = datetime(2024, 1, 1, tzinfo=timezone.utc)
N = 40


def _pad(tail: list[float], n: int = N) -> tuple:
    return tuple([None] * (n - len(tail)) + tail)


def _make_strategy(macd: tuple, signal: tuple, histogram: tuple) -> MacdStrategy:
    service = AsyncMock()
    service.calculate_macd.return_value = MacdResult(
        macd=macd,
        signal=signal,
        histogram=histogram,
        valid_count=sum(h is not None for h in histogram),
        fast_period=12,
        slow_period=26,
        signal_period=9,
    )
    return MacdStrategy(indicator_service=service)


def _make_context(config=None) -> AlgorithmContext:
    bars = [
        PriceBar(timestamp=START + timedelta(hours=i), average=50.0 + i, high=51.0 + i, low=49.0 + i)
        for i in range(N)
    ]
    return AlgorithmContext(
        assets=[Asset(id="sol", symbol="SOL")],
        price_data={"sol": bars},
        config=config or {},
    )


def _bullish_cross(last_histogram: float = 1.0):
    macd = _pad([-1.0] * 14 + [1.0])
    signal = _pad([0.0] * 7)
    histogram = _pad([-1.0] * 6 + [last_histogram])
    return macd, signal, histogram


class TestCrossovers:
    """Tests for crossover detection and confirmation."""

    @pytest.mark.asyncio
    async def test_bullish_crossover(self):
        strategy = _make_strategy(*_bullish_cross())

        result = await strategy.execute(_make_context({"minConfidence": 0}))

        assert len(result.signals) == 1
        signal = result.signals[0]
        assert signal.type == SignalType.BUY
        assert signal.strength == pytest.approx(0.5)
        assert signal.confidence == pytest.approx(0.5)
        assert signal.metadata["crossoverType"] == "bullish"
        assert signal.metadata["previousMACD"] == -1.0
        assert "crossed above Signal" in signal.reason

    @pytest.mark.asyncio
    async def test_bearish_crossover(self):
        macd = _pad([1.0] * 14 + [-1.0])
        signal = _pad([0.0] * 7)
        histogram = _pad([1.0] * 6 + [-1.0])
        strategy = _make_strategy(macd, signal, histogram)

        result = await strategy.execute(_make_context({"minConfidence": 0}))

        assert [s.type for s in result.signals] == [SignalType.SELL]

    @pytest.mark.asyncio
    async def test_no_crossover(self):
        macd = _pad([1.0] * 15)
        signal = _pad([0.0] * 7)
        histogram = _pad([1.0] * 7)
        strategy = _make_strategy(macd, signal, histogram)

        result = await strategy.execute(_make_context({"minConfidence": 0}))

        assert result.signals == []

    @pytest.mark.asyncio
    async def test_histogram_confirmation_rejects_weak_histogram(self):
        strategy = _make_strategy(*_bullish_cross(last_histogram=0.0))

        result = await strategy.execute(_make_context({"minConfidence": 0}))

        assert result.signals == []

    @pytest.mark.asyncio
    async def test_zero_histogram_gives_floor_strength(self):
        macd, signal, _ = _bullish_cross()
        histogram = _pad([0.0] * 7)
        strategy = _make_strategy(macd, signal, histogram)

        result = await strategy.execute(
            _make_context({"useHistogramConfirmation": False, "minConfidence": 0})
        )

        assert len(result.signals) == 1
        assert result.signals[0].strength == pytest.approx(0.3)

    @pytest.mark.asyncio
    async def test_default_min_confidence_filters_fresh_cross(self):
        strategy = _make_strategy(*_bullish_cross())

        result = await strategy.execute(_make_context())

        assert result.success is True
        assert result.signals == []

    @pytest.mark.asyncio
    async def test_chart_series(self):
        strategy = _make_strategy(*_bullish_cross())

        result = await strategy.execute(_make_context())

        point = result.chart_data["sol"][-1]
        assert point.metadata["macd"] == 1.0
        assert point.metadata["signal"] == 0.0
        assert point.metadata["histogram"] == 1.0
        assert result.chart_data["sol"][0].metadata["macd"] is None


class TestScoring:
    """Tests for strength and confidence helpers."""

    def test_histogram_strength_floor_for_missing_value(self):
        assert histogram_strength([None, None]) == 0.3

    def test_histogram_strength_caps_at_one(self):
        assert histogram_strength([0.1] * 20 + [5.0]) == pytest.approx(1.0)

    def test_momentum_confidence_full_trend(self):
        macd = [float(i) for i in range(10)]
        signal = [0.0] * 10
        histogram = [float(i) for i in range(10)]

        assert momentum_confidence(macd, signal, histogram, "bullish") == pytest.approx(1.0)
        assert momentum_confidence(macd, signal, histogram, "bearish") == pytest.approx(0.3)

    def test_min_data_points(self):
        strategy = MacdStrategy()

        assert strategy.min_data_points(strategy.get_config_with_defaults({})) == 35
