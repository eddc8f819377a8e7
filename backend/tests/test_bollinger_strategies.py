"""Tests for the Bollinger breakout and squeeze strategies."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from signalcore.indicators import BollingerBandsResult
from signalcore.models import AlgorithmContext, Asset, PriceBar, SignalType
from signalcore.strategy.bollinger_breakout import (
    BollingerBreakoutStrategy,
    breakout_confirmation,
)
from signalcore.strategy.bollinger_squeeze import (
    BollingerSqueezeStrategy,
    find_squeeze,
    squeeze_intensity,
)

START = datetime(2024, 1, 1, tzinfo=timezone.utc)
WARMUP = 19


def _make_bars(averages) -> list[PriceBar]:
    return [
        PriceBar(timestamp=START + timedelta(hours=i), average=a, high=a + 0.5, low=a - 0.5)
        for i, a in enumerate(averages)
    ]


def _make_bands(averages, bandwidth, upper=105.0, middle=100.0, lower=95.0) -> BollingerBandsResult:
    """Constant bands after warmup; %B derived from the averages."""
    n = len(averages)
    pad = [None] * WARMUP
    return BollingerBandsResult(
        upper=tuple(pad + [upper] * (n - WARMUP)),
        middle=tuple(pad + [middle] * (n - WARMUP)),
        lower=tuple(pad + [lower] * (n - WARMUP)),
        percent_b=tuple(pad + [(a - lower) / (upper - lower) for a in averages[WARMUP:]]),
        bandwidth=tuple(bandwidth),
        valid_count=n - WARMUP,
        period=20,
        std_dev=2.0,
    )


def _make_service(bands: BollingerBandsResult) -> AsyncMock:
    service = AsyncMock()
    service.calculate_bollinger_bands.return_value = bands
    return service


def _make_context(averages, config=None, asset_ids=("btc",)) -> AlgorithmContext:
    return AlgorithmContext(
        assets=[Asset(id=asset_id, symbol=asset_id.upper()) for asset_id in asset_ids],
        price_data={asset_id: _make_bars(averages) for asset_id in asset_ids},
        config=config or {},
    )


# ---------------------------------------------------------------------------
# Breakout
# ---------------------------------------------------------------------------
def _breakout_case(tail: list[float], n: int = 25):
    averages = [100.0] * (n - len(tail)) + tail
    bandwidth = [None] * WARMUP + [0.10 + 0.01 * i for i in range(n - WARMUP)]
    return averages, _make_bands(averages, bandwidth)


class TestBollingerBreakout:
    """Tests for band breakout signals."""

    @pytest.mark.asyncio
    async def test_close_above_upper_band_buys(self):
        averages, bands = _breakout_case([108.0])
        strategy = BollingerBreakoutStrategy(indicator_service=_make_service(bands))

        result = await strategy.execute(_make_context(averages))

        assert len(result.signals) == 1
        signal = result.signals[0]
        assert signal.type == SignalType.BUY
        assert signal.strength == pytest.approx(0.6)
        assert signal.confidence == pytest.approx(0.9)
        assert signal.metadata["breakoutType"] == "bullish"
        assert signal.metadata["percentB"] == pytest.approx(1.3)
        assert signal.reason.startswith("Bullish breakout: Price (108.00) broke above upper band")

    @pytest.mark.asyncio
    async def test_close_below_lower_band_sells(self):
        averages, bands = _breakout_case([90.0])
        strategy = BollingerBreakoutStrategy(indicator_service=_make_service(bands))

        result = await strategy.execute(_make_context(averages, {"minConfidence": 0}))

        signal = result.signals[0]
        assert signal.type == SignalType.SELL
        assert signal.strength == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_inside_bands_no_signal(self):
        averages, bands = _breakout_case([104.0])
        strategy = BollingerBreakoutStrategy(indicator_service=_make_service(bands))

        result = await strategy.execute(_make_context(averages, {"minConfidence": 0}))

        assert result.signals == []

    @pytest.mark.asyncio
    async def test_confirmation_requires_consecutive_closes(self):
        single, single_bands = _breakout_case([108.0])
        double, double_bands = _breakout_case([106.0, 108.0])
        config = {"requireConfirmation": True, "minConfidence": 0}

        unconfirmed = await BollingerBreakoutStrategy(
            indicator_service=_make_service(single_bands)
        ).execute(_make_context(single, config))
        confirmed = await BollingerBreakoutStrategy(
            indicator_service=_make_service(double_bands)
        ).execute(_make_context(double, config))

        assert unconfirmed.signals == []
        assert [s.type for s in confirmed.signals] == [SignalType.BUY]

    @pytest.mark.asyncio
    async def test_chart_series(self):
        averages, bands = _breakout_case([108.0])
        strategy = BollingerBreakoutStrategy(indicator_service=_make_service(bands))

        result = await strategy.execute(_make_context(averages))

        point = result.chart_data["btc"][-1]
        assert point.metadata["upperBand"] == 105.0
        assert point.metadata["percentB"] == pytest.approx(1.3)
        assert point.metadata["high"] == 108.5
        assert result.chart_data["btc"][0].metadata["bandwidth"] is None

    @pytest.mark.asyncio
    async def test_price_spike_with_real_bands(self):
        averages = [100.0 + (i % 2) * 0.5 for i in range(29)] + [110.0]
        strategy = BollingerBreakoutStrategy()

        result = await strategy.execute(_make_context(averages, {"minConfidence": 0}))

        assert result.success is True
        assert [s.type for s in result.signals] == [SignalType.BUY]
        assert 0.3 <= result.signals[0].strength <= 1

    def test_breakout_confirmation_helper(self):
        averages = [100.0] * 23 + [106.0, 108.0]
        bands = _make_bands(averages, [None] * 25)
        bars = _make_bars(averages)

        assert breakout_confirmation(bars, bands.upper, bands.lower, 2) == "bullish"
        assert breakout_confirmation(bars, bands.upper, bands.lower, 3) is None

    def test_min_data_points(self):
        strategy = BollingerBreakoutStrategy()

        assert strategy.min_data_points(strategy.get_config_with_defaults({})) == 21
        assert strategy.min_data_points(
            strategy.get_config_with_defaults({"requireConfirmation": True, "confirmationBars": 3})
        ) == 23


# ---------------------------------------------------------------------------
# Squeeze
# ---------------------------------------------------------------------------
SQUEEZE_N = 35


def _squeeze_case(last_bandwidth: float = 0.05, prices_tail=(100.0, 101.0), gap_at: int | None = None):
    averages = [100.0] * (SQUEEZE_N - len(prices_tail)) + list(prices_tail)
    bandwidth = [None] * WARMUP + [0.02] * (SQUEEZE_N - WARMUP - 1) + [last_bandwidth]
    if gap_at is not None:
        bandwidth[gap_at] = None
    return averages, _make_bands(averages, bandwidth)


class TestFindSqueeze:
    """Tests for squeeze run detection."""

    def test_maximal_run_ending_at_index(self):
        bandwidth = [None, 0.05, 0.03, 0.02, 0.01, 0.06]

        run = find_squeeze(bandwidth, 0.04, 4)

        assert run.start == 2
        assert run.bars == 3
        assert run.min_bandwidth == pytest.approx(0.01)
        assert run.avg_bandwidth == pytest.approx(0.02)

    def test_no_run_when_end_not_in_squeeze(self):
        assert find_squeeze([0.01, 0.05], 0.04, 1) is None

    def test_missing_value_breaks_run(self):
        bandwidth = [0.01, 0.01, None, 0.01, 0.01]

        assert find_squeeze(bandwidth, 0.04, 4).bars == 2

    def test_intensity_uses_threshold(self):
        assert squeeze_intensity(0.02, 0.04) == pytest.approx(0.5)
        assert squeeze_intensity(0.05, 0.04) == 0.0
        assert squeeze_intensity(0.0, 0.0) == 0.0


class TestBollingerSqueeze:
    """Tests for squeeze breakout signals."""

    @pytest.mark.asyncio
    async def test_breakout_after_long_squeeze(self):
        averages, bands = _squeeze_case()
        strategy = BollingerSqueezeStrategy(indicator_service=_make_service(bands))

        result = await strategy.execute(_make_context(averages))

        assert len(result.signals) == 1
        signal = result.signals[0]
        assert signal.type == SignalType.BUY
        assert signal.metadata["squeezeBars"] == 15
        assert signal.metadata["squeezeStartIndex"] == WARMUP
        assert signal.metadata["minBandwidthDuringSqueeze"] == pytest.approx(0.02)
        assert signal.strength == pytest.approx(0.75)
        assert 0.6 <= signal.confidence <= 1
        assert "15 bars of low volatility" in signal.reason

    @pytest.mark.asyncio
    async def test_bearish_breakout(self):
        averages, bands = _squeeze_case(prices_tail=(100.0, 99.0))
        strategy = BollingerSqueezeStrategy(indicator_service=_make_service(bands))

        result = await strategy.execute(_make_context(averages, {"minConfidence": 0}))

        assert [s.type for s in result.signals] == [SignalType.SELL]

    @pytest.mark.asyncio
    async def test_still_in_squeeze_no_signal(self):
        averages, bands = _squeeze_case(last_bandwidth=0.03)
        strategy = BollingerSqueezeStrategy(indicator_service=_make_service(bands))

        result = await strategy.execute(_make_context(averages, {"minConfidence": 0}))

        assert result.signals == []

    @pytest.mark.asyncio
    async def test_gap_splits_squeeze_runs(self):
        # Bars 29-33 form a 5-bar run after the gap, below the 6-bar minimum
        averages, bands = _squeeze_case(gap_at=28)
        strategy = BollingerSqueezeStrategy(indicator_service=_make_service(bands))

        result = await strategy.execute(_make_context(averages, {"minConfidence": 0}))

        assert result.signals == []

    @pytest.mark.asyncio
    async def test_price_confirmation(self):
        averages, bands = _squeeze_case(prices_tail=(102.0, 101.0))
        confirmed = BollingerSqueezeStrategy(indicator_service=_make_service(bands))
        unconfirmed = BollingerSqueezeStrategy(indicator_service=_make_service(bands))

        strict = await confirmed.execute(_make_context(averages, {"minConfidence": 0}))
        relaxed = await unconfirmed.execute(
            _make_context(averages, {"minConfidence": 0, "breakoutConfirmation": False})
        )

        assert strict.signals == []
        assert [s.type for s in relaxed.signals] == [SignalType.BUY]

    @pytest.mark.asyncio
    async def test_failing_asset_is_isolated(self):
        averages, bands = _squeeze_case()

        def bollinger(request, provider=None):
            if request.asset_id == "bad":
                raise RuntimeError("band calculation failed")
            return bands

        service = AsyncMock()
        service.calculate_bollinger_bands.side_effect = bollinger
        strategy = BollingerSqueezeStrategy(indicator_service=service)

        result = await strategy.execute(_make_context(averages, asset_ids=("btc", "bad")))

        assert result.success is True
        assert [s.asset_id for s in result.signals] == ["btc"]
        assert result.metadata["skippedAssets"] == ["bad"]

    @pytest.mark.asyncio
    async def test_chart_marks_squeeze_bars(self):
        averages, bands = _squeeze_case()
        strategy = BollingerSqueezeStrategy(indicator_service=_make_service(bands))

        result = await strategy.execute(_make_context(averages))

        points = result.chart_data["btc"]
        assert points[0].metadata["isInSqueeze"] is False
        assert points[WARMUP].metadata["isInSqueeze"] is True
        assert points[-1].metadata["isInSqueeze"] is False

    def test_min_data_points(self):
        strategy = BollingerSqueezeStrategy()

        assert strategy.min_data_points(strategy.get_config_with_defaults({})) == 31
