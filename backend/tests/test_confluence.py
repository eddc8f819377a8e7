"""Tests for the multi-indicator confluence strategy."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from signalcore.indicators import BollingerBandsResult, IndicatorResult, MacdResult
from signalcore.models import AlgorithmContext, Asset, PriceBar, SignalType
from signalcore.strategy.confluence import (
    ConfluenceConfig,
    ConfluenceStrategy,
    IndicatorVote,
    score_confluence,
)
from signalcore.strategy.confluence.generator import vote_atr, vote_bollinger, vote_macd, vote_rsi

START = datetime(2024, 1, 1, tzinfo=timezone.utc)
N = 40


def _pad(value: float, warmup: int, last: float | None = None) -> tuple:
    values = [None] * warmup + [value] * (N - warmup)
    if last is not None:
        values[-1] = last
    return tuple(values)


def _make_service(
    fast: float = 105.0,
    slow: float = 100.0,
    rsi: float = 70.0,
    histogram: float = 1.0,
    percent_b: float = 0.9,
    atr_last: float | None = None,
) -> AsyncMock:
    fast_result = IndicatorResult(values=_pad(fast, 11), valid_count=N - 11, period=12)
    slow_result = IndicatorResult(values=_pad(slow, 25), valid_count=N - 25, period=26)

    def ema(request, provider=None):
        return fast_result if request.period == 12 else slow_result

    service = AsyncMock()
    service.calculate_ema.side_effect = ema
    service.calculate_rsi.return_value = IndicatorResult(
        values=_pad(rsi, 14), valid_count=N - 14, period=14
    )
    service.calculate_macd.return_value = MacdResult(
        macd=_pad(histogram, 33),
        signal=_pad(0.0, 33),
        histogram=_pad(histogram, 33),
        valid_count=N - 33,
        fast_period=12,
        slow_period=26,
        signal_period=9,
    )
    service.calculate_atr.return_value = IndicatorResult(
        values=_pad(1.0, 14, atr_last), valid_count=N - 14, period=14
    )
    service.calculate_bollinger_bands.return_value = BollingerBandsResult(
        upper=_pad(105.0, 19),
        middle=_pad(100.0, 19),
        lower=_pad(95.0, 19),
        percent_b=_pad(percent_b, 19),
        bandwidth=_pad(0.1, 19),
        valid_count=N - 19,
        period=20,
        std_dev=2.0,
    )
    return service


def _make_context(config=None, n: int = N) -> AlgorithmContext:
    bars = [
        PriceBar(timestamp=START + timedelta(hours=i), average=100.0 + i * 0.1, high=101.0, low=99.0)
        for i in range(n)
    ]
    return AlgorithmContext(
        assets=[Asset(id="btc", symbol="BTC")],
        price_data={"btc": bars},
        config=config or {},
    )


def _vote(name: str, signal: str, strength: float = 0.5) -> IndicatorVote:
    return IndicatorVote(name, signal, strength, f"{name} {signal}", {})


class TestScoreConfluence:
    """Tests for vote aggregation."""

    def test_buy_when_enough_agree(self):
        votes = [_vote("EMA", "bullish"), _vote("RSI", "bullish"), _vote("MACD", "neutral")]

        score = score_confluence(votes, ConfluenceConfig())

        assert score.direction == "buy"
        assert score.confluence_count == 2
        assert score.total_enabled == 3

    def test_tie_holds(self):
        votes = [
            _vote("EMA", "bullish"),
            _vote("RSI", "bullish"),
            _vote("MACD", "bearish"),
            _vote("BB", "bearish"),
        ]

        assert score_confluence(votes, ConfluenceConfig()).direction == "hold"

    def test_sell_threshold_defaults_to_buy_threshold(self):
        votes = [_vote("EMA", "bearish"), _vote("RSI", "bearish"), _vote("BB", "neutral")]

        default = score_confluence(votes, ConfluenceConfig())
        strict = score_confluence(votes, ConfluenceConfig(min_sell_confluence=3))

        assert default.direction == "sell"
        assert strict.direction == "hold"

    def test_filtered_atr_suppresses_everything(self):
        votes = [
            _vote("EMA", "bullish"),
            _vote("RSI", "bullish"),
            _vote("MACD", "bullish"),
            _vote("ATR", "filtered", 0.0),
        ]

        score = score_confluence(votes, ConfluenceConfig())

        assert score.direction == "hold"
        assert score.volatility_filtered is True
        assert score.total_enabled == 3

    def test_average_strength_counts_agreeing_and_neutral(self):
        votes = [
            _vote("EMA", "bullish", 1.0),
            _vote("RSI", "bullish", 0.6),
            _vote("MACD", "bearish", 0.9),
            _vote("ATR", "neutral", 0.5),
        ]

        score = score_confluence(votes, ConfluenceConfig())

        assert score.average_strength == pytest.approx(0.7)


class TestVotes:
    """Tests for individual indicator votes."""

    def test_rsi_is_trend_confirming(self):
        assert vote_rsi(70, 55, 45).signal == "bullish"
        assert vote_rsi(30, 55, 45).signal == "bearish"
        assert vote_rsi(50, 55, 45).signal == "neutral"
        assert vote_rsi(None, 55, 45).strength == 0.0

    def test_macd_zero_history_does_not_divide_by_zero(self):
        histogram = [0.0] * 10
        vote = vote_macd(histogram, histogram, histogram, 9)

        assert vote.signal == "neutral"
        assert vote.strength == 0.3

    def test_atr_gate(self):
        calm = vote_atr([1.0] * 20, 19, 14, 2.0)
        spike = vote_atr([1.0] * 19 + [5.0], 19, 14, 2.0)

        assert calm.signal == "neutral"
        assert calm.strength == pytest.approx(0.5)
        assert spike.signal == "filtered"

    def test_atr_zero_average(self):
        vote = vote_atr([0.0] * 20, 19, 14, 2.0)

        assert vote.signal == "neutral"
        assert 0 <= vote.strength <= 1

    def test_bollinger_missing_bandwidth(self):
        assert vote_bollinger(0.9, None, 0.55, 0.45).signal == "neutral"
        assert vote_bollinger(0.9, 0.1, 0.55, 0.45).signal == "bullish"


class TestConfluenceStrategy:
    """Tests for full strategy runs."""

    @pytest.mark.asyncio
    async def test_all_indicators_agree(self):
        strategy = ConfluenceStrategy(indicator_service=_make_service())

        result = await strategy.execute(_make_context())

        assert len(result.signals) == 1
        signal = result.signals[0]
        assert signal.type == SignalType.BUY
        assert signal.metadata["confluenceCount"] == 4
        assert signal.metadata["totalEnabled"] == 4
        assert signal.metadata["agreeingIndicators"] == ["EMA", "RSI", "MACD", "BB"]
        assert signal.metadata["isVolatilityFiltered"] is False
        assert [entry["name"] for entry in signal.metadata["indicatorBreakdown"]] == [
            "EMA", "RSI", "MACD", "BB", "ATR",
        ]
        assert signal.reason == "Confluence BUY: 4/4 indicators agree (EMA, RSI, MACD, BB)"
        assert 0 <= signal.strength <= 1
        assert 0 <= signal.confidence <= 1

    @pytest.mark.asyncio
    async def test_split_vote_holds(self):
        service = _make_service(histogram=-1.0, percent_b=0.1)
        strategy = ConfluenceStrategy(indicator_service=service)

        result = await strategy.execute(_make_context({"minConfidence": 0}))

        assert result.success is True
        assert result.signals == []

    @pytest.mark.asyncio
    async def test_volatility_spike_suppresses_signal(self):
        strategy = ConfluenceStrategy(indicator_service=_make_service(atr_last=5.0))

        result = await strategy.execute(_make_context({"minConfidence": 0}))

        assert result.signals == []

    @pytest.mark.asyncio
    async def test_disabled_indicators_are_not_computed(self):
        service = _make_service()
        strategy = ConfluenceStrategy(indicator_service=service)

        result = await strategy.execute(
            _make_context({"macdEnabled": False, "atrEnabled": False, "bbEnabled": False})
        )

        service.calculate_macd.assert_not_called()
        service.calculate_atr.assert_not_called()
        assert result.signals[0].metadata["totalEnabled"] == 2
        assert "macd" not in result.chart_data["btc"][-1].metadata

    @pytest.mark.asyncio
    async def test_chart_series(self):
        strategy = ConfluenceStrategy(indicator_service=_make_service())

        result = await strategy.execute(_make_context())

        metadata = result.chart_data["btc"][-1].metadata
        for key in ("emaFast", "emaSlow", "rsi", "atr", "macd", "macdSignal", "histogram",
                    "bbUpper", "bbMiddle", "bbLower", "percentB", "bandwidth"):
            assert key in metadata

    def test_min_confluence_above_enabled_count_cannot_execute(self):
        strategy = ConfluenceStrategy(indicator_service=_make_service())
        config = {"macdEnabled": False, "bbEnabled": False, "minConfluence": 3}

        assert strategy.can_execute(_make_context(config)) is False
        assert strategy.can_execute(_make_context({"minSellConfluence": 5})) is False
        assert strategy.can_execute(_make_context()) is True

    @pytest.mark.asyncio
    async def test_safe_execute_reports_unreachable_confluence(self):
        strategy = ConfluenceStrategy(indicator_service=_make_service())

        result = await strategy.safe_execute(_make_context({"minConfluence": 5}))

        assert result.success is False

    def test_min_data_points_follow_enabled_indicators(self):
        strategy = ConfluenceStrategy()

        assert strategy.min_data_points(strategy.get_config_with_defaults({})) == 34
        assert strategy.min_data_points(
            strategy.get_config_with_defaults({"macdEnabled": False})
        ) == 27
