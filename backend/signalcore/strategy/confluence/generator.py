"""Multi-indicator confluence strategy.

Four directional indicators vote on the current bar:
- EMA fast/slow (trend)
- RSI (momentum, trend-confirming reading)
- MACD histogram (oscillator)
- Bollinger %B (trend confirmation)

ATR does not vote. It suppresses every signal when current volatility
exceeds its recent average by more than ``atr_volatility_multiplier``.

BUY when at least ``min_confluence`` indicators are bullish and they
outnumber the bearish ones; SELL symmetrically with
``min_sell_confluence``. Equal counts always hold.
"""

import asyncio
import logging
from typing import Sequence

from signalcore.indicators.types import (
    BollingerBandsRequest,
    IndicatorKind,
    MacdRequest,
    PeriodRequest,
)
from signalcore.models import Asset, AlgorithmContext, PriceBar, SignalType, TradingSignal
from signalcore.strategy.base import AssetAnalysis, BaseStrategy, build_chart_data
from signalcore.strategy.confluence.models import (
    CONFLUENCE_STRATEGY_NAME,
    ConfluenceConfig,
    ConfluenceScore,
    IndicatorVote,
)
from signalcore.strategy.numeric import is_valid, mean, safe_div, window
from signalcore.strategy.registry import register_strategy

logger = logging.getLogger(__name__)

HISTOGRAM_LOOKBACK = 20


# ---------------------------------------------------------------------------
# Individual votes
# ---------------------------------------------------------------------------
def vote_ema(fast: Sequence[float | None], slow: Sequence[float | None], cur: int) -> IndicatorVote:
    """Bullish while the fast EMA is above the slow one; a fresh cross adds strength."""
    current_fast, current_slow = fast[cur], slow[cur]
    if not is_valid(current_fast) or not is_valid(current_slow):
        return IndicatorVote(
            "EMA", "neutral", 0.0, "Insufficient data for EMA calculation",
            {"emaFast": current_fast, "emaSlow": current_slow},
        )

    spread = safe_div(current_fast - current_slow, current_slow, 0.0)
    crossed = False
    if cur > 0 and is_valid(fast[cur - 1]) and is_valid(slow[cur - 1]):
        prev_fast, prev_slow = fast[cur - 1], slow[cur - 1]
        crossed = (prev_fast <= prev_slow and current_fast > current_slow) or (
            prev_fast >= prev_slow and current_fast < current_slow
        )

    # 5% spread = max
    strength = min(1.0, min(1.0, abs(spread) * 20) + (0.2 if crossed else 0.0))
    values = {"emaFast": current_fast, "emaSlow": current_slow, "spread": spread * 100}
    if current_fast > current_slow:
        return IndicatorVote(
            "EMA", "bullish", strength,
            f"Bullish trend: fast EMA ({current_fast:.2f}) > slow EMA ({current_slow:.2f})",
            values,
        )
    return IndicatorVote(
        "EMA", "bearish", strength,
        f"Bearish trend: fast EMA ({current_fast:.2f}) <= slow EMA ({current_slow:.2f})",
        values,
    )


def vote_rsi(rsi: float | None, buy_threshold: float, sell_threshold: float) -> IndicatorVote:
    """Trend-confirming RSI: high RSI is bullish, low RSI is bearish."""
    if not is_valid(rsi):
        return IndicatorVote("RSI", "neutral", 0.0, "Insufficient data for RSI calculation", {"rsi": rsi})

    if rsi > buy_threshold:
        excess = safe_div(rsi - buy_threshold, 100 - buy_threshold, 0.0)
        return IndicatorVote(
            "RSI", "bullish", min(1.0, excess + 0.3),
            f"Bullish momentum: RSI ({rsi:.2f}) > {buy_threshold}",
            {"rsi": rsi, "threshold": buy_threshold},
        )
    if rsi < sell_threshold:
        excess = safe_div(sell_threshold - rsi, sell_threshold, 0.0)
        return IndicatorVote(
            "RSI", "bearish", min(1.0, excess + 0.3),
            f"Bearish momentum: RSI ({rsi:.2f}) < {sell_threshold}",
            {"rsi": rsi, "threshold": sell_threshold},
        )
    return IndicatorVote(
        "RSI", "neutral", 0.3, f"Neutral momentum: RSI ({rsi:.2f}) in neutral zone", {"rsi": rsi}
    )


def vote_macd(
    macd: Sequence[float | None],
    signal: Sequence[float | None],
    histogram: Sequence[float | None],
    cur: int,
) -> IndicatorVote:
    """Histogram sign gives the direction; magnitude vs. its recent average gives strength."""
    current_macd, current_signal, current_hist = macd[cur], signal[cur], histogram[cur]
    values = {"macd": current_macd, "signal": current_signal, "histogram": current_hist}
    if not (is_valid(current_macd) and is_valid(current_signal) and is_valid(current_hist)):
        return IndicatorVote("MACD", "neutral", 0.0, "Insufficient data for MACD calculation", values)

    previous = histogram[cur - 1] if cur > 0 else None
    momentum = current_hist - previous if is_valid(previous) else 0.0

    average = mean(abs(h) for h in window(list(histogram), cur, HISTOGRAM_LOOKBACK + 1) if is_valid(h))
    effective = average if average else abs(current_hist)
    normalized = min(1.0, abs(current_hist) / (effective * 2)) if effective else 0.5

    agrees = (current_hist > 0 and momentum >= 0) or (current_hist < 0 and momentum <= 0)
    strength = min(1.0, normalized + 0.3 + (0.15 if agrees else 0.0))

    if current_hist > 0:
        suffix = " with upward momentum" if momentum >= 0 else ""
        return IndicatorVote(
            "MACD", "bullish", strength,
            f"Bullish oscillator: MACD histogram positive ({current_hist:.4f}){suffix}", values,
        )
    if current_hist < 0:
        suffix = " with downward momentum" if momentum <= 0 else ""
        return IndicatorVote(
            "MACD", "bearish", strength,
            f"Bearish oscillator: MACD histogram negative ({current_hist:.4f}){suffix}", values,
        )
    return IndicatorVote("MACD", "neutral", 0.3, "Neutral oscillator: MACD histogram at zero", values)


def vote_atr(atr: Sequence[float | None], cur: int, period: int, multiplier: float) -> IndicatorVote:
    """Volatility gate: ``filtered`` when ATR exceeds its average by more than ``multiplier``."""
    current = atr[cur]
    if not is_valid(current):
        return IndicatorVote("ATR", "neutral", 0.5, "Insufficient data for ATR calculation", {"atr": current})

    average = mean(window(list(atr), cur, period + 1))
    if not average:
        average = current
    ratio = safe_div(current, average, 1.0)
    values = {"atr": current, "avgAtr": average, "ratio": ratio}

    if ratio > multiplier:
        return IndicatorVote(
            "ATR", "filtered", 0.0,
            f"High volatility: ATR ({current:.4f}) is {ratio * 100:.0f}% of average "
            f"(threshold: {multiplier * 100:.0f}%)",
            values,
        )
    stability = 1 - safe_div(ratio, multiplier, 1.0)
    return IndicatorVote(
        "ATR", "neutral", max(0.4, stability),
        f"Normal volatility: ATR ({current:.4f}) is {ratio * 100:.0f}% of average",
        values,
    )


def vote_bollinger(
    percent_b: float | None,
    bandwidth: float | None,
    buy_threshold: float,
    sell_threshold: float,
) -> IndicatorVote:
    """Trend-confirming %B: price pushing the upper band is bullish."""
    values = {"percentB": percent_b, "bandwidth": bandwidth}
    if not is_valid(percent_b) or not is_valid(bandwidth):
        return IndicatorVote("BB", "neutral", 0.0, "Insufficient data for Bollinger Bands calculation", values)

    if percent_b > buy_threshold:
        excess = safe_div(percent_b - buy_threshold, 1 - buy_threshold, 0.0)
        return IndicatorVote(
            "BB", "bullish", min(1.0, excess + 0.4),
            f"Bullish breakout: %B ({percent_b:.2f}) > {buy_threshold}",
            {**values, "threshold": buy_threshold},
        )
    if percent_b < sell_threshold:
        excess = safe_div(sell_threshold - percent_b, sell_threshold, 0.0)
        return IndicatorVote(
            "BB", "bearish", min(1.0, excess + 0.4),
            f"Bearish breakdown: %B ({percent_b:.2f}) < {sell_threshold}",
            {**values, "threshold": sell_threshold},
        )
    return IndicatorVote("BB", "neutral", 0.3, f"Neutral position: %B ({percent_b:.2f}) within bands", values)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------
def score_confluence(votes: Sequence[IndicatorVote], config: ConfluenceConfig) -> ConfluenceScore:
    """Count directional votes and pick buy, sell or hold."""
    directional = [v for v in votes if v.name != "ATR"]
    buy_count = sum(1 for v in directional if v.signal == "bullish")
    sell_count = sum(1 for v in directional if v.signal == "bearish")
    filtered = any(v.signal == "filtered" for v in votes)

    direction, count = "hold", 0
    if not filtered:
        if buy_count >= config.min_confluence and buy_count > sell_count:
            direction, count = "buy", buy_count
        elif sell_count >= config.sell_confluence and sell_count > buy_count:
            direction, count = "sell", sell_count

    # Neutral votes (including ATR) count toward either direction's strength
    wanted = {"buy": "bullish", "sell": "bearish"}.get(direction)
    agreeing = [v.strength for v in votes if v.signal in (wanted, "neutral")]

    return ConfluenceScore(
        direction=direction,
        confluence_count=count,
        total_enabled=len(directional),
        votes=list(votes),
        average_strength=mean(agreeing) or 0.0,
        volatility_filtered=filtered,
    )


def _strength(score: ConfluenceScore) -> float:
    ratio = safe_div(score.confluence_count, score.total_enabled, 0.0)
    return min(1.0, score.average_strength * 0.6 + ratio * 0.4)


def _confidence(score: ConfluenceScore, config: ConfluenceConfig) -> float:
    ratio = safe_div(score.confluence_count, score.total_enabled, 0.0)
    threshold = config.min_confluence if score.direction == "buy" else config.sell_confluence
    excess = max(0, score.confluence_count - threshold)
    return min(1.0, 0.4 + ratio * 0.4 + excess * 0.1 + score.average_strength * 0.2)


@register_strategy(CONFLUENCE_STRATEGY_NAME)
class ConfluenceStrategy(BaseStrategy):
    """Signals only when several independent indicators agree."""

    config_model = ConfluenceConfig
    indicators = (
        IndicatorKind.EMA,
        IndicatorKind.RSI,
        IndicatorKind.MACD,
        IndicatorKind.ATR,
        IndicatorKind.BOLLINGER_BANDS,
    )

    def min_data_points(self, config: ConfluenceConfig) -> int:
        requirements = []
        if config.ema_enabled:
            requirements.append(config.ema_slow_period + 1)
        if config.rsi_enabled:
            requirements.append(config.rsi_period + 1)
        if config.macd_enabled:
            requirements.append(config.macd_slow_period + config.macd_signal_period - 1)
        if config.atr_enabled:
            requirements.append(config.atr_period + 1)
        if config.bb_enabled:
            requirements.append(config.bb_period + 1)
        return max(requirements, default=1)

    def can_execute(self, context: AlgorithmContext) -> bool:
        if not super().can_execute(context):
            return False

        config = self.get_config_with_defaults(context.config)
        directional = config.directional_count
        if config.min_confluence > directional:
            logger.warning(
                f"{self.name}: minConfluence ({config.min_confluence}) exceeds enabled "
                f"directional indicators ({directional})"
            )
            return False
        if config.sell_confluence > directional:
            logger.warning(
                f"{self.name}: minSellConfluence ({config.sell_confluence}) exceeds enabled "
                f"directional indicators ({directional})"
            )
            return False
        return True

    async def analyze_asset(
        self, asset: Asset, prices: Sequence[PriceBar], config: ConfluenceConfig
    ) -> AssetAnalysis:
        series = await self._calculate_indicators(asset, prices, config)
        score = score_confluence(self._votes(series, len(prices) - 1, config), config)

        signal = self._generate_signal(asset, prices[-1].average, score, config)
        return AssetAnalysis(signals=[signal] if signal else [], chart_data=build_chart_data(prices, series))

    async def _calculate_indicators(
        self, asset: Asset, prices: Sequence[PriceBar], config: ConfluenceConfig
    ) -> dict[str, Sequence[float | None]]:
        service = self.indicator_service
        jobs = {}
        if config.ema_enabled:
            jobs["emaFast"] = service.calculate_ema(
                PeriodRequest(asset_id=asset.id, prices=prices, period=config.ema_fast_period), self
            )
            jobs["emaSlow"] = service.calculate_ema(
                PeriodRequest(asset_id=asset.id, prices=prices, period=config.ema_slow_period), self
            )
        if config.rsi_enabled:
            jobs["rsi"] = service.calculate_rsi(
                PeriodRequest(asset_id=asset.id, prices=prices, period=config.rsi_period), self
            )
        if config.macd_enabled:
            jobs["macd"] = service.calculate_macd(
                MacdRequest(
                    asset_id=asset.id,
                    prices=prices,
                    fast_period=config.macd_fast_period,
                    slow_period=config.macd_slow_period,
                    signal_period=config.macd_signal_period,
                ),
                self,
            )
        if config.atr_enabled:
            jobs["atr"] = service.calculate_atr(
                PeriodRequest(asset_id=asset.id, prices=prices, period=config.atr_period), self
            )
        if config.bb_enabled:
            jobs["bb"] = service.calculate_bollinger_bands(
                BollingerBandsRequest(
                    asset_id=asset.id,
                    prices=prices,
                    period=config.bb_period,
                    std_dev=config.bb_std_dev,
                ),
                self,
            )

        results = dict(zip(jobs, await asyncio.gather(*jobs.values())))

        series: dict[str, Sequence[float | None]] = {}
        for name in ("emaFast", "emaSlow", "rsi", "atr"):
            if name in results:
                series[name] = results[name].values
        if "macd" in results:
            series["macd"] = results["macd"].macd
            series["macdSignal"] = results["macd"].signal
            series["histogram"] = results["macd"].histogram
        if "bb" in results:
            series["bbUpper"] = results["bb"].upper
            series["bbMiddle"] = results["bb"].middle
            series["bbLower"] = results["bb"].lower
            series["percentB"] = results["bb"].percent_b
            series["bandwidth"] = results["bb"].bandwidth
        return series

    @staticmethod
    def _votes(series, cur: int, config: ConfluenceConfig) -> list[IndicatorVote]:
        votes = []
        if "emaFast" in series:
            votes.append(vote_ema(series["emaFast"], series["emaSlow"], cur))
        if "rsi" in series:
            votes.append(vote_rsi(series["rsi"][cur], config.rsi_buy_threshold, config.rsi_sell_threshold))
        if "macd" in series:
            votes.append(vote_macd(series["macd"], series["macdSignal"], series["histogram"], cur))
        if "percentB" in series:
            votes.append(
                vote_bollinger(
                    series["percentB"][cur],
                    series["bandwidth"][cur],
                    config.bb_buy_threshold,
                    config.bb_sell_threshold,
                )
            )
        if "atr" in series:
            votes.append(vote_atr(series["atr"], cur, config.atr_period, config.atr_volatility_multiplier))
        return votes

    def _generate_signal(
        self, asset: Asset, price: float, score: ConfluenceScore, config: ConfluenceConfig
    ) -> TradingSignal | None:
        if score.direction == "hold":
            if score.volatility_filtered:
                logger.debug(f"{asset.symbol}: confluence suppressed by volatility filter")
            return None

        signal_type = SignalType.BUY if score.direction == "buy" else SignalType.SELL
        wanted = "bullish" if score.direction == "buy" else "bearish"
        agreeing = [v.name for v in score.votes if v.signal == wanted]

        return self.make_signal(
            signal_type,
            asset,
            price,
            _strength(score),
            _confidence(score, config),
            f"Confluence {signal_type.value}: {score.confluence_count}/{score.total_enabled} "
            f"indicators agree ({', '.join(agreeing)})",
            {
                "symbol": asset.symbol,
                "confluenceCount": score.confluence_count,
                "totalEnabled": score.total_enabled,
                "agreeingIndicators": agreeing,
                "isVolatilityFiltered": score.volatility_filtered,
                "indicatorBreakdown": [
                    {
                        "name": v.name,
                        "signal": v.signal,
                        "strength": v.strength,
                        "reason": v.reason,
                        "values": v.values,
                    }
                    for v in score.votes
                ],
            },
        )
