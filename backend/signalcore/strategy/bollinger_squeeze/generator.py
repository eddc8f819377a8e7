"""Bollinger Band squeeze strategy.

A bar is in squeeze when its bandwidth is below ``squeeze_threshold``.
After at least ``min_squeeze_bars`` consecutive squeeze bars, the first
bar whose bandwidth expands past the threshold is a breakout:
- BUY when price sits above the middle band
- SELL when price sits below it

A missing bandwidth value ends a squeeze run; runs on either side of the
gap are never joined.
"""

import logging
from typing import Sequence

from signalcore.indicators.types import BollingerBandsRequest, IndicatorKind
from signalcore.models import Asset, ChartPoint, PriceBar, SignalType, TradingSignal
from signalcore.strategy.base import AssetAnalysis, BaseStrategy
from signalcore.strategy.bollinger_squeeze.models import (
    BOLLINGER_SQUEEZE_STRATEGY_NAME,
    BollingerSqueezeConfig,
    SqueezeRun,
)
from signalcore.strategy.numeric import clamp, is_valid, safe_div
from signalcore.strategy.registry import register_strategy

logger = logging.getLogger(__name__)

# Squeeze length that earns the full duration score
FULL_DURATION_BARS = 12


def _in_squeeze(value: float | None, threshold: float) -> bool:
    return is_valid(value) and value < threshold


def find_squeeze(
    bandwidth: Sequence[float | None], threshold: float, end: int
) -> SqueezeRun | None:
    """Maximal run of in-squeeze bars ending exactly at ``end``."""
    if end < 0 or not _in_squeeze(bandwidth[end], threshold):
        return None

    start = end
    while start > 0 and _in_squeeze(bandwidth[start - 1], threshold):
        start -= 1

    run = bandwidth[start:end + 1]
    return SqueezeRun(
        start=start,
        end=end,
        min_bandwidth=min(run),
        avg_bandwidth=sum(run) / len(run),
    )


def squeeze_intensity(min_bandwidth: float, threshold: float) -> float:
    """How far the squeeze sat below the threshold, as a fraction of it."""
    return clamp(safe_div(threshold - min_bandwidth, threshold, 0.0))


def _strength(run: SqueezeRun, current_bandwidth: float, threshold: float) -> float:
    duration = min(1.0, run.bars / FULL_DURATION_BARS)
    intensity = squeeze_intensity(run.min_bandwidth, threshold)
    expansion = safe_div(current_bandwidth, run.avg_bandwidth)
    expansion_score = clamp((expansion - 1) / 2) if expansion is not None else 1.0
    return clamp((duration + intensity + expansion_score) / 3, 0.4, 1.0)


def _confidence(
    run: SqueezeRun,
    prices: Sequence[PriceBar],
    percent_b: float | None,
    bullish: bool,
    config: BollingerSqueezeConfig,
) -> float:
    duration = clamp(safe_div(run.bars, config.min_squeeze_bars * 2, 1.0))

    # A 2% move earns the full momentum score
    change = abs(prices[-1].average - prices[-2].average)
    momentum = clamp(safe_div(change * 50, prices[-1].average, 0.0))

    position = 0.0
    if is_valid(percent_b):
        if bullish and percent_b > 0.5:
            position = clamp((percent_b - 0.5) * 2)
        elif not bullish and percent_b < 0.5:
            position = clamp((0.5 - percent_b) * 2)

    return min(1.0, 0.5 + duration * 0.2 + momentum * 0.15 + position * 0.15)


@register_strategy(BOLLINGER_SQUEEZE_STRATEGY_NAME)
class BollingerSqueezeStrategy(BaseStrategy):
    """Trades the volatility expansion that follows a low-bandwidth squeeze."""

    config_model = BollingerSqueezeConfig
    indicators = (IndicatorKind.BOLLINGER_BANDS,)
    isolate_asset_failures = True

    def min_data_points(self, config: BollingerSqueezeConfig) -> int:
        return config.period + config.min_squeeze_bars + 5

    async def analyze_asset(
        self, asset: Asset, prices: Sequence[PriceBar], config: BollingerSqueezeConfig
    ) -> AssetAnalysis:
        bands = await self.indicator_service.calculate_bollinger_bands(
            BollingerBandsRequest(
                asset_id=asset.id,
                prices=prices,
                period=config.period,
                std_dev=config.std_dev,
            ),
            self,
        )

        signal = self._generate_signal(asset, prices, bands, config)
        return AssetAnalysis(
            signals=[signal] if signal else [],
            chart_data=self._chart_data(prices, bands, config.squeeze_threshold),
        )

    def _generate_signal(self, asset, prices, bands, config) -> TradingSignal | None:
        cur = len(prices) - 1
        prev = cur - 1
        bandwidth = bands.bandwidth
        threshold = config.squeeze_threshold
        if prev < 0 or not is_valid(bandwidth[cur]) or not is_valid(bandwidth[prev]):
            return None

        if bandwidth[cur] < threshold:
            return None
        run = find_squeeze(bandwidth, threshold, prev)
        if run is None or run.bars < config.min_squeeze_bars:
            return None

        middle = bands.middle[cur]
        if not is_valid(middle):
            return None
        price = prices[cur].average
        bullish = price > middle

        if config.breakout_confirmation:
            change = price - prices[prev].average
            if (bullish and change <= 0) or (not bullish and change >= 0):
                logger.debug(f"{asset.symbol}: squeeze breakout not confirmed by price")
                return None

        side = "above" if bullish else "below"
        label = "Bullish" if bullish else "Bearish"
        return self.make_signal(
            SignalType.BUY if bullish else SignalType.SELL,
            asset,
            price,
            _strength(run, bandwidth[cur], threshold),
            _confidence(run, prices, bands.percent_b[cur], bullish, config),
            f"{label} squeeze breakout: {run.bars} bars of low volatility "
            f"(bandwidth < {threshold * 100:.1f}%), price breaking {side} middle band",
            {
                "symbol": asset.symbol,
                "squeezeBars": run.bars,
                "squeezeStartIndex": run.start,
                "avgBandwidthDuringSqueeze": run.avg_bandwidth,
                "minBandwidthDuringSqueeze": run.min_bandwidth,
                "currentBandwidth": bandwidth[cur],
                "upperBand": bands.upper[cur],
                "middleBand": middle,
                "lowerBand": bands.lower[cur],
                "percentB": bands.percent_b[cur],
                "breakoutType": label.lower(),
            },
        )

    @staticmethod
    def _chart_data(prices, bands, threshold: float) -> list[ChartPoint]:
        return [
            ChartPoint(
                timestamp=bar.timestamp,
                value=bar.average,
                metadata={
                    "upperBand": bands.upper[i],
                    "middleBand": bands.middle[i],
                    "lowerBand": bands.lower[i],
                    "percentB": bands.percent_b[i],
                    "bandwidth": bands.bandwidth[i],
                    "isInSqueeze": _in_squeeze(bands.bandwidth[i], threshold),
                    "high": bar.high,
                    "low": bar.low,
                },
            )
            for i, bar in enumerate(prices)
        ]
