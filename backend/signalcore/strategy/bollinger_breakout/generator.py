"""Bollinger Bands breakout strategy.

Trades WITH the move when price closes outside the bands:
- BUY when %B > 1 (price above the upper band)
- SELL when %B < 0 (price below the lower band)

Strength grows with how far %B sits beyond the band; confidence rewards
expanding bandwidth and %B momentum in the breakout direction.
"""

import logging
from typing import Literal, Sequence

from signalcore.indicators.types import BollingerBandsRequest, IndicatorKind
from signalcore.models import Asset, PriceBar, SignalType, TradingSignal
from signalcore.strategy.base import AssetAnalysis, BaseStrategy, build_chart_data
from signalcore.strategy.bollinger_breakout.models import (
    BOLLINGER_BREAKOUT_STRATEGY_NAME,
    BollingerBreakoutConfig,
)
from signalcore.strategy.numeric import is_valid
from signalcore.strategy.registry import register_strategy

logger = logging.getLogger(__name__)

Direction = Literal["bullish", "bearish"]

CONFIDENCE_LOOKBACK = 5


def breakout_confirmation(
    prices: Sequence[PriceBar],
    upper: Sequence[float | None],
    lower: Sequence[float | None],
    bars: int,
) -> Direction | None:
    """Direction in which each of the last ``bars`` averages closed outside the bands."""
    current = len(prices) - 1
    bullish = bearish = 0
    for i in range(max(0, current - bars + 1), current + 1):
        if not is_valid(upper[i]) or not is_valid(lower[i]):
            continue
        price = prices[i].average
        if price > upper[i]:
            bullish += 1
        if price < lower[i]:
            bearish += 1

    if bullish >= bars:
        return "bullish"
    if bearish >= bars:
        return "bearish"
    return None


def _strength(percent_b: float, direction: Direction) -> float:
    excess = percent_b - 1 if direction == "bullish" else abs(percent_b)
    return min(1.0, max(0.3, excess * 2))


def _confidence(
    percent_b: Sequence[float | None],
    bandwidth: Sequence[float | None],
    direction: Direction,
) -> float:
    current = len(percent_b) - 1
    start = max(0, current - CONFIDENCE_LOOKBACK)
    expanding = 0
    momentum = 0

    for i in range(start + 1, current + 1):
        if is_valid(bandwidth[i]) and is_valid(bandwidth[i - 1]) and bandwidth[i] > bandwidth[i - 1]:
            expanding += 1
        if is_valid(percent_b[i]) and is_valid(percent_b[i - 1]):
            if direction == "bullish" and percent_b[i] > percent_b[i - 1]:
                momentum += 1
            elif direction == "bearish" and percent_b[i] < percent_b[i - 1]:
                momentum += 1

    score = (expanding / CONFIDENCE_LOOKBACK + momentum / CONFIDENCE_LOOKBACK) / 2
    return min(1.0, score + 0.3)


@register_strategy(BOLLINGER_BREAKOUT_STRATEGY_NAME)
class BollingerBreakoutStrategy(BaseStrategy):
    """Momentum breakout through the Bollinger Bands (the opposite of mean reversion)."""

    config_model = BollingerBreakoutConfig
    indicators = (IndicatorKind.BOLLINGER_BANDS,)

    def min_data_points(self, config: BollingerBreakoutConfig) -> int:
        return config.period + (config.confirmation_bars if config.require_confirmation else 1)

    async def analyze_asset(
        self, asset: Asset, prices: Sequence[PriceBar], config: BollingerBreakoutConfig
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
            chart_data=build_chart_data(
                prices,
                {
                    "upperBand": bands.upper,
                    "middleBand": bands.middle,
                    "lowerBand": bands.lower,
                    "percentB": bands.percent_b,
                    "bandwidth": bands.bandwidth,
                },
            ),
        )

    def _generate_signal(self, asset, prices, bands, config) -> TradingSignal | None:
        cur = len(prices) - 1
        upper, lower, percent_b = bands.upper[cur], bands.lower[cur], bands.percent_b[cur]
        if not (is_valid(upper) and is_valid(lower) and is_valid(percent_b)):
            return None

        if percent_b > 1:
            direction: Direction = "bullish"
        elif percent_b < 0:
            direction = "bearish"
        else:
            return None

        if config.require_confirmation:
            confirmed = breakout_confirmation(
                prices, bands.upper, bands.lower, config.confirmation_bars
            )
            if confirmed != direction:
                return None

        price = prices[cur].average
        if direction == "bullish":
            signal_type = SignalType.BUY
            reason = (
                f"Bullish breakout: Price ({price:.2f}) broke above upper band "
                f"({upper:.2f}), %B: {percent_b:.2f}"
            )
        else:
            signal_type = SignalType.SELL
            reason = (
                f"Bearish breakout: Price ({price:.2f}) broke below lower band "
                f"({lower:.2f}), %B: {percent_b:.2f}"
            )

        return self.make_signal(
            signal_type,
            asset,
            price,
            _strength(percent_b, direction),
            _confidence(bands.percent_b, bands.bandwidth, direction),
            reason,
            {
                "symbol": asset.symbol,
                "upperBand": upper,
                "middleBand": bands.middle[cur],
                "lowerBand": lower,
                "percentB": percent_b,
                "bandwidth": bands.bandwidth[cur],
                "breakoutType": direction,
            },
        )
