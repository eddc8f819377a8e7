"""EMA crossover strategy.

Simple trend-following strategy:
- Fast EMA crosses above Slow EMA -> BUY
- Fast EMA crosses below Slow EMA -> SELL

Strength grows with the EMA spread and with how far price sits past the
lower EMA. Confidence is the share of the last bars over which the
fast-minus-slow spread moved in the crossover's direction.
"""

import asyncio
import logging
from typing import Literal, Sequence

from signalcore.indicators.types import IndicatorKind, PeriodRequest
from signalcore.models import Asset, PriceBar, SignalType, TradingSignal
from signalcore.strategy.base import AssetAnalysis, BaseStrategy, build_chart_data
from signalcore.strategy.ema_crossover.models import (
    EMA_CROSSOVER_STRATEGY_NAME,
    EmaCrossoverConfig,
)
from signalcore.strategy.numeric import clamp, is_valid, safe_div
from signalcore.strategy.registry import register_strategy

logger = logging.getLogger(__name__)

# Bars inspected for spread momentum
MOMENTUM_BARS = 5


def crossover_strength(price: float, fast: float, slow: float) -> float:
    """Relative EMA spread plus price position between the EMAs, in [0, 1]."""
    gap = abs(fast - slow)
    spread = safe_div(gap, max(fast, slow), 0.0)
    position = safe_div(price - min(fast, slow), gap, 0.0)
    return clamp(spread * 2 + position * 0.5)


def crossover_confidence(
    fast: Sequence[float | None],
    slow: Sequence[float | None],
    direction: Literal["bullish", "bearish"],
    bars: int = MOMENTUM_BARS,
) -> float:
    """Fraction of the last ``bars`` bars where the spread moved with the crossover."""
    cur = len(fast) - 1
    confirming = 0
    for i in range(max(1, cur - bars + 1), cur + 1):
        if not all(is_valid(v) for v in (fast[i], slow[i], fast[i - 1], slow[i - 1])):
            continue
        change = (fast[i] - slow[i]) - (fast[i - 1] - slow[i - 1])
        if (direction == "bullish" and change > 0) or (direction == "bearish" and change < 0):
            confirming += 1
    return confirming / bars


@register_strategy(EMA_CROSSOVER_STRATEGY_NAME)
class EmaCrossoverStrategy(BaseStrategy):
    """Trend-following fast/slow EMA crossover strategy."""

    config_model = EmaCrossoverConfig
    indicators = (IndicatorKind.EMA,)

    def min_data_points(self, config: EmaCrossoverConfig) -> int:
        return config.slow_period

    async def analyze_asset(
        self, asset: Asset, prices: Sequence[PriceBar], config: EmaCrossoverConfig
    ) -> AssetAnalysis:
        fast, slow = await asyncio.gather(
            self.indicator_service.calculate_ema(
                PeriodRequest(asset_id=asset.id, prices=prices, period=config.fast_period),
                self,
            ),
            self.indicator_service.calculate_ema(
                PeriodRequest(asset_id=asset.id, prices=prices, period=config.slow_period),
                self,
            ),
        )

        signal = self._generate_signal(asset, prices, fast.values, slow.values)
        return AssetAnalysis(
            signals=[signal] if signal else [],
            chart_data=build_chart_data(prices, {"fastEMA": fast.values, "slowEMA": slow.values}),
        )

    def _generate_signal(
        self,
        asset: Asset,
        prices: Sequence[PriceBar],
        fast: Sequence[float | None],
        slow: Sequence[float | None],
    ) -> TradingSignal | None:
        cur = len(prices) - 1
        prev = cur - 1
        if prev < 0 or not all(is_valid(v) for v in (fast[cur], slow[cur], fast[prev], slow[prev])):
            return None

        bullish = fast[prev] <= slow[prev] and fast[cur] > slow[cur]
        bearish = fast[prev] >= slow[prev] and fast[cur] < slow[cur]
        if not bullish and not bearish:
            return None

        direction = "bullish" if bullish else "bearish"
        price = prices[cur].average
        logger.debug(f"EMA {direction} crossover on {asset.symbol}")
        return self.make_signal(
            SignalType.BUY if bullish else SignalType.SELL,
            asset,
            price,
            crossover_strength(price, fast[cur], slow[cur]),
            crossover_confidence(fast, slow, direction),
            f"{direction.capitalize()} EMA crossover: Fast EMA ({fast[cur]:.4f}) crossed "
            f"{'above' if bullish else 'below'} Slow EMA ({slow[cur]:.4f})",
            {
                "symbol": asset.symbol,
                "fastEMA": fast[cur],
                "slowEMA": slow[cur],
                "crossoverType": "golden" if bullish else "death",
            },
        )
