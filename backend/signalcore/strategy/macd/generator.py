"""MACD crossover strategy.

- BUY when the MACD line crosses above the signal line
- SELL when it crosses below

With histogram confirmation enabled, the histogram must also exceed
``min_histogram_strength`` with the crossover's sign.
"""

import logging
from typing import Literal, Sequence

from signalcore.indicators.types import IndicatorKind, MacdRequest
from signalcore.models import Asset, PriceBar, SignalType, TradingSignal
from signalcore.strategy.base import AssetAnalysis, BaseStrategy, build_chart_data
from signalcore.strategy.macd.models import MACD_STRATEGY_NAME, MacdConfig
from signalcore.strategy.numeric import is_valid, mean
from signalcore.strategy.registry import register_strategy

logger = logging.getLogger(__name__)

# Trailing bars used to normalize histogram magnitude
MAGNITUDE_LOOKBACK = 21
# Bars inspected for momentum consistency
CONSISTENCY_BARS = 5
MIN_STRENGTH = 0.3


def histogram_strength(histogram: Sequence[float | None]) -> float:
    """Current |histogram| relative to twice its trailing average, floored at 0.3.

    A zero trailing average (flat histogram) yields the floor.
    """
    current = histogram[-1]
    if not is_valid(current):
        return MIN_STRENGTH
    average = mean(abs(h) for h in histogram[-MAGNITUDE_LOOKBACK:] if is_valid(h))
    if not average:
        return MIN_STRENGTH
    return max(MIN_STRENGTH, min(1.0, abs(current) / (average * 2)))


def momentum_confidence(
    macd: Sequence[float | None],
    signal: Sequence[float | None],
    histogram: Sequence[float | None],
    direction: Literal["bullish", "bearish"],
) -> float:
    """Blend of histogram growth and MACD-vs-signal consistency over 5 bars."""
    current = len(macd) - 1
    start = max(0, current - CONSISTENCY_BARS)
    trending = 0
    growing = 0

    for i in range(start + 1, current + 1):
        if not is_valid(histogram[i]) or not is_valid(histogram[i - 1]):
            continue
        line_valid = is_valid(macd[i]) and is_valid(signal[i])
        if direction == "bullish":
            if histogram[i] > histogram[i - 1]:
                growing += 1
            if line_valid and macd[i] > signal[i]:
                trending += 1
        else:
            if histogram[i] < histogram[i - 1]:
                growing += 1
            if line_valid and macd[i] < signal[i]:
                trending += 1

    score = (growing / CONSISTENCY_BARS + trending / CONSISTENCY_BARS) / 2
    return min(1.0, score + 0.3)


@register_strategy(MACD_STRATEGY_NAME)
class MacdStrategy(BaseStrategy):
    """Trend-following MACD signal-line crossover strategy."""

    config_model = MacdConfig
    indicators = (IndicatorKind.MACD,)

    def min_data_points(self, config: MacdConfig) -> int:
        return config.slow_period + config.signal_period

    async def analyze_asset(
        self, asset: Asset, prices: Sequence[PriceBar], config: MacdConfig
    ) -> AssetAnalysis:
        result = await self.indicator_service.calculate_macd(
            MacdRequest(
                asset_id=asset.id,
                prices=prices,
                fast_period=config.fast_period,
                slow_period=config.slow_period,
                signal_period=config.signal_period,
            ),
            self,
        )

        signal = self._generate_signal(
            asset, prices, result.macd, result.signal, result.histogram, config
        )
        return AssetAnalysis(
            signals=[signal] if signal else [],
            chart_data=build_chart_data(
                prices,
                {"macd": result.macd, "signal": result.signal, "histogram": result.histogram},
            ),
        )

    def _generate_signal(
        self,
        asset: Asset,
        prices: Sequence[PriceBar],
        macd: Sequence[float | None],
        signal: Sequence[float | None],
        histogram: Sequence[float | None],
        config: MacdConfig,
    ) -> TradingSignal | None:
        cur = len(prices) - 1
        prev = cur - 1
        if prev < 0 or not all(
            is_valid(v) for v in (macd[cur], signal[cur], macd[prev], signal[prev])
        ):
            return None

        hist = histogram[cur] if is_valid(histogram[cur]) else 0.0
        bullish = macd[prev] <= signal[prev] and macd[cur] > signal[cur]
        bearish = macd[prev] >= signal[prev] and macd[cur] < signal[cur]
        if not bullish and not bearish:
            return None

        if config.use_histogram_confirmation:
            if bullish and not hist > config.min_histogram_strength:
                return None
            if bearish and not hist < -config.min_histogram_strength:
                return None

        direction = "bullish" if bullish else "bearish"
        logger.debug(f"MACD {direction} crossover on {asset.symbol}")
        return self.make_signal(
            SignalType.BUY if bullish else SignalType.SELL,
            asset,
            prices[cur].average,
            histogram_strength(histogram),
            momentum_confidence(macd, signal, histogram, direction),
            f"{direction.capitalize()} MACD crossover: MACD ({macd[cur]:.6f}) crossed "
            f"{'above' if bullish else 'below'} Signal ({signal[cur]:.6f})",
            {
                "symbol": asset.symbol,
                "macd": macd[cur],
                "signal": signal[cur],
                "histogram": histogram[cur],
                "previousMACD": macd[prev],
                "previousSignal": signal[prev],
                "previousHistogram": histogram[prev],
                "crossoverType": direction,
            },
        )
