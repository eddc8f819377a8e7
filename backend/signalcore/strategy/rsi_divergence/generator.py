"""RSI divergence strategy.

- Bullish: price makes a lower low while RSI makes a higher low -> BUY
- Bearish: price makes a higher high while RSI makes a lower high -> SELL

Pivots are bars whose low (high) is strictly below (above) every bar
within ``pivot_strength`` bars on either side. The newest
``pivot_strength`` bars cannot be confirmed yet and are not searched.
"""

import logging
import math
from typing import Literal, Sequence

from signalcore.indicators.types import IndicatorKind, PeriodRequest
from signalcore.models import AlgorithmContext, Asset, ChartPoint, PriceBar, SignalType, TradingSignal
from signalcore.strategy.base import AssetAnalysis, BaseStrategy
from signalcore.strategy.numeric import clamp, is_valid, safe_div
from signalcore.strategy.registry import register_strategy
from signalcore.strategy.rsi_divergence.models import (
    RSI_DIVERGENCE_STRATEGY_NAME,
    Divergence,
    Pivot,
    RsiDivergenceConfig,
)

logger = logging.getLogger(__name__)


def find_pivots(
    prices: Sequence[PriceBar],
    rsi: Sequence[float | None],
    strength: int,
    start: int,
    end: int,
    kind: Literal["high", "low"],
) -> list[Pivot]:
    """Confirmed pivots with a valid RSI reading in ``[start + strength, end - strength]``."""
    pivots = []
    for i in range(max(start, 0) + strength, end - strength + 1):
        if i + strength >= len(prices) or not is_valid(rsi[i]):
            continue
        value = prices[i].high if kind == "high" else prices[i].low
        if not math.isfinite(value):
            continue

        confirmed = True
        for j in range(1, strength + 1):
            for neighbor in (prices[i - j], prices[i + j]):
                other = neighbor.high if kind == "high" else neighbor.low
                beyond = value > other if kind == "high" else value < other
                if not math.isfinite(other) or not beyond:
                    confirmed = False
                    break
            if not confirmed:
                break

        if confirmed:
            pivots.append(Pivot(index=i, price=value, rsi=rsi[i], kind=kind))
    return pivots


def _pivot_window(length: int, config: RsiDivergenceConfig) -> tuple[int, int]:
    current = length - 1
    start = max(0, current - config.lookback_period - config.pivot_strength)
    return start, current - config.pivot_strength


def _compare(pivots: list[Pivot]) -> tuple[Pivot, Pivot, float, float] | None:
    if len(pivots) < 2:
        return None
    first, second = pivots[-2], pivots[-1]
    change = safe_div((second.price - first.price) * 100, first.price)
    if change is None:
        return None
    return first, second, change, second.rsi - first.rsi


def detect_divergence(
    prices: Sequence[PriceBar], rsi: Sequence[float | None], config: RsiDivergenceConfig
) -> Divergence | None:
    """Compare the two most recent pivot highs, then the two most recent pivot lows."""
    start, end = _pivot_window(len(prices), config)
    threshold = config.min_divergence_percent

    highs = _compare(find_pivots(prices, rsi, config.pivot_strength, start, end, "high"))
    if highs:
        first, second, change, rsi_change = highs
        if change >= threshold and rsi_change < 0:
            return Divergence("bearish", first, second, change, rsi_change)

    lows = _compare(find_pivots(prices, rsi, config.pivot_strength, start, end, "low"))
    if lows:
        first, second, change, rsi_change = lows
        if change <= -threshold and rsi_change > 0:
            return Divergence("bullish", first, second, change, rsi_change)

    return None


def _strength(divergence: Divergence, config: RsiDivergenceConfig) -> float:
    price_strength = safe_div(abs(divergence.price_change_percent), config.min_divergence_percent * 3, 1.0)
    # 20 RSI points = strong divergence
    rsi_strength = abs(divergence.rsi_change) / 20
    return clamp((price_strength + rsi_strength) / 2, 0.4, 1.0)


def _confidence(
    divergence: Divergence, current_rsi: float | None, current: int, config: RsiDivergenceConfig
) -> float:
    age = current - divergence.second.index
    recency = 1 - clamp(safe_div(age, config.lookback_period, 1.0))
    clarity = clamp(safe_div(abs(divergence.price_change_percent), config.min_divergence_percent * 2, 1.0))

    position = 0.0
    if is_valid(current_rsi):
        if divergence.kind == "bullish" and current_rsi < 40:
            position = (40 - current_rsi) / 40
        elif divergence.kind == "bearish" and current_rsi > 60:
            position = (current_rsi - 60) / 40

    return min(1.0, 0.5 + recency * 0.2 + clarity * 0.15 + position * 0.15)


@register_strategy(RSI_DIVERGENCE_STRATEGY_NAME)
class RsiDivergenceStrategy(BaseStrategy):
    """Reversal signals from price/RSI divergence between two pivots."""

    config_model = RsiDivergenceConfig
    indicators = (IndicatorKind.RSI,)

    def min_data_points(self, config: RsiDivergenceConfig) -> int:
        return config.rsi_period + config.lookback_period + config.pivot_strength * 2

    def can_execute(self, context: AlgorithmContext) -> bool:
        """Requires every asset, not just one, to have enough data."""
        if not super().can_execute(context):
            return False
        config = self.get_config_with_defaults(context.config)
        return all(
            self.has_enough_data(context.price_data.get(asset.id), config)
            for asset in context.assets
        )

    async def analyze_asset(
        self, asset: Asset, prices: Sequence[PriceBar], config: RsiDivergenceConfig
    ) -> AssetAnalysis:
        result = await self.indicator_service.calculate_rsi(
            PeriodRequest(asset_id=asset.id, prices=prices, period=config.rsi_period),
            self,
        )
        rsi = result.values

        divergence = detect_divergence(prices, rsi, config)
        signals = []
        if divergence:
            signals.append(self._generate_signal(asset, prices, rsi, divergence, config))
        return AssetAnalysis(signals=signals, chart_data=self._chart_data(prices, rsi, config))

    def _generate_signal(
        self,
        asset: Asset,
        prices: Sequence[PriceBar],
        rsi: Sequence[float | None],
        divergence: Divergence,
        config: RsiDivergenceConfig,
    ) -> TradingSignal:
        cur = len(prices) - 1
        current_rsi = rsi[cur]
        change, rsi_change = divergence.price_change_percent, divergence.rsi_change

        if divergence.kind == "bullish":
            signal_type = SignalType.BUY
            reason = (
                f"Bullish RSI divergence: Price made lower low ({change:.2f}%) "
                f"while RSI made higher low (+{rsi_change:.2f} points)"
            )
        else:
            signal_type = SignalType.SELL
            reason = (
                f"Bearish RSI divergence: Price made higher high (+{change:.2f}%) "
                f"while RSI made lower high ({rsi_change:.2f} points)"
            )

        return self.make_signal(
            signal_type,
            asset,
            prices[cur].average,
            _strength(divergence, config),
            _confidence(divergence, current_rsi, cur, config),
            reason,
            {
                "symbol": asset.symbol,
                "divergenceType": divergence.kind,
                "currentRSI": current_rsi,
                "pivot1Index": divergence.first.index,
                "pivot1Price": divergence.first.price,
                "pivot1RSI": divergence.first.rsi,
                "pivot2Index": divergence.second.index,
                "pivot2Price": divergence.second.price,
                "pivot2RSI": divergence.second.rsi,
                "priceDivergence": change,
                "rsiDivergence": rsi_change,
            },
        )

    @staticmethod
    def _chart_data(
        prices: Sequence[PriceBar], rsi: Sequence[float | None], config: RsiDivergenceConfig
    ) -> list[ChartPoint]:
        start, end = _pivot_window(len(prices), config)
        highs = {p.index for p in find_pivots(prices, rsi, config.pivot_strength, start, end, "high")}
        lows = {p.index for p in find_pivots(prices, rsi, config.pivot_strength, start, end, "low")}
        return [
            ChartPoint(
                timestamp=bar.timestamp,
                value=bar.average,
                metadata={
                    "rsi": rsi[i],
                    "isPivotHigh": i in highs,
                    "isPivotLow": i in lows,
                    "high": bar.high,
                    "low": bar.low,
                },
            )
            for i, bar in enumerate(prices)
        ]
