"""RSI threshold strategy.

- BUY when RSI drops below the oversold threshold
- SELL when RSI rises above the overbought threshold

Strength grows with the distance past the threshold; confidence grows
with how many of the last 5 RSI readings sit on the same side of 50.
"""

import logging
from typing import Literal, Sequence

from signalcore.indicators.types import IndicatorKind, PeriodRequest
from signalcore.models import Asset, PriceBar, SignalType, TradingSignal
from signalcore.strategy.base import AssetAnalysis, BaseStrategy, build_chart_data
from signalcore.strategy.numeric import clamp, is_valid
from signalcore.strategy.registry import register_strategy
from signalcore.strategy.rsi.models import RSI_STRATEGY_NAME, RsiConfig

logger = logging.getLogger(__name__)

CONSISTENCY_BARS = 5


def _strength(rsi: float, threshold: float, condition: Literal["oversold", "overbought"]) -> float:
    if condition == "oversold":
        # RSI 10 with threshold 30 is a stronger signal than RSI 28
        return clamp((threshold - rsi) / threshold if threshold else 0.0)
    max_distance = 100 - threshold
    return clamp((rsi - threshold) / max_distance if max_distance else 0.0)


def _confidence(rsi: Sequence[float | None], condition: Literal["oversold", "overbought"]) -> float:
    consistent = 0
    for value in rsi[-CONSISTENCY_BARS:]:
        if not is_valid(value):
            continue
        if condition == "oversold" and value < 50:
            consistent += 1
        elif condition == "overbought" and value > 50:
            consistent += 1
    return min(1.0, 0.1 + (consistent / CONSISTENCY_BARS) * 0.9)


@register_strategy(RSI_STRATEGY_NAME)
class RsiStrategy(BaseStrategy):
    """Mean-reverting RSI strategy on fixed oversold/overbought levels."""

    config_model = RsiConfig
    indicators = (IndicatorKind.RSI,)

    def min_data_points(self, config: RsiConfig) -> int:
        return config.period + 1

    async def analyze_asset(
        self, asset: Asset, prices: Sequence[PriceBar], config: RsiConfig
    ) -> AssetAnalysis:
        result = await self.indicator_service.calculate_rsi(
            PeriodRequest(asset_id=asset.id, prices=prices, period=config.period),
            self,
        )
        rsi = result.values

        signal = self._generate_signal(asset, prices, rsi, config)
        return AssetAnalysis(
            signals=[signal] if signal else [],
            chart_data=build_chart_data(prices, {"rsi": rsi}),
        )

    def _generate_signal(
        self,
        asset: Asset,
        prices: Sequence[PriceBar],
        rsi: Sequence[float | None],
        config: RsiConfig,
    ) -> TradingSignal | None:
        current = len(prices) - 1
        if current < 1 or not is_valid(rsi[current]) or not is_valid(rsi[current - 1]):
            return None

        current_rsi = rsi[current]
        previous_rsi = rsi[current - 1]
        price = prices[current].average

        if current_rsi < config.oversold_threshold:
            condition, signal_type, threshold = "oversold", SignalType.BUY, config.oversold_threshold
            reason = f"RSI oversold: {current_rsi:.2f} < {threshold}"
        elif current_rsi > config.overbought_threshold:
            condition, signal_type, threshold = "overbought", SignalType.SELL, config.overbought_threshold
            reason = f"RSI overbought: {current_rsi:.2f} > {threshold}"
        else:
            return None

        logger.debug(f"RSI {condition} on {asset.symbol}: {current_rsi:.2f}")
        return self.make_signal(
            signal_type,
            asset,
            price,
            _strength(current_rsi, threshold, condition),
            _confidence(rsi, condition),
            f"{reason} (prev: {previous_rsi:.2f})",
            {
                "symbol": asset.symbol,
                "rsi": current_rsi,
                "previousRSI": previous_rsi,
                "threshold": threshold,
                "condition": condition,
            },
        )
