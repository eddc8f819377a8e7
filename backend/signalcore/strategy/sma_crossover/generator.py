"""Simple moving average crossover strategy.

- Golden cross: fast SMA crosses above slow SMA -> BUY
- Death cross: fast SMA crosses below slow SMA -> SELL

Crossovers carry a fixed strength and confidence.
"""

import asyncio
import logging
from typing import Sequence

from signalcore.indicators.types import IndicatorKind, PeriodRequest
from signalcore.models import Asset, PriceBar, SignalType, TradingSignal
from signalcore.strategy.base import AssetAnalysis, BaseStrategy, build_chart_data
from signalcore.strategy.numeric import is_valid
from signalcore.strategy.registry import register_strategy
from signalcore.strategy.sma_crossover.models import (
    SMA_CROSSOVER_STRATEGY_NAME,
    SmaCrossoverConfig,
)

logger = logging.getLogger(__name__)

CROSSOVER_STRENGTH = 0.8
CROSSOVER_CONFIDENCE = 0.75


@register_strategy(SMA_CROSSOVER_STRATEGY_NAME)
class SmaCrossoverStrategy(BaseStrategy):
    """Golden/death cross between a fast and a slow SMA."""

    config_model = SmaCrossoverConfig
    indicators = (IndicatorKind.SMA,)

    def min_data_points(self, config: SmaCrossoverConfig) -> int:
        return config.slow_period

    async def analyze_asset(
        self, asset: Asset, prices: Sequence[PriceBar], config: SmaCrossoverConfig
    ) -> AssetAnalysis:
        fast, slow = await asyncio.gather(
            self.indicator_service.calculate_sma(
                PeriodRequest(asset_id=asset.id, prices=prices, period=config.fast_period),
                self,
            ),
            self.indicator_service.calculate_sma(
                PeriodRequest(asset_id=asset.id, prices=prices, period=config.slow_period),
                self,
            ),
        )

        signal = self._generate_signal(asset, prices, fast.values, slow.values)
        return AssetAnalysis(
            signals=[signal] if signal else [],
            chart_data=build_chart_data(prices, {"fastSMA": fast.values, "slowSMA": slow.values}),
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

        if fast[prev] <= slow[prev] and fast[cur] > slow[cur]:
            signal_type, label, side, crossover = SignalType.BUY, "Golden Cross", "above", "golden"
        elif fast[prev] >= slow[prev] and fast[cur] < slow[cur]:
            signal_type, label, side, crossover = SignalType.SELL, "Death Cross", "below", "death"
        else:
            return None

        logger.debug(f"SMA {crossover} cross on {asset.symbol}")
        return self.make_signal(
            signal_type,
            asset,
            prices[cur].average,
            CROSSOVER_STRENGTH,
            CROSSOVER_CONFIDENCE,
            f"{label}: Fast SMA ({fast[cur]:.4f}) crossed {side} Slow SMA ({slow[cur]:.4f})",
            {
                "symbol": asset.symbol,
                "fastSMA": fast[cur],
                "slowSMA": slow[cur],
                "crossoverType": crossover,
            },
        )
