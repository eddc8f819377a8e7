"""Mean reversion strategy.

z = (price - SMA) / SD
- BUY when z < -threshold (price stretched below its mean)
- SELL when z > threshold

A zero standard deviation yields no signal and a ``None`` z-score.
A non-positive threshold never signals.
"""

import asyncio
import logging
from typing import Sequence

from signalcore.indicators.types import IndicatorKind, PeriodRequest
from signalcore.models import Asset, ChartPoint, PriceBar, SignalType, TradingSignal
from signalcore.strategy.base import AssetAnalysis, BaseStrategy
from signalcore.strategy.mean_reversion.models import (
    MEAN_REVERSION_STRATEGY_NAME,
    MeanReversionConfig,
)
from signalcore.strategy.numeric import is_valid, safe_div
from signalcore.strategy.registry import register_strategy

logger = logging.getLogger(__name__)


def z_score(price: float, average: float | None, std_dev: float | None) -> float | None:
    """Distance from the mean in standard deviations, or None if undefined."""
    if not is_valid(average):
        return None
    return safe_div(price - average, std_dev)


@register_strategy(MEAN_REVERSION_STRATEGY_NAME)
class MeanReversionStrategy(BaseStrategy):
    """Fades moves that stretch price far from its moving average."""

    config_model = MeanReversionConfig
    indicators = (IndicatorKind.SMA, IndicatorKind.STD_DEV)

    def min_data_points(self, config: MeanReversionConfig) -> int:
        return config.period + 1

    async def analyze_asset(
        self, asset: Asset, prices: Sequence[PriceBar], config: MeanReversionConfig
    ) -> AssetAnalysis:
        request = PeriodRequest(asset_id=asset.id, prices=prices, period=config.period)
        sma, sd = await asyncio.gather(
            self.indicator_service.calculate_sma(request, self),
            self.indicator_service.calculate_sd(request, self),
        )

        signal = self._generate_signal(asset, prices, sma.values, sd.values, config)
        return AssetAnalysis(
            signals=[signal] if signal else [],
            chart_data=self._chart_data(prices, sma.values, sd.values, config.threshold),
        )

    def _generate_signal(
        self,
        asset: Asset,
        prices: Sequence[PriceBar],
        sma: Sequence[float | None],
        sd: Sequence[float | None],
        config: MeanReversionConfig,
    ) -> TradingSignal | None:
        cur = len(prices) - 1
        price = prices[cur].average
        z = z_score(price, sma[cur], sd[cur])
        if z is None:
            return None

        threshold = config.threshold
        if threshold <= 0:
            logger.debug(f"Non-positive threshold {threshold}, skipping {asset.symbol}")
            return None
        if z < -threshold:
            signal_type, side, condition = SignalType.BUY, "below", "oversold"
        elif z > threshold:
            signal_type, side, condition = SignalType.SELL, "above", "overbought"
        else:
            return None

        abs_z = abs(z)
        ratio = abs_z / threshold
        return self.make_signal(
            signal_type,
            asset,
            price,
            min(1.0, ratio - 1),
            min(0.9, ratio * 0.3),
            f"Mean reversion {signal_type.value.lower()} signal: Price is {abs_z:.2f} "
            f"standard deviations {side} moving average",
            {
                "symbol": asset.symbol,
                "zScore": z,
                "movingAverage": sma[cur],
                "standardDeviation": sd[cur],
                "signalType": condition,
            },
        )

    @staticmethod
    def _chart_data(
        prices: Sequence[PriceBar],
        sma: Sequence[float | None],
        sd: Sequence[float | None],
        threshold: float,
    ) -> list[ChartPoint]:
        points = []
        for i, bar in enumerate(prices):
            average, deviation = sma[i], sd[i]
            has_bands = is_valid(average) and is_valid(deviation)
            points.append(
                ChartPoint(
                    timestamp=bar.timestamp,
                    value=bar.average,
                    metadata={
                        "movingAverage": average,
                        "standardDeviation": deviation,
                        "upperBand": average + deviation * threshold if has_bands else None,
                        "lowerBand": average - deviation * threshold if has_bands else None,
                        "middleBand": average,
                        "zScore": z_score(bar.average, average, deviation),
                    },
                )
            )
        return points
