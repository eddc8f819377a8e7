"""EMA crossover strategy filtered by RSI.

- BUY: fast EMA crosses above slow EMA while RSI < rsi_max_for_buy
- SELL: fast EMA crosses below slow EMA while RSI > rsi_min_for_sell

Crossovers rejected by the RSI filter are logged at debug level.
"""

import asyncio
import logging
from typing import Literal, Sequence

from signalcore.indicators.types import IndicatorKind, PeriodRequest
from signalcore.models import Asset, PriceBar, SignalType, TradingSignal
from signalcore.strategy.base import AssetAnalysis, BaseStrategy, build_chart_data
from signalcore.strategy.ema_rsi_filter.models import (
    EMA_RSI_FILTER_STRATEGY_NAME,
    EmaRsiFilterConfig,
)
from signalcore.strategy.numeric import clamp, is_valid, safe_div
from signalcore.strategy.registry import register_strategy

logger = logging.getLogger(__name__)

MOMENTUM_BARS = 5
BASE_CONFIDENCE = 0.55


def rsi_position_score(
    rsi: float, config: EmaRsiFilterConfig, direction: Literal["bullish", "bearish"]
) -> float:
    """How well RSI sits in the ideal zone (30-50 for buys, 50-70 for sells).

    A filter threshold of exactly 50 scores 0 outside the ideal zone.
    """
    if direction == "bullish":
        if 30 <= rsi <= 50:
            return 1.0
        if rsi < 30:
            return 0.8
        ratio = safe_div(rsi - 50, config.rsi_max_for_buy - 50)
        return 0.0 if ratio is None else max(0.0, 1 - ratio)

    if 50 <= rsi <= 70:
        return 1.0
    if rsi > 70:
        return 0.8
    ratio = safe_div(50 - rsi, 50 - config.rsi_min_for_sell)
    return 0.0 if ratio is None else max(0.0, 1 - ratio)


@register_strategy(EMA_RSI_FILTER_STRATEGY_NAME)
class EmaRsiFilterStrategy(BaseStrategy):
    """EMA crossover confirmed by RSI not sitting at the opposite extreme."""

    config_model = EmaRsiFilterConfig
    indicators = (IndicatorKind.EMA, IndicatorKind.RSI)

    def min_data_points(self, config: EmaRsiFilterConfig) -> int:
        return max(config.slow_ema_period, config.rsi_period) + 5

    async def analyze_asset(
        self, asset: Asset, prices: Sequence[PriceBar], config: EmaRsiFilterConfig
    ) -> AssetAnalysis:
        fast, slow, rsi = await asyncio.gather(
            self.indicator_service.calculate_ema(
                PeriodRequest(asset_id=asset.id, prices=prices, period=config.fast_ema_period),
                self,
            ),
            self.indicator_service.calculate_ema(
                PeriodRequest(asset_id=asset.id, prices=prices, period=config.slow_ema_period),
                self,
            ),
            self.indicator_service.calculate_rsi(
                PeriodRequest(asset_id=asset.id, prices=prices, period=config.rsi_period),
                self,
            ),
        )

        signal = self._generate_signal(
            asset, prices, fast.values, slow.values, rsi.values, config
        )
        return AssetAnalysis(
            signals=[signal] if signal else [],
            chart_data=build_chart_data(
                prices, {"fastEMA": fast.values, "slowEMA": slow.values, "rsi": rsi.values}
            ),
        )

    def _generate_signal(
        self,
        asset: Asset,
        prices: Sequence[PriceBar],
        fast: Sequence[float | None],
        slow: Sequence[float | None],
        rsi: Sequence[float | None],
        config: EmaRsiFilterConfig,
    ) -> TradingSignal | None:
        cur = len(prices) - 1
        prev = cur - 1
        if prev < 0 or not all(
            is_valid(v) for v in (fast[cur], slow[cur], fast[prev], slow[prev], rsi[cur])
        ):
            return None

        current_rsi = rsi[cur]
        bullish = fast[prev] <= slow[prev] and fast[cur] > slow[cur]
        bearish = fast[prev] >= slow[prev] and fast[cur] < slow[cur]

        if bullish:
            if current_rsi < config.rsi_max_for_buy:
                return self._build_signal(asset, prices, fast, slow, rsi, config, "bullish")
            logger.debug(
                f"Buy signal filtered: RSI ({current_rsi:.2f}) >= "
                f"{config.rsi_max_for_buy} for {asset.symbol}"
            )

        if bearish:
            if current_rsi > config.rsi_min_for_sell:
                return self._build_signal(asset, prices, fast, slow, rsi, config, "bearish")
            logger.debug(
                f"Sell signal filtered: RSI ({current_rsi:.2f}) <= "
                f"{config.rsi_min_for_sell} for {asset.symbol}"
            )

        return None

    def _build_signal(
        self,
        asset: Asset,
        prices: Sequence[PriceBar],
        fast: Sequence[float | None],
        slow: Sequence[float | None],
        rsi: Sequence[float | None],
        config: EmaRsiFilterConfig,
        direction: Literal["bullish", "bearish"],
    ) -> TradingSignal:
        cur = len(prices) - 1
        current_rsi = rsi[cur]
        bullish = direction == "bullish"
        threshold = config.rsi_max_for_buy if bullish else config.rsi_min_for_sell

        if bullish:
            reason = (
                f"EMA bullish crossover confirmed by RSI filter: Fast EMA crossed above "
                f"Slow EMA, RSI ({current_rsi:.2f}) < {threshold} (not overbought)"
            )
        else:
            reason = (
                f"EMA bearish crossover confirmed by RSI filter: Fast EMA crossed below "
                f"Slow EMA, RSI ({current_rsi:.2f}) > {threshold} (not oversold)"
            )

        return self.make_signal(
            SignalType.BUY if bullish else SignalType.SELL,
            asset,
            prices[cur].average,
            self._strength(fast, slow, current_rsi, config, direction),
            self._confidence(prices, current_rsi, config, direction),
            reason,
            {
                "symbol": asset.symbol,
                "fastEMA": fast[cur],
                "slowEMA": slow[cur],
                "rsi": current_rsi,
                "rsiFilter": "passed",
                "rsiThreshold": threshold,
                "crossoverType": direction,
            },
        )

    @staticmethod
    def _strength(
        fast: Sequence[float | None],
        slow: Sequence[float | None],
        rsi: float,
        config: EmaRsiFilterConfig,
        direction: Literal["bullish", "bearish"],
    ) -> float:
        cur = len(fast) - 1
        spread_change = abs((fast[cur] - slow[cur]) - (fast[cur - 1] - slow[cur - 1]))
        ema_ratio = safe_div(spread_change, slow[cur], 0.0)
        ema_strength = min(1.0, ema_ratio * 100)

        if direction == "bullish":
            rsi_strength = safe_div(config.rsi_max_for_buy - rsi, config.rsi_max_for_buy, 0.0)
        else:
            rsi_strength = safe_div(rsi - config.rsi_min_for_sell, 100 - config.rsi_min_for_sell, 0.0)

        return clamp((ema_strength + rsi_strength) / 2, 0.4, 1.0)

    @staticmethod
    def _confidence(
        prices: Sequence[PriceBar],
        rsi: float,
        config: EmaRsiFilterConfig,
        direction: Literal["bullish", "bearish"],
    ) -> float:
        cur = len(prices) - 1
        start = max(0, cur - MOMENTUM_BARS)
        bars = 0
        momentum = 0
        for i in range(start + 1, cur + 1):
            bars += 1
            change = prices[i].average - prices[i - 1].average
            if (direction == "bullish" and change > 0) or (direction == "bearish" and change < 0):
                momentum += 1
        trend_score = momentum / bars if bars else 0.0

        return min(
            1.0,
            BASE_CONFIDENCE + trend_score * 0.2 + rsi_position_score(rsi, config, direction) * 0.25,
        )
