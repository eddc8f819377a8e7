"""ATR trailing stop strategy.

Long stop  = highest high over the lookback window - ATR * multiplier
Short stop = lowest low over the lookback window  + ATR * multiplier

The stop is ratcheted: a new stop is never looser than the previous one,
so a transient ATR spike cannot widen a stop that has already tightened.
The chain restarts only where ATR is missing.

- STOP_LOSS when the trigger price (low for longs, high for shorts)
  crosses the ratcheted stop
- BUY/SELL re-entry when the previous bar was stopped out and the
  current bar is back inside the stop
"""

import logging
from typing import Literal, Sequence

from signalcore.indicators.types import IndicatorKind, PeriodRequest
from signalcore.models import Asset, ChartPoint, PriceBar, SignalType, TradingSignal
from signalcore.strategy.atr_trailing_stop.models import (
    ATR_TRAILING_STOP_STRATEGY_NAME,
    AtrTrailingStopConfig,
    StopState,
)
from signalcore.strategy.base import AssetAnalysis, BaseStrategy
from signalcore.strategy.numeric import clamp, is_valid, mean, safe_div, valid_values, window
from signalcore.strategy.registry import register_strategy

logger = logging.getLogger(__name__)

Direction = Literal["long", "short"]

STABILITY_BARS = 6
STOP_BASE_CONFIDENCE = 0.5
ENTRY_BASE_CONFIDENCE = 0.45


def trailing_stops(
    prices: Sequence[PriceBar],
    atr: Sequence[float | None],
    period: int,
    multiplier: float,
    direction: Direction,
    use_high_low: bool = True,
) -> list[StopState | None]:
    """Ratcheted trailing stop for every bar (None where ATR is missing)."""
    states: list[StopState | None] = []
    previous: StopState | None = None
    for i, bar in enumerate(prices):
        if not is_valid(atr[i]):
            states.append(None)
            previous = None
            continue

        lookback = prices[max(0, i - period):i + 1]
        offset = atr[i] * multiplier
        if direction == "long":
            highest = max(b.high if use_high_low else b.average for b in lookback)
            raw = highest - offset
            trigger_price = bar.low if use_high_low else bar.average
        else:
            lowest = min(b.low if use_high_low else b.average for b in lookback)
            raw = lowest + offset
            trigger_price = bar.high if use_high_low else bar.average

        stop = raw
        previous_stop = previous.stop if previous else None
        if previous is not None:
            stop = max(raw, previous.stop) if direction == "long" else min(raw, previous.stop)

        triggered = trigger_price < stop if direction == "long" else trigger_price > stop
        previous = StopState(
            raw_stop=raw,
            stop=stop,
            previous_stop=previous_stop,
            trigger_price=trigger_price,
            triggered=triggered,
        )
        states.append(previous)
    return states


def atr_stability(atr: Sequence[float | None], end: int, bars: int = STABILITY_BARS) -> float | None:
    """1 - normalized ATR variation over the last ``bars`` readings.

    Returns None when there is no usable average ATR.
    """
    recent = valid_values(window(list(atr), end, bars))
    avg = mean(recent)
    if avg is None or avg == 0:
        return None
    variation = sum(abs(v - avg) for v in recent) / avg
    return 1 - min(1.0, variation / (bars - 1))


def _confidence(
    base: float,
    atr: Sequence[float | None],
    end: int,
    state: StopState,
    direction: Direction,
) -> float:
    stability = atr_stability(atr, end)
    if stability is None:
        return base

    confidence = base + stability * 0.3
    if state.previous_stop is not None:
        progressed = (
            state.stop > state.previous_stop if direction == "long"
            else state.stop < state.previous_stop
        )
        if progressed:
            confidence += 0.2
    return min(1.0, confidence)


@register_strategy(ATR_TRAILING_STOP_STRATEGY_NAME)
class AtrTrailingStopStrategy(BaseStrategy):
    """Volatility-scaled trailing stops with re-entry on recovery."""

    config_model = AtrTrailingStopConfig
    indicators = (IndicatorKind.ATR,)

    def min_data_points(self, config: AtrTrailingStopConfig) -> int:
        return config.atr_period + 5

    async def analyze_asset(
        self, asset: Asset, prices: Sequence[PriceBar], config: AtrTrailingStopConfig
    ) -> AssetAnalysis:
        result = await self.indicator_service.calculate_atr(
            PeriodRequest(asset_id=asset.id, prices=prices, period=config.atr_period),
            self,
        )
        atr = result.values

        directions: list[Direction] = (
            ["long", "short"] if config.trade_direction == "both" else [config.trade_direction]
        )
        stops = {
            direction: trailing_stops(
                prices, atr, config.atr_period, config.atr_multiplier,
                direction, config.use_high_low,
            )
            for direction in ("long", "short")
        }

        signals = []
        for direction in directions:
            signal = self._generate_signal(asset, prices, atr, stops[direction], direction, config)
            if signal:
                signals.append(signal)

        return AssetAnalysis(
            signals=signals,
            chart_data=self._chart_data(prices, atr, stops["long"], stops["short"]),
        )

    def _generate_signal(
        self,
        asset: Asset,
        prices: Sequence[PriceBar],
        atr: Sequence[float | None],
        stops: Sequence[StopState | None],
        direction: Direction,
        config: AtrTrailingStopConfig,
    ) -> TradingSignal | None:
        cur = len(prices) - 1
        state = stops[cur]
        if state is None:
            return None

        price = prices[cur].average
        current_atr = atr[cur]

        if state.triggered:
            breach = abs(price - state.stop)
            strength = clamp(safe_div(breach, current_atr, 1.0), 0.4, 1.0)
            if direction == "long":
                reason = (
                    f"Long trailing stop triggered: Price ({state.trigger_price:.4f}) fell below "
                    f"stop ({state.stop:.4f}). ATR: {current_atr:.4f}"
                )
            else:
                reason = (
                    f"Short trailing stop triggered: Price ({state.trigger_price:.4f}) rose above "
                    f"stop ({state.stop:.4f}). ATR: {current_atr:.4f}"
                )
            return self.make_signal(
                SignalType.STOP_LOSS,
                asset,
                state.stop,
                strength,
                _confidence(STOP_BASE_CONFIDENCE, atr, cur, state, direction),
                reason,
                {
                    **self._signal_metadata(asset, price, state, current_atr, direction, config),
                    "stopType": "trailing",
                },
            )

        previous = stops[cur - 1] if cur > 0 else None
        if previous is None or not previous.triggered:
            return None

        # Back inside the stop after being stopped out on the previous bar
        buffer = abs(state.trigger_price - state.stop)
        strength = clamp(safe_div(buffer * 2, current_atr, 1.0), 0.3, 1.0)
        signal_type = SignalType.BUY if direction == "long" else SignalType.SELL
        side = "above" if direction == "long" else "below"
        return self.make_signal(
            signal_type,
            asset,
            price,
            strength,
            _confidence(ENTRY_BASE_CONFIDENCE, atr, cur, state, direction),
            f"{direction.capitalize()} trend resumed: Price ({state.trigger_price:.4f}) back "
            f"{side} trailing stop ({state.stop:.4f}). ATR: {current_atr:.4f}",
            {
                **self._signal_metadata(asset, price, state, current_atr, direction, config),
                "entryType": "trend_flip",
            },
        )

    @staticmethod
    def _signal_metadata(
        asset: Asset,
        price: float,
        state: StopState,
        current_atr: float,
        direction: Direction,
        config: AtrTrailingStopConfig,
    ) -> dict:
        return {
            "symbol": asset.symbol,
            "currentPrice": price,
            "stopLevel": state.stop,
            "rawStopLevel": state.raw_stop,
            "previousStopLevel": state.previous_stop,
            "atr": current_atr,
            "atrMultiplier": config.atr_multiplier,
            "direction": direction,
        }

    @staticmethod
    def _chart_data(
        prices: Sequence[PriceBar],
        atr: Sequence[float | None],
        long_stops: Sequence[StopState | None],
        short_stops: Sequence[StopState | None],
    ) -> list[ChartPoint]:
        return [
            ChartPoint(
                timestamp=bar.timestamp,
                value=bar.average,
                metadata={
                    "atr": atr[i],
                    "longTrailingStop": long_stops[i].stop if long_stops[i] else None,
                    "shortTrailingStop": short_stops[i].stop if short_stops[i] else None,
                    "high": bar.high,
                    "low": bar.low,
                },
            )
            for i, bar in enumerate(prices)
        ]
