"""Triple EMA alignment strategy.

Three EMAs (fast, medium, slow) define the trend:
- bullish alignment: fast > medium > slow
- bearish alignment: fast < medium < slow
- anything else is neutral

A BUY/SELL fires on the bar where the alignment turns bullish/bearish.
With ``signal_on_partial_cross`` enabled and ``require_full_alignment``
disabled, a fast/medium crossover in the direction of the medium/slow
order also signals, at reduced strength and confidence.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Literal, Sequence

from signalcore.indicators.types import IndicatorKind, PeriodRequest
from signalcore.models import Asset, ChartPoint, PriceBar, SignalType, TradingSignal
from signalcore.strategy.base import AssetAnalysis, BaseStrategy
from signalcore.strategy.numeric import clamp, is_valid, safe_div
from signalcore.strategy.registry import register_strategy
from signalcore.strategy.triple_ema.models import TRIPLE_EMA_STRATEGY_NAME, TripleEmaConfig

logger = logging.getLogger(__name__)

Alignment = Literal["bullish", "bearish", "neutral"]

CONSISTENCY_BARS = 5
PARTIAL_STRENGTH_FACTOR = 0.7
PARTIAL_CONFIDENCE_FACTOR = 0.8


@dataclass(frozen=True)
class AlignmentState:
    """EMA order at the current bar compared with the previous bar."""

    current: Alignment
    previous: Alignment
    fast_above_medium: bool
    previous_fast_above_medium: bool
    medium_above_slow: bool
    spread: float


def alignment(fast: float, medium: float, slow: float) -> Alignment:
    if fast > medium > slow:
        return "bullish"
    if fast < medium < slow:
        return "bearish"
    return "neutral"


def alignment_state(
    fast: Sequence[float | None],
    medium: Sequence[float | None],
    slow: Sequence[float | None],
    index: int,
) -> AlignmentState | None:
    """Alignment at ``index`` and ``index - 1``, or None if any EMA is missing."""
    prev = index - 1
    values = (fast[index], medium[index], slow[index], fast[prev], medium[prev], slow[prev])
    if prev < 0 or not all(is_valid(v) for v in values):
        return None

    return AlignmentState(
        current=alignment(fast[index], medium[index], slow[index]),
        previous=alignment(fast[prev], medium[prev], slow[prev]),
        fast_above_medium=fast[index] > medium[index],
        previous_fast_above_medium=fast[prev] > medium[prev],
        medium_above_slow=medium[index] > slow[index],
        spread=safe_div(abs(fast[index] - slow[index]), slow[index], 0.0),
    )


def _strength(state: AlignmentState) -> float:
    # A 10% fast/slow spread gives full spread strength
    spread_strength = min(1.0, state.spread * 10)
    base = 0.5 if state.current != "neutral" else 0.3
    return clamp(base + spread_strength * 0.5, 0.4, 1.0)


def _confidence(
    fast: Sequence[float | None],
    medium: Sequence[float | None],
    slow: Sequence[float | None],
    state: AlignmentState,
    index: int,
    bullish: bool,
) -> float:
    consistent = 0
    valid = 0
    for i in range(max(0, index - CONSISTENCY_BARS), index):
        if not all(is_valid(v) for v in (fast[i], medium[i], slow[i])):
            continue
        valid += 1
        bar_alignment = alignment(fast[i], medium[i], slow[i])
        if bar_alignment == "neutral" or bar_alignment == ("bullish" if bullish else "bearish"):
            consistent += 1

    consistency = consistent / valid if valid else 0.0
    spread_score = min(1.0, state.spread * 8)
    return min(1.0, 0.5 + consistency * 0.25 + spread_score * 0.25)


@register_strategy(TRIPLE_EMA_STRATEGY_NAME)
class TripleEmaStrategy(BaseStrategy):
    """Signals trend shifts when three EMAs line up."""

    config_model = TripleEmaConfig
    indicators = (IndicatorKind.EMA,)

    def min_data_points(self, config: TripleEmaConfig) -> int:
        return config.slow_period + 5

    async def analyze_asset(
        self, asset: Asset, prices: Sequence[PriceBar], config: TripleEmaConfig
    ) -> AssetAnalysis:
        fast, medium, slow = await asyncio.gather(
            *(
                self.indicator_service.calculate_ema(
                    PeriodRequest(asset_id=asset.id, prices=prices, period=period), self
                )
                for period in (config.fast_period, config.medium_period, config.slow_period)
            )
        )

        signal = self._generate_signal(
            asset, prices, fast.values, medium.values, slow.values, config
        )
        return AssetAnalysis(
            signals=[signal] if signal else [],
            chart_data=self._chart_data(prices, fast.values, medium.values, slow.values),
        )

    def _generate_signal(
        self,
        asset: Asset,
        prices: Sequence[PriceBar],
        fast: Sequence[float | None],
        medium: Sequence[float | None],
        slow: Sequence[float | None],
        config: TripleEmaConfig,
    ) -> TradingSignal | None:
        cur = len(prices) - 1
        state = alignment_state(fast, medium, slow, cur)
        if state is None:
            return None

        if state.current != state.previous and state.current != "neutral":
            bullish = state.current == "bullish"
            relation = ">" if bullish else "<"
            return self._build_signal(
                asset,
                prices[cur].average,
                bullish,
                _strength(state),
                _confidence(fast, medium, slow, state, cur, bullish),
                f"Triple EMA {state.current} alignment: Fast EMA ({fast[cur]:.4f}) {relation} "
                f"Medium EMA ({medium[cur]:.4f}) {relation} Slow EMA ({slow[cur]:.4f})",
                state,
                (fast[cur], medium[cur], slow[cur]),
                "full",
            )

        if not config.signal_on_partial_cross or config.require_full_alignment:
            return None
        if state.fast_above_medium == state.previous_fast_above_medium:
            return None

        if state.fast_above_medium and state.medium_above_slow:
            bullish = True
        elif not state.fast_above_medium and not state.medium_above_slow:
            bullish = False
        else:
            return None

        if bullish:
            reason = "Triple EMA partial bullish: Fast EMA crossed above Medium EMA while trend is up"
        else:
            reason = "Triple EMA partial bearish: Fast EMA crossed below Medium EMA while trend is down"

        logger.debug(f"Triple EMA partial cross on {asset.symbol}")
        return self._build_signal(
            asset,
            prices[cur].average,
            bullish,
            _strength(state) * PARTIAL_STRENGTH_FACTOR,
            _confidence(fast, medium, slow, state, cur, bullish) * PARTIAL_CONFIDENCE_FACTOR,
            reason,
            state,
            (fast[cur], medium[cur], slow[cur]),
            "partial",
        )

    def _build_signal(
        self,
        asset: Asset,
        price: float,
        bullish: bool,
        strength: float,
        confidence: float,
        reason: str,
        state: AlignmentState,
        emas: tuple[float, float, float],
        alignment_type: Literal["full", "partial"],
    ) -> TradingSignal:
        return self.make_signal(
            SignalType.BUY if bullish else SignalType.SELL,
            asset,
            price,
            strength,
            confidence,
            reason,
            {
                "symbol": asset.symbol,
                "fastEMA": emas[0],
                "mediumEMA": emas[1],
                "slowEMA": emas[2],
                "alignment": state.current,
                "previousAlignment": state.previous,
                "emaSpread": state.spread,
                "alignmentType": alignment_type,
            },
        )

    @staticmethod
    def _chart_data(
        prices: Sequence[PriceBar],
        fast: Sequence[float | None],
        medium: Sequence[float | None],
        slow: Sequence[float | None],
    ) -> list[ChartPoint]:
        points = []
        for i, bar in enumerate(prices):
            complete = all(is_valid(v) for v in (fast[i], medium[i], slow[i]))
            points.append(
                ChartPoint(
                    timestamp=bar.timestamp,
                    value=bar.average,
                    metadata={
                        "fastEMA": fast[i],
                        "mediumEMA": medium[i],
                        "slowEMA": slow[i],
                        "alignment": alignment(fast[i], medium[i], slow[i]) if complete else "neutral",
                        "high": bar.high,
                        "low": bar.low,
                    },
                )
            )
        return points
