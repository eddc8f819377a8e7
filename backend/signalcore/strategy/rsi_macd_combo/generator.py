"""RSI + MACD combo strategy.

Both indicators must agree within a confirmation window of recent bars:
- BUY: RSI below ``rsi_oversold`` AND a bullish MACD crossover
- SELL: RSI above ``rsi_overbought`` AND a bearish MACD crossover

Within the window the latest RSI extreme and the latest MACD crossover
win. Confidence rewards signals that are recent and close together.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Literal, Sequence

from signalcore.indicators.types import IndicatorKind, MacdRequest, PeriodRequest
from signalcore.models import Asset, PriceBar, SignalType, TradingSignal
from signalcore.strategy.base import AssetAnalysis, BaseStrategy, build_chart_data
from signalcore.strategy.numeric import is_valid, mean, safe_div
from signalcore.strategy.registry import register_strategy
from signalcore.strategy.rsi_macd_combo.models import (
    RSI_MACD_COMBO_STRATEGY_NAME,
    RsiMacdComboConfig,
)

logger = logging.getLogger(__name__)

Side = Literal["buy", "sell"]

# Trailing bars used to normalize histogram magnitude
HISTOGRAM_LOOKBACK = 20
BASE_STRENGTH = 0.3
BASE_CONFIDENCE = 0.6


@dataclass(frozen=True)
class ComboWindow:
    """Latest RSI extreme and MACD crossover found in the confirmation window."""

    rsi_side: Side | None = None
    rsi_bar: int = -1
    macd_side: Side | None = None
    macd_bar: int = -1

    @property
    def agreed(self) -> Side | None:
        if self.rsi_side is not None and self.rsi_side == self.macd_side:
            return self.rsi_side
        return None


def scan_window(
    rsi: Sequence[float | None],
    macd: Sequence[float | None],
    signal: Sequence[float | None],
    config: RsiMacdComboConfig,
) -> ComboWindow:
    """Scan the last ``confirmation_window`` bars for RSI extremes and MACD crossovers."""
    cur = len(rsi) - 1
    rsi_side, rsi_bar = None, -1
    macd_side, macd_bar = None, -1

    for i in range(max(0, cur - config.confirmation_window + 1), cur + 1):
        if is_valid(rsi[i]):
            if rsi[i] < config.rsi_oversold:
                rsi_side, rsi_bar = "buy", i
            elif rsi[i] > config.rsi_overbought:
                rsi_side, rsi_bar = "sell", i

        if i == 0 or not all(is_valid(v) for v in (macd[i], signal[i], macd[i - 1], signal[i - 1])):
            continue
        if macd[i - 1] <= signal[i - 1] and macd[i] > signal[i]:
            macd_side, macd_bar = "buy", i
        elif macd[i - 1] >= signal[i - 1] and macd[i] < signal[i]:
            macd_side, macd_bar = "sell", i

    return ComboWindow(rsi_side, rsi_bar, macd_side, macd_bar)


def _strength(
    rsi: Sequence[float | None],
    histogram: Sequence[float | None],
    window: ComboWindow,
    config: RsiMacdComboConfig,
) -> float:
    signal_rsi = rsi[window.rsi_bar]
    if window.agreed == "buy":
        rsi_strength = safe_div(config.rsi_oversold - signal_rsi, config.rsi_oversold, 0.0)
    else:
        rsi_strength = safe_div(signal_rsi - config.rsi_overbought, 100 - config.rsi_overbought, 0.0)

    cur = len(histogram) - 1
    signal_histogram = abs(histogram[window.macd_bar]) if is_valid(histogram[window.macd_bar]) else 0.0
    average = mean(abs(h) for h in histogram[max(0, cur - HISTOGRAM_LOOKBACK):cur + 1] if is_valid(h))
    macd_strength = min(1.0, safe_div(signal_histogram, (average or 0.0) * 2, 0.0))

    return min(1.0, (rsi_strength + macd_strength) / 2 + BASE_STRENGTH)


def _confidence(window: ComboWindow, cur: int, config: RsiMacdComboConfig) -> float:
    span = config.confirmation_window
    age = (cur - window.rsi_bar) + (cur - window.macd_bar)
    gap = abs(window.rsi_bar - window.macd_bar)
    freshness = 1 - safe_div(age, span * 2, 0.0)
    closeness = 1 - safe_div(gap, span, 0.0)
    return min(1.0, BASE_CONFIDENCE + freshness * 0.2 + closeness * 0.2)


@register_strategy(RSI_MACD_COMBO_STRATEGY_NAME)
class RsiMacdComboStrategy(BaseStrategy):
    """Momentum reversal confirmed by RSI extremes and MACD crossovers together."""

    config_model = RsiMacdComboConfig
    indicators = (IndicatorKind.RSI, IndicatorKind.MACD)

    def min_data_points(self, config: RsiMacdComboConfig) -> int:
        macd_required = config.macd_slow + config.macd_signal - 1
        return max(config.rsi_period, macd_required) + config.confirmation_window

    async def analyze_asset(
        self, asset: Asset, prices: Sequence[PriceBar], config: RsiMacdComboConfig
    ) -> AssetAnalysis:
        rsi, macd = await asyncio.gather(
            self.indicator_service.calculate_rsi(
                PeriodRequest(asset_id=asset.id, prices=prices, period=config.rsi_period),
                self,
            ),
            self.indicator_service.calculate_macd(
                MacdRequest(
                    asset_id=asset.id,
                    prices=prices,
                    fast_period=config.macd_fast,
                    slow_period=config.macd_slow,
                    signal_period=config.macd_signal,
                ),
                self,
            ),
        )

        signal = self._generate_signal(
            asset, prices, rsi.values, macd.macd, macd.signal, macd.histogram, config
        )
        return AssetAnalysis(
            signals=[signal] if signal else [],
            chart_data=build_chart_data(
                prices,
                {
                    "rsi": rsi.values,
                    "macd": macd.macd,
                    "macdSignal": macd.signal,
                    "histogram": macd.histogram,
                },
            ),
        )

    def _generate_signal(
        self,
        asset: Asset,
        prices: Sequence[PriceBar],
        rsi: Sequence[float | None],
        macd: Sequence[float | None],
        signal: Sequence[float | None],
        histogram: Sequence[float | None],
        config: RsiMacdComboConfig,
    ) -> TradingSignal | None:
        window = scan_window(rsi, macd, signal, config)
        side = window.agreed
        if side is None:
            return None

        cur = len(prices) - 1
        signal_rsi = rsi[window.rsi_bar]
        if side == "buy":
            reason = (
                f"RSI+MACD Combo BUY: RSI oversold ({signal_rsi:.2f} < {config.rsi_oversold}) "
                f"+ MACD bullish crossover within {config.confirmation_window} bars"
            )
        else:
            reason = (
                f"RSI+MACD Combo SELL: RSI overbought ({signal_rsi:.2f} > {config.rsi_overbought}) "
                f"+ MACD bearish crossover within {config.confirmation_window} bars"
            )

        logger.debug(f"RSI+MACD {side} combo on {asset.symbol}")
        return self.make_signal(
            SignalType.BUY if side == "buy" else SignalType.SELL,
            asset,
            prices[cur].average,
            _strength(rsi, histogram, window, config),
            _confidence(window, cur, config),
            reason,
            {
                "symbol": asset.symbol,
                "rsi": rsi[cur],
                "macd": macd[cur],
                "macdSignal": signal[cur],
                "histogram": histogram[cur],
                "rsiSignalBar": window.rsi_bar,
                "macdSignalBar": window.macd_bar,
                "confirmationWindow": config.confirmation_window,
                "comboType": "bullish" if side == "buy" else "bearish",
            },
        )
