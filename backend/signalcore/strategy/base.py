"""Shared skeleton for all signal strategies.

Provides:
- StrategyConfig: pydantic base for per-strategy configuration with
  presence-aware defaults (explicit 0 / False are kept)
- build_config_schema: static schema generated from a config model
- AssetAnalysis: per-asset output of a strategy's detection algorithm
- BaseStrategy: config merging, sufficiency checks, concurrent per-asset
  iteration with failure isolation, and result construction
"""

from __future__ import annotations

import asyncio
import logging
import time
import typing
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from signalcore.indicators.protocol import IndicatorCalculator
from signalcore.indicators.service import IndicatorService
from signalcore.indicators.types import IndicatorKind
from signalcore.indicators.validation import IndicatorValidationError
from signalcore.models.context import (
    AlgorithmContext,
    AlgorithmResult,
    ChartPoint,
    ExecutionMetrics,
)
from signalcore.models.price import Asset, PriceBar
from signalcore.models.signal import SignalType, TradingSignal
from signalcore.strategy.numeric import clamp
from signalcore.strategy.protocol import ConfigSchema

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
def config_field(
    default: Any,
    *,
    min: float | None = None,
    max: float | None = None,
    description: str | None = None,
) -> Any:
    """Declare a config field with advisory UI bounds.

    Bounds are published through the config schema only. Values outside
    them are accepted as provided.
    """
    extra = {k: v for k, v in (("min", min), ("max", max)) if v is not None}
    return Field(default, description=description, json_schema_extra=extra or None)


class StrategyConfig(BaseModel):
    """Configuration keys shared by every strategy.

    Keys are accepted in camelCase or snake_case. A key whose value is
    None is treated as absent; any other value, including 0 and False,
    overrides the default.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    enabled: bool = True
    weight: float = config_field(1.0, min=0, max=10)
    risk_level: Literal["low", "medium", "high"] = "medium"
    cooldown_ms: int = config_field(
        86_400_000, min=0, max=604_800_000,
        description="Signal cooldown per asset+direction (ms)",
    )
    max_trades_per_day: int = config_field(6, min=0, max=50, description="Max trades per 24h window")
    min_sell_percent: float = config_field(
        0.5, min=0, max=1.0, description="Minimum sell percentage per signal"
    )
    min_confidence: float = config_field(
        0.6, min=0, max=1, description="Minimum confidence required to emit a signal"
    )

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | None):
        """Merge a raw key/value map with this model's defaults."""
        present = {k: v for k, v in (raw or {}).items() if v is not None}
        return cls.model_validate(present)


def _schema_type(annotation: Any) -> tuple[str, list[Any] | None]:
    """Map a field annotation to (schema type, enum values)."""
    if typing.get_origin(annotation) is Literal:
        return "string", list(typing.get_args(annotation))
    args = [a for a in typing.get_args(annotation) if a is not type(None)]
    if args:
        return _schema_type(args[0])
    if annotation is bool:
        return "boolean", None
    if annotation in (int, float):
        return "number", None
    return "string", None


def build_config_schema(model: type[StrategyConfig]) -> ConfigSchema:
    """Describe every config key: type, default, min/max, enum, description."""
    schema: ConfigSchema = {}
    for name, info in model.model_fields.items():
        type_name, enum = _schema_type(info.annotation)
        entry: dict[str, Any] = {"type": type_name, "default": info.default}
        if isinstance(info.json_schema_extra, dict):
            entry.update(info.json_schema_extra)
        if enum is not None:
            entry["enum"] = enum
        if info.description:
            entry["description"] = info.description
        schema[info.alias or to_camel(name)] = entry
    return schema


# ---------------------------------------------------------------------------
# Per-asset analysis output
# ---------------------------------------------------------------------------
@dataclass
class AssetAnalysis:
    """Signals and chart series produced for one asset."""

    signals: list[TradingSignal] = field(default_factory=list)
    chart_data: list[ChartPoint] | None = None


def build_chart_data(
    prices: Sequence[PriceBar],
    series: Mapping[str, Sequence[float | None]],
    include_range: bool = True,
) -> list[ChartPoint]:
    """One ChartPoint per bar: the average price plus indicator values at that bar."""
    points = []
    for i, bar in enumerate(prices):
        metadata: dict[str, Any] = {name: values[i] for name, values in series.items()}
        if include_range:
            metadata["high"] = bar.high
            metadata["low"] = bar.low
        points.append(ChartPoint(timestamp=bar.timestamp, value=bar.average, metadata=metadata))
    return points


# ---------------------------------------------------------------------------
# Base strategy
# ---------------------------------------------------------------------------
class BaseStrategy:
    """Base class for strategies that turn indicator series into signals.

    Subclasses set ``config_model`` and implement ``min_data_points`` and
    ``analyze_asset``. They pass ``self`` as the provider on every
    indicator call so per-instance calculator overrides are honored.
    """

    strategy_name: str = "base"
    config_model: type[StrategyConfig] = StrategyConfig
    indicators: tuple[IndicatorKind, ...] = ()
    # Skip (rather than fail the run on) unexpected per-asset errors
    isolate_asset_failures: bool = False

    def __init__(
        self,
        indicator_service: IndicatorService | None = None,
        calculator_overrides: Mapping[IndicatorKind, IndicatorCalculator] | None = None,
    ):
        self.indicator_service = indicator_service or IndicatorService()
        self._calculator_overrides = dict(calculator_overrides or {})

    # ------------------------------------------------------------------
    # Strategy Protocol properties
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.strategy_name

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def required_indicators(self) -> list[str]:
        return [kind.value for kind in self.indicators]

    # ------------------------------------------------------------------
    # Indicator provider hook
    # ------------------------------------------------------------------

    def get_custom_calculator(self, kind: IndicatorKind) -> IndicatorCalculator | None:
        """Return this instance's override for ``kind``, if any."""
        return self._calculator_overrides.get(kind)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_config_with_defaults(self, raw: Mapping[str, Any] | None) -> Any:
        """Merge raw config with defaults (presence-aware).

        Raises:
            pydantic.ValidationError: If a provided value has the wrong type.
        """
        return self.config_model.from_raw(raw)

    def get_config_schema(self) -> ConfigSchema:
        return build_config_schema(self.config_model)

    # ------------------------------------------------------------------
    # Sufficiency checks
    # ------------------------------------------------------------------

    def min_data_points(self, config: Any) -> int:
        """Minimum number of bars needed to analyze an asset."""
        raise NotImplementedError

    def has_enough_data(self, prices: Sequence[PriceBar] | None, config: Any) -> bool:
        return bool(prices) and len(prices) >= self.min_data_points(config)

    def can_execute(self, context: AlgorithmContext) -> bool:
        """True if ANY asset in the context has enough data."""
        if not context.assets or not context.price_data:
            return False
        try:
            config = self.get_config_with_defaults(context.config)
        except ValidationError:
            return False
        return any(
            self.has_enough_data(context.price_data.get(asset.id), config)
            for asset in context.assets
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def analyze_asset(
        self,
        asset: Asset,
        prices: Sequence[PriceBar],
        config: Any,
    ) -> AssetAnalysis:
        """Compute indicators and run the detection algorithm for one asset."""
        raise NotImplementedError

    async def _run_asset(
        self,
        asset: Asset,
        context: AlgorithmContext,
        config: Any,
    ) -> AssetAnalysis | None:
        prices = context.prices_for(asset.id)
        if not self.has_enough_data(prices, config):
            logger.warning(
                f"{self.name}: insufficient price data for {asset.symbol} "
                f"({len(prices)} bars, need {self.min_data_points(config)})"
            )
            return None
        return await self.analyze_asset(asset, prices, config)

    async def execute(self, context: AlgorithmContext) -> AlgorithmResult:
        """Run the strategy over every asset. Never raises."""
        try:
            config = self.get_config_with_defaults(context.config)
        except ValidationError as e:
            logger.error(f"{self.name}: invalid configuration: {e}")
            return self.create_error_result(f"Invalid configuration: {e}")

        try:
            outcomes = await asyncio.gather(
                *(self._run_asset(asset, context, config) for asset in context.assets),
                return_exceptions=True,
            )

            signals: list[TradingSignal] = []
            chart_data: dict[str, list[ChartPoint]] = {}
            skipped: list[str] = []

            for asset, outcome in zip(context.assets, outcomes):
                if isinstance(outcome, IndicatorValidationError):
                    logger.warning(f"{self.name}: skipping {asset.symbol}: {outcome}")
                    skipped.append(asset.id)
                    continue
                if isinstance(outcome, Exception) and self.isolate_asset_failures:
                    logger.error(f"{self.name}: failed to analyze {asset.symbol}: {outcome}")
                    skipped.append(asset.id)
                    continue
                if isinstance(outcome, BaseException):
                    raise outcome
                if outcome is None:
                    skipped.append(asset.id)
                    continue

                signals.extend(
                    s for s in outcome.signals if s.confidence >= config.min_confidence
                )
                if outcome.chart_data is not None:
                    chart_data[asset.id] = outcome.chart_data

            return self.create_success_result(
                signals,
                chart_data,
                {
                    "algorithm": self.name,
                    "version": self.version,
                    "signalsGenerated": len(signals),
                    "skippedAssets": skipped,
                },
            )
        except Exception as e:
            logger.exception(f"{self.name}: strategy execution failed: {e}")
            return self.create_error_result(str(e))

    async def safe_execute(self, context: AlgorithmContext) -> AlgorithmResult:
        """Pre-flight check, execute, and stamp execution metrics."""
        start = time.perf_counter()
        if not self.can_execute(context):
            return self.create_error_result("Algorithm cannot execute with provided context")

        result = await self.execute(context)
        elapsed_ms = (time.perf_counter() - start) * 1000
        metrics = result.metrics.model_copy(update={"execution_time_ms": elapsed_ms})
        return result.model_copy(update={"metrics": metrics})

    # ------------------------------------------------------------------
    # Result construction
    # ------------------------------------------------------------------

    def make_signal(
        self,
        signal_type: SignalType,
        asset: Asset,
        price: float,
        strength: float | None,
        confidence: float | None,
        reason: str,
        metadata: dict[str, Any] | None = None,
    ) -> TradingSignal:
        """Build a signal with strength and confidence clamped into [0, 1]."""
        return TradingSignal(
            type=signal_type,
            asset_id=asset.id,
            strength=clamp(strength),
            price=price,
            confidence=clamp(confidence),
            reason=reason,
            metadata=metadata or {},
        )

    def create_success_result(
        self,
        signals: list[TradingSignal],
        chart_data: dict[str, list[ChartPoint]] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AlgorithmResult:
        confidence = (
            sum(s.confidence for s in signals) / len(signals) if signals else 0.0
        )
        return AlgorithmResult(
            success=True,
            signals=signals,
            chart_data=chart_data,
            metadata=metadata,
            metrics=ExecutionMetrics(
                signals_generated=len(signals),
                confidence=confidence,
            ),
        )

    def create_error_result(self, error: str, execution_time_ms: float = 0.0) -> AlgorithmResult:
        return AlgorithmResult(
            success=False,
            signals=[],
            error=error,
            metrics=ExecutionMetrics(execution_time_ms=execution_time_ms),
        )
