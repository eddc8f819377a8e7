"""Strategy run input and output models."""

from datetime import datetime, timezone
from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, Field

from signalcore.models.price import Asset, PriceBar
from signalcore.models.signal import TradingSignal


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlgorithmContext(BaseModel):
    """Input to every strategy run."""

    model_config = ConfigDict(frozen=True)

    assets: list[Asset]
    price_data: dict[str, list[PriceBar]] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)
    config: dict[str, Any] = Field(default_factory=dict)

    def prices_for(self, asset_id: str) -> list[PriceBar]:
        """Get the price series for an asset (empty if none was supplied)."""
        return self.price_data.get(asset_id) or []


class ChartPoint(BaseModel):
    """One bar of per-asset visualization data."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    value: float | None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ExecutionMetrics(BaseModel):
    """Run statistics attached to every result."""

    execution_time_ms: float = 0.0
    signals_generated: int = 0
    confidence: float = 0.0


class AlgorithmResult(BaseModel):
    """Outcome of a strategy run.

    A failed run carries ``error`` and no signals; a successful run may
    still have skipped individual assets (listed in metadata).
    """

    success: bool
    signals: list[TradingSignal] = Field(default_factory=list)
    chart_data: dict[str, list[ChartPoint]] | None = None
    metadata: dict[str, Any] | None = None
    error: str | None = None
    metrics: ExecutionMetrics = Field(default_factory=ExecutionMetrics)
    timestamp: datetime = Field(default_factory=_utcnow)

    def to_json(self) -> bytes:
        """Serialize the result for an external consumer."""
        return orjson.dumps(self.model_dump())
