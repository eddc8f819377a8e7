"""Price bar data models."""

from datetime import datetime
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field


class PriceBar(BaseModel):
    """One aggregated price period for an asset.

    Series of bars are ordered oldest to newest; the last bar is "current".
    ``average`` is also accepted under the ``avg`` alias.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime
    average: float = Field(alias="avg")
    high: float
    low: float


class Asset(BaseModel):
    """Tradable asset referenced by a strategy run."""

    model_config = ConfigDict(frozen=True)

    id: str
    symbol: str
    name: str = ""


def average_prices(bars: Sequence[PriceBar]) -> list[float]:
    """Extract average prices (used as the close for every indicator)."""
    return [bar.average for bar in bars]


def high_prices(bars: Sequence[PriceBar]) -> list[float]:
    """Extract high prices."""
    return [bar.high for bar in bars]


def low_prices(bars: Sequence[PriceBar]) -> list[float]:
    """Extract low prices."""
    return [bar.low for bar in bars]
