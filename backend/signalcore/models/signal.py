"""Trading signal models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SignalType(str, Enum):
    """Kind of action a signal recommends."""

    BUY = "BUY"
    SELL = "SELL"
    STOP_LOSS = "STOP_LOSS"
    TAKE_PROFIT = "TAKE_PROFIT"


class TradingSignal(BaseModel):
    """A directional signal for one asset, produced by a strategy run.

    Strength and confidence are validated into [0, 1]; NaN and infinity
    are rejected so a degenerate calculation can never leak out.
    """

    model_config = ConfigDict(frozen=True)

    type: SignalType
    asset_id: str
    strength: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)
    price: float
    confidence: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)
    reason: str
    metadata: dict[str, Any] = Field(default_factory=dict)
