"""Numeric helpers for optional indicator series.

Indicator series use ``None`` for "no value". These helpers skip such
entries explicitly and return a defined fallback instead of NaN or
infinity when a denominator is zero.
"""

from __future__ import annotations

import math
from typing import Iterable


def is_valid(value: float | None) -> bool:
    """Check that a series entry holds a finite number."""
    return value is not None and math.isfinite(value)


def clamp(value: float | None, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp into [low, high]; a missing or non-finite value maps to ``low``."""
    if not is_valid(value):
        return low
    return max(low, min(high, value))


def valid_values(values: Iterable[float | None]) -> list[float]:
    """Keep only finite entries."""
    return [v for v in values if is_valid(v)]


def mean(values: Iterable[float | None]) -> float | None:
    """Average of the valid entries, or None when there are none."""
    valid = valid_values(values)
    if not valid:
        return None
    return sum(valid) / len(valid)


def safe_div(numerator: float, denominator: float | None, default: float | None = None) -> float | None:
    """Divide, returning ``default`` for a zero, missing or non-finite denominator."""
    if not is_valid(denominator) or denominator == 0:
        return default
    result = numerator / denominator
    return result if math.isfinite(result) else default


def window(values: list[float | None] | tuple[float | None, ...], end: int, size: int) -> list[float | None]:
    """Entries in ``[end - size + 1, end]`` (clipped at index 0)."""
    start = max(0, end - size + 1)
    return list(values[start:end + 1])
