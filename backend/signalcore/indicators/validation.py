"""Input validation shared by indicator calculators.

All helpers raise IndicatorValidationError with a message naming the
offending field and value.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Sequence


class IndicatorValidationError(ValueError):
    """Malformed calculator input (bad period, short series, bad values)."""

    def __init__(self, field: str, value: Any, message: str):
        self.field = field
        self.value = value
        super().__init__(f"{field}={value!r}: {message}")


def validate_period(period: Any, field: str = "period", minimum: int = 1) -> None:
    """Require a positive integer period (bools are rejected)."""
    if isinstance(period, bool) or not isinstance(period, int):
        raise IndicatorValidationError(field, period, "must be an integer")
    if period <= 0:
        raise IndicatorValidationError(field, period, "must be positive")
    if period < minimum:
        raise IndicatorValidationError(field, period, f"must be at least {minimum}")


def validate_values(values: Sequence[Any], field: str = "values") -> None:
    """Require every entry to be a finite real number."""
    for index, value in enumerate(values):
        if isinstance(value, bool) or not isinstance(value, Real):
            raise IndicatorValidationError(
                f"{field}[{index}]", value, "must be numeric"
            )
        if not math.isfinite(value):
            raise IndicatorValidationError(
                f"{field}[{index}]", value, "must be a finite number"
            )


def validate_length(values: Sequence[Any], required: int, field: str = "values") -> None:
    """Require at least ``required`` data points."""
    if len(values) < required:
        raise IndicatorValidationError(
            field,
            f"<{len(values)} points>",
            f"needs at least {required} data points, got {len(values)}",
        )


def validate_positive(value: Any, field: str) -> None:
    """Require a finite, strictly positive number."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise IndicatorValidationError(field, value, "must be numeric")
    if not math.isfinite(value) or value <= 0:
        raise IndicatorValidationError(field, value, "must be a positive number")
