"""Calculator and provider protocols for the indicator layer.

This module provides:
- IndicatorCalculator: capability interface every calculator satisfies
- IndicatorProvider: optional per-call hook that swaps in another calculator
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from signalcore.indicators.types import IndicatorKind


@runtime_checkable
class IndicatorCalculator(Protocol):
    """Protocol that all indicator calculators must implement."""

    @property
    def kind(self) -> IndicatorKind:
        """Indicator kind this calculator produces."""
        ...

    def calculate(self, options: Any) -> Any:
        """Compute the indicator.

        Args:
            options: Kind-specific options (PeriodOptions, MacdOptions, ...).

        Returns:
            A sequence aligned with the input (``None`` or NaN for warmup
            entries) or a MacdSeries / BollingerBandsSeries. Shorter
            sequences are treated as missing their leading warmup entries.

        Raises:
            IndicatorValidationError: If the options are malformed.
        """
        ...

    def get_warmup_period(self, **params: Any) -> int:
        """Number of leading bars without a valid value."""
        ...

    def validate_options(self, options: Any) -> None:
        """Raise IndicatorValidationError if the options are malformed."""
        ...


@runtime_checkable
class IndicatorProvider(Protocol):
    """Supplies alternate calculators for some indicator kinds."""

    def get_custom_calculator(self, kind: IndicatorKind) -> IndicatorCalculator | None:
        """Return a calculator for ``kind`` or None to use the default."""
        ...
