"""Strategy protocol consumed by an external orchestrator.

This module provides:
- Strategy: runtime-checkable Protocol every strategy satisfies
- ConfigSchema: shape of the static configuration metadata
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from signalcore.models.context import AlgorithmContext, AlgorithmResult

# key -> {type, default, min?, max?, enum?, description?}
ConfigSchema = dict[str, dict[str, Any]]


@runtime_checkable
class Strategy(Protocol):
    """Protocol that all signal strategies must implement."""

    @property
    def name(self) -> str:
        """Registered strategy name (e.g., 'atr_trailing_stop')."""
        ...

    @property
    def version(self) -> str:
        """Strategy version string (e.g., '1.0.0')."""
        ...

    @property
    def required_indicators(self) -> list[str]:
        """Indicator kinds this strategy reads (e.g., ['bollinger_bands'])."""
        ...

    async def execute(self, context: AlgorithmContext) -> AlgorithmResult:
        """Run the strategy over every asset in the context.

        Never raises: failures are reported as ``success=False``.
        """
        ...

    def can_execute(self, context: AlgorithmContext) -> bool:
        """Cheap pre-flight check used by the orchestrator."""
        ...

    def get_config_schema(self) -> ConfigSchema:
        """Static configuration metadata for UI generation."""
        ...
