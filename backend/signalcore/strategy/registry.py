"""Strategy registry for discovering and instantiating strategies by name.

Usage:
    @register_strategy("rsi")
    class RsiStrategy(BaseStrategy):
        ...

    strategy = create_strategy("rsi", indicator_service=service)
    names = list_strategies()
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

StrategyT = TypeVar("StrategyT", bound=type)

# Global registry: strategy name -> strategy class
_REGISTRY: dict[str, type] = {}


def _lookup(name: str) -> type:
    cls = _REGISTRY.get(name)
    if cls is None:
        available = ", ".join(sorted(_REGISTRY)) or "(none)"
        raise KeyError(f"Unknown strategy '{name}'. Available: {available}")
    return cls


def register_strategy(name: str) -> Callable[[StrategyT], StrategyT]:
    """Decorator registering a strategy class under ``name``.

    The name is also stored on the class as ``strategy_name``.

    Raises:
        ValueError: If the name is already taken by another class.
    """

    def decorator(cls: StrategyT) -> StrategyT:
        existing = _REGISTRY.get(name)
        if existing is not None and existing is not cls:
            raise ValueError(
                f"Strategy '{name}' is already registered by {existing.__name__}"
            )
        cls.strategy_name = name
        _REGISTRY[name] = cls
        logger.debug("Registered strategy: %s -> %s", name, cls.__name__)
        return cls

    return decorator


def create_strategy(name: str, **kwargs: Any):
    """Instantiate a registered strategy.

    Args:
        name: Registered strategy name.
        **kwargs: Passed to the constructor (e.g. ``indicator_service``).

    Raises:
        KeyError: If no strategy is registered under ``name``.
    """
    return _lookup(name)(**kwargs)


def get_strategy_class(name: str) -> type:
    """Get a registered strategy class without instantiating it.

    Raises:
        KeyError: If no strategy is registered under ``name``.
    """
    return _lookup(name)


def list_strategies() -> list[str]:
    """Sorted names of all registered strategies."""
    return sorted(_REGISTRY)
