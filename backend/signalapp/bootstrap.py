"""Factories that turn Settings into a ready-to-run indicator service and strategies."""

import logging

from signalapp.config import Settings, get_settings
from signalcore.indicators import IndicatorCache, IndicatorService
from signalcore.strategy import BaseStrategy, create_strategy, list_strategies

logger = logging.getLogger(__name__)


def build_indicator_service(settings: Settings | None = None) -> IndicatorService:
    """Indicator service with a cache sized from settings."""
    settings = settings or get_settings()
    cache = IndicatorCache(
        max_entries=settings.indicator_cache_max_entries,
        ttl_seconds=settings.indicator_cache_ttl_seconds,
    )
    logger.info(
        f"Indicator service: cache={'on' if settings.indicator_cache_enabled else 'off'}, "
        f"max_entries={settings.indicator_cache_max_entries}, "
        f"ttl={settings.indicator_cache_ttl_seconds}s"
    )
    return IndicatorService(
        cache=cache,
        hash_sample_size=settings.indicator_cache_sample_size,
        use_cache=settings.indicator_cache_enabled,
    )


def build_strategy(
    name: str, indicator_service: IndicatorService | None = None, **kwargs
) -> BaseStrategy:
    """Create a registered strategy bound to ``indicator_service``.

    Raises:
        KeyError: If no strategy is registered under ``name``.
    """
    service = indicator_service or build_indicator_service()
    return create_strategy(name, indicator_service=service, **kwargs)


def build_strategies(
    settings: Settings | None = None, indicator_service: IndicatorService | None = None
) -> dict[str, BaseStrategy]:
    """Every enabled strategy, sharing one indicator service (and its cache)."""
    settings = settings or get_settings()
    service = indicator_service or build_indicator_service(settings)
    names = settings.enabled_strategies or list_strategies()
    strategies = {name: build_strategy(name, service) for name in names}
    logger.info(f"Loaded {len(strategies)} strategies: {', '.join(strategies)}")
    return strategies
