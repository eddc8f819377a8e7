"""Runtime wiring for signalcore: settings, logging and factories."""

from signalapp.bootstrap import build_indicator_service, build_strategies, build_strategy
from signalapp.config import Settings, get_settings
from signalapp.logging_setup import configure_logging

__all__ = [
    "Settings",
    "build_indicator_service",
    "build_strategies",
    "build_strategy",
    "configure_logging",
    "get_settings",
]
