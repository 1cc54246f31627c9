"""Runtime package for the corpus research assistant."""

from .config import AppSettings, CacheSettings, ChatSettings, ObservabilitySettings, SearchSettings, load_settings
from .observability import configure_logging, MetricsEmitter

__all__ = [
    "AppSettings",
    "CacheSettings",
    "ChatSettings",
    "ObservabilitySettings",
    "SearchSettings",
    "load_settings",
    "configure_logging",
    "MetricsEmitter",
]
