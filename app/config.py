"""Environment-driven configuration helpers for the research assistant."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, MutableMapping, Optional, Tuple

from dotenv import load_dotenv

DEFAULT_CACHE_TTL_SECONDS = 300
DEFAULT_ENV_FILE = Path(".env")
DEFAULT_CHAT_MODEL = "gpt-4o"
DEFAULT_MAX_STEPS = 5
DEFAULT_SEARCH_TYPE = "proprietary"
DEFAULT_INCLUDED_SOURCES: Tuple[str, ...] = (
    "wiley/wiley-finance-books",
    "wiley/wiley-finance-papers",
)
DEFAULT_CORPUS_LABEL = "Wiley corpus"


def _to_bool(value: Optional[str], *, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_list(value: Optional[str], default: Tuple[str, ...]) -> Tuple[str, ...]:
    if not value:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


@dataclass
class ObservabilitySettings:
    """Logging toggles."""

    log_level: str = "WARNING"
    metrics_enabled: bool = True


@dataclass
class CacheSettings:
    """Search-tool cache defaults; a TTL of zero disables caching."""

    ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS


@dataclass
class ChatSettings:
    """Model capability settings."""

    model: str = DEFAULT_CHAT_MODEL
    max_steps: int = DEFAULT_MAX_STEPS


@dataclass
class SearchSettings:
    """Corpus selection for the search provider."""

    search_type: str = DEFAULT_SEARCH_TYPE
    included_sources: Tuple[str, ...] = DEFAULT_INCLUDED_SOURCES
    corpus_label: str = DEFAULT_CORPUS_LABEL


@dataclass
class AppSettings:
    """Aggregated configuration for the application."""

    openai_api_key: Optional[str] = None
    search_api_key: Optional[str] = None
    chat: ChatSettings = field(default_factory=ChatSettings)
    search: SearchSettings = field(default_factory=SearchSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    observability: ObservabilitySettings = field(default_factory=ObservabilitySettings)


def load_settings(env: Mapping[str, str] | MutableMapping[str, str] | None = None, env_file: Optional[Path] = None) -> AppSettings:
    """Load settings from the provided environment mapping (defaults to ``os.environ``).

    When reading ``os.environ`` the ``.env`` file is loaded first; variables that
    are already set take precedence over it. Credentials are read but not
    validated here: callers decide how to report a missing key.
    """

    if env is None:
        env_file_path = env_file or DEFAULT_ENV_FILE
        if env_file_path.exists():
            load_dotenv(env_file_path, override=False)
        env = os.environ

    max_steps = max(1, int(env.get("MAX_STEPS", DEFAULT_MAX_STEPS)))

    return AppSettings(
        openai_api_key=env.get("OPENAI_API_KEY") or None,
        search_api_key=env.get("VALYU_API_KEY") or None,
        chat=ChatSettings(
            model=env.get("OPENAI_CHAT_MODEL", DEFAULT_CHAT_MODEL),
            max_steps=max_steps,
        ),
        search=SearchSettings(
            search_type=env.get("SEARCH_TYPE", DEFAULT_SEARCH_TYPE),
            included_sources=_to_list(env.get("SEARCH_INCLUDED_SOURCES"), DEFAULT_INCLUDED_SOURCES),
            corpus_label=env.get("CORPUS_LABEL", DEFAULT_CORPUS_LABEL),
        ),
        cache=CacheSettings(ttl_seconds=int(env.get("CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS))),
        observability=ObservabilitySettings(
            log_level=env.get("LOG_LEVEL", "WARNING"),
            metrics_enabled=_to_bool(env.get("METRICS_ENABLED"), default=True),
        ),
    )
