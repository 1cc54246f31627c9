"""Logging and lightweight metrics helpers for the assistant."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional

from .config import ObservabilitySettings

MetricSink = Callable[[str, Dict[str, Any]], None]


def configure_logging(settings: ObservabilitySettings) -> None:
    """Configure structured logging according to the provided settings."""

    level = getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger(__name__).debug(
        "Logging configured", extra={"level": settings.log_level.upper()}
    )


@dataclass
class MetricsEmitter:
    """Simple metrics helper that fans out to configured sinks."""

    sinks: Iterable[MetricSink] = field(default_factory=list)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))
    enabled: bool = True

    def _emit(self, name: str, payload: Dict[str, Any]) -> None:
        if not self.enabled:
            return
        self.logger.info("metric.%s", name, extra={"metric": payload})
        for sink in self.sinks:
            try:
                sink(name, payload)
            except Exception:
                self.logger.exception("Metric sink failed", extra={"metric_name": name})

    def emit_token_usage(
        self,
        stage: str,
        prompt_tokens: int,
        completion_tokens: int,
        model: Optional[str] = None,
    ) -> None:
        payload = {
            "stage": stage,
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
        }
        if model:
            payload["model"] = model
        self._emit("token_usage", payload)

    def emit_search_query(self, query: str, max_results: int, results_count: int = 0) -> None:
        self._emit(
            "search_query",
            {"query": query[:100], "max_results": max_results, "results_count": results_count},
        )

    def emit_search_failed(self, query: str, error: str) -> None:
        self.emit_metric("search.failed", 1, extra={"query": query[:100], "error": error})

    def emit_turn_completed(self, steps: int, truncated: bool, response_chars: int) -> None:
        self._emit(
            "turn_completed",
            {"steps": steps, "truncated": truncated, "response_chars": response_chars},
        )

    def emit_metric(self, name: str, value: float, extra: Optional[Dict[str, Any]] = None) -> None:
        """Emit a generic metric."""
        payload = {"value": value}
        if extra:
            payload.update(extra)
        self._emit(name, payload)
