"""Corpus search tool exposed to the model, with pluggable transport."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from research_assistant.citations import render_tool_payload
from research_assistant.models import FormattedSource, SearchResult

from app.config import DEFAULT_INCLUDED_SOURCES, DEFAULT_SEARCH_TYPE
from app.observability import MetricsEmitter
from app.prompts import SEARCH_TOOL_DESCRIPTION, SEARCH_TOOL_NAME
from app.schemas import ToolInvocationRequest
from app.utils.cache import SearchCache

logger = logging.getLogger(__name__)

# transport(query, search_type=..., max_num_results=..., included_sources=..., is_tool_call=...)
# returns a mapping with "success", optional "error" and "results".
SearchTransport = Callable[..., Mapping[str, Any]]


def failure_payload(error: str) -> str:
    return json.dumps({"success": False, "error": error, "results": []})


@dataclass
class ToolOutput:
    """Result of one tool invocation: payload text for the model plus structured sources."""

    payload: str
    sources: Tuple[FormattedSource, ...] = ()
    success: bool = True
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "ToolOutput":
        return cls(payload=failure_payload(error), success=False, error=error)


@dataclass
class CorpusSearchTool:
    """Wraps the search provider behind the typed contract the model calls."""

    transport: SearchTransport
    included_sources: Sequence[str] = DEFAULT_INCLUDED_SOURCES
    search_type: str = DEFAULT_SEARCH_TYPE
    name: str = SEARCH_TOOL_NAME
    description: str = SEARCH_TOOL_DESCRIPTION
    cache: SearchCache = field(default_factory=lambda: SearchCache(ttl_seconds=0))
    metrics: MetricsEmitter = field(default_factory=MetricsEmitter)

    def to_tool_definition(self) -> Dict[str, Any]:
        """Convert to OpenAI tool definition format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": ToolInvocationRequest.model_json_schema(),
            },
        }

    def parse_arguments(self, arguments: Mapping[str, Any]) -> ToolInvocationRequest:
        return ToolInvocationRequest.model_validate(dict(arguments))

    def invoke(self, arguments: Mapping[str, Any]) -> ToolOutput:
        """Validate raw model arguments and run the search; never raises."""

        try:
            request = self.parse_arguments(arguments)
        except ValidationError as exc:
            logger.warning("Rejected %s arguments %s: %s", self.name, dict(arguments), exc)
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
            )
            return ToolOutput.failure(f"Invalid arguments: {problems}")
        return self.search(request)

    def search(self, request: ToolInvocationRequest) -> ToolOutput:
        cached = self.cache.lookup(request.query, request.max_results)
        if cached is not None:
            logger.debug("Cache hit for query '%s'", request.query)
            return cached

        try:
            response = self.transport(
                request.query,
                search_type=self.search_type,
                max_num_results=request.max_results,
                included_sources=list(self.included_sources),
                is_tool_call=True,
            )
        except Exception as exc:  # noqa: BLE001 - provider faults are reported to the model
            logger.exception("Search transport failed for query '%s': %s", request.query, exc)
            error = str(exc) or "Unknown error"
            self.metrics.emit_search_failed(request.query, error)
            return ToolOutput.failure(error)

        if not response.get("success"):
            error = response.get("error") or "Search failed"
            logger.warning("Search provider reported failure for query '%s': %s", request.query, error)
            self.metrics.emit_search_failed(request.query, error)
            return ToolOutput.failure(error)

        try:
            sources = self.format_results(response.get("results") or [])
            payload = render_tool_payload(sources)
        except Exception as exc:  # noqa: BLE001 - malformed hits are reported to the model
            logger.exception("Could not format search results for query '%s': %s", request.query, exc)
            error = f"Could not read search results: {exc}"
            self.metrics.emit_search_failed(request.query, error)
            return ToolOutput.failure(error)

        self.metrics.emit_search_query(request.query, request.max_results, len(sources))
        output = ToolOutput(payload=payload, sources=tuple(sources))
        self.cache.store(request.query, request.max_results, output)
        return output

    @staticmethod
    def format_results(raw_results: Sequence[Mapping[str, Any]]) -> List[FormattedSource]:
        return [FormattedSource.from_result(SearchResult.from_raw(raw)) for raw in raw_results]
