"""Valyu SDK-backed search transport."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional, Sequence

from valyu import Valyu

from app.exceptions import SearchToolError

logger = logging.getLogger(__name__)


def _result_to_dict(result: Any) -> Dict[str, Any]:
    if isinstance(result, dict):
        return dict(result)
    return {
        "title": getattr(result, "title", None),
        "content": getattr(result, "content", None),
        "url": getattr(result, "url", None),
        "source": getattr(result, "source", None),
        "relevance_score": getattr(result, "relevance_score", None),
    }


class ValyuSearchTransport:
    """Callable transport that forwards corpus searches to the Valyu API."""

    def __init__(self, api_key: Optional[str] = None, client: Optional[Any] = None) -> None:
        self.api_key = api_key or os.environ.get("VALYU_API_KEY")
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise SearchToolError("VALYU_API_KEY is not configured")
            self._client = Valyu(api_key=self.api_key)
        return self._client

    def __call__(
        self,
        query: str,
        *,
        search_type: str,
        max_num_results: int,
        included_sources: Sequence[str],
        is_tool_call: bool = True,
    ) -> Dict[str, Any]:
        response = self.client.search(
            query,
            search_type=search_type,
            max_num_results=max_num_results,
            included_sources=list(included_sources),
            is_tool_call=is_tool_call,
        )

        success = bool(getattr(response, "success", False))
        error = getattr(response, "error", None)
        raw_results = getattr(response, "results", None) or []
        results: List[Dict[str, Any]] = [_result_to_dict(item) for item in raw_results]
        logger.debug("Valyu returned %s results for '%s' (success=%s)", len(results), query, success)
        return {"success": success, "error": error, "results": results}
