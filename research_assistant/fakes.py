from __future__ import annotations

from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .events import Finish, StreamEvent, TextDelta


class FakeSearchProvider:
    """Deterministic search transport that returns fixed results for tests."""

    def __init__(
        self,
        results: Iterable[Mapping[str, Any]] = (),
        *,
        success: bool = True,
        error: Optional[str] = None,
        raises: Optional[Exception] = None,
    ) -> None:
        self.results = [dict(item) for item in results]
        self.success = success
        self.error = error
        self.raises = raises
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, query: str, **options: Any) -> Dict[str, Any]:
        self.calls.append({"query": query, **options})
        if self.raises is not None:
            raise self.raises
        if not self.success:
            return {"success": False, "error": self.error, "results": []}
        limit = options.get("max_num_results") or len(self.results)
        return {"success": True, "results": self.results[:limit]}


Script = Union[Sequence[StreamEvent], Exception]


class ScriptedChatModel:
    """Stand-in for the model capability that replays one scripted stream per call.

    A script entry that is an exception is raised after the events preceding it
    have been yielded, mimicking a connection that drops mid-stream.
    """

    def __init__(self, *scripts: Script) -> None:
        self.scripts: List[Script] = list(scripts)
        self.calls: List[Dict[str, Any]] = []

    async def stream(
        self,
        *,
        system_prompt: str,
        messages: Sequence[Mapping[str, str]],
        tools: Sequence[Any],
        max_steps: int,
    ) -> AsyncIterator[StreamEvent]:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "messages": [dict(message) for message in messages],
                "tools": list(tools),
                "max_steps": max_steps,
            }
        )
        script = self.scripts.pop(0) if self.scripts else [TextDelta("ok"), Finish(steps=1)]
        if isinstance(script, Exception):
            raise script
        for event in script:
            if isinstance(event, Exception):
                raise event
            yield event


__all__ = ["FakeSearchProvider", "ScriptedChatModel"]
