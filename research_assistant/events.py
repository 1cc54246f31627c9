"""Events emitted while a single turn is streamed."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Tuple, Union

from .models import FormattedSource


@dataclass(frozen=True)
class TextDelta:
    type: ClassVar[str] = "text-delta"

    text_delta: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "text_delta": self.text_delta}


@dataclass(frozen=True)
class ToolCall:
    """The model asked for a tool; ``args`` are the validated arguments when valid."""

    type: ClassVar[str] = "tool-call"

    call_id: str
    tool_name: str
    args: Dict[str, Any] = field(default_factory=dict)

    @property
    def query(self) -> str:
        return str(self.args.get("query") or "")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "call_id": self.call_id,
            "tool_name": self.tool_name,
            "args": dict(self.args),
        }


@dataclass(frozen=True)
class ToolResult:
    """Tool output as text for the model, plus the structured sources behind it."""

    type: ClassVar[str] = "tool-result"

    call_id: str
    tool_name: str
    result: str
    sources: Tuple[FormattedSource, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "call_id": self.call_id,
            "tool_name": self.tool_name,
            "result": self.result,
            "sources": [source.to_dict() for source in self.sources],
        }


@dataclass(frozen=True)
class Finish:
    """Closes a stream; ``truncated`` is set when the step budget ran out."""

    type: ClassVar[str] = "finish"

    steps: int
    finish_reason: str = "stop"
    truncated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "steps": self.steps,
            "finish_reason": self.finish_reason,
            "truncated": self.truncated,
        }


StreamEvent = Union[TextDelta, ToolCall, ToolResult, Finish]
