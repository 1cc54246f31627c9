"""Conversation, citation, and stream-event primitives for the corpus research assistant."""

from .models import FormattedSource, Role, SearchResult, Turn
from .conversation import ConversationHistory
from .citations import Citation, extract_citations, render_tool_payload
from .events import Finish, StreamEvent, TextDelta, ToolCall, ToolResult
from .fakes import FakeSearchProvider, ScriptedChatModel

__all__ = [
    "FormattedSource",
    "Role",
    "SearchResult",
    "Turn",
    "ConversationHistory",
    "Citation",
    "extract_citations",
    "render_tool_payload",
    "Finish",
    "StreamEvent",
    "TextDelta",
    "ToolCall",
    "ToolResult",
    "FakeSearchProvider",
    "ScriptedChatModel",
]
