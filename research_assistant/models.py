import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

UNTITLED_SOURCE = "Untitled Source"
CONTENT_LIMIT = 800
ELLIPSIS = "..."


def content_text(content: Any) -> str:
    """Provider content as text; structured hits (rows, records) are serialized as JSON."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    try:
        return json.dumps(content, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(content)


class Role(str, Enum):
    """Speaker of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    """One message in the conversation, in emission order."""

    role: Role
    content: str

    def to_message(self) -> dict:
        return {"role": self.role.value, "content": self.content}


@dataclass
class SearchResult:
    """Raw search hit as returned by the provider; every field may be missing."""

    title: Optional[str] = None
    content: Any = None
    url: Optional[str] = None
    source: Optional[str] = None
    relevance_score: Optional[float] = None

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "SearchResult":
        score = raw.get("relevance_score")
        if score is None:
            score = raw.get("relevanceScore")
        return cls(
            title=raw.get("title"),
            content=raw.get("content"),
            url=raw.get("url"),
            source=raw.get("source"),
            relevance_score=score,
        )


@dataclass(frozen=True)
class FormattedSource:
    """Search result normalized for the model and for citation rendering."""

    title: str
    content: str
    url: Optional[str]
    source: Optional[str]
    relevance_score: Optional[float]
    citation: str

    @classmethod
    def from_result(cls, result: SearchResult) -> "FormattedSource":
        title = str(result.title) if result.title else UNTITLED_SOURCE
        citation = f"[{title}]({result.url})" if result.url else f"[{title}]"
        return cls(
            title=title,
            content=content_text(result.content)[:CONTENT_LIMIT] + ELLIPSIS,
            url=result.url or None,
            source=result.source,
            relevance_score=result.relevance_score,
            citation=citation,
        )

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "content": self.content,
            "url": self.url,
            "source": self.source,
            "relevance_score": self.relevance_score,
            "citation": self.citation,
        }
