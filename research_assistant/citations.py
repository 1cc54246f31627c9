"""Tool-result payload layout and the citation parser that reads it back."""
import re
from dataclasses import dataclass
from typing import Iterable, List

from .models import FormattedSource

SOURCE_MARKER = "SOURCE 1:"

_SOURCE_RE = re.compile(r"^SOURCE \d+: ([^\n]+)", re.MULTILINE)
_CITATION_RE = re.compile(r"^CITATION: \[(.+)\](?:\(([^\n]+)\))?$", re.MULTILINE)


@dataclass(frozen=True)
class Citation:
    """A titled, linked source shown to the user."""

    title: str
    url: str = ""

    def to_markdown(self) -> str:
        return f"[{self.title}]({self.url})" if self.url else f"[{self.title}]"


def render_source_block(index: int, source: FormattedSource) -> str:
    return (
        f"SOURCE {index}: {source.title}\n"
        f"CONTENT: {source.content}\n"
        f"CITATION: {source.citation}"
    )


def render_tool_payload(sources: Iterable[FormattedSource]) -> str:
    """Serialize sources into the text block layout the model reads."""

    blocks = [render_source_block(idx, source) for idx, source in enumerate(sources, start=1)]
    return "\n\n".join(blocks)


def extract_citations(payload: str) -> List[Citation]:
    """
    Parse ``(title, url)`` pairs back out of a tool-result payload.

    Titles come from ``SOURCE n:`` lines and links from ``CITATION:`` lines; the
    two are paired by position. Anything that does not look like a source
    listing (failure JSON, free text) yields an empty list.
    """

    if not isinstance(payload, str) or SOURCE_MARKER not in payload:
        return []

    titles = _SOURCE_RE.findall(payload)
    links = _CITATION_RE.findall(payload)

    citations: List[Citation] = []
    for idx, title in enumerate(titles):
        if idx >= len(links):
            continue
        _, url = links[idx]
        citations.append(Citation(title=title.strip(), url=url or ""))
    return citations


def citations_from_sources(sources: Iterable[FormattedSource]) -> List[Citation]:
    return [Citation(title=source.title, url=source.url or "") for source in sources]
