"""Incremental terminal rendering of a turn's event stream."""
from __future__ import annotations

import logging
from typing import AsyncIterable, List, Optional

from rich.console import Console

from research_assistant.citations import Citation, citations_from_sources, extract_citations
from research_assistant.events import Finish, StreamEvent, TextDelta, ToolCall, ToolResult

from app.config import DEFAULT_CORPUS_LABEL

logger = logging.getLogger(__name__)

SEPARATOR = "─" * 80


class StreamRenderer:
    """Writes text deltas, tool notices, and citations to a rich console as events arrive."""

    def __init__(self, console: Optional[Console] = None, corpus_label: str = DEFAULT_CORPUS_LABEL) -> None:
        self.console = console or Console()
        self.corpus_label = corpus_label
        self.buffer = ""

    def reset(self) -> None:
        self.buffer = ""

    async def render(self, events: AsyncIterable[StreamEvent]) -> str:
        """Consume one turn's stream and return the accumulated assistant text."""

        self.reset()
        async for event in events:
            self.handle(event)
        self.console.print()
        self.console.print()
        return self.buffer

    def handle(self, event: StreamEvent) -> None:
        if isinstance(event, TextDelta):
            self.buffer += event.text_delta
            self._write(event.text_delta, style="cyan", end="")
        elif isinstance(event, ToolCall):
            self._write(
                f'\n\n🔧 TOOL CALL: Searching {self.corpus_label} for "{event.query}"\n',
                style="yellow",
            )
        elif isinstance(event, ToolResult):
            self._render_tool_result(event)
        elif isinstance(event, Finish):
            if event.truncated:
                self._write(
                    f"\n⚠️  Stopped after {event.steps} steps without a final answer; "
                    "the response above may be incomplete.",
                    style="yellow",
                )
        else:
            logger.debug("Ignoring unknown stream event %r", event)

    def _render_tool_result(self, event: ToolResult) -> None:
        self._write(SEPARATOR, style="bright_black")
        self._write("\n📊 TOOL RESULT:", style="green")
        citations = self.citations_for(event)
        if citations:
            self._write("📚 Found sources:", style="green")
            for idx, citation in enumerate(citations, start=1):
                self._write(f"   {idx}. {citation.title}", style="green")
                if citation.url:
                    self._write(f"      {citation.url}", style="bright_black")
        self._write(SEPARATOR, style="bright_black")
        self._write("\n🤖 AI RESPONSE:", style="cyan")

    @staticmethod
    def citations_for(event: ToolResult) -> List[Citation]:
        if event.sources:
            return citations_from_sources(event.sources)
        return extract_citations(event.result)

    def welcome(self) -> None:
        self._write("🎯 Welcome to the Valyu Business AI Assistant!", style="bold blue")
        self._write(f"I have access to the {self.corpus_label} of business, accounting, and finance sources.", style="bright_black")
        self._write("Ask me about: HR policies, accounting principles, business strategy, leadership, etc.", style="bright_black")
        self._write("I'll search for authoritative sources to give you well-researched, cited answers.", style="bright_black")
        self._write('Type "exit" or "quit" to end the conversation.\n', style="bright_black")

    def goodbye(self) -> None:
        self._write("👋 Thanks for using the Valyu Business AI Assistant!", style="blue")

    def error(self, exc: BaseException) -> None:
        self._write(f"\n❌ Error occurred: {exc}\n", style="red")

    def _write(self, text: str, *, style: str, end: str = "\n") -> None:
        self.console.print(text, style=style, end=end, markup=False, emoji=False, highlight=False, soft_wrap=True)
