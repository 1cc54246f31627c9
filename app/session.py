"""Interactive read-eval loop around the turn orchestrator."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from rich.text import Text

from research_assistant.conversation import ConversationHistory

from app.orchestrator import TurnOrchestrator
from app.renderer import StreamRenderer

logger = logging.getLogger(__name__)

EXIT_COMMANDS = frozenset({"exit", "quit"})
PROMPT = Text("💬 You: ", style="magenta")


def is_exit_command(text: str) -> bool:
    """Empty input and the exit/quit tokens (any case) end the session."""
    stripped = (text or "").strip()
    return not stripped or stripped.lower() in EXIT_COMMANDS


class SessionLoop:
    """Reads one message at a time and runs it through the orchestrator to completion."""

    def __init__(
        self,
        orchestrator: TurnOrchestrator,
        renderer: StreamRenderer,
        *,
        history: Optional[ConversationHistory] = None,
        read_input: Optional[Callable[[], str]] = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.renderer = renderer
        self.history = history if history is not None else ConversationHistory()
        self.read_input = read_input or self._console_input

    def _console_input(self) -> str:
        return self.renderer.console.input(PROMPT)

    async def handle(self, message: str) -> str:
        events = self.orchestrator.run_turn(self.history, message)
        return await self.renderer.render(events)

    async def run(self) -> None:
        self.renderer.welcome()
        while True:
            try:
                line = await asyncio.to_thread(self.read_input)
            except EOFError:
                line = ""

            if is_exit_command(line):
                self.renderer.goodbye()
                break

            try:
                await self.handle(line.strip())
            except Exception as exc:  # noqa: BLE001 - one failed turn must not end the session
                logger.exception("Turn failed: %s", exc)
                self.renderer.error(exc)
