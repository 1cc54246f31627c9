"""Turn orchestration: one user message in, one live event stream out."""
from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Mapping, Optional, Protocol, Sequence

from research_assistant.conversation import ConversationHistory
from research_assistant.events import Finish, StreamEvent, TextDelta

from app.config import DEFAULT_MAX_STEPS
from app.observability import MetricsEmitter
from app.prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class ChatModel(Protocol):
    """Model capability: given a conversation and tools, stream events."""

    def stream(
        self,
        *,
        system_prompt: str,
        messages: Sequence[Mapping[str, str]],
        tools: Sequence[Any],
        max_steps: int,
    ) -> AsyncIterator[StreamEvent]:
        ...


class TurnOrchestrator:
    """Coordinates the model, the search tool and the conversation history for one turn."""

    def __init__(
        self,
        model: ChatModel,
        search_tool: Any,
        *,
        system_prompt: str = SYSTEM_PROMPT,
        max_steps: int = DEFAULT_MAX_STEPS,
        metrics: Optional[MetricsEmitter] = None,
    ) -> None:
        self.model = model
        self.search_tool = search_tool
        self.system_prompt = system_prompt
        self.max_steps = max_steps
        self.metrics = metrics or MetricsEmitter()

    def run_turn(self, history: ConversationHistory, user_message: str) -> AsyncIterator[StreamEvent]:
        """Record the user turn and return the live event stream for it.

        The user turn is appended before this returns. The assistant turn is
        appended only once the returned stream has been fully consumed; if the
        model fails mid-stream the error propagates and nothing is appended.
        """

        history.append_user(user_message)
        logger.info("turn.start", extra={"turns": len(history)})
        return self._stream(history, history.to_messages())

    async def _stream(
        self,
        history: ConversationHistory,
        messages: Sequence[Mapping[str, str]],
    ) -> AsyncIterator[StreamEvent]:
        response_parts = []
        steps = 0
        truncated = False

        async for event in self.model.stream(
            system_prompt=self.system_prompt,
            messages=messages,
            tools=[self.search_tool],
            max_steps=self.max_steps,
        ):
            if isinstance(event, TextDelta):
                response_parts.append(event.text_delta)
            elif isinstance(event, Finish):
                steps = event.steps
                truncated = event.truncated
            yield event

        response = "".join(response_parts)
        if response:
            history.append_assistant(response)
        else:
            logger.warning("Model produced no text for this turn; assistant turn not recorded")
        if truncated:
            logger.warning("Turn stopped at the step budget (%s)", self.max_steps)
        self.metrics.emit_turn_completed(steps=steps, truncated=truncated, response_chars=len(response))
        logger.info("turn.completed", extra={"steps": steps, "truncated": truncated})
