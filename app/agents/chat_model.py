"""Streaming chat model with a bounded tool-calling loop, backed by OpenAI chat completions."""
from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from research_assistant.events import Finish, StreamEvent, TextDelta, ToolCall, ToolResult

from app.config import DEFAULT_CHAT_MODEL, DEFAULT_MAX_STEPS
from app.exceptions import ModelError
from app.observability import MetricsEmitter
from app.tools.corpus_search import ToolOutput

logger = logging.getLogger(__name__)


def _decode_arguments(raw: str) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Model sent undecodable tool arguments: %r", raw[:200])
        return {}
    return decoded if isinstance(decoded, dict) else {}


class OpenAIChatModel:
    """Runs up to ``max_steps`` completion rounds, executing tool calls between rounds.

    Each round streams text deltas as they arrive. A round that ends with tool
    calls has those tools executed and their results appended to a scratch copy
    of the messages before the next round starts; a round without tool calls
    ends the stream.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[Any] = None,
        metrics_emitter: Optional[MetricsEmitter] = None,
    ) -> None:
        self.model = model or os.environ.get("OPENAI_CHAT_MODEL", DEFAULT_CHAT_MODEL)
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self.metrics = metrics_emitter
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise ModelError("OPENAI_API_KEY is not configured")
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def stream(
        self,
        *,
        system_prompt: str,
        messages: Sequence[Mapping[str, str]],
        tools: Sequence[Any],
        max_steps: int = DEFAULT_MAX_STEPS,
    ) -> AsyncIterator[StreamEvent]:
        client = self.client
        registry = {tool.name: tool for tool in tools}
        tool_definitions = [tool.to_tool_definition() for tool in tools]
        working: List[Dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        working.extend(dict(message) for message in messages)

        for step in range(1, max_steps + 1):
            request_kwargs: Dict[str, Any] = {
                "model": self.model,
                "messages": working,
                "stream": True,
                "stream_options": {"include_usage": True},
            }
            if tool_definitions:
                request_kwargs["tools"] = tool_definitions

            text_parts: List[str] = []
            pending: Dict[int, Dict[str, str]] = {}
            finish_reason: Optional[str] = None
            try:
                response = await client.chat.completions.create(**request_kwargs)
                async for chunk in response:
                    self._record_usage(chunk)
                    if not chunk.choices:
                        continue
                    choice = chunk.choices[0]
                    delta = choice.delta
                    if delta is not None and delta.content:
                        text_parts.append(delta.content)
                        yield TextDelta(delta.content)
                    for fragment in (getattr(delta, "tool_calls", None) or []):
                        slot = pending.setdefault(fragment.index, {"id": "", "name": "", "arguments": ""})
                        if fragment.id:
                            slot["id"] = fragment.id
                        function = fragment.function
                        if function is not None:
                            if function.name:
                                slot["name"] += function.name
                            if function.arguments:
                                slot["arguments"] += function.arguments
                    if choice.finish_reason:
                        finish_reason = choice.finish_reason
            except OpenAIError as exc:
                raise ModelError(f"Model request failed at step {step}: {exc}") from exc

            if not pending:
                logger.debug("Model finished after %s step(s): %s", step, finish_reason)
                yield Finish(steps=step, finish_reason=finish_reason or "stop")
                return

            calls = [pending[index] for index in sorted(pending)]
            for position, call in enumerate(calls):
                if not call["id"]:
                    call["id"] = f"call_{step}_{position}"
            working.append(
                {
                    "role": "assistant",
                    "content": "".join(text_parts) or None,
                    "tool_calls": [
                        {
                            "id": call["id"],
                            "type": "function",
                            "function": {"name": call["name"], "arguments": call["arguments"] or "{}"},
                        }
                        for call in calls
                    ],
                }
            )

            for call in calls:
                arguments = _decode_arguments(call["arguments"])
                tool = registry.get(call["name"])
                if tool is None:
                    logger.warning("Model requested unknown tool %r", call["name"])
                    yield ToolCall(call_id=call["id"], tool_name=call["name"], args=arguments)
                    output = ToolOutput.failure(f"Unknown tool: {call['name']}")
                else:
                    yield ToolCall(call_id=call["id"], tool_name=call["name"], args=self._display_args(tool, arguments))
                    output = await asyncio.to_thread(tool.invoke, arguments)
                yield ToolResult(
                    call_id=call["id"],
                    tool_name=call["name"],
                    result=output.payload,
                    sources=tuple(output.sources),
                )
                working.append({"role": "tool", "tool_call_id": call["id"], "content": output.payload})

        logger.info("Step budget of %s exhausted before a final answer", max_steps)
        yield Finish(steps=max_steps, finish_reason="step_limit", truncated=True)

    @staticmethod
    def _display_args(tool: Any, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Validated arguments when they parse, otherwise the raw ones."""
        try:
            return tool.parse_arguments(arguments).model_dump()
        except Exception:  # noqa: BLE001 - invoke() reports the validation error to the model
            return dict(arguments)

    def _record_usage(self, chunk: Any) -> None:
        usage = getattr(chunk, "usage", None)
        if not usage or not self.metrics:
            return
        self.metrics.emit_token_usage(
            stage="chat_turn",
            prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
            model=self.model,
        )
