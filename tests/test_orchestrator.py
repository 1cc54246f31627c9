from __future__ import annotations

import asyncio
import unittest

from research_assistant.conversation import ConversationHistory
from research_assistant.events import Finish, TextDelta, ToolCall, ToolResult
from research_assistant.fakes import FakeSearchProvider, ScriptedChatModel
from research_assistant.models import Role

from app.exceptions import ModelError
from app.observability import MetricsEmitter
from app.orchestrator import TurnOrchestrator
from app.prompts import SYSTEM_PROMPT
from app.tools.corpus_search import CorpusSearchTool


def consume(stream):
    async def _collect():
        return [event async for event in stream]

    return asyncio.run(_collect())


class TurnOrchestratorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.metric_calls = []
        self.metrics = MetricsEmitter(sinks=[lambda name, payload: self.metric_calls.append((name, payload))])
        self.tool = CorpusSearchTool(transport=FakeSearchProvider([]), metrics=self.metrics)
        self.history = ConversationHistory()

    def _orchestrator(self, *scripts) -> tuple[TurnOrchestrator, ScriptedChatModel]:
        model = ScriptedChatModel(*scripts)
        return TurnOrchestrator(model, self.tool, metrics=self.metrics), model

    def test_text_is_accumulated_across_tool_events(self) -> None:
        orchestrator, _ = self._orchestrator(
            [
                TextDelta("Hi"),
                ToolCall(call_id="c1", tool_name="corpus_search", args={"query": "X"}),
                ToolResult(call_id="c1", tool_name="corpus_search", result="SOURCE 1: A\nCONTENT: ...\nCITATION: [A](https://a)"),
                TextDelta(" there"),
                Finish(steps=2),
            ]
        )

        events = consume(orchestrator.run_turn(self.history, "hello"))

        self.assertEqual(5, len(events))
        self.assertEqual(
            [(Role.USER, "hello"), (Role.ASSISTANT, "Hi there")],
            [(turn.role, turn.content) for turn in self.history],
        )

    def test_model_receives_full_history_and_budget(self) -> None:
        self.history.append_user("earlier question")
        self.history.append_assistant("earlier answer")
        orchestrator, model = self._orchestrator([TextDelta("Answer"), Finish(steps=1)])

        consume(orchestrator.run_turn(self.history, "What is double-entry bookkeeping?"))

        call = model.calls[0]
        self.assertEqual(SYSTEM_PROMPT, call["system_prompt"])
        self.assertEqual(5, call["max_steps"])
        self.assertEqual([self.tool], call["tools"])
        self.assertEqual(
            [
                {"role": "user", "content": "earlier question"},
                {"role": "assistant", "content": "earlier answer"},
                {"role": "user", "content": "What is double-entry bookkeeping?"},
            ],
            call["messages"],
        )
        self.assertEqual(4, len(self.history))
        self.assertEqual(Role.ASSISTANT, self.history.turns[-1].role)

    def test_user_turn_recorded_before_stream_is_consumed(self) -> None:
        orchestrator, _ = self._orchestrator([TextDelta("later"), Finish(steps=1)])

        stream = orchestrator.run_turn(self.history, "question")
        self.assertEqual([(Role.USER, "question")], [(t.role, t.content) for t in self.history])

        consume(stream)
        self.assertEqual(2, len(self.history))

    def test_model_failure_keeps_user_turn_only(self) -> None:
        orchestrator, _ = self._orchestrator([TextDelta("partial"), ModelError("auth failed")])

        with self.assertRaises(ModelError):
            consume(orchestrator.run_turn(self.history, "question"))

        self.assertEqual([(Role.USER, "question")], [(t.role, t.content) for t in self.history])

    def test_step_limit_keeps_accumulated_text(self) -> None:
        orchestrator, _ = self._orchestrator(
            [TextDelta("Searching..."), Finish(steps=5, finish_reason="step_limit", truncated=True)]
        )

        consume(orchestrator.run_turn(self.history, "question"))

        self.assertEqual("Searching...", self.history.turns[-1].content)
        completed = [payload for name, payload in self.metric_calls if name == "turn_completed"]
        self.assertEqual([{"steps": 5, "truncated": True, "response_chars": 12}], completed)

    def test_empty_response_is_not_recorded(self) -> None:
        orchestrator, _ = self._orchestrator([Finish(steps=5, finish_reason="step_limit", truncated=True)])

        consume(orchestrator.run_turn(self.history, "question"))

        self.assertEqual(1, len(self.history))

    def test_consecutive_turns_stay_in_order(self) -> None:
        orchestrator, _ = self._orchestrator(
            [TextDelta("one"), Finish(steps=1)],
            ModelError("network"),
            [TextDelta("three"), Finish(steps=1)],
        )

        consume(orchestrator.run_turn(self.history, "q1"))
        with self.assertRaises(ModelError):
            consume(orchestrator.run_turn(self.history, "q2"))
        consume(orchestrator.run_turn(self.history, "q3"))

        self.assertEqual(["q1", "one", "q2", "q3", "three"], [turn.content for turn in self.history])


if __name__ == "__main__":
    unittest.main()
