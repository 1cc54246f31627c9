import asyncio
import json
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from research_assistant.events import Finish, TextDelta, ToolCall, ToolResult

from app.agents.chat_model import OpenAIChatModel
from app.exceptions import ModelError


def text_chunk(content, finish_reason=None):
    delta = SimpleNamespace(content=content, tool_calls=None)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=finish_reason)], usage=None)


def tool_chunk(index, call_id=None, name=None, arguments=None, finish_reason=None):
    fragment = SimpleNamespace(
        index=index,
        id=call_id,
        function=SimpleNamespace(name=name, arguments=arguments),
    )
    delta = SimpleNamespace(content=None, tool_calls=[fragment])
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=finish_reason)], usage=None)


def usage_chunk(prompt_tokens, completion_tokens):
    usage = SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)
    return SimpleNamespace(choices=[], usage=usage)


def search_round(query, call_id="call_1"):
    arguments = json.dumps({"query": query, "max_results": 2})
    return [
        tool_chunk(0, call_id=call_id, name="corpus_search", arguments=arguments[:10]),
        tool_chunk(0, arguments=arguments[10:], finish_reason="tool_calls"),
    ]


class FakeCompletions:
    def __init__(self, rounds):
        self.rounds = list(rounds)
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append({**kwargs, "messages": [dict(m) for m in kwargs["messages"]]})
        chunks = self.rounds.pop(0)
        if isinstance(chunks, Exception):
            raise chunks

        async def iterate():
            for chunk in chunks:
                yield chunk

        return iterate()


class FakeAsyncClient:
    def __init__(self, rounds):
        self.chat = SimpleNamespace(completions=FakeCompletions(rounds))


async def collect(stream):
    return [event async for event in stream]


def run_stream(model, tools, max_steps=5, messages=None):
    return asyncio.run(
        collect(
            model.stream(
                system_prompt="be helpful",
                messages=messages or [{"role": "user", "content": "What is double-entry bookkeeping?"}],
                tools=tools,
                max_steps=max_steps,
            )
        )
    )


def test_direct_answer_finishes_in_one_step(search_tool, metrics, metric_calls):
    client = FakeAsyncClient([[text_chunk("Hello"), text_chunk(" world", finish_reason="stop"), usage_chunk(12, 3)]])
    model = OpenAIChatModel(model="test-model", client=client, metrics_emitter=metrics)

    events = run_stream(model, [search_tool])

    assert events == [TextDelta("Hello"), TextDelta(" world"), Finish(steps=1, finish_reason="stop")]
    request = client.chat.completions.requests[0]
    assert request["model"] == "test-model"
    assert request["stream"] is True
    assert request["messages"][0] == {"role": "system", "content": "be helpful"}
    assert request["tools"][0]["function"]["name"] == "corpus_search"
    assert any(name == "token_usage" and payload["prompt_tokens"] == 12 for name, payload in metric_calls)


def test_tool_round_executes_search_and_continues(search_tool, fake_provider):
    client = FakeAsyncClient(
        [
            [text_chunk("Let me check. ")] + search_round("double-entry"),
            [text_chunk("It records debits and credits.", finish_reason="stop")],
        ]
    )
    model = OpenAIChatModel(client=client)

    events = run_stream(model, [search_tool])

    assert [type(event) for event in events] == [TextDelta, ToolCall, ToolResult, TextDelta, Finish]
    call, result = events[1], events[2]
    assert call.args == {"query": "double-entry", "max_results": 2}
    assert result.call_id == call.call_id == "call_1"
    assert result.result.startswith("SOURCE 1:")
    assert len(result.sources) == 2
    assert events[-1] == Finish(steps=2, finish_reason="stop")
    assert fake_provider.calls[0]["query"] == "double-entry"

    second_request = client.chat.completions.requests[1]["messages"]
    assert second_request[-2]["role"] == "assistant"
    assert second_request[-2]["content"] == "Let me check. "
    assert second_request[-2]["tool_calls"][0]["function"]["name"] == "corpus_search"
    assert second_request[-1] == {"role": "tool", "tool_call_id": "call_1", "content": result.result}


def test_step_budget_exhaustion_is_reported(search_tool):
    rounds = [search_round(f"q{idx}", call_id=f"call_{idx}") for idx in range(3)]
    client = FakeAsyncClient(rounds)
    model = OpenAIChatModel(client=client)

    events = run_stream(model, [search_tool], max_steps=3)

    assert len(client.chat.completions.requests) == 3
    assert sum(isinstance(event, ToolResult) for event in events) == 3
    assert events[-1] == Finish(steps=3, finish_reason="step_limit", truncated=True)


def test_undecodable_arguments_are_reported_to_the_model(search_tool, fake_provider):
    client = FakeAsyncClient(
        [
            [tool_chunk(0, call_id="call_x", name="corpus_search", arguments="{not json", finish_reason="tool_calls")],
            [text_chunk("Sorry, the search failed.", finish_reason="stop")],
        ]
    )
    model = OpenAIChatModel(client=client)

    events = run_stream(model, [search_tool])

    result = next(event for event in events if isinstance(event, ToolResult))
    assert json.loads(result.result)["success"] is False
    assert fake_provider.calls == []
    assert isinstance(events[-1], Finish)


def test_unknown_tool_gets_failure_payload(search_tool):
    client = FakeAsyncClient(
        [
            [tool_chunk(0, call_id="call_y", name="web_browse", arguments="{}", finish_reason="tool_calls")],
            [text_chunk("done", finish_reason="stop")],
        ]
    )
    events = run_stream(OpenAIChatModel(client=client), [search_tool])

    result = next(event for event in events if isinstance(event, ToolResult))
    assert json.loads(result.result)["error"] == "Unknown tool: web_browse"


def test_provider_error_is_wrapped(search_tool):
    client = FakeAsyncClient([OpenAIError("rate limited")])
    with pytest.raises(ModelError, match="rate limited"):
        run_stream(OpenAIChatModel(client=client), [search_tool])


def test_missing_api_key_raises_model_error(search_tool, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ModelError):
        run_stream(OpenAIChatModel(api_key=None), [search_tool])
