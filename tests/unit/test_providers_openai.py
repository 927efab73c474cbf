"""Tests for the OpenAI chat model adapter (mocked SDK)."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import openai
import pytest

from toolgate.core.errors import (
    ModelNotFoundError,
    ProviderAuthError,
    ProviderOverloadedError,
    ProviderRateLimitError,
    ProviderTimeoutError,
)
from toolgate.providers.base import ChatModel, StepFinish, TextDelta, ToolCallRequest
from toolgate.providers.openai import (
    PROVIDER_ID,
    OpenAIChatModel,
    _build_messages,
    _build_tools,
    _map_error,
)
from toolgate.tools.base import ToolDefinition
from toolgate.transcript.convert import (
    CoreMessage,
    CoreTextPart,
    CoreToolCall,
    CoreToolResult,
)

# ─── Helpers ──────────────────────────────────────────────────


def _make_usage(prompt_tokens: int = 100, completion_tokens: int = 50) -> MagicMock:
    usage = MagicMock()
    usage.prompt_tokens = prompt_tokens
    usage.completion_tokens = completion_tokens
    return usage


class _AsyncChunkIter:
    """Async iterator over mock stream chunks."""

    def __init__(self, chunks: list[Any]) -> None:
        self._chunks = chunks
        self._idx = 0

    def __aiter__(self) -> _AsyncChunkIter:
        return self

    async def __anext__(self) -> Any:
        if self._idx >= len(self._chunks):
            raise StopAsyncIteration
        chunk = self._chunks[self._idx]
        self._idx += 1
        return chunk


def _tool_delta(
    index: int, id: str | None = None, name: str | None = None, arguments: str | None = None
) -> MagicMock:
    tc = MagicMock()
    tc.index = index
    tc.id = id
    tc.function.name = name
    tc.function.arguments = arguments
    return tc


def _make_stream_chunk(
    content: str | None = None,
    finish_reason: str | None = None,
    usage: MagicMock | None = None,
    tool_calls: list[MagicMock] | None = None,
) -> MagicMock:
    """Create a mock ChatCompletionChunk."""
    chunk = MagicMock()
    if content is not None or tool_calls is not None or finish_reason is not None:
        choice = MagicMock()
        choice.delta.content = content
        choice.delta.tool_calls = tool_calls
        choice.finish_reason = finish_reason
        chunk.choices = [choice]
    else:
        chunk.choices = []
    chunk.usage = usage
    return chunk


def _make_client(chunks: list[Any] | None = None) -> MagicMock:
    client = MagicMock(spec=openai.AsyncOpenAI)
    client.chat = MagicMock()
    client.chat.completions = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=_AsyncChunkIter(chunks or []))
    client.models = MagicMock()
    client.models.retrieve = AsyncMock(return_value=MagicMock())
    return client


async def _collect(model: OpenAIChatModel, **kwargs: Any) -> list[Any]:
    msgs = [CoreMessage(role="user", content=(CoreTextPart("hi"),))]
    return [event async for event in model.stream(msgs, **kwargs)]


# ─── Protocol ─────────────────────────────────────────────────


class TestProtocol:
    def test_ids(self):
        model = OpenAIChatModel("gpt-4o", client=_make_client())
        assert model.provider_id == PROVIDER_ID
        assert model.model_id == "gpt-4o"

    def test_satisfies_protocol(self):
        assert isinstance(OpenAIChatModel(client=_make_client()), ChatModel)


# ─── Message building ─────────────────────────────────────────


class TestBuildMessages:
    def test_system_first(self):
        msgs = _build_messages([], "be helpful")
        assert msgs == [{"role": "system", "content": "be helpful"}]

    def test_no_system(self):
        msgs = _build_messages([CoreMessage(role="user", content=(CoreTextPart("hi"),))], None)
        assert msgs == [{"role": "user", "content": "hi"}]

    def test_assistant_tool_calls_and_results(self):
        core = [
            CoreMessage(
                role="assistant",
                content=(
                    CoreTextPart("checking"),
                    CoreToolCall("c1", "getLocalTime", {"location": "Oslo"}),
                ),
            ),
            CoreMessage(role="tool", content=(CoreToolResult("c1", "getLocalTime", "10am"),)),
        ]
        assistant, tool = _build_messages(core, None)
        assert assistant["content"] == "checking"
        call = assistant["tool_calls"][0]
        assert call["id"] == "c1"
        assert call["function"]["name"] == "getLocalTime"
        assert json.loads(call["function"]["arguments"]) == {"location": "Oslo"}
        assert tool == {"role": "tool", "tool_call_id": "c1", "content": "10am"}

    def test_structured_result_json_encoded(self):
        core = [CoreMessage(role="tool", content=(CoreToolResult("c1", "t", {"a": 1}),))]
        assert json.loads(_build_messages(core, None)[0]["content"]) == {"a": 1}

    def test_assistant_without_text_has_null_content(self):
        core = [CoreMessage(role="assistant", content=(CoreToolCall("c1", "t", {}),))]
        assert _build_messages(core, None)[0]["content"] is None


class TestBuildTools:
    def test_function_format(self):
        tools = _build_tools([ToolDefinition("t", "desc", {"type": "object"})])
        assert tools == [
            {
                "type": "function",
                "function": {"name": "t", "description": "desc", "parameters": {"type": "object"}},
            }
        ]


# ─── stream ───────────────────────────────────────────────────


class TestStream:
    async def test_text_then_finish(self):
        chunks = [
            _make_stream_chunk(content="Hello"),
            _make_stream_chunk(content=" world", finish_reason="stop"),
            _make_stream_chunk(usage=_make_usage(100, 50)),
        ]
        events = await _collect(OpenAIChatModel(client=_make_client(chunks)))
        assert events[:2] == [TextDelta("Hello"), TextDelta(" world")]
        final = events[-1]
        assert isinstance(final, StepFinish)
        assert final.finish_reason == "stop"
        assert final.usage is not None
        assert final.usage.input_tokens == 100
        assert final.usage.output_tokens == 50

    async def test_assembles_tool_call_fragments(self):
        chunks = [
            _make_stream_chunk(tool_calls=[_tool_delta(0, id="c1", name="getLocal")]),
            _make_stream_chunk(tool_calls=[_tool_delta(0, name="Time", arguments='{"loc')]),
            _make_stream_chunk(tool_calls=[_tool_delta(1, id="c2", name="scheduleTask")]),
            _make_stream_chunk(tool_calls=[_tool_delta(0, arguments='ation": "Oslo"}')]),
            _make_stream_chunk(finish_reason="tool_calls"),
        ]
        events = await _collect(OpenAIChatModel(client=_make_client(chunks)))
        calls = [e for e in events if isinstance(e, ToolCallRequest)]
        assert calls == [
            ToolCallRequest("c1", "getLocalTime", '{"location": "Oslo"}'),
            ToolCallRequest("c2", "scheduleTask", "{}"),
        ]
        assert events[-1] == StepFinish("tool_calls", None)

    async def test_passes_stream_options_and_tools(self):
        client = _make_client([_make_stream_chunk(usage=_make_usage(10, 5))])
        model = OpenAIChatModel("gpt-4o", client=client, max_tokens=256, temperature=0.2)
        await _collect(model, system="sys", tools=[ToolDefinition("t", "d", {})])

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["stream_options"] == {"include_usage": True}
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_completion_tokens"] == 256
        assert kwargs["temperature"] == 0.2
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
        assert kwargs["tools"][0]["function"]["name"] == "t"

    async def test_no_tools_key_without_tools(self):
        client = _make_client([])
        await _collect(OpenAIChatModel(client=client))
        assert "tools" not in client.chat.completions.create.call_args.kwargs

    async def test_error_during_stream(self):
        client = _make_client()
        client.chat.completions.create = AsyncMock(
            side_effect=openai.AuthenticationError(
                message="bad key",
                response=MagicMock(status_code=401, headers={}),
                body=None,
            ),
        )
        with pytest.raises(ProviderAuthError):
            await _collect(OpenAIChatModel(client=client))


# ─── Error Mapping ────────────────────────────────────────────


class TestErrorMapping:
    def _make_api_error(self, cls: type, status_code: int = 400) -> openai.APIError:
        response = MagicMock()
        response.status_code = status_code
        response.headers = {}
        return cls(message="test error", response=response, body=None)

    def test_auth_error(self):
        assert isinstance(_map_error(self._make_api_error(openai.AuthenticationError, 401)), ProviderAuthError)

    def test_rate_limit_with_retry_after(self):
        err = self._make_api_error(openai.RateLimitError, 429)
        err.response.headers = {"retry-after": "30"}
        mapped = _map_error(err)
        assert isinstance(mapped, ProviderRateLimitError)
        assert mapped.retry_after == 30.0

    def test_timeout_error(self):
        mapped = _map_error(openai.APITimeoutError(request=MagicMock()))
        assert isinstance(mapped, ProviderTimeoutError)

    def test_internal_server_error(self):
        mapped = _map_error(self._make_api_error(openai.InternalServerError, 500))
        assert isinstance(mapped, ProviderOverloadedError)

    def test_not_found_error(self):
        mapped = _map_error(self._make_api_error(openai.NotFoundError, 404))
        assert isinstance(mapped, ModelNotFoundError)

    def test_unknown_api_error_maps_to_overloaded(self):
        mapped = _map_error(self._make_api_error(openai.UnprocessableEntityError, 422))
        assert isinstance(mapped, ProviderOverloadedError)


# ─── health_check ─────────────────────────────────────────────


class TestHealthCheck:
    async def test_healthy_when_api_responds(self):
        assert await OpenAIChatModel(client=_make_client()).health_check() is True

    async def test_unhealthy_on_error(self):
        client = _make_client()
        client.models.retrieve = AsyncMock(side_effect=RuntimeError("down"))
        assert await OpenAIChatModel(client=client).health_check() is False
