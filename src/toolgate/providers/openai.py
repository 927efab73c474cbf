"""OpenAI chat completions adapter."""

from __future__ import annotations

import contextlib
import json
from typing import TYPE_CHECKING, Any

import openai

from toolgate.core.errors import (
    ModelNotFoundError,
    ProviderAuthError,
    ProviderOverloadedError,
    ProviderRateLimitError,
    ProviderTimeoutError,
)
from toolgate.providers.base import StepFinish, TextDelta, TokenUsage, ToolCallRequest
from toolgate.transcript.convert import CoreTextPart, CoreToolCall, CoreToolResult

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from toolgate.providers.base import ModelEvent
    from toolgate.tools.base import ToolDefinition
    from toolgate.transcript.convert import CoreMessage

PROVIDER_ID = "openai"


def _map_error(e: openai.APIError) -> Exception:
    """Map OpenAI SDK errors to the toolgate error hierarchy."""
    if isinstance(e, openai.AuthenticationError):
        return ProviderAuthError(PROVIDER_ID, str(e))
    if isinstance(e, openai.RateLimitError):
        retry_after = None
        if hasattr(e, "response") and e.response is not None:
            raw = e.response.headers.get("retry-after")
            if raw is not None:
                with contextlib.suppress(ValueError):
                    retry_after = float(raw)
        return ProviderRateLimitError(PROVIDER_ID, retry_after=retry_after)
    if isinstance(e, openai.APITimeoutError):
        return ProviderTimeoutError(PROVIDER_ID, str(e))
    if isinstance(e, openai.InternalServerError):
        return ProviderOverloadedError(PROVIDER_ID, str(e))
    if isinstance(e, openai.NotFoundError):
        return ModelNotFoundError(PROVIDER_ID, str(e))
    return ProviderOverloadedError(PROVIDER_ID, str(e))


def _result_content(result: Any) -> str:
    return result if isinstance(result, str) else json.dumps(result, default=str)


def _build_messages(
    messages: list[CoreMessage], system: str | None
) -> list[dict[str, Any]]:
    """Convert core messages to the chat completions format."""
    api_messages: list[dict[str, Any]] = []
    if system:
        api_messages.append({"role": "system", "content": system})

    for msg in messages:
        if msg.role == "tool":
            for part in msg.content:
                if isinstance(part, CoreToolResult):
                    api_messages.append(
                        {
                            "role": "tool",
                            "tool_call_id": part.tool_call_id,
                            "content": _result_content(part.result),
                        }
                    )
        elif msg.role == "assistant":
            entry: dict[str, Any] = {"role": "assistant", "content": msg.text or None}
            calls = [p for p in msg.content if isinstance(p, CoreToolCall)]
            if calls:
                entry["tool_calls"] = [
                    {
                        "id": c.tool_call_id,
                        "type": "function",
                        "function": {"name": c.tool_name, "arguments": json.dumps(c.args)},
                    }
                    for c in calls
                ]
            api_messages.append(entry)
        else:
            text = "".join(p.text for p in msg.content if isinstance(p, CoreTextPart))
            api_messages.append({"role": msg.role, "content": text})

    return api_messages


def _build_tools(tools: list[ToolDefinition]) -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": t.name,
                "description": t.description,
                "parameters": t.parameters_schema,
            },
        }
        for t in tools
    ]


class OpenAIChatModel:
    """Streaming chat model backed by OpenAI chat completions."""

    def __init__(
        self,
        model_id: str = "gpt-4o-mini",
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        client: openai.AsyncOpenAI | None = None,
    ) -> None:
        if client is not None:
            self._client = client
        else:
            kwargs: dict[str, Any] = {"api_key": api_key}
            if base_url:
                kwargs["base_url"] = base_url
            self._client = openai.AsyncOpenAI(**kwargs)
        self._model_id = model_id
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def provider_id(self) -> str:
        return PROVIDER_ID

    @property
    def model_id(self) -> str:
        return self._model_id

    async def stream(
        self,
        messages: list[CoreMessage],
        *,
        system: str | None = None,
        tools: list[ToolDefinition] | None = None,
    ) -> AsyncIterator[ModelEvent]:
        kwargs: dict[str, Any] = {
            "model": self._model_id,
            "messages": _build_messages(messages, system),
            "max_completion_tokens": self._max_tokens,
            "temperature": self._temperature,
            "stream_options": {"include_usage": True},
        }
        if tools:
            kwargs["tools"] = _build_tools(tools)

        # Tool call deltas arrive in fragments keyed by index.
        pending: dict[int, dict[str, str]] = {}
        finish_reason = "stop"
        usage: TokenUsage | None = None

        try:
            response = await self._client.chat.completions.create(stream=True, **kwargs)
            async for chunk in response:
                if chunk.usage is not None:
                    usage = TokenUsage(
                        input_tokens=chunk.usage.prompt_tokens,
                        output_tokens=chunk.usage.completion_tokens,
                    )
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                delta = choice.delta
                if delta.content:
                    yield TextDelta(delta.content)
                for tc in delta.tool_calls or []:
                    slot = pending.setdefault(tc.index, {"id": "", "name": "", "arguments": ""})
                    if tc.id:
                        slot["id"] = tc.id
                    if tc.function is not None:
                        if tc.function.name:
                            slot["name"] += tc.function.name
                        if tc.function.arguments:
                            slot["arguments"] += tc.function.arguments
                if choice.finish_reason:
                    finish_reason = choice.finish_reason
        except openai.APIError as e:
            raise _map_error(e) from e

        for index in sorted(pending):
            slot = pending[index]
            yield ToolCallRequest(
                id=slot["id"], name=slot["name"], arguments=slot["arguments"] or "{}"
            )
        yield StepFinish(finish_reason=finish_reason, usage=usage)

    async def health_check(self) -> bool:
        try:
            await self._client.models.retrieve(self._model_id)
        except Exception:
            return False
        return True
