"""Inference adapter interface and stream event types.

The inference call is an opaque generator of text and tool calls.
Adapters implement :class:`ChatModel`; the agent loop consumes the
events it yields and never sees provider SDK types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from toolgate.tools.base import ToolDefinition
    from toolgate.transcript.convert import CoreMessage


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Token counts from a single model call."""

    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        """Total tokens consumed (input + output)."""
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True, slots=True)
class TextDelta:
    text: str


@dataclass(frozen=True, slots=True)
class ToolCallRequest:
    """A complete tool call from the model."""

    id: str
    name: str
    arguments: str  # JSON string of arguments


@dataclass(frozen=True, slots=True)
class StepFinish:
    """Last event of one model call."""

    finish_reason: str  # "stop", "length", "tool_calls"
    usage: TokenUsage | None = None


ModelEvent = TextDelta | ToolCallRequest | StepFinish


@runtime_checkable
class ChatModel(Protocol):
    """Protocol that inference adapters must satisfy.

    Implementations hold connection config only; the transcript is
    passed in on every call.
    """

    @property
    def provider_id(self) -> str:
        ...

    @property
    def model_id(self) -> str:
        ...

    def stream(
        self,
        messages: list[CoreMessage],
        *,
        system: str | None = None,
        tools: list[ToolDefinition] | None = None,
    ) -> AsyncIterator[ModelEvent]:
        """Yield text deltas and tool calls, ending with one :class:`StepFinish`.

        Raises ProviderError on failure.
        """
        ...

    async def health_check(self) -> bool:
        """Return True if the provider is reachable. Must not raise."""
        ...
