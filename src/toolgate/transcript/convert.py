"""Convert UI messages into the model-agnostic core message form.

Core messages are what the inference call consumes and what tool
executors receive as history.  An assistant message expands into the
assistant turn (text plus tool calls) followed by a ``tool`` turn with
the results of every invocation that has one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from toolgate.transcript.models import TextPart, ToolInvocationPart

if TYPE_CHECKING:
    from toolgate.transcript.models import Message

logger = logging.getLogger(__name__)

CoreRole = Literal["system", "user", "assistant", "tool"]


@dataclass(frozen=True, slots=True)
class CoreTextPart:
    text: str


@dataclass(frozen=True, slots=True)
class CoreToolCall:
    tool_call_id: str
    tool_name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CoreToolResult:
    tool_call_id: str
    tool_name: str
    result: Any


CorePart = CoreTextPart | CoreToolCall | CoreToolResult


@dataclass(frozen=True, slots=True)
class CoreMessage:
    """A single message in a prompt sequence."""

    role: CoreRole
    content: tuple[CorePart, ...]

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.content if isinstance(p, CoreTextPart))


def _text_message(role: CoreRole, text: str) -> CoreMessage:
    return CoreMessage(role=role, content=(CoreTextPart(text),))


def _convert_assistant(message: Message) -> list[CoreMessage]:
    if not message.parts:
        return [_text_message("assistant", message.content)]

    assistant_parts: list[CorePart] = []
    results: list[CorePart] = []
    for part in message.parts:
        if isinstance(part, TextPart):
            assistant_parts.append(CoreTextPart(part.text))
        elif isinstance(part, ToolInvocationPart):
            inv = part.tool_invocation
            if inv.state != "result" or not inv.has_result:
                logger.debug(
                    "Dropping unresolved tool call %s (%s) from core history",
                    inv.tool_call_id,
                    inv.tool_name,
                )
                continue
            assistant_parts.append(
                CoreToolCall(inv.tool_call_id, inv.tool_name, dict(inv.args))
            )
            results.append(CoreToolResult(inv.tool_call_id, inv.tool_name, inv.result))

    converted = [CoreMessage(role="assistant", content=tuple(assistant_parts))]
    if results:
        converted.append(CoreMessage(role="tool", content=tuple(results)))
    return converted


def to_core_messages(messages: list[Message]) -> list[CoreMessage]:
    """Convert a UI transcript into core messages, preserving order."""
    core: list[CoreMessage] = []
    for message in messages:
        if message.role == "assistant":
            core.extend(_convert_assistant(message))
        else:
            core.append(_text_message(message.role, message.content))
    return core
