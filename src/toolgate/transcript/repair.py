"""Transcript repair for tool calls stranded by a crashed execution.

If a tool raised after the model emitted its call, the invocation is
left in ``call`` state with no result.  The inference step expects one
result per prior call and refuses to continue, so the stranded leading
invocation is swapped for a plain text note the model can react to.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from toolgate.transcript.models import TextPart, ToolInvocationPart

if TYPE_CHECKING:
    from toolgate.transcript.models import Message

logger = logging.getLogger(__name__)

FAILED_NOTE = "tool execution failed"


def _is_stuck(message: Message) -> bool:
    if message.role != "assistant" or not message.parts:
        return False
    first = message.parts[0]
    return (
        isinstance(first, ToolInvocationPart)
        and first.tool_invocation.state == "call"
        and not first.tool_invocation.has_result
    )


def repair_message(message: Message) -> Message:
    """Return *message* with a stranded leading tool call replaced."""
    if not _is_stuck(message):
        return message
    stuck = cast(ToolInvocationPart, message.parts[0])
    logger.warning(
        "Replacing stranded tool call %s (%s) in message %s",
        stuck.tool_invocation.tool_call_id,
        stuck.tool_invocation.tool_name,
        message.id,
    )
    return message.with_parts([TextPart(text=FAILED_NOTE), *message.parts[1:]])


def repair_transcript(messages: list[Message]) -> list[Message]:
    """Repair every message; never raises and never reorders.

    The input list is not modified.  Applying this twice gives the same
    result as applying it once.
    """
    return [repair_message(m) for m in messages]
