"""Approval verdicts and invocation status.

The UI records the human decision by writing one of two fixed strings
into ``toolInvocation.result``.  The same field later holds the real
tool output, so a raw value is ambiguous.  :func:`classify` turns an
invocation into an explicit status at the boundary; everything past
that point matches on the status type instead of comparing strings.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from toolgate.transcript.models import ToolInvocationPart

if TYPE_CHECKING:
    from toolgate.transcript.models import Message, ToolInvocation


class Verdict(enum.StrEnum):
    """Human decision on a confirmation-required tool call.

    Values are shared verbatim with the confirmation UI.
    """

    APPROVED = "Yes, confirmed."
    DENIED = "No, denied."


APPROVED = Verdict.APPROVED
DENIED = Verdict.DENIED

DENIED_RESULT = "Error: User denied access to tool execution"
NO_EXECUTOR_RESULT = "Error: No execute function found on tool"


@dataclass(frozen=True, slots=True)
class NotDecided:
    """The call has not reached the ``result`` state yet."""


@dataclass(frozen=True, slots=True)
class PendingApproval:
    """The human answered; the tool has not run."""

    verdict: Verdict


@dataclass(frozen=True, slots=True)
class Resolved:
    """The call already holds its final output. Never re-executed."""

    value: Any


InvocationStatus = NotDecided | PendingApproval | Resolved


def parse_verdict(value: Any) -> Verdict | None:
    """Return the verdict *value* encodes, or None for any other value."""
    if not isinstance(value, str):
        return None
    try:
        return Verdict(value)
    except ValueError:
        return None


def classify(invocation: ToolInvocation) -> InvocationStatus:
    """Classify a tool invocation by what its ``result`` field means."""
    if invocation.state != "result" or not invocation.has_result:
        return NotDecided()
    verdict = parse_verdict(invocation.result)
    if verdict is not None:
        return PendingApproval(verdict)
    return Resolved(invocation.result)


def record_verdict(
    messages: list[Message], tool_call_id: str, verdict: Verdict
) -> list[Message]:
    """Write a human verdict into the matching pending call of the last message.

    This is what the confirmation UI does before sending the transcript
    back.

    Raises:
        KeyError: If the last message has no undecided call with that id.
    """
    if messages:
        last = messages[-1]
        for index, part in enumerate(last.parts):
            if not isinstance(part, ToolInvocationPart):
                continue
            inv = part.tool_invocation
            if inv.tool_call_id != tool_call_id or not isinstance(classify(inv), NotDecided):
                continue
            decided = inv.model_copy(update={"state": "result", "result": verdict.value})
            parts = list(last.parts)
            parts[index] = part.model_copy(update={"tool_invocation": decided})
            return [*messages[:-1], last.with_parts(parts)]
    msg = f"No pending tool call {tool_call_id} in the last message"
    raise KeyError(msg)
