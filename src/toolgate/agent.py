"""Chat agent: reconciles pending confirmations, then runs inference.

One call to :meth:`ChatAgent.on_chat_message` handles one user turn:

1. Resolve approved/denied tool calls left in the transcript.
2. Run up to ``max_steps`` inference steps.  Auto-executing tool calls
   run inline and feed the next step; a confirmation-required call ends
   the turn so the human can answer.
3. Append the new assistant message to the session transcript.

Every event is written to the caller's stream as it happens.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from toolgate.config.schema import DEFAULT_SYSTEM_PROMPT
from toolgate.core.errors import MissingContextError, ProviderError
from toolgate.providers.base import StepFinish, TextDelta, ToolCallRequest
from toolgate.reconcile import process_tool_calls
from toolgate.stream import StreamEvent, error_event, tool_result_event
from toolgate.tools.base import ExecutionContext, ToolCall
from toolgate.transcript.convert import to_core_messages
from toolgate.transcript.models import (
    Message,
    TextPart,
    ToolInvocation,
    ToolInvocationPart,
    generate_id,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from toolgate.providers.base import ChatModel, TokenUsage
    from toolgate.session import ChatSession
    from toolgate.stream import StreamWriter
    from toolgate.tools.registry import ToolRegistry
    from toolgate.transcript.convert import CoreMessage
    from toolgate.transcript.models import Part

logger = logging.getLogger(__name__)


def _parse_arguments(raw: str) -> dict[str, Any]:
    try:
        args = json.loads(raw) if raw else {}
    except json.JSONDecodeError:
        logger.warning("Discarding malformed tool arguments: %r", raw)
        return {}
    return args if isinstance(args, dict) else {}


class ChatAgent:
    """Human-in-the-loop chat agent over a :class:`ChatModel`."""

    def __init__(
        self,
        model: ChatModel,
        registry: ToolRegistry,
        *,
        max_steps: int = 10,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._model = model
        self._registry = registry
        self._executions = registry.execution_table()
        self._max_steps = max_steps
        self._system_prompt = system_prompt
        self._clock = clock or (lambda: datetime.now(UTC))

    def system_prompt(self) -> str:
        return f"{self._system_prompt} The time is now: {self._clock().isoformat()}."

    async def on_chat_message(
        self, session: ChatSession, writer: StreamWriter
    ) -> list[Message]:
        """Handle one turn and return the updated transcript.

        Inference errors are logged and reported as an ``error`` event;
        the transcript keeps whatever was produced before the failure.

        Raises:
            MissingContextError: After writing an ``error`` event, when a
                tool needed the session and none was available.
        """
        try:
            session.messages = await process_tool_calls(
                session.messages,
                writer=writer,
                executions=self._executions,
                session=session,
            )
            reply = await self._run_steps(session, writer)
        except MissingContextError as exc:
            logger.error("Aborting chat %s: %s", session.id, exc)
            writer.write(error_event(str(exc)))
            raise

        if reply.parts:
            session.messages = [*session.messages, reply]
        return session.messages

    async def _run_steps(self, session: ChatSession, writer: StreamWriter) -> Message:
        message_id = generate_id()
        parts: list[Part] = []
        definitions = self._registry.list_definitions()
        input_tokens = output_tokens = 0
        finish_reason = "stop"

        for step in range(self._max_steps):
            history = to_core_messages(
                [*session.messages, Message(id=message_id, role="assistant", parts=parts)]
                if parts
                else session.messages
            )
            writer.write(StreamEvent("start_step", {"messageId": message_id}))

            text: list[str] = []
            calls: list[ToolCallRequest] = []
            finish: StepFinish | None = None
            try:
                async for event in self._model.stream(
                    history, system=self.system_prompt(), tools=definitions
                ):
                    if isinstance(event, TextDelta):
                        text.append(event.text)
                        writer.write(StreamEvent("text", event.text))
                    elif isinstance(event, ToolCallRequest):
                        calls.append(event)
                    elif isinstance(event, StepFinish):
                        finish = event
            except ProviderError as exc:
                logger.exception("Inference failed in chat %s", session.id)
                writer.write(error_event(str(exc)))
                finish_reason = "error"
                break

            if text:
                parts.append(TextPart(text="".join(text)))

            usage: TokenUsage | None = finish.usage if finish else None
            if usage is not None:
                input_tokens += usage.input_tokens
                output_tokens += usage.output_tokens
            finish_reason = finish.finish_reason if finish else "stop"

            step_parts, awaiting = await self._handle_calls(
                calls, step, history, session, writer
            )
            parts.extend(step_parts)

            writer.write(
                StreamEvent(
                    "finish_step",
                    {
                        "finishReason": finish_reason,
                        "usage": _usage_payload(usage),
                        "isContinued": False,
                    },
                )
            )
            if awaiting or not calls:
                break

        writer.write(
            StreamEvent(
                "finish_message",
                {
                    "finishReason": finish_reason,
                    "usage": {
                        "promptTokens": input_tokens,
                        "completionTokens": output_tokens,
                    },
                },
            )
        )
        content = "".join(p.text for p in parts if isinstance(p, TextPart))
        return Message(id=message_id, role="assistant", content=content, parts=parts)

    async def _handle_calls(
        self,
        calls: list[ToolCallRequest],
        step: int,
        history: list[CoreMessage],
        session: ChatSession,
        writer: StreamWriter,
    ) -> tuple[list[Part], bool]:
        """Emit every call; run the auto-executing ones concurrently.

        Returns the new parts in call order and whether any call now
        waits for a human verdict.
        """
        awaiting = False
        slots: list[ToolInvocation | None] = []
        pending: list[tuple[int, ToolCall]] = []

        for call in calls:
            args = _parse_arguments(call.arguments)
            writer.write(
                StreamEvent(
                    "tool_call",
                    {"toolCallId": call.id, "toolName": call.name, "args": args},
                )
            )
            invocation = ToolInvocation(
                tool_call_id=call.id, tool_name=call.name, args=args, state="call", step=step
            )
            if call.name in self._executions:
                logger.info("Tool %s (%s) awaits confirmation", call.name, call.id)
                awaiting = True
                slots.append(invocation)
            else:
                pending.append((len(slots), ToolCall(id=call.id, name=call.name, arguments=args)))
                slots.append(None)

        results = await asyncio.gather(
            *(
                self._registry.execute(
                    tc,
                    ExecutionContext(history=history, tool_call_id=tc.id, session=session),
                )
                for _, tc in pending
            )
        )
        for (index, tc), result in zip(pending, results, strict=True):
            writer.write(tool_result_event(tc.id, result.content))
            slots[index] = ToolInvocation(
                tool_call_id=tc.id,
                tool_name=tc.name,
                args=tc.arguments,
                state="result",
                result=result.content,
                step=step,
            )

        parts: list[Part] = [
            ToolInvocationPart(tool_invocation=inv) for inv in slots if inv is not None
        ]
        return parts, awaiting

    async def execute_task(self, session: ChatSession, description: str) -> None:
        """Scheduler callback: record a fired task as a user message."""
        logger.info("Scheduled task fired for chat %s: %s", session.id, description)
        session.messages = [
            *session.messages,
            Message(role="user", content=f"scheduled message: {description}"),
        ]


def _usage_payload(usage: TokenUsage | None) -> dict[str, int]:
    if usage is None:
        return {"promptTokens": 0, "completionTokens": 0}
    return {"promptTokens": usage.input_tokens, "completionTokens": usage.output_tokens}
