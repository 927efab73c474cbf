"""Tool-call reconciliation for human-in-the-loop confirmation.

Before each inference call the transcript is reconciled:

1. Stranded tool calls from a crashed execution are repaired
   (:func:`~toolgate.transcript.repair.repair_transcript`).
2. Every confirmation-required invocation in the *last* message that
   carries a human verdict is resolved: approved calls run their
   executor, denied calls get a fixed denial result.
3. Each resolved result is written to the output stream and replaces
   the verdict in the transcript.

Parts are resolved concurrently; the rebuilt message keeps the original
part order.  Invocations that already hold a real result are never
touched.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from toolgate.approval import (
    DENIED_RESULT,
    NO_EXECUTOR_RESULT,
    PendingApproval,
    Verdict,
    classify,
)
from toolgate.core.errors import MissingContextError
from toolgate.stream import tool_result_event
from toolgate.tools.base import ExecutionContext, to_wire_result
from toolgate.transcript.convert import to_core_messages
from toolgate.transcript.models import ToolInvocationPart
from toolgate.transcript.repair import repair_transcript

if TYPE_CHECKING:
    from collections.abc import Mapping

    from toolgate.session import ChatSession
    from toolgate.stream import StreamWriter
    from toolgate.tools.base import Executor
    from toolgate.transcript.convert import CoreMessage
    from toolgate.transcript.models import Message, Part, ToolInvocation

logger = logging.getLogger(__name__)


def execution_failed_result(exc: BaseException) -> str:
    return f"Error: tool execution failed: {exc}"


async def _run_approved(
    invocation: ToolInvocation,
    executor: Executor | None,
    history: list[CoreMessage],
    session: ChatSession | None,
) -> Any:
    if executor is None:
        return NO_EXECUTOR_RESULT
    context = ExecutionContext(
        history=history,
        tool_call_id=invocation.tool_call_id,
        session=session,
    )
    try:
        result = await executor(invocation.args, context)
    except MissingContextError:
        raise
    except Exception as exc:
        logger.exception(
            "Approved tool %s failed for call %s",
            invocation.tool_name,
            invocation.tool_call_id,
        )
        return execution_failed_result(exc)
    return to_wire_result(result)


async def _resolve_part(
    part: Part,
    *,
    executions: Mapping[str, Executor | None],
    writer: StreamWriter,
    history: list[CoreMessage],
    session: ChatSession | None,
) -> Part:
    if not isinstance(part, ToolInvocationPart):
        return part

    invocation = part.tool_invocation
    if invocation.tool_name not in executions:
        return part

    status = classify(invocation)
    if not isinstance(status, PendingApproval):
        return part

    if status.verdict is Verdict.APPROVED:
        logger.info(
            "Running approved tool %s (%s)",
            invocation.tool_name,
            invocation.tool_call_id,
        )
        result = await _run_approved(
            invocation, executions.get(invocation.tool_name), history, session
        )
    else:
        logger.info(
            "Tool %s (%s) denied by user",
            invocation.tool_name,
            invocation.tool_call_id,
        )
        result = DENIED_RESULT

    writer.write(tool_result_event(invocation.tool_call_id, result))
    return part.model_copy(update={"tool_invocation": invocation.with_result(result)})


async def reconcile(
    messages: list[Message],
    *,
    writer: StreamWriter,
    executions: Mapping[str, Executor | None],
    session: ChatSession | None = None,
) -> list[Message]:
    """Resolve approved and denied tool calls in the last message.

    Expects an already-repaired transcript.  Earlier messages are
    returned as they are.

    Raises:
        MissingContextError: If an executor needs a session and none
            was given.  Parts still running are cancelled first.  Every
            other executor failure becomes an error string result for
            that part only.
    """
    if not messages:
        return messages
    last = messages[-1]
    if not last.parts:
        return messages

    history = to_core_messages(messages)
    tasks = [
        asyncio.ensure_future(
            _resolve_part(
                part,
                executions=executions,
                writer=writer,
                history=history,
                session=session,
            )
        )
        for part in last.parts
    ]
    try:
        resolved = await asyncio.gather(*tasks)
    except MissingContextError:
        # The request is aborted; siblings must not write further events.
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return [*messages[:-1], last.with_parts(list(resolved))]


async def process_tool_calls(
    messages: list[Message],
    *,
    writer: StreamWriter,
    executions: Mapping[str, Executor | None],
    session: ChatSession | None = None,
) -> list[Message]:
    """Repair the transcript, then reconcile pending confirmations.

    The returned transcript is ready to be passed to the inference call.
    """
    return await reconcile(
        repair_transcript(messages),
        writer=writer,
        executions=executions,
        session=session,
    )
