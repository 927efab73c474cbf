"""Per-request chat session state.

A :class:`ChatSession` is created at the request entry point and handed
down explicitly to the reconciler, the agent loop, and every tool
executor through :class:`~toolgate.tools.base.ExecutionContext`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from toolgate.transcript.models import generate_id

if TYPE_CHECKING:
    from toolgate.transcript.models import Message


@runtime_checkable
class Scheduler(Protocol):
    """Hook into the external task scheduler.

    ``when`` is a ``datetime`` for one-off tasks, a delay in seconds,
    or a cron pattern.  ``callback`` names the agent method to invoke
    when the task fires, with ``payload`` as its argument.
    """

    def schedule(self, when: datetime | int | str, callback: str, payload: str) -> Any:
        ...


@dataclass
class ChatSession:
    """Conversation state for one chat, owned by the caller."""

    id: str = field(default_factory=generate_id)
    messages: list[Message] = field(default_factory=list)
    scheduler: Scheduler | None = None
