"""Output stream writer for structured result events.

Events use the data-stream line protocol the chat UI reads: one line
per event, ``<code>:<json>\\n``.  Each :meth:`StreamWriter.write` call is
a single event carrying its own ids, so concurrent writers may
interleave freely.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any, Protocol, cast, runtime_checkable

STREAM_CODES: dict[str, str] = {
    "text": "0",
    "data": "2",
    "error": "3",
    "tool_call": "9",
    "tool_result": "a",
    "finish_message": "d",
    "finish_step": "e",
    "start_step": "f",
}


@dataclass(frozen=True, slots=True)
class StreamEvent:
    type: str
    value: Any

    def encode(self) -> str:
        return format_stream_part(self.type, self.value)


def format_stream_part(type_: str, value: Any) -> str:
    """Render one event as a data-stream protocol line.

    Raises:
        ValueError: For an unknown event type.
    """
    try:
        code = STREAM_CODES[type_]
    except KeyError:
        msg = f"Unknown stream part type: {type_}"
        raise ValueError(msg) from None
    return f"{code}:{json.dumps(value, separators=(',', ':'), default=str)}\n"


def tool_result_event(tool_call_id: str, result: Any) -> StreamEvent:
    return StreamEvent("tool_result", {"toolCallId": tool_call_id, "result": result})


def error_event(message: str) -> StreamEvent:
    return StreamEvent("error", message)


@runtime_checkable
class StreamWriter(Protocol):
    """Append-only sink for stream events."""

    def write(self, event: StreamEvent) -> None:
        ...


@dataclass
class EventLog:
    """Writer that keeps every event in memory, in write order."""

    events: list[StreamEvent] = field(default_factory=list)

    def write(self, event: StreamEvent) -> None:
        self.events.append(event)

    def of_type(self, type_: str) -> list[StreamEvent]:
        return [e for e in self.events if e.type == type_]


class StreamClosedError(RuntimeError):
    """Write attempted after :meth:`DataStream.close`."""


class DataStream:
    """Queue-backed writer a transport can iterate as encoded lines.

    Producers call :meth:`write` and finally :meth:`close`; the consumer
    iterates with ``async for line in stream``.
    """

    _DONE = object()

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, event: StreamEvent) -> None:
        if self._closed:
            msg = f"Stream closed; dropped {event.type} event"
            raise StreamClosedError(msg)
        self._queue.put_nowait(event)

    def close(self) -> None:
        """Signal end of stream. Idempotent."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(self._DONE)

    async def events(self) -> AsyncIterator[StreamEvent]:
        while True:
            item = await self._queue.get()
            if item is self._DONE:
                return
            yield cast(StreamEvent, item)

    async def __aiter__(self) -> AsyncIterator[str]:
        async for event in self.events():
            yield event.encode()
