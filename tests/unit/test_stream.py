"""Tests for the data-stream writer and line protocol."""

from __future__ import annotations

import asyncio

import pytest

from toolgate.stream import (
    DataStream,
    EventLog,
    StreamClosedError,
    StreamEvent,
    StreamWriter,
    error_event,
    format_stream_part,
    tool_result_event,
)


class TestFormatStreamPart:
    def test_tool_result_line(self):
        line = format_stream_part("tool_result", {"toolCallId": "c1", "result": "ok"})
        assert line == 'a:{"toolCallId":"c1","result":"ok"}\n'

    def test_text_line(self):
        assert format_stream_part("text", "Hello") == '0:"Hello"\n'

    def test_error_line(self):
        assert format_stream_part("error", "boom") == '3:"boom"\n'

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError, match="Unknown stream part type"):
            format_stream_part("bogus", {})

    def test_event_encode(self):
        assert StreamEvent("start_step", {"messageId": "m"}).encode() == 'f:{"messageId":"m"}\n'


class TestEventHelpers:
    def test_tool_result_event(self):
        event = tool_result_event("c1", "The weather in Paris is sunny")
        assert event.type == "tool_result"
        assert event.value == {"toolCallId": "c1", "result": "The weather in Paris is sunny"}

    def test_error_event(self):
        assert error_event("bad") == StreamEvent("error", "bad")


class TestEventLog:
    def test_records_in_order(self):
        log = EventLog()
        log.write(error_event("1"))
        log.write(tool_result_event("c", "r"))
        assert [e.type for e in log.events] == ["error", "tool_result"]
        assert len(log.of_type("tool_result")) == 1

    def test_satisfies_protocol(self):
        assert isinstance(EventLog(), StreamWriter)
        assert isinstance(DataStream(), StreamWriter)


class TestDataStream:
    async def test_yields_encoded_lines_until_closed(self):
        stream = DataStream()
        stream.write(StreamEvent("text", "Hi"))
        stream.write(tool_result_event("c1", "ok"))
        stream.close()
        lines = [line async for line in stream]
        assert lines == ['0:"Hi"\n', 'a:{"toolCallId":"c1","result":"ok"}\n']

    async def test_concurrent_producer(self):
        stream = DataStream()

        async def produce():
            for i in range(3):
                await asyncio.sleep(0)
                stream.write(StreamEvent("text", str(i)))
            stream.close()

        task = asyncio.create_task(produce())
        events = [e async for e in stream.events()]
        await task
        assert [e.value for e in events] == ["0", "1", "2"]

    async def test_write_after_close_raises(self):
        stream = DataStream()
        stream.close()
        with pytest.raises(StreamClosedError):
            stream.write(error_event("late"))

    async def test_close_idempotent(self):
        stream = DataStream()
        stream.close()
        stream.close()
        assert stream.closed
        assert [line async for line in stream] == []
