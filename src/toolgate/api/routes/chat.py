"""POST /api/chat -- one chat turn, streamed as data-stream protocol lines."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse
from pydantic import BaseModel

from toolgate.core.errors import MissingContextError
from toolgate.session import ChatSession
from toolgate.stream import DataStream, error_event
from toolgate.transcript.models import Message, generate_id

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from toolgate.agent import ChatAgent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

STREAM_HEADERS = {"x-vercel-ai-data-stream": "v1"}


class ChatRequest(BaseModel):
    id: str | None = None
    messages: list[Message]


@router.post("/chat")
async def chat(body: ChatRequest, request: Request) -> Response:
    """Reconcile pending confirmations, run inference, stream every event.

    Stream lines::

        a:{"toolCallId":"call_1","result":"The weather in Paris is sunny"}
        f:{"messageId":"..."}
        0:"Here is the forecast"
        9:{"toolCallId":"call_2","toolName":"getWeatherInformation","args":{...}}
        e:{"finishReason":"tool_calls",...}
        d:{"finishReason":"tool_calls","usage":{...}}
        3:"error message"
    """
    agent: ChatAgent | None = request.app.state.agent
    if agent is None:
        return PlainTextResponse("OPENAI_API_KEY is not set", status_code=500)

    session = ChatSession(
        id=body.id or generate_id(),
        messages=body.messages,
        scheduler=request.app.state.scheduler,
    )
    stream = DataStream()

    async def produce() -> None:
        try:
            await agent.on_chat_message(session, stream)
        except MissingContextError:
            logger.warning("Chat %s aborted: no session context", session.id)
        except Exception:
            logger.exception("Unhandled error during /api/chat")
            stream.write(error_event("An error occurred."))
        finally:
            stream.close()

    task = asyncio.create_task(produce())

    async def body_lines() -> AsyncIterator[str]:
        try:
            async for line in stream:
                yield line
        finally:
            await task

    return StreamingResponse(
        body_lines(),
        media_type="text/plain; charset=utf-8",
        headers=STREAM_HEADERS,
    )
