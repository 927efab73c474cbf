"""Tool listing and stand-alone reconciliation endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from toolgate.core.errors import MissingContextError, ToolgateError
from toolgate.reconcile import process_tool_calls
from toolgate.session import ChatSession
from toolgate.stream import EventLog
from toolgate.tools.base import ConfirmationRequiredTool
from toolgate.transcript.models import Message, dump_transcript, generate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["tools"])


class ToolInfo(BaseModel):
    name: str
    description: str
    requires_confirmation: bool
    parameters: dict[str, Any]


class ReconcileRequest(BaseModel):
    id: str | None = None
    messages: list[Message]


class ReconcileResponse(BaseModel):
    messages: list[dict[str, Any]]
    events: list[dict[str, Any]]


@router.get("/tools", response_model=list[ToolInfo])
async def list_tools(request: Request) -> list[ToolInfo]:
    """List registered tools and whether each needs human confirmation."""
    return [
        ToolInfo(
            name=tool.name,
            description=tool.description,
            requires_confirmation=isinstance(tool, ConfirmationRequiredTool),
            parameters=tool.definition.parameters_schema,
        )
        for tool in request.app.state.registry.list_tools()
    ]


@router.post("/tool-calls/reconcile", response_model=ReconcileResponse)
async def reconcile_tool_calls(
    body: ReconcileRequest, request: Request
) -> ReconcileResponse | JSONResponse:
    """Resolve approved/denied tool calls without running inference."""
    log = EventLog()
    session = ChatSession(
        id=body.id or generate_id(),
        messages=body.messages,
        scheduler=request.app.state.scheduler,
    )
    try:
        messages = await process_tool_calls(
            body.messages,
            writer=log,
            executions=request.app.state.executions,
            session=session,
        )
    except MissingContextError as exc:
        logger.warning("Reconciliation aborted: %s", exc)
        return JSONResponse(status_code=409, content={"detail": str(exc)})
    except ToolgateError as exc:
        logger.exception("Error during /api/tool-calls/reconcile")
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return ReconcileResponse(
        messages=dump_transcript(messages),
        events=[{"type": e.type, "value": e.value} for e in log.events],
    )
