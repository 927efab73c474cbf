"""Tool kinds and data types.

A tool is one of two explicit kinds:

* :class:`AutoExecutingTool` carries its executor and runs as soon as
  the model calls it.
* :class:`ConfirmationRequiredTool` carries no executor.  Its call waits
  for a human verdict; the executor that runs after approval lives in
  the registry's execution table.

:func:`define_tool` picks the kind from whether ``execute`` is given.
"""

from __future__ import annotations

import enum
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from toolgate.core.errors import MissingContextError

if TYPE_CHECKING:
    from toolgate.session import ChatSession
    from toolgate.transcript.convert import CoreMessage


class ToolKind(enum.StrEnum):
    AUTO = "auto"
    CONFIRMATION_REQUIRED = "confirmation_required"


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """Schema definition for a tool, suitable for passing to providers."""

    name: str
    description: str
    parameters_schema: dict[str, Any]


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A tool invocation requested by a model."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Result from executing a tool."""

    tool_call_id: str
    content: Any
    is_error: bool = False


@dataclass(frozen=True, slots=True)
class RawMarkup:
    """Tool output to be rendered as markup rather than escaped text."""

    html: str

    def to_wire(self) -> dict[str, str]:
        return {"__html": self.html}


def to_wire_result(value: Any) -> Any:
    """Convert a tool's return value into its JSON wire form."""
    if isinstance(value, RawMarkup):
        return value.to_wire()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """Everything an executor may read about the current request.

    Passed explicitly into every executor call.
    """

    history: list[CoreMessage]
    tool_call_id: str
    session: ChatSession | None = None

    def require_session(self) -> ChatSession:
        """Return the active session.

        Raises:
            MissingContextError: If the request carries no session.
        """
        if self.session is None:
            msg = f"No chat session available for tool call {self.tool_call_id}"
            raise MissingContextError(msg)
        return self.session


Executor = Callable[[Any, ExecutionContext], Awaitable[Any]]
"""``async (args, context) -> result``."""


class InvalidToolArgumentsError(ValueError):
    """Model-supplied arguments do not match the tool's parameter schema."""


@dataclass(frozen=True, slots=True)
class _ToolSpec:
    name: str
    description: str
    params: type[BaseModel]

    @property
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters_schema=self.params.model_json_schema(),
        )

    def parse_args(self, args: Any) -> BaseModel:
        """Validate raw arguments against the parameter model."""
        try:
            return self.params.model_validate(args or {})
        except ValidationError as exc:
            msg = f"Invalid arguments for tool '{self.name}': {exc}"
            raise InvalidToolArgumentsError(msg) from exc


@dataclass(frozen=True, slots=True)
class AutoExecutingTool(_ToolSpec):
    executor: Executor

    @property
    def kind(self) -> ToolKind:
        return ToolKind.AUTO


@dataclass(frozen=True, slots=True)
class ConfirmationRequiredTool(_ToolSpec):
    @property
    def kind(self) -> ToolKind:
        return ToolKind.CONFIRMATION_REQUIRED


Tool = AutoExecutingTool | ConfirmationRequiredTool


def define_tool(
    name: str,
    description: str,
    params: type[BaseModel],
    *,
    execute: Executor | None = None,
) -> Tool:
    """Declare a tool.  Omitting ``execute`` makes it confirmation-required."""
    if execute is None:
        return ConfirmationRequiredTool(name=name, description=description, params=params)
    return AutoExecutingTool(
        name=name, description=description, params=params, executor=execute
    )
