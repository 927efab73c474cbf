"""Tool registry and execution table.

The registry is filled once at process start.  Taking the
:class:`ExecutionTable` seals it: from then on both are read-only and
safe to share across concurrent requests without locking.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from toolgate.core.errors import (
    MissingContextError,
    ToolNotFoundError,
    ToolRegistrationError,
)
from toolgate.tools.base import (
    AutoExecutingTool,
    ConfirmationRequiredTool,
    ToolDefinition,
    ToolResult,
    to_wire_result,
)

if TYPE_CHECKING:
    from toolgate.tools.base import ExecutionContext, Executor, Tool, ToolCall

logger = logging.getLogger(__name__)


class ExecutionTable(Mapping[str, "Executor | None"]):
    """Immutable map of confirmation-required tool name to executor.

    Every confirmation-required tool has a key.  The value is None when
    no post-approval executor was registered for it.
    """

    def __init__(self, executors: Mapping[str, Executor | None]) -> None:
        self._executors: Mapping[str, Executor | None] = MappingProxyType(
            dict(executors)
        )

    def __getitem__(self, name: str) -> Executor | None:
        return self._executors[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._executors)

    def __len__(self) -> int:
        return len(self._executors)

    def __repr__(self) -> str:
        return f"ExecutionTable({sorted(self._executors)!r})"


def _bind(tool: ConfirmationRequiredTool, executor: Executor) -> Executor:
    """Wrap *executor* so it receives validated arguments."""

    async def run(args: Any, context: ExecutionContext) -> Any:
        return await executor(tool.parse_args(args), context)

    run.__name__ = f"execute_{tool.name}"
    return run


class ToolRegistry:
    """Registry for managing available tools.

    Supports registration, lookup by name, listing definitions
    (for passing to provider APIs), running auto-executing tools, and
    building the execution table for confirmation-required ones.
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}
        self._executions: dict[str, Executor] = {}
        self._table: ExecutionTable | None = None

    def _check_open(self) -> None:
        if self._table is not None:
            msg = "Tool registry is sealed; register tools before serving requests"
            raise ToolRegistrationError(msg)

    def register(self, tool: Tool) -> None:
        """Register a tool.

        Raises:
            ToolRegistrationError: If the name is taken or the registry is sealed.
        """
        self._check_open()
        if tool.name in self._tools:
            msg = f"Tool already registered: {tool.name}"
            raise ToolRegistrationError(msg)
        self._tools[tool.name] = tool

    def register_execution(self, name: str, executor: Executor) -> None:
        """Attach the post-approval executor for a confirmation-required tool.

        Raises:
            ToolRegistrationError: If *name* is not a registered
                confirmation-required tool, or already has an executor.
        """
        self._check_open()
        tool = self._tools.get(name)
        if not isinstance(tool, ConfirmationRequiredTool):
            msg = f"Not a confirmation-required tool: {name}"
            raise ToolRegistrationError(msg)
        if name in self._executions:
            msg = f"Execution already registered: {name}"
            raise ToolRegistrationError(msg)
        self._executions[name] = executor

    def get(self, name: str) -> Tool:
        """Get a tool by name.

        Raises:
            ToolNotFoundError: If the tool is not found.
        """
        if name not in self._tools:
            raise ToolNotFoundError(name)
        return self._tools[name]

    def requires_confirmation(self, name: str) -> bool:
        return isinstance(self.get(name), ConfirmationRequiredTool)

    def list_definitions(self) -> list[ToolDefinition]:
        """Return tool definitions for all registered tools.

        Suitable for passing to provider APIs as available tools.
        """
        return [t.definition for t in self._tools.values()]

    def list_tools(self) -> list[Tool]:
        return list(self._tools.values())

    def execution_table(self) -> ExecutionTable:
        """Build (once) and return the execution table, sealing the registry."""
        if self._table is None:
            executors: dict[str, Executor | None] = {}
            for name, tool in self._tools.items():
                if not isinstance(tool, ConfirmationRequiredTool):
                    continue
                executor = self._executions.get(name)
                if executor is None:
                    logger.warning("Confirmation-required tool %s has no executor", name)
                    executors[name] = None
                else:
                    executors[name] = _bind(tool, executor)
            self._table = ExecutionTable(executors)
        return self._table

    async def execute(self, tool_call: ToolCall, context: ExecutionContext) -> ToolResult:
        """Run an auto-executing tool call and return the result.

        If the tool is unknown, needs confirmation, or raises, returns a
        :class:`ToolResult` with ``is_error=True``.  A missing session is
        not a tool failure and propagates.
        """
        tool = self._tools.get(tool_call.name)
        if tool is None:
            return ToolResult(
                tool_call_id=tool_call.id,
                content=f"Tool not found: {tool_call.name}",
                is_error=True,
            )
        if not isinstance(tool, AutoExecutingTool):
            return ToolResult(
                tool_call_id=tool_call.id,
                content=f"Tool requires confirmation: {tool_call.name}",
                is_error=True,
            )
        try:
            args = tool.parse_args(tool_call.arguments)
            result = await tool.executor(args, context)
        except MissingContextError:
            raise
        except Exception as exc:
            logger.exception("Tool %s failed for call %s", tool.name, tool_call.id)
            return ToolResult(
                tool_call_id=tool_call.id,
                content=f"Tool execution error: {exc}",
                is_error=True,
            )
        return ToolResult(tool_call_id=tool_call.id, content=to_wire_result(result))

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def list_names(self) -> list[str]:
        """Return names of all registered tools."""
        return list(self._tools.keys())
