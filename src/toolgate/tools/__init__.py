"""Tool kinds, registry, and execution table."""

from toolgate.tools.base import (
    AutoExecutingTool,
    ConfirmationRequiredTool,
    ExecutionContext,
    RawMarkup,
    Tool,
    ToolCall,
    ToolDefinition,
    ToolKind,
    ToolResult,
    define_tool,
)
from toolgate.tools.registry import ExecutionTable, ToolRegistry

__all__ = [
    "AutoExecutingTool",
    "ConfirmationRequiredTool",
    "ExecutionContext",
    "ExecutionTable",
    "RawMarkup",
    "Tool",
    "ToolCall",
    "ToolDefinition",
    "ToolKind",
    "ToolRegistry",
    "ToolResult",
    "define_tool",
]
