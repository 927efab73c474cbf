"""Inference adapters."""

from toolgate.providers.base import (
    ChatModel,
    ModelEvent,
    StepFinish,
    TextDelta,
    TokenUsage,
    ToolCallRequest,
)

__all__ = [
    "ChatModel",
    "ModelEvent",
    "StepFinish",
    "TextDelta",
    "TokenUsage",
    "ToolCallRequest",
]
