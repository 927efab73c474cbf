"""Chat transcript model, repair, and core-message conversion."""

from toolgate.transcript.convert import CoreMessage, to_core_messages
from toolgate.transcript.models import (
    Message,
    OpaquePart,
    TextPart,
    ToolInvocation,
    ToolInvocationPart,
    dump_transcript,
    generate_id,
    parse_transcript,
)
from toolgate.transcript.repair import FAILED_NOTE, repair_transcript

__all__ = [
    "FAILED_NOTE",
    "CoreMessage",
    "Message",
    "OpaquePart",
    "TextPart",
    "ToolInvocation",
    "ToolInvocationPart",
    "dump_transcript",
    "generate_id",
    "parse_transcript",
    "repair_transcript",
    "to_core_messages",
]
