"""Chat transcript data model.

Messages arrive from the UI as JSON with camelCase keys
(``toolInvocation``, ``toolCallId``).  The models accept either the
camelCase alias or the snake_case attribute name, and dump back to the
wire shape with :func:`dump_transcript`.

Part types other than ``text`` and ``tool-invocation`` are kept as
:class:`OpaquePart`.  Keys the models do not declare (``createdAt``,
``providerMetadata``, ...) are kept as extra fields and dumped back
unchanged.
"""

from __future__ import annotations

import uuid
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    model_serializer,
)
from pydantic.alias_generators import to_camel

Role = Literal["user", "assistant", "system"]
ToolInvocationState = Literal["call", "partial-call", "result"]


def generate_id() -> str:
    """Return a short random id for a new message."""
    return uuid.uuid4().hex[:16]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )


class ToolInvocation(_WireModel):
    """A tool call embedded in an assistant message.

    ``result`` is overloaded on the wire: it holds either an approval
    verdict or the final tool output.  Use
    :func:`toolgate.approval.classify` rather than reading it directly.
    """

    tool_call_id: str
    tool_name: str
    args: dict[str, Any] = Field(default_factory=dict)
    state: ToolInvocationState = "call"
    result: Any = None
    step: int | None = None

    @property
    def has_result(self) -> bool:
        """True if ``result`` was present on the wire, even as null."""
        return "result" in self.model_fields_set

    def with_result(self, value: Any) -> ToolInvocation:
        """Return a copy carrying *value* as its result; nothing else changes."""
        return self.model_copy(update={"result": value})

    @model_serializer(mode="wrap")
    def _omit_absent_fields(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        if not self.has_result:
            data.pop("result", None)
        if self.step is None:
            data.pop("step", None)
        return data


class TextPart(_WireModel):
    type: Literal["text"] = "text"
    text: str


class ToolInvocationPart(_WireModel):
    type: Literal["tool-invocation"] = "tool-invocation"
    tool_invocation: ToolInvocation


class OpaquePart(BaseModel):
    """Any other part type (reasoning, step-start, source...), passed through."""

    model_config = ConfigDict(extra="allow", frozen=True)

    type: str


def _part_tag(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if kind in ("text", "tool-invocation"):
        return kind
    return "other"


Part = Annotated[
    Union[
        Annotated[TextPart, Tag("text")],
        Annotated[ToolInvocationPart, Tag("tool-invocation")],
        Annotated[OpaquePart, Tag("other")],
    ],
    Discriminator(_part_tag),
]


class Message(_WireModel):
    """One chat message. Transcript order is significant."""

    id: str = Field(default_factory=generate_id)
    role: Role
    content: str = ""
    parts: list[Part] = Field(default_factory=list)

    def with_parts(self, parts: list[Part]) -> Message:
        return self.model_copy(update={"parts": parts})

    @property
    def tool_invocations(self) -> list[ToolInvocation]:
        return [p.tool_invocation for p in self.parts if isinstance(p, ToolInvocationPart)]


_TRANSCRIPT = TypeAdapter(list[Message])


def parse_transcript(data: Any) -> list[Message]:
    """Validate a JSON-decoded transcript (list of message dicts)."""
    return _TRANSCRIPT.validate_python(data)


def dump_transcript(messages: list[Message]) -> list[dict[str, Any]]:
    """Serialize messages back to their camelCase wire form.

    A tool invocation without a result is dumped without the key.
    """
    return _TRANSCRIPT.dump_python(messages, mode="json", by_alias=True)
