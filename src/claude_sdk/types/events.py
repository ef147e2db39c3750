"""
Streaming events for the Messages API.

The stream is a closed tagged union discriminated on ``type``. Handle it
with pattern matching:

Example:
    >>> async for event in stream:
    ...     match event:
    ...         case ContentBlockDeltaEvent(delta=TextDelta(text=text)):
    ...             print(text, end="")
    ...         case MessageDeltaEvent(delta=delta):
    ...             print(f"[stop: {delta.stop_reason}]")
    ...         case _:
    ...             pass
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from claude_sdk.types.message import ContentBlock, MessagesResponse


class _Event(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)


# -- content deltas ---------------------------------------------------------


class TextDelta(_Event):
    """Text fragment for a text block."""

    type: Literal["text_delta"] = "text_delta"
    text: str


class InputJsonDelta(_Event):
    """Partial JSON fragment of a tool-use input."""

    type: Literal["input_json_delta"] = "input_json_delta"
    partial_json: str


class ThinkingDelta(_Event):
    """Reasoning text fragment for a thinking block."""

    type: Literal["thinking_delta"] = "thinking_delta"
    thinking: str


class SignatureDelta(_Event):
    """Signature fragment closing a thinking block."""

    type: Literal["signature_delta"] = "signature_delta"
    signature: str


class CitationsDelta(_Event):
    """Citation attached to the current text block."""

    type: Literal["citations_delta"] = "citations_delta"
    citation: dict[str, Any]


ContentDelta = Annotated[
    Union[TextDelta, InputJsonDelta, ThinkingDelta, SignatureDelta, CitationsDelta],
    Field(discriminator="type"),
]


# -- stream events ----------------------------------------------------------


class MessageStartEvent(_Event):
    """Stream opened; carries message id, role, model and initial usage."""

    type: Literal["message_start"] = "message_start"
    message: MessagesResponse


class ContentBlockStartEvent(_Event):
    """A content block opened at ``index``."""

    type: Literal["content_block_start"] = "content_block_start"
    index: int
    content_block: ContentBlock


class ContentBlockDeltaEvent(_Event):
    """Incremental fragment for the block at ``index``."""

    type: Literal["content_block_delta"] = "content_block_delta"
    index: int
    delta: ContentDelta


class ContentBlockStopEvent(_Event):
    """The block at ``index`` is complete."""

    type: Literal["content_block_stop"] = "content_block_stop"
    index: int


class MessageDeltaBody(_Event):
    stop_reason: str | None = None
    stop_sequence: str | None = None


class DeltaUsage(_Event):
    """Cumulative usage counters; only the fields present are updated."""

    input_tokens: int | None = None
    output_tokens: int | None = None
    cache_creation_input_tokens: int | None = None
    cache_read_input_tokens: int | None = None


class MessageDeltaEvent(_Event):
    """Top-level message update (stop reason, cumulative usage)."""

    type: Literal["message_delta"] = "message_delta"
    delta: MessageDeltaBody = Field(default_factory=MessageDeltaBody)
    usage: DeltaUsage = Field(default_factory=DeltaUsage)


class MessageStopEvent(_Event):
    """Terminal event of a successful stream."""

    type: Literal["message_stop"] = "message_stop"


class PingEvent(_Event):
    """Heartbeat."""

    type: Literal["ping"] = "ping"


class ErrorDetail(_Event):
    type: str
    message: str = ""


class ErrorEvent(_Event):
    """Server-signalled mid-stream failure (e.g. ``overloaded_error``)."""

    type: Literal["error"] = "error"
    error: ErrorDetail


StreamEvent = Annotated[
    Union[
        MessageStartEvent,
        ContentBlockStartEvent,
        ContentBlockDeltaEvent,
        ContentBlockStopEvent,
        MessageDeltaEvent,
        MessageStopEvent,
        PingEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

# Event names the assembler understands; everything else is ignored.
KNOWN_EVENT_TYPES: frozenset[str] = frozenset(
    {
        "message_start",
        "content_block_start",
        "content_block_delta",
        "content_block_stop",
        "message_delta",
        "message_stop",
        "ping",
        "error",
    }
)

_STREAM_EVENT_ADAPTER: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


def parse_event(payload: dict[str, Any]) -> StreamEvent:
    """Validate a decoded JSON payload into a typed stream event.

    Raises:
        pydantic.ValidationError: If the payload does not match the schema
    """
    return _STREAM_EVENT_ADAPTER.validate_python(payload)
