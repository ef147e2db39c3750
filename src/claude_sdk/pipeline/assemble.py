"""
Stream assembler: frames -> typed events + accumulated message state.

Validates each frame against the event schema, enforces the per-block
``start -> delta* -> stop`` ordering, and accumulates fragments so that the
complete message can be produced once ``message_stop`` arrives.

Example:
    >>> assembler = StreamAssembler()
    >>> async for event in assembler.assemble(SSEDecoder().decode(byte_stream)):
    ...     if isinstance(event, ContentBlockDeltaEvent):
    ...         print(event.delta)
    >>> message = assembler.final_message()
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import pydantic

from claude_sdk.errors import (
    IncompleteStreamError,
    ProtocolError,
    StreamEventError,
)
from claude_sdk.telemetry import get_logger
from claude_sdk.types.events import (
    KNOWN_EVENT_TYPES,
    CitationsDelta,
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    ErrorDetail,
    ErrorEvent,
    InputJsonDelta,
    MessageDeltaEvent,
    MessageStartEvent,
    MessageStopEvent,
    PingEvent,
    SignatureDelta,
    StreamEvent,
    TextDelta,
    ThinkingDelta,
    parse_event,
)
from claude_sdk.types.message import (
    ContentBlock,
    MessagesResponse,
    RedactedThinkingBlock,
    Role,
    TextBlock,
    ThinkingBlock,
    ToolUseBlock,
    Usage,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from claude_sdk.pipeline.decode import Frame

logger = get_logger("claude_sdk.pipeline.assemble")


class BlockKind(str, Enum):
    """Content block kinds that can be streamed."""

    TEXT = "text"
    TOOL_USE = "tool_use"
    THINKING = "thinking"
    REDACTED_THINKING = "redacted_thinking"


# Block kind each delta type may be applied to.
_DELTA_TARGETS: dict[type, BlockKind] = {
    TextDelta: BlockKind.TEXT,
    CitationsDelta: BlockKind.TEXT,
    InputJsonDelta: BlockKind.TOOL_USE,
    ThinkingDelta: BlockKind.THINKING,
    SignatureDelta: BlockKind.THINKING,
}


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are accepted by json.loads but are not JSON.
    raise ValueError(f"invalid JSON constant {name!r}")


@dataclass
class BlockState:
    """Accumulated state of one content block.

    Attributes:
        index: Server-assigned block index
        kind: Block kind, fixed at ``content_block_start``
        initial: Block payload from ``content_block_start``
        closed: Whether ``content_block_stop`` has been seen
        input: Parsed tool input, set when a tool-use block closes
    """

    index: int
    kind: BlockKind
    initial: ContentBlock
    text: list[str] = field(default_factory=list)
    citations: list[dict[str, Any]] = field(default_factory=list)
    partial_json: list[str] = field(default_factory=list)
    thinking: list[str] = field(default_factory=list)
    signature: list[str] = field(default_factory=list)
    closed: bool = False
    input: dict[str, Any] | None = None

    @property
    def json_buffer(self) -> str:
        return "".join(self.partial_json)

    def to_content_block(self) -> ContentBlock:
        """Build the finished content block."""
        initial = self.initial
        if self.kind is BlockKind.TEXT:
            assert isinstance(initial, TextBlock)
            citations = list(initial.citations or []) + self.citations
            return TextBlock(
                text=initial.text + "".join(self.text),
                citations=citations or None,
            )
        if self.kind is BlockKind.TOOL_USE:
            assert isinstance(initial, ToolUseBlock)
            tool_input = self.input if self.input is not None else dict(initial.input)
            return ToolUseBlock(id=initial.id, name=initial.name, input=tool_input)
        if self.kind is BlockKind.THINKING:
            assert isinstance(initial, ThinkingBlock)
            signature = (initial.signature or "") + "".join(self.signature)
            return ThinkingBlock(
                thinking=initial.thinking + "".join(self.thinking),
                signature=signature or None,
            )
        assert isinstance(initial, RedactedThinkingBlock)
        return RedactedThinkingBlock(data=initial.data)


@dataclass
class AssemblyState:
    """Everything the assembler has learned about the message so far.

    Owned by a single assembler; never shared between responses.
    """

    message_id: str | None = None
    model: str | None = None
    role: Role = Role.ASSISTANT
    usage: Usage = field(default_factory=Usage)
    stop_reason: str | None = None
    stop_sequence: str | None = None
    blocks: dict[int, BlockState] = field(default_factory=dict)
    started: bool = False
    finished: bool = False
    error: ErrorDetail | None = None

    @property
    def terminal(self) -> bool:
        """Whether ``message_stop`` or an ``error`` event has been seen."""
        return self.finished or self.error is not None

    @property
    def text(self) -> str:
        """Text accumulated so far across every text block."""
        return "".join(
            b.to_content_block().text  # type: ignore[union-attr]
            for b in self.blocks.values()
            if b.kind is BlockKind.TEXT
        )

    def to_message(self) -> MessagesResponse:
        """Build a response from whatever has been accumulated."""
        return MessagesResponse(
            id=self.message_id or "",
            role=self.role,
            model=self.model or "",
            content=[b.to_content_block() for b in self.blocks.values()],
            stop_reason=self.stop_reason,
            stop_sequence=self.stop_sequence,
            usage=self.usage,
        )


class StreamAssembler:
    """Applies stream events to an :class:`AssemblyState`.

    One assembler per response. Not safe to share between concurrent
    streams.
    """

    def __init__(self) -> None:
        self._state = AssemblyState()

    @property
    def state(self) -> AssemblyState:
        return self._state

    def process(self, frame: Frame) -> StreamEvent | None:
        """Apply a single frame.

        Args:
            frame: Decoded SSE frame

        Returns:
            The typed event, or None for unrecognised events

        Raises:
            ProtocolError: Malformed payload or ordering violation
        """
        state = self._state
        if state.terminal:
            raise ProtocolError(
                f"Received '{frame.event}' after the stream ended", event=frame.event
            )

        if frame.event != "message" and frame.event not in KNOWN_EVENT_TYPES:
            logger.debug("Ignoring unknown stream event", event_name=frame.event)
            return None

        payload = self._decode_payload(frame)
        payload_type = payload.setdefault("type", frame.event)

        if frame.event != "message" and payload_type != frame.event:
            raise ProtocolError(
                f"Event name '{frame.event}' does not match payload type '{payload_type}'",
                event=frame.event,
            )
        if payload_type not in KNOWN_EVENT_TYPES:
            logger.debug("Ignoring unknown stream event", event_name=payload_type)
            return None

        try:
            event = parse_event(payload)
        except pydantic.ValidationError as e:
            raise ProtocolError(
                f"Invalid '{payload_type}' payload: {e.error_count()} validation error(s)",
                event=payload_type,
            ) from e

        self._apply(event)
        return event

    async def assemble(self, frames: AsyncIterator[Frame]) -> AsyncIterator[StreamEvent]:
        """Apply frames in order, yielding each recognised event.

        An ``error`` event is yielded and then ends the sequence.

        Args:
            frames: Async iterator of frames from the decoder

        Yields:
            Typed stream events in decode order

        Raises:
            ProtocolError: Malformed or out-of-sequence content
            IncompleteStreamError: Frames ran out before message_stop
        """
        async for frame in frames:
            event = self.process(frame)
            if event is None:
                continue
            yield event
            if isinstance(event, ErrorEvent):
                return

        if not self._state.finished:
            raise IncompleteStreamError(partial=self._state)

    def final_message(self) -> MessagesResponse:
        """Return the completed message.

        Raises:
            StreamEventError: The server sent an ``error`` event
            IncompleteStreamError: ``message_stop`` has not been seen
        """
        state = self._state
        if state.error is not None:
            raise StreamEventError(
                state.error.message or state.error.type,
                error_type=state.error.type,
                partial=state,
            )
        if not state.finished:
            raise IncompleteStreamError(partial=state)
        return state.to_message()

    # -- internals ---------------------------------------------------------

    @staticmethod
    def _decode_payload(frame: Frame) -> dict[str, Any]:
        try:
            payload = json.loads(frame.data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ProtocolError(
                f"Frame data is not valid JSON: {e}", event=frame.event
            ) from e
        if not isinstance(payload, dict):
            raise ProtocolError("Frame data is not a JSON object", event=frame.event)
        return payload

    def _apply(self, event: StreamEvent) -> None:
        state = self._state

        match event:
            case MessageStartEvent(message=message):
                if state.started:
                    raise ProtocolError("Duplicate message_start", event=event.type)
                state.started = True
                state.message_id = message.id
                state.model = message.model
                state.role = message.role
                state.usage = message.usage
                state.stop_reason = message.stop_reason
                state.stop_sequence = message.stop_sequence
                state.blocks = {}
                logger.debug("Message started", message_id=message.id, model=message.model)

            case ContentBlockStartEvent(index=index, content_block=block):
                self._require_started(event.type)
                if index in state.blocks or (state.blocks and index < max(state.blocks)):
                    raise ProtocolError(
                        f"Block index {index} was already used or is out of order",
                        event=event.type,
                        index=index,
                    )
                try:
                    kind = BlockKind(block.type)
                except ValueError:
                    raise ProtocolError(
                        f"Unsupported streamed block type '{block.type}'",
                        event=event.type,
                        index=index,
                    ) from None
                state.blocks[index] = BlockState(index=index, kind=kind, initial=block)

            case ContentBlockDeltaEvent(index=index, delta=delta):
                self._require_started(event.type)
                block_state = self._open_block(index, event.type)
                target = _DELTA_TARGETS[type(delta)]
                if block_state.kind is not target:
                    raise ProtocolError(
                        f"'{delta.type}' cannot be applied to a {block_state.kind.value} block",
                        event=event.type,
                        index=index,
                    )
                self._append(block_state, delta)

            case ContentBlockStopEvent(index=index):
                self._require_started(event.type)
                block_state = self._open_block(index, event.type)
                block_state.closed = True
                if block_state.kind is BlockKind.TOOL_USE:
                    block_state.input = self._parse_tool_input(block_state)

            case MessageDeltaEvent(delta=delta, usage=usage):
                self._require_started(event.type)
                if delta.stop_reason is not None:
                    state.stop_reason = delta.stop_reason
                if delta.stop_sequence is not None:
                    state.stop_sequence = delta.stop_sequence
                state.usage = state.usage.merge(usage.model_dump())

            case MessageStopEvent():
                self._require_started(event.type)
                state.finished = True
                logger.debug(
                    "Message complete",
                    message_id=state.message_id,
                    stop_reason=state.stop_reason,
                    blocks=len(state.blocks),
                )

            case PingEvent():
                pass

            case ErrorEvent(error=error):
                state.error = error
                logger.warning(
                    "Server reported a stream error",
                    error_type=error.type,
                    error_message=error.message,
                )

    def _require_started(self, event_name: str) -> None:
        if not self._state.started:
            raise ProtocolError(f"'{event_name}' before message_start", event=event_name)

    def _open_block(self, index: int, event_name: str) -> BlockState:
        block_state = self._state.blocks.get(index)
        if block_state is None:
            raise ProtocolError(
                f"Unknown block index {index}", event=event_name, index=index
            )
        if block_state.closed:
            raise ProtocolError(
                f"Block {index} is already closed", event=event_name, index=index
            )
        return block_state

    @staticmethod
    def _append(block_state: BlockState, delta: Any) -> None:
        match delta:
            case TextDelta(text=text):
                block_state.text.append(text)
            case CitationsDelta(citation=citation):
                block_state.citations.append(citation)
            case InputJsonDelta(partial_json=partial_json):
                block_state.partial_json.append(partial_json)
            case ThinkingDelta(thinking=thinking):
                block_state.thinking.append(thinking)
            case SignatureDelta(signature=signature):
                block_state.signature.append(signature)

    @staticmethod
    def _parse_tool_input(block_state: BlockState) -> dict[str, Any]:
        raw = block_state.json_buffer
        if not raw.strip():
            initial = block_state.initial
            assert isinstance(initial, ToolUseBlock)
            return dict(initial.input)
        try:
            parsed = json.loads(raw, parse_constant=_reject_constant)
        except ValueError as e:
            raise ProtocolError(
                f"Tool input for block {block_state.index} is not valid JSON: {e}",
                event="content_block_stop",
                index=block_state.index,
            ) from e
        if not isinstance(parsed, dict):
            raise ProtocolError(
                f"Tool input for block {block_state.index} is not a JSON object",
                event="content_block_stop",
                index=block_state.index,
            )
        return parsed
