"""
Streaming response handle.

A :class:`MessageStream` owns the transport response for one streaming
call. Events are produced strictly in decode order; closing the stream
(explicitly, via ``cancel()`` or by leaving ``async with``) releases the
response at once and no further events are yielded.
"""

from __future__ import annotations

from contextlib import AsyncExitStack
from typing import TYPE_CHECKING, Any

from claude_sdk.pipeline import Pipeline, StreamAssembler
from claude_sdk.telemetry import LogContext, get_logger, log_context
from claude_sdk.types.events import (
    ContentBlockDeltaEvent,
    StreamEvent,
    TextDelta,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from claude_sdk.client.response import CallStats
    from claude_sdk.pipeline import AssemblyState
    from claude_sdk.transport import TransportResponse
    from claude_sdk.types.message import MessagesResponse

logger = get_logger("claude_sdk.client.stream")


class MessageStream:
    """Async iterator over the events of one streaming response.

    The connection is opened lazily on ``async with`` or on the first
    iteration.

    A server ``error`` event is yielded as an :class:`ErrorEvent` and then
    iteration stops without raising. :meth:`get_final_message` raises
    :class:`StreamEventError` for it, with the partial content on
    ``partial``.

    Example:
        >>> async with client.stream(request) as stream:
        ...     async for text in stream.text_stream():
        ...         print(text, end="")
        ...     message = await stream.get_final_message()
    """

    def __init__(
        self,
        connect: Callable[[AsyncExitStack], Awaitable[TransportResponse]],
        *,
        pipeline: Pipeline | None = None,
        stats: CallStats | None = None,
        context: LogContext | None = None,
    ) -> None:
        """Initialize the stream (internal use).

        Args:
            connect: Opens the response, registering its cleanup on the stack
            pipeline: Decode/assemble pipeline
            stats: Call statistics to update while streaming
            context: Logging context bound while connecting and reading
        """
        self._connect = connect
        self._pipeline = pipeline or Pipeline()
        self._stats = stats
        self._context = context or LogContext()
        self._assembler = StreamAssembler()
        self._stack = AsyncExitStack()
        self._response: TransportResponse | None = None
        self._events: AsyncIterator[StreamEvent] | None = None
        self._in_flight = False
        self._closed = False

    # -- lifecycle ---------------------------------------------------------

    async def _ensure_open(self) -> AsyncIterator[StreamEvent]:
        if self._events is None:
            try:
                with log_context(self._context):
                    self._response = await self._connect(self._stack)
            except BaseException:
                await self.close()
                raise
            if self._stats is not None:
                self._stats.request_id = self._response.request_id
            self._events = self._pipeline.process(
                self._response.aiter_bytes(), self._assembler
            )
        return self._events

    async def close(self) -> None:
        """Release the transport response. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        events, self._events = self._events, None
        if events is not None and not self._in_flight:
            await events.aclose()  # type: ignore[attr-defined]
        await self._stack.aclose()
        if self._stats is not None:
            self._stats.record_end()
            self._stats.record_usage(self._assembler.state.usage)

    async def cancel(self) -> None:
        """Stop the stream early and release the response."""
        if not self._closed:
            with log_context(self._context):
                logger.debug("Stream cancelled", message_id=self._assembler.state.message_id)
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> MessageStream:
        await self._ensure_open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # -- iteration ---------------------------------------------------------

    def __aiter__(self) -> MessageStream:
        return self

    async def __anext__(self) -> StreamEvent:
        if self._closed:
            raise StopAsyncIteration
        events = await self._ensure_open()

        self._in_flight = True
        try:
            with log_context(self._context):
                event = await events.__anext__()
        except StopAsyncIteration:
            self._in_flight = False
            await self.close()
            raise
        except Exception:
            self._in_flight = False
            if self._closed:
                # Released by close() from another task while waiting for bytes.
                raise StopAsyncIteration from None
            await self.close()
            raise
        except BaseException:
            self._in_flight = False
            await self.close()
            raise
        self._in_flight = False

        if self._closed:
            raise StopAsyncIteration

        if self._stats is not None and isinstance(event, ContentBlockDeltaEvent):
            self._stats.record_first_token()
        return event

    async def text_stream(self) -> AsyncIterator[str]:
        """Yield only the text fragments of the response."""
        async for event in self:
            if isinstance(event, ContentBlockDeltaEvent) and isinstance(event.delta, TextDelta):
                yield event.delta.text

    async def until_done(self) -> None:
        """Consume the remaining events."""
        async for _ in self:
            pass

    async def get_final_message(self) -> MessagesResponse:
        """Consume the remaining events and return the assembled message.

        Raises:
            StreamEventError: The server sent an ``error`` event
            IncompleteStreamError: The stream ended or was closed before
                ``message_stop``
            ProtocolError: Malformed or out-of-sequence content
        """
        await self.until_done()
        return self._assembler.final_message()

    # -- state -------------------------------------------------------------

    @property
    def state(self) -> AssemblyState:
        """Everything accumulated so far, including on failure."""
        return self._assembler.state

    @property
    def current_message_snapshot(self) -> MessagesResponse:
        return self._assembler.state.to_message()

    @property
    def stats(self) -> CallStats | None:
        return self._stats

    @property
    def response(self) -> TransportResponse | None:
        return self._response
