"""
Base abstractions for the pipeline layer.

A streaming response flows through two stages:
1. A decoder (bytes -> frames)
2. An assembler (frames -> typed stream events + accumulated state)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from claude_sdk.pipeline.assemble import StreamAssembler
    from claude_sdk.pipeline.decode import Frame
    from claude_sdk.types.events import StreamEvent


class Decoder(ABC):
    """Abstract decoder that converts a byte stream to frames.

    Decoders handle the transport-level framing of streaming responses and
    know nothing about the payload schema.
    """

    @abstractmethod
    def decode(self, byte_stream: AsyncIterator[bytes]) -> AsyncIterator[Frame]:
        """Decode a byte stream into frames.

        Args:
            byte_stream: Async iterator of raw bytes

        Yields:
            Frames in stream order
        """
        ...


class Pipeline:
    """Decoder + assembler for one streaming response at a time.

    The decoder is stateless between calls; a fresh assembler is created
    for every :meth:`process` call unless one is supplied.

    Example:
        >>> pipeline = Pipeline()
        >>> assembler = StreamAssembler()
        >>> async for event in pipeline.process(response.aiter_bytes(), assembler):
        ...     print(event)
        >>> message = assembler.final_message()
    """

    def __init__(self, decoder: Decoder | None = None) -> None:
        """Initialize the pipeline.

        Args:
            decoder: Frame decoder (defaults to SSEDecoder)
        """
        if decoder is None:
            from claude_sdk.pipeline.decode import SSEDecoder

            decoder = SSEDecoder()
        self._decoder = decoder

    @property
    def decoder(self) -> Decoder:
        return self._decoder

    async def process(
        self,
        byte_stream: AsyncIterator[bytes],
        assembler: StreamAssembler | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Process a byte stream through decoder and assembler.

        Args:
            byte_stream: Async iterator of raw bytes
            assembler: Assembler to accumulate into (a new one if omitted)

        Yields:
            Typed stream events in decode order

        Raises:
            ProtocolError: Malformed or out-of-sequence content
            IncompleteStreamError: Stream ended before message_stop
        """
        if assembler is None:
            from claude_sdk.pipeline.assemble import StreamAssembler

            assembler = StreamAssembler()

        frames = self._decoder.decode(byte_stream)
        async for event in assembler.assemble(frames):
            yield event
