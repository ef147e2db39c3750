"""
Server-Sent Events frame decoder.

Splits a raw byte stream into ``Frame`` objects following the SSE framing
rules:

```
event: content_block_delta
data: {"type": "content_block_delta", ...}

```

- Frames end at a blank line.
- ``event:`` sets the event name (``"message"`` when absent).
- ``data:`` lines are joined with ``\\n``.
- Lines starting with ``:`` are comments; unknown fields are ignored.
- ``\\n``, ``\\r\\n`` and ``\\r`` all terminate a line, and any of them may
  be split across reads.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from claude_sdk.pipeline.base import Decoder
from claude_sdk.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger("claude_sdk.pipeline.decode")

_LINE_END = re.compile(rb"\r\n|\r|\n")
_BOM = b"\xef\xbb\xbf"
DEFAULT_EVENT = "message"


@dataclass(frozen=True)
class Frame:
    """One decoded SSE frame.

    Attributes:
        event: Event name from the ``event:`` field
        data: Payload, the ``data:`` lines joined with ``\\n``
    """

    event: str
    data: bytes

    def text(self) -> str:
        """Payload decoded as UTF-8."""
        return self.data.decode("utf-8", errors="replace")


class FrameParser:
    """Incremental SSE parser for a single response.

    Bytes are buffered until a full line terminator arrives and lines are
    buffered until the blank line that ends a frame, so the frames produced
    do not depend on how the stream was split into reads.

    Example:
        >>> parser = FrameParser()
        >>> parser.feed(b"event: ping\\ndata: {}")
        []
        >>> parser.feed(b"\\n\\n")
        [Frame(event='ping', data=b'{}')]
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        # Offset up to which the buffer holds no line terminator
        self._scan_pos = 0
        self._event: str | None = None
        self._data: list[bytes] = []
        self._bom_checked = False
        self._closed = False

    @property
    def has_partial_frame(self) -> bool:
        """Whether unterminated lines or fields are buffered."""
        return bool(self._buffer or self._data or self._event)

    def feed(self, chunk: bytes) -> list[Frame]:
        """Consume one read from the transport.

        Args:
            chunk: Raw bytes, split at an arbitrary boundary

        Returns:
            Frames completed by this chunk, in stream order
        """
        if self._closed:
            raise RuntimeError("FrameParser is closed")

        self._buffer += chunk

        if not self._bom_checked:
            if len(self._buffer) < len(_BOM) and _BOM.startswith(bytes(self._buffer)):
                return []
            if self._buffer.startswith(_BOM):
                del self._buffer[: len(_BOM)]
            self._bom_checked = True

        return self._drain(final=False)

    def close(self) -> list[Frame]:
        """Signal end of stream.

        A trailing ``\\r`` is treated as a line terminator; anything still
        buffered afterwards is an incomplete frame and is discarded.

        Returns:
            Frames completed by the end of stream
        """
        if self._closed:
            return []
        frames = self._drain(final=True)
        if self.has_partial_frame:
            logger.debug(
                "Discarding incomplete SSE frame at end of stream",
                buffered_bytes=len(self._buffer) + sum(len(d) for d in self._data),
            )
        self._buffer.clear()
        self._scan_pos = 0
        self._data = []
        self._event = None
        self._closed = True
        return frames

    def _drain(self, *, final: bool) -> list[Frame]:
        frames: list[Frame] = []
        buf = self._buffer
        pos = 0
        scan_pos = len(buf)
        for match in _LINE_END.finditer(buf, self._scan_pos):
            # A lone CR at the end of the buffer may be the first half of CRLF.
            if not final and match.group() == b"\r" and match.end() == len(buf):
                scan_pos = match.start()
                break
            frame = self._process_line(bytes(buf[pos : match.start()]))
            pos = match.end()
            if frame is not None:
                frames.append(frame)
        del buf[:pos]
        self._scan_pos = scan_pos - pos
        return frames

    def _process_line(self, line: bytes) -> Frame | None:
        if not line:
            return self._dispatch()

        if line.startswith(b":"):
            return None

        name, sep, value = line.partition(b":")
        if sep and value.startswith(b" "):
            value = value[1:]

        if name == b"event":
            self._event = value.decode("utf-8", errors="replace")
        elif name == b"data":
            self._data.append(value)
        # id, retry and unknown fields are ignored for forward compatibility

        return None

    def _dispatch(self) -> Frame | None:
        frame = None
        if self._data:
            frame = Frame(event=self._event or DEFAULT_EVENT, data=b"\n".join(self._data))
        self._event = None
        self._data = []
        return frame


class SSEDecoder(Decoder):
    """Server-Sent Events decoder.

    Every call to :meth:`decode` starts from a clean parser, so one decoder
    instance can serve many responses, one at a time or concurrently.
    """

    async def decode(self, byte_stream: AsyncIterator[bytes]) -> AsyncIterator[Frame]:
        """Decode an SSE byte stream into frames.

        Transport errors raised by ``byte_stream`` propagate unchanged.

        Args:
            byte_stream: Async iterator of raw bytes

        Yields:
            Frames in stream order
        """
        parser = FrameParser()
        async for chunk in byte_stream:
            for frame in parser.feed(chunk):
                yield frame
        for frame in parser.close():
            yield frame
