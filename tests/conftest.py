"""Root pytest fixtures for claude-sdk-python tests."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterable
from typing import Any

import pytest

MODEL = "claude-sonnet-4-5-20250929"


class StreamEvents:
    """Builders for raw SSE frames of a Messages API stream."""

    model = MODEL

    @staticmethod
    def sse(event: str, payload: dict[str, Any]) -> bytes:
        """Encode one SSE frame."""
        return f"event: {event}\ndata: {json.dumps(payload)}\n\n".encode()

    @classmethod
    def message_start(cls, message_id: str = "msg_01", input_tokens: int = 25) -> bytes:
        return cls.sse(
            "message_start",
            {
                "type": "message_start",
                "message": {
                    "id": message_id,
                    "type": "message",
                    "role": "assistant",
                    "content": [],
                    "model": cls.model,
                    "stop_reason": None,
                    "stop_sequence": None,
                    "usage": {"input_tokens": input_tokens, "output_tokens": 1},
                },
            },
        )

    @classmethod
    def block_start(cls, index: int, block: dict[str, Any]) -> bytes:
        return cls.sse(
            "content_block_start",
            {"type": "content_block_start", "index": index, "content_block": block},
        )

    @classmethod
    def text_start(cls, index: int = 0) -> bytes:
        return cls.block_start(index, {"type": "text", "text": ""})

    @classmethod
    def delta(cls, index: int, delta: dict[str, Any]) -> bytes:
        return cls.sse(
            "content_block_delta",
            {"type": "content_block_delta", "index": index, "delta": delta},
        )

    @classmethod
    def text(cls, index: int, text: str) -> bytes:
        return cls.delta(index, {"type": "text_delta", "text": text})

    @classmethod
    def block_stop(cls, index: int) -> bytes:
        return cls.sse("content_block_stop", {"type": "content_block_stop", "index": index})

    @classmethod
    def message_delta(cls, stop_reason: str = "end_turn", output_tokens: int = 15) -> bytes:
        return cls.sse(
            "message_delta",
            {
                "type": "message_delta",
                "delta": {"stop_reason": stop_reason, "stop_sequence": None},
                "usage": {"output_tokens": output_tokens},
            },
        )

    @classmethod
    def message_stop(cls) -> bytes:
        return cls.sse("message_stop", {"type": "message_stop"})

    @classmethod
    def ping(cls) -> bytes:
        return cls.sse("ping", {"type": "ping"})

    @classmethod
    def error(cls, error_type: str = "overloaded_error", message: str = "Overloaded") -> bytes:
        return cls.sse(
            "error",
            {"type": "error", "error": {"type": error_type, "message": message}},
        )

    @classmethod
    def hello(cls) -> bytes:
        """A complete stream producing the text "Hello"."""
        return b"".join(
            [
                cls.message_start(),
                cls.text_start(0),
                cls.ping(),
                cls.text(0, "Hel"),
                cls.text(0, "lo"),
                cls.block_stop(0),
                cls.message_delta(),
                cls.message_stop(),
            ]
        )

    @classmethod
    def message_body(cls, text: str = "Hello", **overrides: Any) -> dict[str, Any]:
        """A non-streaming response body."""
        body: dict[str, Any] = {
            "id": "msg_01",
            "type": "message",
            "role": "assistant",
            "content": [{"type": "text", "text": text}],
            "model": cls.model,
            "stop_reason": "end_turn",
            "stop_sequence": None,
            "usage": {"input_tokens": 10, "output_tokens": 5},
        }
        body.update(overrides)
        return body

    @staticmethod
    async def chunks(parts: Iterable[bytes]) -> AsyncIterator[bytes]:
        """Turn a list of chunks into an async byte stream."""
        for part in parts:
            yield part


class FakeSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)

    @property
    def total(self) -> float:
        return sum(self.delays)


@pytest.fixture
def events() -> type[StreamEvents]:
    return StreamEvents


@pytest.fixture
def hello_bytes() -> bytes:
    return StreamEvents.hello()


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()
