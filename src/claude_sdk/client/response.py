"""
Response statistics for client operations.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from claude_sdk.types.message import Usage


@dataclass
class CallStats:
    """Statistics for a single API call.

    Attributes:
        client_request_id: Client-generated request ID for tracking
        latency_ms: Total latency in milliseconds
        time_to_first_token_ms: Time to first content delta (streaming only)
        attempts: Number of attempts made, including the first
        model: Model id sent on the wire
        endpoint: Endpoint style ('anthropic' or 'vertex')
        request_id: Request ID echoed by the server
        input_tokens: Input token count
        output_tokens: Output token count
        cache_read_input_tokens: Tokens served from the prompt cache
        cache_creation_input_tokens: Tokens written to the prompt cache
    """

    client_request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    latency_ms: float = 0.0
    time_to_first_token_ms: float | None = None
    attempts: int = 0
    model: str | None = None
    endpoint: str | None = None
    request_id: str | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None
    cache_read_input_tokens: int | None = None
    cache_creation_input_tokens: int | None = None

    # Internal timing
    _start_time: float = field(default_factory=time.monotonic, repr=False)
    _first_token_time: float | None = field(default=None, repr=False)

    def record_start(self) -> None:
        """Record the start time."""
        self._start_time = time.monotonic()

    def record_attempt(self) -> None:
        self.attempts += 1

    def record_first_token(self) -> None:
        """Record time of first token."""
        if self._first_token_time is None:
            self._first_token_time = time.monotonic()
            self.time_to_first_token_ms = (self._first_token_time - self._start_time) * 1000

    def record_end(self) -> None:
        """Record the end time and calculate latency."""
        self.latency_ms = (time.monotonic() - self._start_time) * 1000

    def record_usage(self, usage: Usage | None) -> None:
        """Record token usage.

        Args:
            usage: Usage counters from the response
        """
        if usage is not None:
            self.input_tokens = usage.input_tokens
            self.output_tokens = usage.output_tokens
            self.cache_read_input_tokens = usage.cache_read_input_tokens
            self.cache_creation_input_tokens = usage.cache_creation_input_tokens

    @property
    def retry_count(self) -> int:
        """Number of retries performed."""
        return max(0, self.attempts - 1)

    @property
    def total_tokens(self) -> int | None:
        """Get total token count."""
        if self.input_tokens is not None and self.output_tokens is not None:
            return self.input_tokens + self.output_tokens
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "client_request_id": self.client_request_id,
            "latency_ms": round(self.latency_ms, 1),
            "time_to_first_token_ms": self.time_to_first_token_ms,
            "attempts": self.attempts,
            "model": self.model,
            "endpoint": self.endpoint,
            "request_id": self.request_id,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
        }
