"""错误基类：提供分层错误体系和结构化错误上下文。

Base error classes for claude-sdk-python.

Provides a layered error hierarchy:
- ClaudeError: Base class for all library errors
- TransportError: Network-level failures (connect, timeout, reset)
- ProtocolError: Malformed or out-of-sequence SSE content
- IncompleteStreamError: Transport closed before message_stop
- RemoteError: HTTP error responses, split into rate-limit, server and client errors
- StreamEventError: Failure signalled by the server through an SSE ``error`` event
- ValidationError: Invalid client-side configuration
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from claude_sdk.errors.classification import ErrorKind

if TYPE_CHECKING:
    from claude_sdk.pipeline.assemble import AssemblyState


@dataclass
class ErrorContext:
    """Structured error context for diagnostics.

    Provides actionable information for debugging and error handling.
    """

    field_path: str | None = None
    """Path to the problematic field (e.g., 'delta.partial_json')"""

    details: dict[str, Any] = field(default_factory=dict)
    """Additional details about the error"""

    source: str | None = None
    """Error source (e.g., 'protocol', 'transport', 'remote')"""

    hint: str | None = None
    """Actionable hint for resolving the error"""

    def __str__(self) -> str:
        parts = []
        if self.source:
            parts.append(f"[{self.source}]")
        if self.field_path:
            parts.append(f"at '{self.field_path}'")
        if self.hint:
            parts.append(f"(hint: {self.hint})")
        return " ".join(parts)


class ClaudeError(Exception):
    """Base class for all claude-sdk-python errors.

    Every error exposes a stable classification tag (``kind``) and a
    human-readable ``message``. Errors that the retry controller may retry
    are additionally annotated with the attempt count and the delay chosen
    before the next attempt.

    Attributes:
        message: Human-readable error message
        context: Structured error context
        kind: Stable classification tag
        retryable: Whether a whole-request retry may succeed
        attempt: Attempt number on which this error was observed
        retry_delay: Delay in seconds chosen before the next attempt
    """

    kind: ErrorKind = ErrorKind.OTHER
    retryable: bool = False

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        self.message = message
        self.context = context or ErrorContext()
        self.attempt: int | None = None
        self.retry_delay: float | None = None
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message."""
        ctx_str = str(self.context)
        if ctx_str:
            return f"{self.message} {ctx_str}"
        return self.message

    def with_hint(self, hint: str) -> ClaudeError:
        """Add a hint to this error."""
        self.context.hint = hint
        return self

    def to_dict(self) -> dict[str, Any]:
        """Machine-readable summary used by loggers and callers."""
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.attempt is not None:
            data["attempt"] = self.attempt
        if self.retry_delay is not None:
            data["retry_delay"] = self.retry_delay
        return data


class TransportError(ClaudeError):
    """Network-level failure.

    Raised when:
    - Connection refused or reset
    - Timeout
    - The byte stream breaks mid-read
    """

    kind = ErrorKind.TRANSPORT
    retryable = True

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="transport")
        if url:
            ctx.details["url"] = url
        super().__init__(message, ctx)
        self.url = url
        self.__cause__ = cause


class ProtocolError(ClaudeError):
    """Malformed or out-of-sequence stream content.

    Never retried automatically: retrying a malformed stream is unlikely to
    help and would hide a real bug.
    """

    kind = ErrorKind.PROTOCOL

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        event: str | None = None,
        index: int | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="protocol")
        if event:
            ctx.details["event"] = event
        if index is not None:
            ctx.details["index"] = index
        super().__init__(message, ctx)
        self.event = event
        self.index = index


class IncompleteStreamError(ClaudeError):
    """The transport closed before ``message_stop`` was observed.

    Fatal to the immediate stream consumer, but retryable when the retry
    controller wraps the whole request since it resembles a dropped
    connection.
    """

    kind = ErrorKind.INCOMPLETE_STREAM
    retryable = True

    def __init__(
        self,
        message: str = "Stream ended before message_stop",
        context: ErrorContext | None = None,
        *,
        partial: AssemblyState | None = None,
    ) -> None:
        super().__init__(message, context or ErrorContext(source="protocol"))
        self.partial = partial


class RemoteError(ClaudeError):
    """Error response returned by the API.

    Attributes:
        status_code: HTTP status code
        error_type: Error type from the response body (e.g. 'overloaded_error')
        body: Parsed response body
        request_id: Request identifier echoed by the server
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        error_type: str | None = None,
        body: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> None:
        ctx = ErrorContext(source="remote")
        ctx.details["status_code"] = status_code
        if error_type:
            ctx.details["error_type"] = error_type
        if request_id:
            ctx.details["request_id"] = request_id
        super().__init__(message, ctx)
        self.status_code = status_code
        self.error_type = error_type
        self.body = body or {}
        self.request_id = request_id

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        if self.request_id:
            data["request_id"] = self.request_id
        return data


class RateLimitError(RemoteError):
    """HTTP 429. Carries the server's retry-after hint in seconds, if any."""

    kind = ErrorKind.RATE_LIMIT
    retryable = True

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 429,
        retry_after: float | None = None,
        error_type: str | None = None,
        body: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            status_code=status_code,
            error_type=error_type,
            body=body,
            request_id=request_id,
        )
        self.retry_after = retry_after
        if retry_after is not None:
            self.context.details["retry_after"] = retry_after


class ServerError(RemoteError):
    """HTTP 5xx (including 529 overloaded)."""

    kind = ErrorKind.SERVER
    retryable = True


class ClientError(RemoteError):
    """HTTP 4xx other than 429. Indicates a caller-fixable request problem."""

    kind = ErrorKind.CLIENT


class AuthenticationError(ClientError):
    """HTTP 401: missing or invalid credentials."""

    kind = ErrorKind.AUTHENTICATION


class PermissionDeniedError(ClientError):
    """HTTP 403: credentials lack access to the resource."""

    kind = ErrorKind.PERMISSION_DENIED


class NotFoundError(ClientError):
    """HTTP 404: unknown model or endpoint."""

    kind = ErrorKind.NOT_FOUND


class InvalidRequestError(ClientError):
    """HTTP 400/422: malformed request body or parameters."""

    kind = ErrorKind.INVALID_REQUEST


class RequestTooLargeError(ClientError):
    """HTTP 413: request payload too large."""

    kind = ErrorKind.REQUEST_TOO_LARGE


# Server-side error types reported inside an SSE ``error`` event that a
# fresh attempt may get past.
_RETRYABLE_STREAM_ERROR_TYPES = frozenset({"overloaded_error", "api_error", "rate_limit_error"})


class StreamEventError(ClaudeError):
    """Mid-stream failure signalled by the server with an ``error`` event.

    Distinct from a transport-level error: the connection was healthy but
    the server gave up (e.g. ``overloaded_error``). The partially assembled
    response is kept on ``partial`` so callers can decide whether to use it.
    """

    kind = ErrorKind.STREAM_ERROR

    def __init__(
        self,
        message: str,
        *,
        error_type: str,
        partial: AssemblyState | None = None,
    ) -> None:
        ctx = ErrorContext(source="stream")
        ctx.details["error_type"] = error_type
        super().__init__(message, ctx)
        self.error_type = error_type
        self.partial = partial
        self.retryable = error_type in _RETRYABLE_STREAM_ERROR_TYPES


class ValidationError(ClaudeError):
    """Invalid client-side configuration or request parameters."""

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        field: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="validation")
        if field:
            ctx.field_path = field
        super().__init__(message, ctx)
        self.field = field
