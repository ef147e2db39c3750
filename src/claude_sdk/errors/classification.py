"""错误分类模块：将 HTTP 状态码和响应体映射到稳定的错误类别。

Error classification for Messages API responses.

Maps HTTP status codes, response bodies and retry headers to the
library's error hierarchy.
"""

from __future__ import annotations

import contextlib
import time
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from claude_sdk.errors.base import RemoteError


class ErrorKind(str, Enum):
    """Stable classification tag exposed by every library error."""

    TRANSPORT = "transport"
    """Connection failure, timeout or broken byte stream."""

    PROTOCOL = "protocol"
    """Malformed or out-of-sequence SSE content."""

    INCOMPLETE_STREAM = "incomplete_stream"
    """Stream closed before message_stop."""

    RATE_LIMIT = "rate_limit"
    """Throttled (HTTP 429); retry after the hinted delay."""

    SERVER = "server"
    """Transient server-side failure (5xx, 529)."""

    CLIENT = "client"
    """Other 4xx: the request must be fixed by the caller."""

    AUTHENTICATION = "authentication"
    """Missing or invalid credentials (401)."""

    PERMISSION_DENIED = "permission_denied"
    """Authenticated but not permitted (403)."""

    NOT_FOUND = "not_found"
    """Unknown model or endpoint (404)."""

    INVALID_REQUEST = "invalid_request"
    """Malformed request body or parameters (400, 422)."""

    REQUEST_TOO_LARGE = "request_too_large"
    """Payload too large (413)."""

    STREAM_ERROR = "stream_error"
    """Server-signalled failure inside an event stream."""

    VALIDATION = "validation"
    """Invalid client-side configuration."""

    OTHER = "other"
    """Unknown classification."""


def parse_retry_after(headers: Mapping[str, str] | None) -> float | None:
    """Extract the server's retry hint in seconds.

    Supports ``retry-after-ms`` (milliseconds), ``retry-after`` as a number
    of seconds and ``retry-after`` as an HTTP date.

    Args:
        headers: Response headers (case-insensitive lookups are attempted)

    Returns:
        Delay in seconds, or None when no usable hint is present
    """
    if not headers:
        return None

    lowered = {k.lower(): v for k, v in headers.items()}

    raw_ms = lowered.get("retry-after-ms")
    if raw_ms:
        with contextlib.suppress(ValueError):
            value = float(raw_ms) / 1000.0
            if value >= 0:
                return value

    raw = lowered.get("retry-after")
    if not raw:
        return None

    with contextlib.suppress(ValueError):
        value = float(raw)
        return value if value >= 0 else None

    try:
        when = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None
    return max(0.0, when.timestamp() - time.time())


def extract_error_message(body: dict[str, Any] | None) -> str | None:
    """Extract the error message from a response body.

    The Messages API wraps errors as
    ``{"type": "error", "error": {"type": "...", "message": "..."}}``.
    Vertex AI occasionally returns ``{"error": {"message": ...}}`` or a
    bare list of such objects.

    Args:
        body: Response body (parsed JSON)

    Returns:
        Error message if found, None otherwise
    """
    if not body:
        return None

    if "error" in body:
        error = body["error"]
        if isinstance(error, dict):
            msg = error.get("message")
            if isinstance(msg, str):
                return msg
        elif isinstance(error, str):
            return error

    msg = body.get("message")
    if isinstance(msg, str):
        return msg

    return None


def extract_error_type(body: dict[str, Any] | None) -> str | None:
    """Extract the API error type (e.g. ``overloaded_error``)."""
    if not body:
        return None
    error = body.get("error")
    if isinstance(error, dict):
        error_type = error.get("type") or error.get("status")
        if isinstance(error_type, str):
            return error_type
    return None


def _request_id(headers: Mapping[str, str] | None) -> str | None:
    if not headers:
        return None
    lowered = {k.lower(): v for k, v in headers.items()}
    return lowered.get("request-id") or lowered.get("x-request-id")


def error_from_response(
    status_code: int,
    body: dict[str, Any] | list[Any] | None = None,
    headers: Mapping[str, str] | None = None,
) -> RemoteError:
    """Create the matching RemoteError subclass for an HTTP error response.

    Args:
        status_code: HTTP status code (>= 400)
        body: Parsed response body, if it was JSON
        headers: Response headers

    Returns:
        RateLimitError, ServerError or a ClientError subclass
    """
    from claude_sdk.errors.base import (
        AuthenticationError,
        ClientError,
        InvalidRequestError,
        NotFoundError,
        PermissionDeniedError,
        RateLimitError,
        RequestTooLargeError,
        ServerError,
    )

    if isinstance(body, list):
        body = body[0] if body and isinstance(body[0], dict) else None

    message = extract_error_message(body) or f"HTTP {status_code}"
    error_type = extract_error_type(body)
    request_id = _request_id(headers)

    if status_code == 429:
        return RateLimitError(
            message,
            status_code=status_code,
            retry_after=parse_retry_after(headers),
            error_type=error_type,
            body=body,
            request_id=request_id,
        )

    if status_code >= 500:
        return ServerError(
            message,
            status_code=status_code,
            error_type=error_type,
            body=body,
            request_id=request_id,
        )

    client_classes: dict[int, type[ClientError]] = {
        400: InvalidRequestError,
        401: AuthenticationError,
        403: PermissionDeniedError,
        404: NotFoundError,
        413: RequestTooLargeError,
        422: InvalidRequestError,
    }
    error_cls = client_classes.get(status_code, ClientError)
    return error_cls(
        message,
        status_code=status_code,
        error_type=error_type,
        body=body,
        request_id=request_id,
    )


def is_retryable(error: BaseException) -> bool:
    """Check whether a whole-request retry may get past this error.

    Args:
        error: Any exception

    Returns:
        True for library errors flagged retryable, False otherwise
    """
    return bool(getattr(error, "retryable", False))
