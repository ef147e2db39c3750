"""错误体系：提供按重试语义划分的结构化错误类型。

Error hierarchy for claude-sdk-python.
"""

from claude_sdk.errors.base import (
    AuthenticationError,
    ClaudeError,
    ClientError,
    ErrorContext,
    IncompleteStreamError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
    ProtocolError,
    RateLimitError,
    RemoteError,
    RequestTooLargeError,
    ServerError,
    StreamEventError,
    TransportError,
    ValidationError,
)
from claude_sdk.errors.classification import (
    ErrorKind,
    error_from_response,
    extract_error_message,
    is_retryable,
    parse_retry_after,
)

__all__ = [
    "AuthenticationError",
    "ClaudeError",
    "ClientError",
    "ErrorContext",
    "ErrorKind",
    "IncompleteStreamError",
    "InvalidRequestError",
    "NotFoundError",
    "PermissionDeniedError",
    "ProtocolError",
    "RateLimitError",
    "RemoteError",
    "RequestTooLargeError",
    "ServerError",
    "StreamEventError",
    "TransportError",
    "ValidationError",
    "error_from_response",
    "extract_error_message",
    "is_retryable",
    "parse_retry_after",
]
