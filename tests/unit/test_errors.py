"""Tests for the errors module."""

import time
from email.utils import formatdate

import pytest

from claude_sdk.errors import (
    AuthenticationError,
    ClaudeError,
    ClientError,
    ErrorKind,
    IncompleteStreamError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
    ProtocolError,
    RateLimitError,
    RequestTooLargeError,
    ServerError,
    StreamEventError,
    TransportError,
    ValidationError,
    error_from_response,
    extract_error_message,
    is_retryable,
    parse_retry_after,
)


def api_error(error_type: str, message: str) -> dict:
    return {"type": "error", "error": {"type": error_type, "message": message}}


class TestErrorFromResponse:
    """Tests for mapping HTTP error responses to exceptions."""

    @pytest.mark.parametrize(
        ("status", "error_cls", "kind"),
        [
            (400, InvalidRequestError, ErrorKind.INVALID_REQUEST),
            (401, AuthenticationError, ErrorKind.AUTHENTICATION),
            (403, PermissionDeniedError, ErrorKind.PERMISSION_DENIED),
            (404, NotFoundError, ErrorKind.NOT_FOUND),
            (413, RequestTooLargeError, ErrorKind.REQUEST_TOO_LARGE),
            (422, InvalidRequestError, ErrorKind.INVALID_REQUEST),
            (409, ClientError, ErrorKind.CLIENT),
            (429, RateLimitError, ErrorKind.RATE_LIMIT),
            (500, ServerError, ErrorKind.SERVER),
            (503, ServerError, ErrorKind.SERVER),
            (529, ServerError, ErrorKind.SERVER),
        ],
    )
    def test_status_mapping(self, status: int, error_cls: type, kind: ErrorKind) -> None:
        """Test that each status maps to the right class and kind."""
        error = error_from_response(status, api_error("some_error", "msg"))

        assert type(error) is error_cls
        assert error.kind is kind
        assert error.status_code == status

    def test_retryability(self) -> None:
        """Test that only rate limits and server errors are retryable."""
        assert error_from_response(429).retryable
        assert error_from_response(529).retryable
        assert not error_from_response(400).retryable
        assert not error_from_response(401).retryable

    def test_body_fields_extracted(self) -> None:
        """Test message, error type and request id extraction."""
        error = error_from_response(
            529,
            api_error("overloaded_error", "Overloaded"),
            {"request-id": "req_123"},
        )

        assert error.message == "Overloaded"
        assert error.error_type == "overloaded_error"
        assert error.request_id == "req_123"
        assert error.to_dict()["request_id"] == "req_123"

    def test_missing_body(self) -> None:
        """Test the fallback message when the body is empty or not JSON."""
        error = error_from_response(502)

        assert error.message == "HTTP 502"
        assert error.error_type is None

    def test_vertex_list_body(self) -> None:
        """Test Vertex-style error bodies wrapped in a list."""
        body = [{"error": {"code": 404, "message": "Model not found", "status": "NOT_FOUND"}}]
        error = error_from_response(404, body)

        assert isinstance(error, NotFoundError)
        assert error.message == "Model not found"
        assert error.error_type == "NOT_FOUND"

    def test_rate_limit_retry_after(self) -> None:
        """Test that 429 responses carry the retry hint."""
        error = error_from_response(
            429, api_error("rate_limit_error", "slow"), {"retry-after": "12"}
        )

        assert isinstance(error, RateLimitError)
        assert error.retry_after == 12.0


class TestParseRetryAfter:
    """Tests for retry hint parsing."""

    def test_seconds(self) -> None:
        assert parse_retry_after({"retry-after": "5"}) == 5.0
        assert parse_retry_after({"Retry-After": "1.5"}) == 1.5

    def test_milliseconds_preferred(self) -> None:
        """Test that retry-after-ms wins over retry-after."""
        headers = {"retry-after-ms": "250", "retry-after": "5"}

        assert parse_retry_after(headers) == 0.25

    def test_http_date(self) -> None:
        """Test an HTTP-date value."""
        when = formatdate(time.time() + 30, usegmt=True)
        delay = parse_retry_after({"retry-after": when})

        assert delay is not None
        assert 25 <= delay <= 31

    def test_http_date_in_past(self) -> None:
        """Test that a date in the past gives zero."""
        when = formatdate(time.time() - 60, usegmt=True)

        assert parse_retry_after({"retry-after": when}) == 0.0

    @pytest.mark.parametrize(
        "headers",
        [None, {}, {"retry-after": "soon"}, {"retry-after": "-3"}, {"other": "1"}],
    )
    def test_unusable(self, headers) -> None:
        """Test missing or unusable hints."""
        assert parse_retry_after(headers) is None


class TestErrorHierarchy:
    """Tests for the error classes themselves."""

    def test_all_errors_are_claude_errors(self) -> None:
        for error in (
            TransportError("x"),
            ProtocolError("x"),
            IncompleteStreamError(),
            StreamEventError("x", error_type="api_error"),
            ValidationError("x"),
            ServerError("x", status_code=500),
        ):
            assert isinstance(error, ClaudeError)

    def test_transport_error_keeps_cause(self) -> None:
        """Test that the underlying exception is chained."""
        cause = OSError("reset by peer")
        error = TransportError("Connection failed", url="https://x", cause=cause)

        assert error.__cause__ is cause
        assert error.url == "https://x"
        assert error.retryable

    def test_protocol_error_context(self) -> None:
        """Test that protocol errors record event and index."""
        error = ProtocolError("bad delta", event="content_block_delta", index=2)

        assert not error.retryable
        assert error.context.details == {"event": "content_block_delta", "index": 2}
        assert "[protocol]" in str(error)

    @pytest.mark.parametrize(
        ("error_type", "retryable"),
        [
            ("overloaded_error", True),
            ("api_error", True),
            ("rate_limit_error", True),
            ("invalid_request_error", False),
            ("authentication_error", False),
        ],
    )
    def test_stream_event_error_retryable(self, error_type: str, retryable: bool) -> None:
        """Test which in-stream errors are worth retrying."""
        assert StreamEventError("x", error_type=error_type).retryable is retryable

    def test_validation_error_field(self) -> None:
        error = ValidationError("max_tokens too large", field="max_tokens")

        assert error.field == "max_tokens"
        assert error.context.field_path == "max_tokens"

    def test_with_hint(self) -> None:
        error = ValidationError("missing key").with_hint("set ANTHROPIC_API_KEY")

        assert error.context.hint == "set ANTHROPIC_API_KEY"

    def test_to_dict_includes_attempt(self) -> None:
        error = ServerError("boom", status_code=500)
        error.attempt = 2
        error.retry_delay = 1.5

        data = error.to_dict()

        assert data["kind"] == "server"
        assert data["attempt"] == 2
        assert data["retry_delay"] == 1.5
        assert data["status_code"] == 500


class TestHelpers:
    """Tests for module-level helpers."""

    def test_is_retryable(self) -> None:
        assert is_retryable(TransportError("x"))
        assert not is_retryable(ValueError("x"))

    def test_extract_error_message_variants(self) -> None:
        assert extract_error_message(api_error("t", "nested")) == "nested"
        assert extract_error_message({"error": "flat"}) == "flat"
        assert extract_error_message({"message": "top"}) == "top"
        assert extract_error_message({}) is None
        assert extract_error_message(None) is None
