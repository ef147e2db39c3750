"""Tests for transport module."""

import json
import os
import sys
from unittest.mock import MagicMock, patch

import httpx
import pytest

from claude_sdk.errors import (
    InvalidRequestError,
    ProtocolError,
    RateLimitError,
    ServerError,
    TransportError,
)
from claude_sdk.transport import HttpRequest, HttpTransport, resolve_api_key, resolve_vertex_token
from claude_sdk.transport.http import user_agent

URL = "https://api.example.test/v1/messages"


def make_transport(handler) -> HttpTransport:
    return HttpTransport(transport=httpx.MockTransport(handler))


class TestResolveApiKey:
    """Tests for API key resolution."""

    def test_explicit_key(self) -> None:
        """Test explicit API key takes precedence."""
        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "sk-env"}):
            assert resolve_api_key("sk-explicit") == "sk-explicit"

    def test_env_variable(self) -> None:
        """Test the standard environment variable."""
        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "sk-env"}):
            assert resolve_api_key() == "sk-env"

    def test_keyring_fallback(self) -> None:
        """Test the keyring is consulted when the environment has no key."""
        fake_keyring = MagicMock()
        fake_keyring.get_password.side_effect = lambda service, name: (
            "sk-keyring" if service == "anthropic" and name == "api_key" else None
        )
        with patch.dict(os.environ, {}, clear=True), patch.dict(
            sys.modules, {"keyring": fake_keyring}
        ), patch("claude_sdk._features.HAS_KEYRING", True):
            assert resolve_api_key() == "sk-keyring"

    def test_keyring_skipped_when_not_installed(self) -> None:
        """Test the keyring module is not touched when the extra is missing."""
        fake_keyring = MagicMock()
        with patch.dict(os.environ, {}, clear=True), patch.dict(
            sys.modules, {"keyring": fake_keyring}
        ), patch("claude_sdk._features.HAS_KEYRING", False):
            assert resolve_api_key() is None

        fake_keyring.get_password.assert_not_called()

    def test_keyring_backend_failure(self) -> None:
        """Test that a broken keyring backend is treated as no key."""
        fake_keyring = MagicMock()
        fake_keyring.get_password.side_effect = RuntimeError("no backend")
        with patch.dict(os.environ, {}, clear=True), patch.dict(
            sys.modules, {"keyring": fake_keyring}
        ), patch("claude_sdk._features.HAS_KEYRING", True):
            assert resolve_api_key() is None

    def test_no_key_found(self) -> None:
        """Test when no key is found and keyring is not installed."""
        with patch.dict(os.environ, {}, clear=True), patch.dict(sys.modules, {"keyring": None}):
            assert resolve_api_key() is None


class TestResolveVertexToken:
    """Tests for Vertex access token resolution."""

    def test_env_variable(self) -> None:
        with patch.dict(os.environ, {"ANTHROPIC_VERTEX_ACCESS_TOKEN": "ya29.token"}):
            assert resolve_vertex_token() == "ya29.token"

    def test_explicit_token(self) -> None:
        assert resolve_vertex_token("ya29.explicit") == "ya29.explicit"

    def test_no_token(self) -> None:
        with patch.dict(os.environ, {}, clear=True), patch.dict(sys.modules, {"keyring": None}):
            assert resolve_vertex_token() is None


class TestHttpTransport:
    """Tests for HttpTransport."""

    def test_timeout_defaults(self) -> None:
        """Test the default and environment-provided timeout."""
        with patch.dict(os.environ, {}, clear=True):
            assert HttpTransport().timeout == 600.0
        with patch.dict(os.environ, {"CLAUDE_HTTP_TIMEOUT_SECS": "30"}):
            assert HttpTransport().timeout == 30.0
        assert HttpTransport(timeout=5).timeout == 5

    def test_user_agent(self) -> None:
        assert user_agent().startswith("claude-sdk-python/")

    @pytest.mark.asyncio
    async def test_streaming_response(self) -> None:
        """Test that body bytes arrive through aiter_bytes."""
        captured = {}

        async def body():
            yield b"event: ping\n"
            yield b'data: {"type": "ping"}\n\n'

        def handler(request: httpx.Request) -> httpx.Response:
            captured["request"] = request
            return httpx.Response(
                200,
                headers={"content-type": "text/event-stream", "request-id": "req_1"},
                content=body(),
            )

        transport = make_transport(handler)
        request = HttpRequest(
            method="POST",
            url=URL,
            headers={"x-api-key": "sk-test"},
            body={"model": "m", "stream": True},
            stream=True,
        )

        async with transport.send(request) as response:
            assert response.status_code == 200
            assert response.request_id == "req_1"
            data = b"".join([chunk async for chunk in response.aiter_bytes()])
        await transport.close()

        assert data == b'event: ping\ndata: {"type": "ping"}\n\n'
        sent = captured["request"]
        assert sent.headers["x-api-key"] == "sk-test"
        assert sent.headers["accept"] == "text/event-stream"
        assert sent.headers["user-agent"].startswith("claude-sdk-python/")
        assert json.loads(sent.content) == {"model": "m", "stream": True}

    @pytest.mark.asyncio
    async def test_json_response(self) -> None:
        """Test reading a non-streaming JSON body."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"id": "msg_1"})

        transport = make_transport(handler)
        async with transport.send(HttpRequest(method="POST", url=URL, body={})) as response:
            assert await response.json() == {"id": "msg_1"}

    @pytest.mark.asyncio
    async def test_invalid_json_response(self) -> None:
        """Test that an unparseable success body is a protocol error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>")

        transport = make_transport(handler)
        async with transport.send(HttpRequest(method="POST", url=URL)) as response:
            with pytest.raises(ProtocolError):
                await response.json()

    @pytest.mark.asyncio
    async def test_rate_limited(self) -> None:
        """Test that 429 raises RateLimitError with the retry hint."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                429,
                headers={"retry-after": "3", "request-id": "req_429"},
                json={"type": "error", "error": {"type": "rate_limit_error", "message": "Slow down"}},
            )

        transport = make_transport(handler)
        with pytest.raises(RateLimitError) as exc_info:
            async with transport.send(HttpRequest(method="POST", url=URL)):
                pass

        error = exc_info.value
        assert error.retry_after == 3.0
        assert error.request_id == "req_429"
        assert error.message == "Slow down"

    @pytest.mark.asyncio
    async def test_server_error_without_json(self) -> None:
        """Test a 5xx response with a non-JSON body."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, content=b"Bad Gateway")

        transport = make_transport(handler)
        with pytest.raises(ServerError) as exc_info:
            async with transport.send(HttpRequest(method="POST", url=URL)):
                pass

        assert exc_info.value.status_code == 502
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_client_error(self) -> None:
        """Test that a 400 response is not retryable."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json={
                    "type": "error",
                    "error": {"type": "invalid_request_error", "message": "max_tokens: required"},
                },
            )

        transport = make_transport(handler)
        with pytest.raises(InvalidRequestError) as exc_info:
            async with transport.send(HttpRequest(method="POST", url=URL)):
                pass

        assert not exc_info.value.retryable
        assert exc_info.value.error_type == "invalid_request_error"

    @pytest.mark.asyncio
    async def test_connect_error(self) -> None:
        """Test that connection failures become TransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = make_transport(handler)
        with pytest.raises(TransportError) as exc_info:
            async with transport.send(HttpRequest(method="POST", url=URL)):
                pass

        assert exc_info.value.url == URL
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Test that timeouts become TransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        transport = make_transport(handler)
        with pytest.raises(TransportError, match="timed out"):
            async with transport.send(HttpRequest(method="POST", url=URL)):
                pass

    @pytest.mark.asyncio
    async def test_stream_interrupted(self) -> None:
        """Test that a connection dropping mid-body becomes TransportError."""

        async def body():
            yield b"event: ping\n"
            raise httpx.ReadError("connection reset")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body())

        transport = make_transport(handler)
        received = []
        with pytest.raises(TransportError, match="Stream interrupted"):
            async with transport.send(HttpRequest(method="POST", url=URL, stream=True)) as response:
                async for chunk in response.aiter_bytes():
                    received.append(chunk)

        assert received == [b"event: ping\n"]

    @pytest.mark.asyncio
    async def test_external_client_not_closed(self) -> None:
        """Test that a caller-supplied httpx client is left open."""
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={}))
        )
        transport = HttpTransport(client=client)

        async with transport.send(HttpRequest(method="POST", url=URL)):
            pass
        await transport.close()

        assert not client.is_closed
        await client.aclose()
