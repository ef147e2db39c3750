"""HTTP 传输层：基于 httpx 的异步 HTTP 客户端，支持流式传输和代理。

HTTP transport using httpx for async requests.

The rest of the library only sees :class:`HttpRequest` going in and
:class:`TransportResponse` (status, headers, byte chunks) coming out.
Every ``httpx.HTTPError`` is wrapped in :class:`TransportError` and every
HTTP error status is mapped with :func:`error_from_response`.
"""

from __future__ import annotations

import json
import os
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from claude_sdk._features import HAS_HTTP2
from claude_sdk.errors import ProtocolError, TransportError, error_from_response
from claude_sdk.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping
    from contextlib import AbstractAsyncContextManager

logger = get_logger("claude_sdk.transport.http")

# Default timeouts (seconds). The read timeout applies between chunks, so a
# long generation does not trip it as long as bytes keep arriving.
_DEFAULT_TIMEOUT = 600.0
_DEFAULT_CONNECT_TIMEOUT = 10.0

_UA_VERSION: str | None = None


def _http2_enabled() -> bool:
    """Enable HTTP/2 only when optional dependency is present."""
    return HAS_HTTP2


def _trust_env_enabled() -> bool:
    """Use env proxy settings only when explicitly enabled."""
    return os.getenv("CLAUDE_HTTP_TRUST_ENV", "0") == "1"


def _env_timeout() -> float | None:
    raw = os.getenv("CLAUDE_HTTP_TIMEOUT_SECS")
    if raw:
        with suppress(ValueError):
            return float(raw)
    return None


def _get_ua_version() -> str:
    """Get package version for User-Agent (cached)."""
    global _UA_VERSION
    if _UA_VERSION is None:
        from importlib.metadata import PackageNotFoundError, version

        try:
            _UA_VERSION = version("claude-sdk-python")
        except PackageNotFoundError:
            _UA_VERSION = "0.1.0"
    return _UA_VERSION


def user_agent() -> str:
    return f"claude-sdk-python/{_get_ua_version()}"


@dataclass(frozen=True)
class HttpRequest:
    """A fully built request, ready to send.

    Sending the same instance twice repeats the request; nothing in it is
    consumed by the transport.

    Attributes:
        method: HTTP method
        url: Absolute URL
        headers: Request headers, including authentication
        body: JSON body
        stream: Whether an event-stream response is expected
    """

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: dict[str, Any] | None = None
    stream: bool = False


class TransportResponse:
    """A response whose status is below 400.

    Wraps the underlying httpx response so that callers only deal with
    status, headers and bytes.
    """

    def __init__(self, response: httpx.Response, url: str) -> None:
        self._response = response
        self._url = url

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> Mapping[str, str]:
        return self._response.headers

    @property
    def request_id(self) -> str | None:
        return self._response.headers.get("request-id") or self._response.headers.get(
            "x-request-id"
        )

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        """Iterate over the body as it arrives.

        Raises:
            TransportError: If the connection breaks mid-body
        """
        try:
            async for chunk in self._response.aiter_bytes():
                if chunk:
                    yield chunk
        except httpx.HTTPError as e:
            raise TransportError(
                f"Stream interrupted: {e}", url=self._url, cause=e
            ) from e

    async def read(self) -> bytes:
        """Read the whole body."""
        try:
            return await self._response.aread()
        except httpx.HTTPError as e:
            raise TransportError(
                f"Failed to read response body: {e}", url=self._url, cause=e
            ) from e

    async def json(self) -> Any:
        """Read the whole body and parse it as JSON.

        Raises:
            ProtocolError: If the body is not valid JSON
        """
        raw = await self.read()
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ProtocolError(f"Response body is not valid JSON: {e}") from e

    async def aclose(self) -> None:
        await self._response.aclose()


class Transport(Protocol):
    """Anything that can send an :class:`HttpRequest`."""

    def send(self, request: HttpRequest) -> AbstractAsyncContextManager[TransportResponse]:
        ...

    async def close(self) -> None:
        ...


class HttpTransport:
    """HTTP transport for API communication.

    Uses httpx for async HTTP requests with streaming support.

    Example:
        >>> transport = HttpTransport(timeout=120)
        >>> async with transport.send(request) as response:
        ...     async for chunk in response.aiter_bytes():
        ...         process(chunk)
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        connect_timeout: float = _DEFAULT_CONNECT_TIMEOUT,
        proxy: str | None = None,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize HTTP transport.

        Args:
            timeout: Read/write timeout in seconds
            connect_timeout: Connect timeout in seconds
            proxy: Proxy URL
            client: Pre-configured httpx client (not closed by this transport)
            transport: httpx transport to build the client on (for tests)
        """
        self._timeout = timeout if timeout is not None else _env_timeout()
        if self._timeout is None:
            self._timeout = _DEFAULT_TIMEOUT
        self._connect_timeout = connect_timeout

        # Resolve proxy: default to direct connection unless trust_env is enabled.
        if proxy is not None:
            self._proxy = proxy
        elif _trust_env_enabled():
            self._proxy = os.getenv("CLAUDE_PROXY_URL")
        else:
            self._proxy = None

        self._httpx_transport = transport
        self._client = client
        self._owns_client = client is None

    @property
    def timeout(self) -> float:
        return self._timeout  # type: ignore[return-value]

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            timeout = httpx.Timeout(self._timeout, connect=self._connect_timeout)
            if self._httpx_transport is not None:
                self._client = httpx.AsyncClient(
                    timeout=timeout, transport=self._httpx_transport
                )
            else:
                self._client = httpx.AsyncClient(
                    timeout=timeout,
                    proxy=self._proxy,
                    http2=_http2_enabled(),
                    trust_env=_trust_env_enabled(),
                )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    @staticmethod
    def _build_headers(request: HttpRequest) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "text/event-stream" if request.stream else "application/json",
            "User-Agent": user_agent(),
        }
        headers.update(request.headers)
        return headers

    @asynccontextmanager
    async def send(self, request: HttpRequest) -> AsyncIterator[TransportResponse]:
        """Send a request and hold the response open for the block's duration.

        Args:
            request: The request to send

        Yields:
            The response, with the body not yet read

        Raises:
            TransportError: On network/connection errors
            RemoteError: On API errors (4xx, 5xx)
        """
        client = self._get_client()
        logger.debug("Sending request", method=request.method, url=request.url, stream=request.stream)

        try:
            async with client.stream(
                method=request.method,
                url=request.url,
                json=request.body,
                headers=self._build_headers(request),
            ) as response:
                if response.status_code >= 400:
                    raw = await response.aread()
                    body = None
                    with suppress(json.JSONDecodeError, UnicodeDecodeError):
                        body = json.loads(raw)
                    if not isinstance(body, (dict, list)):
                        body = None
                    error = error_from_response(response.status_code, body, response.headers)
                    logger.debug(
                        "Request failed",
                        status_code=response.status_code,
                        error_type=error.error_type,
                        request_id=error.request_id,
                    )
                    raise error

                yield TransportResponse(response, request.url)

        except httpx.ConnectError as e:
            raise TransportError(
                f"Connection failed: {e}", url=request.url, cause=e
            ) from e
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timed out: {e}", url=request.url, cause=e
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP error: {e}", url=request.url, cause=e) from e

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
