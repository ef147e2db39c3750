"""核心客户端实现：面向直连 API 与 Vertex 网关的统一 Claude Messages 接口。

Core ClaudeClient implementation.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING, Any

from claude_sdk.batch import BatchClient
from claude_sdk.client.builder import ClaudeClientBuilder
from claude_sdk.client.config import ClientConfig
from claude_sdk.client.response import CallStats
from claude_sdk.client.stream import MessageStream
from claude_sdk.drivers import AnthropicDriver, EndpointDriver, create_driver
from claude_sdk.errors import ValidationError
from claude_sdk.pipeline import Pipeline
from claude_sdk.registry import resolve_model_id
from claude_sdk.resilience import RetryController, RetryPolicy
from claude_sdk.telemetry import LogContext, get_logger, log_context
from claude_sdk.transport import HttpTransport

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from contextlib import AsyncExitStack

    from claude_sdk.transport import HttpRequest, Transport, TransportResponse
    from claude_sdk.types.message import MessagesRequest, MessagesResponse

logger = get_logger("claude_sdk.client")


class ClaudeClient:
    """Async client for the Claude Messages API.

    Every call is retried whole according to the client's retry policy.
    Streaming calls retry only while connecting; once events are flowing a
    failure ends the stream. Use :meth:`stream_message` to have dropped
    streams retried from the start.

    Example:
        >>> async with ClaudeClient.from_env() as client:
        ...     response = await client.create_message(request)
        ...     print(response.text)

        >>> # Streaming
        >>> async with client.stream(request) as stream:
        ...     async for text in stream.text_stream():
        ...         print(text, end="")
    """

    def __init__(
        self,
        driver: EndpointDriver,
        transport: Transport | None = None,
        *,
        retry_policy: RetryPolicy | None = None,
        pipeline: Pipeline | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the client.

        Use :meth:`from_env`, :meth:`from_config` or :meth:`builder` for
        public construction.

        Args:
            driver: Endpoint driver that builds and signs requests
            transport: HTTP transport (an HttpTransport by default)
            retry_policy: Retry policy for every call
            pipeline: Streaming decode/assemble pipeline
            sleep: Coroutine used for backoff waits
        """
        self._driver = driver
        self._transport: Transport = transport or HttpTransport()
        self._retry = RetryController(retry_policy, sleep=sleep)
        self._pipeline = pipeline or Pipeline()
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: ClientConfig, transport: Transport | None = None) -> ClaudeClient:
        """Create a client from a :class:`ClientConfig`."""
        driver = create_driver(config.endpoint, **config.driver_options())
        if transport is None:
            transport = HttpTransport(timeout=config.timeout, proxy=config.proxy)
        return cls(driver, transport, retry_policy=config.retry)

    @classmethod
    def from_env(cls, endpoint: str | None = None) -> ClaudeClient:
        """Create a client configured from environment variables."""
        return cls.from_config(ClientConfig.from_env(endpoint))  # type: ignore[arg-type]

    @classmethod
    def builder(cls) -> ClaudeClientBuilder:
        """Get a builder for advanced configuration.

        Example:
            >>> client = (
            ...     ClaudeClient.builder()
            ...     .vertex(project_id="my-project", region="us-east5")
            ...     .max_retries(5)
            ...     .build()
            ... )
        """
        return ClaudeClientBuilder()

    # -- calls -------------------------------------------------------------

    async def create_message(self, request: MessagesRequest) -> MessagesResponse:
        """Send a non-streaming request.

        Raises:
            RemoteError: API error response (after retries, if retryable)
            TransportError: Network failure (after retries)
            ProtocolError: Unparseable response body
            ValidationError: Request exceeds the model's limits
        """
        response, _ = await self.create_message_with_stats(request)
        return response

    async def create_message_with_stats(
        self, request: MessagesRequest
    ) -> tuple[MessagesResponse, CallStats]:
        """Send a non-streaming request and return call statistics too."""
        http_request = self._driver.build_request(request, stream=False)
        stats = self._new_stats(http_request)

        async def attempt() -> MessagesResponse:
            stats.record_attempt()
            async with self._transport.send(http_request) as response:
                stats.request_id = response.request_id
                body = await response.json()
            return self._driver.parse_response(body)

        with log_context(self._call_context(stats.client_request_id, stats.model)):
            try:
                message = await self._retry.run(attempt)
            finally:
                stats.record_end()

            stats.record_usage(message.usage)
            logger.debug("Message created", **stats.to_dict())
        return message, stats

    def stream(self, request: MessagesRequest) -> MessageStream:
        """Start a streaming request.

        The request is built and validated immediately; the connection is
        opened on ``async with`` or on first iteration, with connect
        failures retried according to the retry policy.

        Returns:
            MessageStream yielding typed events
        """
        return self._stream(request, retry_connect=True)

    async def stream_message(self, request: MessagesRequest) -> MessagesResponse:
        """Stream a request and return the assembled message.

        Streaming and assembly happen inside the retry loop, so a stream
        that drops before ``message_stop`` or ends with a retryable server
        error is retried from the start.

        Raises:
            StreamEventError: The server reported a non-retryable stream error
            IncompleteStreamError: Every attempt ended early
            ProtocolError: Malformed or out-of-sequence content
        """
        call_id = str(uuid.uuid4())
        model = resolve_model_id(request.model, self._driver.endpoint_style)

        async def attempt() -> MessagesResponse:
            async with self._stream(request, retry_connect=False, call_id=call_id) as stream:
                return await stream.get_final_message()

        with log_context(self._call_context(call_id, model)):
            return await self._retry.run(attempt)

    def _stream(
        self, request: MessagesRequest, *, retry_connect: bool, call_id: str | None = None
    ) -> MessageStream:
        http_request = self._driver.build_request(request, stream=True)
        stats = self._new_stats(http_request)
        if call_id is not None:
            stats.client_request_id = call_id

        async def connect(stack: AsyncExitStack) -> TransportResponse:
            async def open_once() -> TransportResponse:
                stats.record_attempt()
                return await stack.enter_async_context(self._transport.send(http_request))

            if retry_connect:
                return await self._retry.run(open_once)
            return await open_once()

        return MessageStream(
            connect,
            pipeline=self._pipeline,
            stats=stats,
            context=self._call_context(stats.client_request_id, stats.model),
        )

    def _call_context(self, call_id: str, model: str | None) -> LogContext:
        return LogContext(
            request_id=call_id, endpoint=self._driver.endpoint_style, model=model
        )

    def _new_stats(self, http_request: HttpRequest) -> CallStats:
        body = http_request.body or {}
        stats = CallStats(
            model=body.get("model") or http_request.url.rsplit("/", 1)[-1].split(":")[0],
            endpoint=self._driver.endpoint_style,
        )
        stats.record_start()
        return stats

    def batches(self) -> BatchClient:
        """Get a Message Batches client sharing this client's transport and retry policy.

        Raises:
            ValidationError: The client is not on the direct endpoint
        """
        if not isinstance(self._driver, AnthropicDriver):
            raise ValidationError(
                "Message batches are only available on the direct endpoint",
                field="endpoint",
            )
        return BatchClient(
            self._driver, self._transport, retry_policy=self._retry.policy, sleep=self._sleep
        )

    # -- properties / lifecycle -------------------------------------------

    @property
    def driver(self) -> EndpointDriver:
        return self._driver

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry.policy

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._transport.close()

    async def __aenter__(self) -> ClaudeClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
