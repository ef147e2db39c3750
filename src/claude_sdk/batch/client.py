"""
Message Batches API client.

Only the direct endpoint serves batches. Every call except result streaming
goes through the retry controller; the results file is read once and
yielded line by line as it arrives.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import pydantic

from claude_sdk.batch.types import BatchRequest, BatchResult, MessageBatch
from claude_sdk.errors import ProtocolError, ValidationError
from claude_sdk.registry import resolve_model_id
from claude_sdk.resilience import RetryController, RetryPolicy
from claude_sdk.telemetry import get_logger
from claude_sdk.transport import HttpTransport

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Sequence

    from claude_sdk.drivers import AnthropicDriver
    from claude_sdk.transport import HttpRequest, Transport

logger = get_logger("claude_sdk.batch")

BATCHES_PATH = "/v1/messages/batches"
DEFAULT_POLL_INTERVAL = 60.0
MAX_BATCH_REQUESTS = 100_000


class BatchClient:
    """Client for creating, polling and reading message batches.

    Example:
        >>> async with ClaudeClient.from_env() as client:
        ...     batches = client.batches()
        ...     batch = await batches.create([BatchRequest(custom_id="a", params=request)])
        ...     batch = await batches.wait_for_completion(batch.id)
        ...     async for result in batches.results(batch.id):
        ...         print(result.custom_id, result.succeeded)
    """

    def __init__(
        self,
        driver: AnthropicDriver,
        transport: Transport | None = None,
        *,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the batch client.

        Args:
            driver: Direct endpoint driver used to sign requests
            transport: HTTP transport (an HttpTransport by default)
            retry_policy: Retry policy for each API call
            sleep: Coroutine used for backoff and polling waits
        """
        self._driver = driver
        self._transport: Transport = transport or HttpTransport()
        self._retry = RetryController(retry_policy, sleep=sleep)
        self._sleep = sleep

    async def create(self, requests: Sequence[BatchRequest]) -> MessageBatch:
        """Submit a batch.

        Raises:
            ValidationError: Empty batch, too many requests, duplicate
                ``custom_id`` or a request over its model's limits
        """
        if not requests:
            raise ValidationError("A batch needs at least one request", field="requests")
        if len(requests) > MAX_BATCH_REQUESTS:
            raise ValidationError(
                f"A batch holds at most {MAX_BATCH_REQUESTS} requests, got {len(requests)}",
                field="requests",
            )

        seen: set[str] = set()
        items = []
        for item in requests:
            if item.custom_id in seen:
                raise ValidationError(
                    f"Duplicate custom_id '{item.custom_id}'", field="requests.custom_id"
                )
            seen.add(item.custom_id)
            self._driver.validate(item.params)
            items.append(item.to_body(resolve_model_id(item.params.model, "anthropic")))

        batch = await self._call_json(
            self._driver.api_request("POST", BATCHES_PATH, {"requests": items}), MessageBatch
        )
        logger.debug("Batch created", batch_id=batch.id, requests=len(items))
        return batch

    async def retrieve(self, batch_id: str) -> MessageBatch:
        """Fetch the current state of a batch."""
        return await self._call_json(
            self._driver.api_request("GET", f"{BATCHES_PATH}/{batch_id}"), MessageBatch
        )

    async def list(self, limit: int = 20) -> list[MessageBatch]:
        """List the most recent batches."""
        request = self._driver.api_request("GET", f"{BATCHES_PATH}?limit={limit}")
        body = await self._call_json(request)
        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            raise ProtocolError("Batch list response has no 'data' array")
        return [self._validate(item, MessageBatch) for item in body["data"]]

    async def cancel(self, batch_id: str) -> MessageBatch:
        """Ask the server to cancel a batch; it moves to ``canceling``."""
        batch = await self._call_json(
            self._driver.api_request("POST", f"{BATCHES_PATH}/{batch_id}/cancel"), MessageBatch
        )
        logger.debug("Batch cancel requested", batch_id=batch_id)
        return batch

    async def wait_for_completion(
        self, batch_id: str, *, poll_interval: float = DEFAULT_POLL_INTERVAL
    ) -> MessageBatch:
        """Poll until the batch has ended.

        Wrap in ``asyncio.wait_for`` to bound the total wait.
        """
        while True:
            batch = await self.retrieve(batch_id)
            if batch.is_ended:
                return batch
            logger.debug(
                "Batch still processing",
                batch_id=batch_id,
                status=batch.processing_status.value,
                processing=batch.request_counts.processing,
            )
            await self._sleep(poll_interval)

    async def results(self, batch_id: str) -> AsyncIterator[BatchResult]:
        """Stream the results of an ended batch, one per request.

        Raises:
            ValidationError: The batch has no results yet
            ProtocolError: A result line is not a valid result
        """
        batch = await self.retrieve(batch_id)
        if not batch.results_url:
            raise ValidationError(
                f"Batch {batch_id} has no results yet "
                f"(status: {batch.processing_status.value})",
                field="batch_id",
            )

        request = self._driver.api_request("GET", batch.results_url)
        async with self._transport.send(request) as response:
            buffer = bytearray()
            async for chunk in response.aiter_bytes():
                buffer.extend(chunk)
                start = 0
                while (end := buffer.find(b"\n", start)) != -1:
                    line = bytes(buffer[start:end])
                    start = end + 1
                    if line.strip():
                        yield self._parse_result(line)
                del buffer[:start]
            if buffer.strip():
                yield self._parse_result(bytes(buffer))

    async def close(self) -> None:
        await self._transport.close()

    # -- internals ---------------------------------------------------------

    async def _call_json(self, request: HttpRequest, model: type | None = None) -> Any:
        async def attempt() -> Any:
            async with self._transport.send(request) as response:
                return await response.json()

        body = await self._retry.run(attempt)
        return body if model is None else self._validate(body, model)

    @staticmethod
    def _validate(body: Any, model: type) -> Any:
        try:
            return model.model_validate(body)
        except pydantic.ValidationError as e:
            raise ProtocolError(
                f"Invalid {model.__name__} response: {e.error_count()} validation error(s)"
            ) from e

    @staticmethod
    def _parse_result(line: bytes) -> BatchResult:
        try:
            return BatchResult.model_validate_json(line)
        except pydantic.ValidationError as e:
            raise ProtocolError(
                f"Invalid batch result line: {e.error_count()} validation error(s)"
            ) from e
