"""Tests for the Message Batches client."""

import json

import httpx
import pytest

from claude_sdk import ClaudeClient, RetryPolicy
from claude_sdk.batch import (
    BatchClient,
    BatchProcessingStatus,
    BatchRequest,
    BatchResult,
    CanceledResult,
    ErroredResult,
    ExpiredResult,
    MessageBatch,
)
from claude_sdk.drivers import AnthropicDriver, VertexDriver
from claude_sdk.errors import ProtocolError, ServerError, ValidationError
from claude_sdk.transport import HttpTransport
from claude_sdk.types import Message, MessagesRequest

BASE = "https://api.example.test"
BATCH_ID = "msgbatch_01"
RESULTS_URL = f"{BASE}/v1/messages/batches/{BATCH_ID}/results"
OVERLOADED = {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}}


def batch_body(status: str = "in_progress", *, results_url: str | None = None, **counts) -> dict:
    request_counts = {"processing": 0, "succeeded": 0, "errored": 0, "canceled": 0, "expired": 0}
    request_counts.update(counts)
    return {
        "id": BATCH_ID,
        "type": "message_batch",
        "processing_status": status,
        "request_counts": request_counts,
        "created_at": "2025-11-01T10:00:00Z",
        "ended_at": None,
        "expires_at": "2025-11-02T10:00:00Z",
        "cancel_initiated_at": None,
        "results_url": results_url,
    }


def make_params(model: str = "claude-sonnet-4-5-20250929", max_tokens: int = 256) -> MessagesRequest:
    return MessagesRequest(model=model, max_tokens=max_tokens, messages=[Message.user("Hello")])


def make_batches(handler, sleep, **policy) -> BatchClient:
    policy.setdefault("jitter", 0.0)
    return BatchClient(
        AnthropicDriver(api_key="sk-ant-test", base_url=BASE),
        HttpTransport(transport=httpx.MockTransport(handler)),
        retry_policy=RetryPolicy(**policy),
        sleep=sleep,
    )


def jsonl_response(lines: list[dict], chunk_size: int = 7, trailing_newline: bool = False) -> httpx.Response:
    raw = "\n".join(json.dumps(line) for line in lines).encode()
    if trailing_newline:
        raw += b"\n"

    async def body():
        for i in range(0, len(raw), chunk_size):
            yield raw[i : i + chunk_size]

    return httpx.Response(200, headers={"content-type": "application/binary"}, content=body())


class TestBatchCalls:
    """Tests for create, retrieve, list and cancel."""

    @pytest.mark.asyncio
    async def test_create(self, fake_sleep) -> None:
        """Test the request body and the parsed batch."""
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json=batch_body(processing=2))

        batches = make_batches(handler, fake_sleep)
        batch = await batches.create(
            [
                BatchRequest(custom_id="first", params=make_params("claude-sonnet-4-5@20250929")),
                BatchRequest(custom_id="second", params=make_params()),
            ]
        )

        assert batch.id == BATCH_ID
        assert batch.processing_status is BatchProcessingStatus.IN_PROGRESS
        assert batch.request_counts.total == 2
        assert not batch.is_ended

        (request,) = captured
        assert request.method == "POST"
        assert str(request.url) == f"{BASE}/v1/messages/batches"
        assert request.headers["x-api-key"] == "sk-ant-test"
        body = json.loads(request.content)
        assert [r["custom_id"] for r in body["requests"]] == ["first", "second"]
        assert body["requests"][0]["params"] == {
            "model": "claude-sonnet-4-5-20250929",
            "max_tokens": 256,
            "messages": [{"role": "user", "content": [{"type": "text", "text": "Hello"}]}],
        }
        await batches.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("requests", "match"),
        [
            ([], "at least one request"),
            (
                [
                    BatchRequest(custom_id="dup", params=make_params()),
                    BatchRequest(custom_id="dup", params=make_params()),
                ],
                "Duplicate custom_id 'dup'",
            ),
            (
                [BatchRequest(custom_id="big", params=make_params("claude-3-haiku-20240307", 8192))],
                "exceeds model limit",
            ),
        ],
    )
    async def test_create_rejected_before_sending(self, fake_sleep, requests, match) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("nothing should be sent")

        batches = make_batches(handler, fake_sleep)

        with pytest.raises(ValidationError, match=match):
            await batches.create(requests)

    def test_custom_id_length(self) -> None:
        with pytest.raises(ValueError):
            BatchRequest(custom_id="", params=make_params())
        with pytest.raises(ValueError):
            BatchRequest(custom_id="x" * 65, params=make_params())

    @pytest.mark.asyncio
    async def test_retrieve_list_cancel(self, fake_sleep) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path, dict(request.url.params)))
            if request.url.path.endswith("/cancel"):
                return httpx.Response(200, json=batch_body("canceling"))
            if request.url.path == "/v1/messages/batches":
                return httpx.Response(200, json={"data": [batch_body(), batch_body("ended")], "has_more": False})
            return httpx.Response(200, json=batch_body())

        batches = make_batches(handler, fake_sleep)

        retrieved = await batches.retrieve(BATCH_ID)
        listed = await batches.list(limit=5)
        canceled = await batches.cancel(BATCH_ID)

        assert retrieved.id == BATCH_ID
        assert [b.processing_status for b in listed] == [
            BatchProcessingStatus.IN_PROGRESS,
            BatchProcessingStatus.ENDED,
        ]
        assert canceled.processing_status is BatchProcessingStatus.CANCELING
        assert seen == [
            ("GET", f"/v1/messages/batches/{BATCH_ID}", {}),
            ("GET", "/v1/messages/batches", {"limit": "5"}),
            ("POST", f"/v1/messages/batches/{BATCH_ID}/cancel", {}),
        ]

    @pytest.mark.asyncio
    async def test_list_without_data(self, fake_sleep) -> None:
        batches = make_batches(lambda request: httpx.Response(200, json={"items": []}), fake_sleep)

        with pytest.raises(ProtocolError, match="'data'"):
            await batches.list()

    @pytest.mark.asyncio
    async def test_invalid_batch_body(self, fake_sleep) -> None:
        batches = make_batches(lambda request: httpx.Response(200, json={"id": BATCH_ID}), fake_sleep)

        with pytest.raises(ProtocolError, match="Invalid MessageBatch response"):
            await batches.retrieve(BATCH_ID)

    @pytest.mark.asyncio
    async def test_server_errors_retried(self, fake_sleep) -> None:
        """Test that an overloaded response is retried with backoff."""
        responses = iter(
            [httpx.Response(529, json=OVERLOADED), httpx.Response(200, json=batch_body())]
        )
        batches = make_batches(lambda request: next(responses), fake_sleep)

        batch = await batches.retrieve(BATCH_ID)

        assert batch.id == BATCH_ID
        assert fake_sleep.delays == [0.5]

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, fake_sleep) -> None:
        batches = make_batches(
            lambda request: httpx.Response(500, json={"type": "error", "error": {"type": "api_error", "message": "boom"}}),
            fake_sleep,
            max_attempts=2,
        )

        with pytest.raises(ServerError):
            await batches.retrieve(BATCH_ID)
        assert len(fake_sleep.delays) == 1


class TestWaitForCompletion:
    """Tests for polling."""

    @pytest.mark.asyncio
    async def test_polls_until_ended(self, fake_sleep) -> None:
        statuses = iter(["in_progress", "canceling", "ended"])
        batches = make_batches(
            lambda request: httpx.Response(200, json=batch_body(next(statuses))), fake_sleep
        )

        batch = await batches.wait_for_completion(BATCH_ID, poll_interval=5.0)

        assert batch.is_ended
        assert fake_sleep.delays == [5.0, 5.0]

    @pytest.mark.asyncio
    async def test_already_ended(self, fake_sleep) -> None:
        batches = make_batches(lambda request: httpx.Response(200, json=batch_body("ended")), fake_sleep)

        await batches.wait_for_completion(BATCH_ID)

        assert fake_sleep.delays == []


class TestResults:
    """Tests for streaming batch results."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("trailing_newline", [False, True])
    async def test_results(self, fake_sleep, events, trailing_newline) -> None:
        """Test every result type, split across chunks mid-line."""
        lines = [
            {"custom_id": "a", "result": {"type": "succeeded", "message": events.message_body("Hi")}},
            {
                "custom_id": "b",
                "result": {
                    "type": "errored",
                    "error": {
                        "type": "error",
                        "error": {"type": "invalid_request_error", "message": "bad"},
                    },
                },
            },
            {"custom_id": "c", "result": {"type": "canceled"}},
            {"custom_id": "d", "result": {"type": "expired"}},
        ]
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            if str(request.url) == RESULTS_URL:
                assert request.headers["x-api-key"] == "sk-ant-test"
                return jsonl_response(lines, trailing_newline=trailing_newline)
            return httpx.Response(200, json=batch_body("ended", results_url=RESULTS_URL, succeeded=1))

        batches = make_batches(handler, fake_sleep)
        results = [r async for r in batches.results(BATCH_ID)]

        assert [r.custom_id for r in results] == ["a", "b", "c", "d"]
        assert results[0].succeeded
        assert results[0].message.text == "Hi"
        assert isinstance(results[1].result, ErroredResult)
        assert results[1].result.error.error_type == "invalid_request_error"
        assert results[1].result.error.message == "bad"
        assert results[1].message is None
        assert isinstance(results[2].result, CanceledResult)
        assert isinstance(results[3].result, ExpiredResult)
        assert requested == [f"{BASE}/v1/messages/batches/{BATCH_ID}", RESULTS_URL]

    @pytest.mark.asyncio
    async def test_blank_lines_skipped(self, fake_sleep) -> None:
        raw = b'\n{"custom_id": "c", "result": {"type": "canceled"}}\r\n\n'

        def handler(request: httpx.Request) -> httpx.Response:
            if str(request.url) == RESULTS_URL:
                return httpx.Response(200, content=raw)
            return httpx.Response(200, json=batch_body("ended", results_url=RESULTS_URL))

        batches = make_batches(handler, fake_sleep)

        assert [r.custom_id async for r in batches.results(BATCH_ID)] == ["c"]

    @pytest.mark.asyncio
    async def test_no_results_yet(self, fake_sleep) -> None:
        batches = make_batches(lambda request: httpx.Response(200, json=batch_body()), fake_sleep)

        with pytest.raises(ValidationError, match="has no results yet"):
            async for _ in batches.results(BATCH_ID):
                pass

    @pytest.mark.asyncio
    async def test_invalid_line(self, fake_sleep) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if str(request.url) == RESULTS_URL:
                return httpx.Response(200, content=b'{"custom_id": "a", "result": {"type": "lost"}}\n')
            return httpx.Response(200, json=batch_body("ended", results_url=RESULTS_URL))

        batches = make_batches(handler, fake_sleep)

        with pytest.raises(ProtocolError, match="Invalid batch result line"):
            async for _ in batches.results(BATCH_ID):
                pass


class TestBatchTypes:
    """Tests for batch models."""

    def test_result_from_json(self, events) -> None:
        line = json.dumps(
            {"custom_id": "a", "result": {"type": "succeeded", "message": events.message_body()}}
        )

        result = BatchResult.model_validate_json(line)

        assert result.succeeded
        assert result.message.usage.output_tokens == 5

    def test_unknown_batch_fields_kept(self) -> None:
        batch = MessageBatch.model_validate({**batch_body("ended"), "archived_at": None, "new": 1})

        assert batch.is_ended


class TestClientBatches:
    """Tests for ClaudeClient.batches()."""

    @pytest.mark.asyncio
    async def test_shares_transport(self, fake_sleep) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=batch_body())

        client = ClaudeClient(
            AnthropicDriver(api_key="sk-ant-test", base_url=BASE),
            HttpTransport(transport=httpx.MockTransport(handler)),
            sleep=fake_sleep,
        )

        async with client:
            batch = await client.batches().retrieve(BATCH_ID)

        assert batch.id == BATCH_ID

    def test_vertex_rejected(self) -> None:
        client = ClaudeClient(VertexDriver(project_id="p", access_token="ya29.t"))

        with pytest.raises(ValidationError) as exc_info:
            client.batches()
        assert exc_info.value.field == "endpoint"
