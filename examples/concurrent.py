"""
Concurrent requests example.

This example shows several calls sharing one client: plain calls and
streams run side by side, a semaphore bounds how many are in flight,
and one failing call does not affect the others.

Usage:
    export ANTHROPIC_API_KEY="your-api-key"
    python examples/concurrent.py
"""

import asyncio
import time

from claude_sdk import ClaudeClient, ClaudeError, Message, MessagesRequest

MODEL = "claude-haiku-4-5-20251001"
MAX_IN_FLIGHT = 4


def request_for(prompt: str) -> MessagesRequest:
    return MessagesRequest(model=MODEL, max_tokens=100, messages=[Message.user(prompt)])


async def fetch(client: ClaudeClient, limit: asyncio.Semaphore, prompt: str, request_id: int) -> tuple[int, str, float]:
    """Fetch a complete response.

    Returns:
        Tuple of (request_id, response_text, latency_ms)
    """
    async with limit:
        response, stats = await client.create_message_with_stats(request_for(prompt))
    return (request_id, response.text, stats.latency_ms)


async def stream(client: ClaudeClient, limit: asyncio.Semaphore, prompt: str, request_id: int) -> tuple[int, str, float]:
    """Stream a response and join the text deltas.

    Returns:
        Tuple of (request_id, full_text, latency_ms)
    """
    parts: list[str] = []
    async with limit, client.stream(request_for(prompt)) as s:
        async for text in s.text_stream():
            parts.append(text)
    latency_ms = s.stats.latency_ms if s.stats else 0.0
    return (request_id, "".join(parts), latency_ms)


async def main() -> None:
    """Run concurrent example."""
    prompts = [f"Name one fact about the number {i}." for i in range(8)]
    limit = asyncio.Semaphore(MAX_IN_FLIGHT)

    async with ClaudeClient.from_env() as client:
        tasks = [
            (stream if i % 2 else fetch)(client, limit, prompt, i)
            for i, prompt in enumerate(prompts)
        ]

        start_time = time.perf_counter()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        total_time = (time.perf_counter() - start_time) * 1000

    successes = [r for r in results if not isinstance(r, BaseException)]
    failures = [r for r in results if isinstance(r, ClaudeError)]

    print("Results:")
    print(f"  Total time: {total_time:.0f}ms")
    print(f"  Successes: {len(successes)}/{len(prompts)}")
    for error in failures:
        print(f"  Failed: {error.kind.value} - {error.message}")

    print("\nSample responses:")
    for req_id, text, latency in successes[:3]:
        print(f"  [{req_id}] ({latency:.0f}ms): {text[:80]}")


if __name__ == "__main__":
    asyncio.run(main())
