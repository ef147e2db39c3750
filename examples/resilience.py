#!/usr/bin/env python3
"""
Resilience patterns example.

This example demonstrates the built-in retry behaviour:
- Retry with exponential backoff and jitter
- Whole-stream retry for dropped or overloaded streams
- Standalone retry around your own operations
- Inspecting errors after retries are exhausted

Usage:
    export ANTHROPIC_API_KEY="your-api-key"
    python examples/resilience.py
"""

import asyncio

from claude_sdk import (
    ClaudeClient,
    ClaudeError,
    Message,
    MessagesRequest,
    RetryController,
    RetryPolicy,
)

MODEL = "claude-haiku-4-5-20251001"


def log_retry(attempt: int, error: Exception, delay: float) -> None:
    print(f"  attempt {attempt} failed ({type(error).__name__}), retrying in {delay:.2f}s")


async def custom_retry_policy() -> None:
    """Create a client with a custom retry policy."""
    print("Creating client with custom retry policy...")
    print()

    client = (
        ClaudeClient.builder()
        .retry_policy(RetryPolicy(max_attempts=5, initial_backoff=1.0, max_backoff=20.0))
        .timeout(120.0)
        .build()
    )

    async with client:
        request = MessagesRequest(model=MODEL, max_tokens=100, messages=[Message.user("Hello!")])

        response, stats = await client.create_message_with_stats(request)
        print(f"Response: {response.text}")
        print(f"Attempts: {stats.attempts} (retries: {stats.retry_count})")
        print()

        # stream_message replays the whole stream when it breaks off or
        # the server reports an overloaded error mid-stream
        message = await client.stream_message(request)
        print(f"Streamed: {message.text}")


async def standalone_controller() -> None:
    """Use RetryController around arbitrary operations."""
    print("\n" + "=" * 50)
    print("Using RetryController directly...")
    print()

    controller = RetryController(RetryPolicy(max_attempts=4, initial_backoff=0.2))

    # The client makes a single attempt; the controller decides on retries
    async with ClaudeClient.builder().max_retries(0).build() as client:
        request = MessagesRequest(
            model=MODEL, max_tokens=50, messages=[Message.user("Say hi in French.")]
        )
        result = await controller.execute(
            lambda: client.create_message(request),
            on_retry=log_retry,
        )

    if result.success:
        print(f"Succeeded after {result.attempts} attempt(s): {result.value.text}")
    else:
        print(f"Gave up after {result.attempts} attempt(s): {result.error}")


async def error_inspection() -> None:
    """Show what a failed call reports."""
    print("\n" + "=" * 50)
    print("Inspecting a failed call...")
    print()

    client = ClaudeClient.builder().max_retries(1).build()
    async with client:
        request = MessagesRequest(
            model="claude-nonexistent-model",
            max_tokens=10,
            messages=[Message.user("Hello")],
        )
        try:
            await client.create_message(request)
        except ClaudeError as e:
            print(f"Error kind: {e.kind.value}")
            print(f"Retryable: {e.retryable}")
            print(f"Details: {e.to_dict()}")


async def main() -> None:
    """Run all resilience examples."""
    await custom_retry_policy()
    await standalone_controller()
    await error_inspection()


if __name__ == "__main__":
    asyncio.run(main())
