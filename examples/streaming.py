#!/usr/bin/env python3
"""
Streaming response example.

This example demonstrates how to stream a response event by event
for real-time output.

Usage:
    export ANTHROPIC_API_KEY="your-api-key"
    python examples/streaming.py
"""

import asyncio

from claude_sdk import ClaudeClient, Message, MessagesRequest
from claude_sdk.types import (
    ContentBlockDeltaEvent,
    ErrorEvent,
    MessageDeltaEvent,
    TextDelta,
)

MODEL = "claude-sonnet-4-5-20250929"


async def main() -> None:
    """Run streaming example."""
    async with ClaudeClient.from_env() as client:
        request = MessagesRequest(
            model=MODEL,
            max_tokens=500,
            system="You are a creative storyteller.",
            messages=[Message.user("Tell me a very short story about a robot learning to paint.")],
        )

        print("Streaming response:\n")
        print("-" * 50)

        async with client.stream(request) as stream:
            async for event in stream:
                match event:
                    case ContentBlockDeltaEvent(delta=TextDelta(text=text)):
                        print(text, end="", flush=True)
                    case MessageDeltaEvent(delta=delta):
                        print(f"\n\n[Stop reason: {delta.stop_reason}]")
                    case ErrorEvent(error=error):
                        print(f"\n\n[Error: {error.message}]")

        print("-" * 50)

        # Text-only view plus statistics
        print("\n\nStreaming with statistics:")
        print("-" * 50)

        request = MessagesRequest(
            model=MODEL, max_tokens=100, messages=[Message.user("Count from 1 to 5.")]
        )
        async with client.stream(request) as stream:
            async for text in stream.text_stream():
                print(text, end="", flush=True)
            message = await stream.get_final_message()

        stats = stream.stats
        print(f"\n\nOutput tokens: {message.usage.output_tokens}")
        if stats is not None and stats.time_to_first_token_ms is not None:
            print(f"Time to first token: {stats.time_to_first_token_ms:.0f}ms")
            print(f"Total latency: {stats.latency_ms:.0f}ms")

        # Whole-stream retry: dropped streams are replayed from the start
        message = await client.stream_message(request)
        print(f"\nstream_message: {message.text}")


if __name__ == "__main__":
    asyncio.run(main())
