#!/usr/bin/env python3
"""
Basic message example.

This example demonstrates the simplest way to use claude-sdk-python
for a non-streaming call.

Usage:
    export ANTHROPIC_API_KEY="your-api-key"
    python examples/basic_chat.py
"""

import asyncio

from claude_sdk import ClaudeClient, ConversationBuilder, Message, MessagesRequest

MODEL = "claude-sonnet-4-5-20250929"


async def main() -> None:
    """Run basic message example."""
    async with ClaudeClient.from_env() as client:
        # Method 1: Build the request directly
        request = MessagesRequest(
            model=MODEL,
            max_tokens=256,
            system="You are a helpful assistant.",
            messages=[Message.user("What is the capital of France?")],
        )
        response = await client.create_message(request)
        print(f"Response: {response.text}")
        print(f"Stop reason: {response.stop_reason}")
        print()

        # Method 2: Keep a multi-turn conversation
        conversation = ConversationBuilder().with_system("You are a Python expert.")
        conversation.add_user_message("Write a one-liner to read a file.")
        response = await client.create_message(conversation.build(MODEL, 200))
        conversation.add_response(response)
        print(f"Python tip: {response.text}")

        conversation.add_user_message("Now make it handle a missing file.")
        response = await client.create_message(conversation.build(MODEL, 200))
        print(f"Follow-up: {response.text}")
        print()

        # Method 3: Get response with statistics
        response, stats = await client.create_message_with_stats(
            MessagesRequest(model=MODEL, max_tokens=50, messages=[Message.user("Hello!")])
        )
        print(f"Response: {response.text}")
        print(f"Latency: {stats.latency_ms:.0f}ms, attempts: {stats.attempts}")
        if stats.input_tokens is not None:
            print(f"Tokens: {stats.input_tokens} in, {stats.output_tokens} out")


if __name__ == "__main__":
    asyncio.run(main())
