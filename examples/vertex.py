#!/usr/bin/env python3
"""
Vertex AI example.

This example demonstrates calling Claude through Google Vertex AI. The
access token is fetched per request, so short-lived OAuth tokens work.

Usage:
    gcloud auth login
    export ANTHROPIC_VERTEX_PROJECT_ID="your-gcp-project"
    export CLOUD_ML_REGION="us-east5"
    python examples/vertex.py
"""

import asyncio
import subprocess

from claude_sdk import ClaudeClient, Message, MessagesRequest


def gcloud_token() -> str:
    """Fetch a fresh access token from the gcloud CLI."""
    return subprocess.run(
        ["gcloud", "auth", "print-access-token"],
        check=True,
        capture_output=True,
        text=True,
    ).stdout.strip()


async def main() -> None:
    """Run Vertex example."""
    client = (
        ClaudeClient.builder()
        .vertex(access_token=gcloud_token)
        .build()
    )

    async with client:
        # Canonical ids are translated to the Vertex form automatically
        request = MessagesRequest(
            model="claude-sonnet-4-5-20250929",
            max_tokens=200,
            messages=[Message.user("Explain SSE in one sentence.")],
        )

        async with client.stream(request) as stream:
            async for text in stream.text_stream():
                print(text, end="", flush=True)
        print()
        print(f"Model on the wire: {stream.stats.model if stream.stats else 'n/a'}")


if __name__ == "__main__":
    asyncio.run(main())
