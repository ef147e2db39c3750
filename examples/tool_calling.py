#!/usr/bin/env python3
"""
Tool use example.

This example demonstrates how to declare tools, run the tools the model
asks for, and feed the results back until it answers in plain text.

Usage:
    export ANTHROPIC_API_KEY="your-api-key"
    python examples/tool_calling.py
"""

import asyncio
import json
from typing import Any

from claude_sdk import ClaudeClient, ConversationBuilder, Tool

MODEL = "claude-sonnet-4-5-20250929"


# Define tool implementations
def get_weather(location: str, unit: str = "celsius") -> dict[str, Any]:
    """Simulate getting weather data."""
    weather_data = {
        "Tokyo": {"temperature": 22, "condition": "sunny"},
        "London": {"temperature": 15, "condition": "cloudy"},
    }
    data = weather_data.get(location, {"temperature": 20, "condition": "unknown"})
    return {"location": location, "unit": unit, **data}


def search_database(query: str, limit: int = 5) -> list[dict[str, str]]:
    """Simulate database search."""
    return [{"id": str(i), "title": f"Result {i} for '{query}'"} for i in range(1, min(limit, 3) + 1)]


weather_tool = Tool(
    name="get_weather",
    description="Get the current weather for a location",
    input_schema={
        "type": "object",
        "properties": {
            "location": {"type": "string", "description": "City name"},
            "unit": {
                "type": "string",
                "enum": ["celsius", "fahrenheit"],
                "description": "Temperature unit",
            },
        },
        "required": ["location"],
    },
)

search_tool = Tool(
    name="search_database",
    description="Search the knowledge database for information",
    input_schema={
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "The search query"},
            "limit": {"type": "integer", "description": "Maximum number of results"},
        },
        "required": ["query"],
    },
)

TOOLS = {
    "get_weather": get_weather,
    "search_database": search_database,
}


async def main() -> None:
    """Run tool use example."""
    conversation = (
        ConversationBuilder()
        .with_system("You are a helpful assistant with access to weather data.")
        .with_tools([weather_tool, search_tool])
        .add_user_message("What's the weather like in Tokyo and London?")
    )
    print("User: What's the weather like in Tokyo and London?")
    print()

    async with ClaudeClient.from_env() as client:
        for _ in range(5):
            response = await client.create_message(conversation.build(MODEL, 1024))
            conversation.add_response(response)

            if response.stop_reason != "tool_use":
                print(f"Assistant: {response.text}")
                break

            print(f"Model wants to call {len(response.tool_uses)} tool(s):")
            for tool_use in response.tool_uses:
                print(f"  - {tool_use.name}({tool_use.input})")
                func = TOOLS.get(tool_use.name)
                if func is None:
                    conversation.add_tool_error(tool_use.id, f"Unknown tool: {tool_use.name}")
                    continue
                try:
                    result = func(**tool_use.input)
                except TypeError as e:
                    conversation.add_tool_error(tool_use.id, str(e))
                    continue
                print(f"    Result: {result}")
                conversation.add_tool_result(tool_use.id, json.dumps(result))
            print()


if __name__ == "__main__":
    asyncio.run(main())
