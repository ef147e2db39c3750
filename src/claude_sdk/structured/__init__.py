"""
Structured output module for claude-sdk-python.

Gets schema-shaped JSON out of the model by forcing a single tool call.
"""

from claude_sdk.structured.tools import (
    force_tool,
    json_schema_tool,
    parse_tool_output,
    tool_from_model,
)

__all__ = [
    "force_tool",
    "json_schema_tool",
    "parse_tool_output",
    "tool_from_model",
]
