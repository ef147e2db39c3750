"""
Structured outputs through forced tool use.

A tool whose input schema is the desired output shape, combined with a
``tool_choice`` naming it, makes the model answer with a ``tool_use``
block whose input is that JSON.

Example:
    >>> tool = tool_from_model(Person, description="Extract the person")
    >>> request = MessagesRequest(
    ...     model="claude-sonnet-4-5-20250929",
    ...     max_tokens=1024,
    ...     messages=[Message.user(text)],
    ...     tools=[tool],
    ...     tool_choice=force_tool(tool.name),
    ... )
    >>> person = parse_tool_output(await client.create_message(request), Person)
"""

from __future__ import annotations

from typing import Any, TypeVar, overload

import pydantic
from pydantic import BaseModel

from claude_sdk.errors import ProtocolError
from claude_sdk.types.message import MessagesResponse, Tool, ToolChoice

T = TypeVar("T", bound=BaseModel)


def json_schema_tool(name: str, description: str, schema: dict[str, Any]) -> Tool:
    """Create a tool for structured JSON extraction.

    Args:
        name: Tool name
        description: What the model should extract
        schema: JSON schema of the output

    Returns:
        Tool definition
    """
    return Tool(name=name, description=description, input_schema=schema)


def tool_from_model(
    model: type[BaseModel], *, name: str | None = None, description: str | None = None
) -> Tool:
    """Create an extraction tool from a Pydantic model's JSON schema.

    The tool name defaults to the snake_cased model name and the
    description to the model's docstring.
    """
    schema = model.model_json_schema()
    schema.pop("title", None)
    return json_schema_tool(
        name or _snake_case(model.__name__),
        description or (model.__doc__ or "").strip() or f"Extract {model.__name__}",
        schema,
    )


def force_tool(tool_name: str, *, disable_parallel_tool_use: bool | None = None) -> ToolChoice:
    """Create a tool choice that forces the named tool."""
    return ToolChoice(
        type="tool", name=tool_name, disable_parallel_tool_use=disable_parallel_tool_use
    )


@overload
def parse_tool_output(
    response: MessagesResponse, model: None = None, *, tool_name: str | None = None
) -> dict[str, Any]: ...


@overload
def parse_tool_output(
    response: MessagesResponse, model: type[T], *, tool_name: str | None = None
) -> T: ...


def parse_tool_output(
    response: MessagesResponse,
    model: type[T] | None = None,
    *,
    tool_name: str | None = None,
) -> T | dict[str, Any]:
    """Extract the structured output from a forced tool call.

    Args:
        response: Response to a request made with :func:`force_tool`
        model: Pydantic model to validate the input against (raw dict if None)
        tool_name: Tool to look for (defaults to the first tool call, or the
            name :func:`tool_from_model` derives from ``model``)

    Raises:
        ProtocolError: No matching tool call, or its input does not match
            ``model``
    """
    if tool_name is None and model is not None:
        tool_name = _snake_case(model.__name__)

    for block in response.tool_uses:
        if tool_name is None or block.name == tool_name:
            if model is None:
                return block.input
            try:
                return model.model_validate(block.input)
            except pydantic.ValidationError as e:
                raise ProtocolError(
                    f"Tool '{block.name}' output does not match {model.__name__}: "
                    f"{e.error_count()} validation error(s)"
                ) from e

    wanted = f"'{tool_name}'" if tool_name else "any tool"
    raise ProtocolError(
        f"Response has no tool call for {wanted} (stop_reason={response.stop_reason})"
    )


def _snake_case(name: str) -> str:
    out = []
    for i, ch in enumerate(name):
        if ch.isupper() and i and not name[i - 1].isupper():
            out.append("_")
        out.append(ch.lower())
    return "".join(out)
