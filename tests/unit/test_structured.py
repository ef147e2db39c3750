"""Tests for structured outputs via forced tool use."""

import pytest
from pydantic import BaseModel

from claude_sdk.errors import ProtocolError
from claude_sdk.structured import force_tool, json_schema_tool, parse_tool_output, tool_from_model
from claude_sdk.types import Message, MessagesRequest, MessagesResponse

SCHEMA = {
    "type": "object",
    "properties": {"name": {"type": "string"}, "age": {"type": "integer"}},
    "required": ["name", "age"],
}


class PersonInfo(BaseModel):
    """Extract person information from text."""

    name: str
    age: int


def tool_response(name: str, tool_input: dict, text: str = "") -> MessagesResponse:
    content = [{"type": "text", "text": text}] if text else []
    content.append({"type": "tool_use", "id": "toolu_01", "name": name, "input": tool_input})
    return MessagesResponse.model_validate(
        {"id": "msg_01", "content": content, "stop_reason": "tool_use"}
    )


class TestToolDefinitions:
    """Tests for building extraction tools."""

    def test_json_schema_tool(self) -> None:
        tool = json_schema_tool("extract_person", "Extract person information", SCHEMA)

        assert tool.name == "extract_person"
        assert tool.description == "Extract person information"
        assert tool.input_schema == SCHEMA

    def test_tool_from_model(self) -> None:
        """Test name, description and schema derived from a Pydantic model."""
        tool = tool_from_model(PersonInfo)

        assert tool.name == "person_info"
        assert tool.description == "Extract person information from text."
        assert tool.input_schema["required"] == ["name", "age"]
        assert "title" not in tool.input_schema

    def test_tool_from_model_overrides(self) -> None:
        tool = tool_from_model(PersonInfo, name="who", description="Find the person")

        assert (tool.name, tool.description) == ("who", "Find the person")

    def test_force_tool_in_request_body(self) -> None:
        """Test the wire form of a forced tool request."""
        tool = json_schema_tool("extract_person", "Extract", SCHEMA)
        request = MessagesRequest(
            model="claude-sonnet-4-5-20250929",
            max_tokens=512,
            messages=[Message.user("Ada, 36")],
            tools=[tool],
            tool_choice=force_tool(tool.name),
        )
        body = request.to_body(stream=False)

        assert body["tool_choice"] == {"type": "tool", "name": "extract_person"}
        assert body["tools"][0]["input_schema"] == SCHEMA

    def test_force_tool_disable_parallel(self) -> None:
        choice = force_tool("x", disable_parallel_tool_use=True)

        assert choice.model_dump(exclude_none=True) == {
            "type": "tool",
            "name": "x",
            "disable_parallel_tool_use": True,
        }


class TestParseToolOutput:
    """Tests for reading the forced tool call back."""

    def test_parse_into_model(self) -> None:
        response = tool_response("person_info", {"name": "Ada", "age": 36}, text="Here you go")

        person = parse_tool_output(response, PersonInfo)

        assert person == PersonInfo(name="Ada", age=36)

    def test_parse_raw(self) -> None:
        response = tool_response("extract_person", {"name": "Ada", "age": 36})

        assert parse_tool_output(response) == {"name": "Ada", "age": 36}

    def test_named_tool(self) -> None:
        response = tool_response("who", {"name": "Ada", "age": 36})

        assert parse_tool_output(response, PersonInfo, tool_name="who").name == "Ada"

    def test_missing_tool_call(self) -> None:
        response = MessagesResponse.model_validate(
            {"id": "msg_01", "content": [{"type": "text", "text": "No"}], "stop_reason": "end_turn"}
        )

        with pytest.raises(ProtocolError, match="no tool call for 'person_info'"):
            parse_tool_output(response, PersonInfo)

    def test_output_does_not_match_model(self) -> None:
        response = tool_response("person_info", {"name": "Ada", "age": "unknown"})

        with pytest.raises(ProtocolError, match="does not match PersonInfo"):
            parse_tool_output(response, PersonInfo)
