"""Tests for ConversationBuilder and message types."""

import pydantic
import pytest

from claude_sdk import ConversationBuilder
from claude_sdk.types import (
    DocumentBlock,
    EffortLevel,
    ImageBlock,
    Message,
    MessagesRequest,
    MessagesResponse,
    Role,
    SearchResultBlock,
    TextBlock,
    Tool,
    ToolChoice,
    ToolResultBlock,
    ToolUseBlock,
    Usage,
)

WEATHER_TOOL = Tool(
    name="get_weather",
    description="Get the current weather",
    input_schema={
        "type": "object",
        "properties": {"location": {"type": "string"}},
        "required": ["location"],
    },
)


def tool_use_response() -> MessagesResponse:
    return MessagesResponse(
        id="msg_1",
        model="claude-sonnet-4-5-20250929",
        content=[
            TextBlock(text="Let me check."),
            ToolUseBlock(id="toolu_1", name="get_weather", input={"location": "Paris"}),
        ],
        stop_reason="tool_use",
    )


class TestConversationBuilder:
    """Tests for ConversationBuilder."""

    def test_build_request(self) -> None:
        """Test building a request from conversation state."""
        conversation = (
            ConversationBuilder()
            .with_system("You are helpful")
            .with_tool(WEATHER_TOOL)
            .with_tool_choice(ToolChoice.tool("get_weather"))
            .add_user_message("Weather in Paris?")
        )

        request = conversation.build("claude-sonnet-4-5-20250929", 1024, temperature=0.2)
        body = request.to_body(stream=False)

        assert body["system"] == "You are helpful"
        assert body["tools"][0]["name"] == "get_weather"
        assert body["tool_choice"] == {"type": "tool", "name": "get_weather"}
        assert body["temperature"] == 0.2
        assert body["messages"] == [
            {"role": "user", "content": [{"type": "text", "text": "Weather in Paris?"}]}
        ]

    def test_tool_loop(self) -> None:
        """Test a full tool-use turn: response, result, next request."""
        conversation = ConversationBuilder().with_tool(WEATHER_TOOL)
        conversation.add_user_message("Weather in Paris?")
        conversation.add_response(tool_use_response())
        conversation.add_tool_result("toolu_1", "18C and sunny")

        messages = conversation.messages
        assert [m.role for m in messages] == [Role.USER, Role.ASSISTANT, Role.USER]
        assert isinstance(messages[1].content[1], ToolUseBlock)
        result = messages[2].content[0]
        assert isinstance(result, ToolResultBlock)
        assert result.tool_use_id == "toolu_1"
        assert conversation.last_text == "Let me check."

    def test_tool_error_and_batch_results(self) -> None:
        conversation = ConversationBuilder()
        conversation.add_tool_error("toolu_1", "timeout")
        conversation.add_tool_results({"toolu_2": "a", "toolu_3": "b"})

        error_block = conversation.messages[0].content[0]
        assert error_block.is_error is True
        batch = conversation.messages[1].content
        assert [b.tool_use_id for b in batch] == ["toolu_2", "toolu_3"]

    def test_cached_system_and_tool(self) -> None:
        """Test that cache breakpoints are serialized."""
        conversation = (
            ConversationBuilder()
            .with_cached_system("Long reference text")
            .with_cached_tool(WEATHER_TOOL)
            .add_user_message("hi")
        )
        body = conversation.build("claude-sonnet-4-5-20250929", 100).to_body(stream=True)

        assert body["system"] == [
            {"type": "text", "text": "Long reference text", "cache_control": {"type": "ephemeral"}}
        ]
        assert body["tools"][0]["cache_control"] == {"type": "ephemeral"}
        assert WEATHER_TOOL.cache_control is None

    def test_thinking(self) -> None:
        conversation = ConversationBuilder().with_thinking(2048).add_user_message("hi")
        body = conversation.build("claude-sonnet-4-5-20250929", 4096).to_body(stream=False)

        assert body["thinking"] == {"type": "enabled", "budget_tokens": 2048}

    def test_effort(self) -> None:
        conversation = ConversationBuilder().with_effort(EffortLevel.MEDIUM).add_user_message("hi")
        body = conversation.build("claude-opus-4-5-20251101", 1024).to_body(stream=False)

        assert body["output_config"] == {"effort": "medium"}

    def test_user_blocks(self) -> None:
        """Test a user turn carrying a document and a search result."""
        conversation = ConversationBuilder().add_user_blocks(
            [
                DocumentBlock.from_text("The sky is blue.", title="Notes", citations=True),
                SearchResultBlock.create("https://kb.example/sky", "Sky colour", ["Rayleigh scattering."]),
                TextBlock(text="Why is the sky blue?"),
            ]
        )
        body = conversation.build("claude-sonnet-4-5-20250929", 512).to_body(stream=False)

        assert body["messages"][0]["content"][:2] == [
            {
                "type": "document",
                "source": {"type": "text", "media_type": "text/plain", "data": "The sky is blue."},
                "title": "Notes",
                "citations": {"enabled": True},
            },
            {
                "type": "search_result",
                "source": "https://kb.example/sky",
                "title": "Sky colour",
                "content": [{"type": "text", "text": "Rayleigh scattering."}],
                "citations": {"enabled": True},
            },
        ]

    def test_clear_messages_keeps_setup(self) -> None:
        conversation = ConversationBuilder().with_system("sys").with_tool(WEATHER_TOOL)
        conversation.add_user_message("a").add_assistant_message("b")

        conversation.clear_messages()

        assert conversation.messages == []
        assert conversation.system == "sys"
        assert len(conversation.tools) == 1
        assert conversation.last_text is None

    def test_round_trip(self) -> None:
        """Test to_dict/from_dict restores the same requests."""
        conversation = (
            ConversationBuilder()
            .with_cached_system("sys")
            .with_tool(WEATHER_TOOL)
            .with_tool_choice(ToolChoice(type="auto"))
            .with_thinking(1024)
            .with_effort("low")
            .add_user_message("Weather in Paris?")
        )
        conversation.add_response(tool_use_response())
        conversation.add_tool_result("toolu_1", "sunny")

        restored = ConversationBuilder.from_dict(conversation.to_dict())
        model = "claude-sonnet-4-5-20250929"

        assert restored.build(model, 2048).to_body(stream=False) == conversation.build(
            model, 2048
        ).to_body(stream=False)

    def test_from_dict_malformed(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            ConversationBuilder.from_dict({"messages": [{"role": "robot", "content": "x"}]})


class TestMessageTypes:
    """Tests for request and response models."""

    def test_response_helpers(self) -> None:
        response = tool_use_response()

        assert response.text == "Let me check."
        assert [t.name for t in response.tool_uses] == ["get_weather"]
        assert response.to_message().role is Role.ASSISTANT

    def test_response_tolerates_unknown_fields(self) -> None:
        response = MessagesResponse.model_validate(
            {
                "id": "msg_1",
                "type": "message",
                "role": "assistant",
                "content": [{"type": "text", "text": "x", "future": 1}],
                "model": "m",
                "stop_reason": "some_new_reason",
                "usage": {"input_tokens": 1, "output_tokens": 2, "service_tier": "standard"},
                "container": None,
            }
        )

        assert response.stop_reason == "some_new_reason"
        assert response.text == "x"

    def test_usage_merge(self) -> None:
        usage = Usage(input_tokens=10, output_tokens=1)
        merged = usage.merge({"output_tokens": 20, "input_tokens": None})

        assert merged.input_tokens == 10
        assert merged.output_tokens == 20
        assert usage.output_tokens == 1

    def test_string_content(self) -> None:
        message = Message(role=Role.USER, content="plain")

        assert message.model_dump(mode="json") == {"role": "user", "content": "plain"}

    def test_image_from_file(self, tmp_path) -> None:
        path = tmp_path / "pixel.png"
        path.write_bytes(b"\x89PNG\r\n\x1a\n")

        block = ImageBlock.from_file(path)

        assert block.source.type == "base64"
        assert block.source.media_type == "image/png"
        assert block.source.data == "iVBORw0KGgo="

    def test_document_blocks_parse(self) -> None:
        """Test that document and search result blocks validate from wire form."""
        message = Message.model_validate(
            {
                "role": "user",
                "content": [
                    {"type": "document", "source": {"type": "file", "file_id": "file_01"}},
                    {
                        "type": "search_result",
                        "source": "s",
                        "title": "t",
                        "content": [{"type": "text", "text": "x"}],
                    },
                ],
            }
        )

        assert isinstance(message.content[0], DocumentBlock)
        assert message.content[0].source.file_id == "file_01"
        assert isinstance(message.content[1], SearchResultBlock)
        assert DocumentBlock.from_file_id("file_01").model_dump(exclude_none=True) == {
            "type": "document",
            "source": {"type": "file", "file_id": "file_01"},
        }

    def test_with_effort(self) -> None:
        request = MessagesRequest(
            model="claude-opus-4-5-20251101", max_tokens=100, messages=[Message.user("hi")]
        )

        body = request.with_effort("high").to_body(stream=False)

        assert body["output_config"] == {"effort": "high"}
        assert request.output_config is None
        with pytest.raises(ValueError):
            request.with_effort("extreme")
