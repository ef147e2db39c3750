"""
Request and response types for the Messages API.

Field names follow the upstream wire schema exactly so that models can be
dumped straight into a request body and validated straight from a response.
"""

from __future__ import annotations

import base64
import mimetypes
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Conversation role."""

    USER = "user"
    ASSISTANT = "assistant"


class StopReason(str, Enum):
    """Why the model stopped generating."""

    END_TURN = "end_turn"
    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"
    TOOL_USE = "tool_use"
    PAUSE_TURN = "pause_turn"
    REFUSAL = "refusal"


class CacheControl(BaseModel):
    """Prompt-caching breakpoint."""

    type: Literal["ephemeral"] = "ephemeral"

    @classmethod
    def ephemeral(cls) -> CacheControl:
        """Create an ephemeral cache breakpoint."""
        return cls()


class _Block(BaseModel):
    model_config = ConfigDict(extra="allow")


class TextBlock(_Block):
    """Text content."""

    type: Literal["text"] = "text"
    text: str
    citations: list[dict[str, Any]] | None = None
    cache_control: CacheControl | None = None


class ImageSource(BaseModel):
    """Image source: inline base64, remote URL or uploaded file."""

    type: Literal["base64", "url", "file"]
    media_type: str | None = None
    data: str | None = None
    url: str | None = None
    file_id: str | None = None


class ImageBlock(_Block):
    """Image content."""

    type: Literal["image"] = "image"
    source: ImageSource
    cache_control: CacheControl | None = None

    @classmethod
    def from_file(cls, path: str | Path) -> ImageBlock:
        """Create an image block from a local file.

        Args:
            path: Path to the image file

        Returns:
            ImageBlock with base64 encoded image data
        """
        file_path = Path(path)
        encoded = base64.standard_b64encode(file_path.read_bytes()).decode("ascii")
        media_type, _ = mimetypes.guess_type(file_path.name)
        return cls(
            source=ImageSource(
                type="base64", media_type=media_type or "image/png", data=encoded
            )
        )

    @classmethod
    def from_url(cls, url: str) -> ImageBlock:
        """Create an image block from a URL."""
        return cls(source=ImageSource(type="url", url=url))


class ToolUseBlock(_Block):
    """Tool invocation requested by the assistant."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)
    cache_control: CacheControl | None = None


class ToolResultBlock(_Block):
    """Result of a tool execution, sent back in a user turn."""

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str | list[dict[str, Any]] | None = None
    is_error: bool | None = None


class ThinkingBlock(_Block):
    """Extended-thinking reasoning block."""

    type: Literal["thinking"] = "thinking"
    thinking: str
    signature: str | None = None


class RedactedThinkingBlock(_Block):
    """Encrypted reasoning block; must be passed back unmodified."""

    type: Literal["redacted_thinking"] = "redacted_thinking"
    data: str


class CitationConfig(BaseModel):
    """Citation switch for documents and search results."""

    enabled: bool = True


class DocumentSource(BaseModel):
    """Document source: inline text or an uploaded file."""

    type: Literal["text", "file"]
    media_type: str | None = None
    data: str | None = None
    file_id: str | None = None


class DocumentBlock(_Block):
    """Document content (plain text or a file id)."""

    type: Literal["document"] = "document"
    source: DocumentSource
    title: str | None = None
    context: str | None = None
    citations: CitationConfig | None = None
    cache_control: CacheControl | None = None

    @classmethod
    def from_text(
        cls, text: str, *, title: str | None = None, citations: bool = False
    ) -> DocumentBlock:
        """Create an inline plain-text document."""
        return cls(
            source=DocumentSource(type="text", media_type="text/plain", data=text),
            title=title,
            citations=CitationConfig() if citations else None,
        )

    @classmethod
    def from_file_id(cls, file_id: str, *, title: str | None = None) -> DocumentBlock:
        """Reference a previously uploaded file."""
        return cls(source=DocumentSource(type="file", file_id=file_id), title=title)


class SearchResultBlock(_Block):
    """Search result for retrieval-augmented prompts.

    The model cites it with ``search_result_location`` citations when
    ``citations`` is enabled.
    """

    type: Literal["search_result"] = "search_result"
    source: str
    title: str
    content: list[TextBlock]
    citations: CitationConfig | None = None
    cache_control: CacheControl | None = None

    @classmethod
    def create(
        cls, source: str, title: str, texts: list[str], *, citations: bool = True
    ) -> SearchResultBlock:
        """Create a search result from plain text passages."""
        return cls(
            source=source,
            title=title,
            content=[TextBlock(text=t) for t in texts],
            citations=CitationConfig(enabled=citations),
        )


ContentBlock = Annotated[
    Union[
        TextBlock,
        ImageBlock,
        DocumentBlock,
        SearchResultBlock,
        ToolUseBlock,
        ToolResultBlock,
        ThinkingBlock,
        RedactedThinkingBlock,
    ],
    Field(discriminator="type"),
]


class Message(BaseModel):
    """A single conversation turn."""

    role: Role
    content: str | list[ContentBlock]

    @classmethod
    def user(cls, text: str) -> Message:
        """Create a user message with text content."""
        return cls(role=Role.USER, content=[TextBlock(text=text)])

    @classmethod
    def assistant(cls, text: str) -> Message:
        """Create an assistant message with text content."""
        return cls(role=Role.ASSISTANT, content=[TextBlock(text=text)])

    @classmethod
    def tool_result(
        cls, tool_use_id: str, content: str, *, is_error: bool | None = None
    ) -> Message:
        """Create a user message carrying a tool result."""
        return cls(
            role=Role.USER,
            content=[
                ToolResultBlock(tool_use_id=tool_use_id, content=content, is_error=is_error)
            ],
        )


class SystemBlock(BaseModel):
    """System prompt block (used when a cache breakpoint is needed)."""

    type: Literal["text"] = "text"
    text: str
    cache_control: CacheControl | None = None


class Tool(BaseModel):
    """Client tool definition."""

    name: str
    description: str
    input_schema: dict[str, Any]
    cache_control: CacheControl | None = None


class ToolChoice(BaseModel):
    """Tool selection policy: auto, any, none or a specific tool."""

    type: Literal["auto", "any", "tool", "none"] = "auto"
    name: str | None = None
    disable_parallel_tool_use: bool | None = None

    @classmethod
    def tool(cls, name: str) -> ToolChoice:
        """Force a specific tool."""
        return cls(type="tool", name=name)


class ThinkingConfig(BaseModel):
    """Extended-thinking configuration."""

    type: Literal["enabled", "disabled"] = "enabled"
    budget_tokens: int | None = None


class EffortLevel(str, Enum):
    """Token spend versus response quality trade-off (``high`` if unset)."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Beta flag the server requires before it accepts ``output_config.effort``
EFFORT_BETA = "effort-2025-11-24"


class OutputConfig(BaseModel):
    """Output behaviour settings."""

    effort: EffortLevel | None = None


class Usage(BaseModel):
    """Token usage counters as reported by the server."""

    model_config = ConfigDict(extra="allow")

    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int | None = None
    cache_read_input_tokens: int | None = None

    def merge(self, update: dict[str, Any]) -> Usage:
        """Return a copy with every non-null counter from ``update`` applied.

        ``message_delta`` usage is cumulative, so values replace rather than
        add.
        """
        data = self.model_dump()
        data.update({k: v for k, v in update.items() if v is not None})
        return Usage.model_validate(data)


class MessagesRequest(BaseModel):
    """Body of a Messages API call."""

    model: str
    max_tokens: int
    messages: list[Message]
    system: str | list[SystemBlock] | None = None
    tools: list[Tool] | None = None
    tool_choice: ToolChoice | None = None
    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    stop_sequences: list[str] | None = None
    thinking: ThinkingConfig | None = None
    output_config: OutputConfig | None = None
    metadata: dict[str, Any] | None = None
    stream: bool | None = None

    def to_body(self, *, stream: bool) -> dict[str, Any]:
        """Serialize to a JSON body, dropping unset fields."""
        body = self.model_dump(mode="json", exclude_none=True)
        body["stream"] = stream
        return body

    def with_effort(self, effort: EffortLevel | str) -> MessagesRequest:
        """Return a copy with ``output_config.effort`` set.

        The server only accepts it with the ``effort-2025-11-24`` beta flag.
        """
        return self.model_copy(update={"output_config": OutputConfig(effort=EffortLevel(effort))})


class MessagesResponse(BaseModel):
    """A complete assistant message."""

    model_config = ConfigDict(extra="allow")

    id: str
    type: Literal["message"] = "message"
    role: Role = Role.ASSISTANT
    content: list[ContentBlock] = Field(default_factory=list)
    model: str = ""
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: Usage = Field(default_factory=Usage)

    @property
    def text(self) -> str:
        """Concatenated text of every text block."""
        return "".join(b.text for b in self.content if isinstance(b, TextBlock))

    @property
    def tool_uses(self) -> list[ToolUseBlock]:
        """Tool invocations requested by the model."""
        return [b for b in self.content if isinstance(b, ToolUseBlock)]

    def to_message(self) -> Message:
        """Convert to an assistant turn for the next request."""
        return Message(role=Role.ASSISTANT, content=list(self.content))
