"""
Type definitions for claude-sdk-python.

- message: Request/response models for the Messages API
- events: Streaming event union
"""

from claude_sdk.types.events import (
    CitationsDelta,
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    ContentDelta,
    ErrorEvent,
    InputJsonDelta,
    MessageDeltaEvent,
    MessageStartEvent,
    MessageStopEvent,
    PingEvent,
    SignatureDelta,
    StreamEvent,
    TextDelta,
    ThinkingDelta,
    parse_event,
)
from claude_sdk.types.message import (
    CacheControl,
    CitationConfig,
    ContentBlock,
    DocumentBlock,
    DocumentSource,
    EFFORT_BETA,
    EffortLevel,
    ImageBlock,
    Message,
    MessagesRequest,
    MessagesResponse,
    OutputConfig,
    RedactedThinkingBlock,
    Role,
    SearchResultBlock,
    StopReason,
    SystemBlock,
    TextBlock,
    ThinkingBlock,
    ThinkingConfig,
    Tool,
    ToolChoice,
    ToolResultBlock,
    ToolUseBlock,
    Usage,
)

__all__ = [
    "CacheControl",
    "CitationConfig",
    "CitationsDelta",
    "ContentBlock",
    "ContentBlockDeltaEvent",
    "ContentBlockStartEvent",
    "ContentBlockStopEvent",
    "ContentDelta",
    "DocumentBlock",
    "DocumentSource",
    "EFFORT_BETA",
    "EffortLevel",
    "ErrorEvent",
    "ImageBlock",
    "InputJsonDelta",
    "Message",
    "MessageDeltaEvent",
    "MessageStartEvent",
    "MessageStopEvent",
    "MessagesRequest",
    "MessagesResponse",
    "OutputConfig",
    "PingEvent",
    "RedactedThinkingBlock",
    "Role",
    "SearchResultBlock",
    "SignatureDelta",
    "StopReason",
    "StreamEvent",
    "SystemBlock",
    "TextBlock",
    "TextDelta",
    "ThinkingBlock",
    "ThinkingConfig",
    "ThinkingDelta",
    "Tool",
    "ToolChoice",
    "ToolResultBlock",
    "ToolUseBlock",
    "Usage",
    "parse_event",
]
