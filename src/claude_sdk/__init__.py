"""Claude Messages API 的异步 Python 客户端：支持直连端点与 Vertex AI 网关。

claude-sdk-python: async client for the Claude Messages API.

Talks to the direct endpoint or Google Vertex AI, decodes and assembles
streaming responses incrementally, and retries failed calls with
exponential backoff.
"""
from __future__ import annotations

from claude_sdk._features import HAS_HTTP2, HAS_KEYRING, HAS_TIKTOKEN, require_extra
from claude_sdk.batch import BatchClient, BatchRequest, BatchResult, MessageBatch
from claude_sdk.client import (
    CallStats,
    ClaudeClient,
    ClaudeClientBuilder,
    ClientConfig,
    ConversationBuilder,
    MessageStream,
)
from claude_sdk.errors import (
    ClaudeError,
    IncompleteStreamError,
    ProtocolError,
    RateLimitError,
    RemoteError,
    StreamEventError,
    TransportError,
    ValidationError,
)
from claude_sdk.registry import ModelInfo, get_model, list_models
from claude_sdk.resilience import RetryController, RetryPolicy, with_retry
from claude_sdk.structured import force_tool, json_schema_tool, parse_tool_output, tool_from_model
from claude_sdk.tokens import TokenCounter, get_token_counter
from claude_sdk.types.events import StreamEvent
from claude_sdk.types.message import (
    ContentBlock,
    DocumentBlock,
    EffortLevel,
    Message,
    MessagesRequest,
    MessagesResponse,
    OutputConfig,
    Role,
    SearchResultBlock,
    Tool,
    ToolChoice,
    Usage,
)

__version__ = "0.1.0"

__all__ = [
    # Batches
    "BatchClient",
    "BatchRequest",
    "BatchResult",
    "MessageBatch",
    # Client
    "CallStats",
    "ClaudeClient",
    "ClaudeClientBuilder",
    "ClientConfig",
    "ConversationBuilder",
    "MessageStream",
    # Feature flags
    "HAS_HTTP2",
    "HAS_KEYRING",
    "HAS_TIKTOKEN",
    "require_extra",
    # Errors
    "ClaudeError",
    "IncompleteStreamError",
    "ProtocolError",
    "RateLimitError",
    "RemoteError",
    "StreamEventError",
    "TransportError",
    "ValidationError",
    # Registry
    "ModelInfo",
    "get_model",
    "list_models",
    # Resilience
    "RetryController",
    "RetryPolicy",
    "with_retry",
    # Structured outputs
    "force_tool",
    "json_schema_tool",
    "parse_tool_output",
    "tool_from_model",
    # Tokens
    "TokenCounter",
    "get_token_counter",
    # Types
    "ContentBlock",
    "DocumentBlock",
    "EffortLevel",
    "Message",
    "MessagesRequest",
    "MessagesResponse",
    "OutputConfig",
    "Role",
    "SearchResultBlock",
    "StreamEvent",
    "Tool",
    "ToolChoice",
    "Usage",
    # Version
    "__version__",
]
