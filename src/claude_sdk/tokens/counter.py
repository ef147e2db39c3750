"""
Token counter implementations.

Estimates the input tokens of a Messages API request so that oversized
requests can be caught before they are sent.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from claude_sdk import _features
from claude_sdk._features import require_extra
from claude_sdk.errors import ValidationError
from claude_sdk.registry import ModelInfo, get_model
from claude_sdk.telemetry import get_logger
from claude_sdk.types.message import (
    ContentBlock,
    DocumentBlock,
    ImageBlock,
    Message,
    MessagesRequest,
    RedactedThinkingBlock,
    SearchResultBlock,
    SystemBlock,
    TextBlock,
    ThinkingBlock,
    Tool,
    ToolResultBlock,
    ToolUseBlock,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = get_logger("claude_sdk.tokens")

# Structural overheads (approximate)
_MESSAGE_OVERHEAD = 4
_BLOCK_OVERHEAD = 2
_STRUCTURED_BLOCK_OVERHEAD = 4
_TOOL_OVERHEAD = 10
_REQUEST_OVERHEAD = 10
# Images have fixed token cost (approximate)
_IMAGE_TOKENS = 85


class TokenCounter(ABC):
    """Abstract base class for token counting.

    Example:
        >>> counter = get_token_counter()
        >>> tokens = counter.count_request(request)
        >>> counter.validate_context_window(request)
    """

    @abstractmethod
    def count_text(self, text: str) -> int:
        """Count tokens in text.

        Args:
            text: Text to count

        Returns:
            Token count (0 for empty text)
        """
        raise NotImplementedError

    def count_content_block(self, block: ContentBlock) -> int:
        """Count tokens in a content block, including its type overhead."""
        if isinstance(block, TextBlock):
            return _BLOCK_OVERHEAD + self.count_text(block.text)
        if isinstance(block, ThinkingBlock):
            return _BLOCK_OVERHEAD + self.count_text(block.thinking)
        if isinstance(block, RedactedThinkingBlock):
            return _BLOCK_OVERHEAD + self.count_text(block.data)
        if isinstance(block, ImageBlock):
            return _IMAGE_TOKENS
        if isinstance(block, ToolUseBlock):
            return (
                _STRUCTURED_BLOCK_OVERHEAD
                + self.count_text(block.name)
                + self.count_text(json.dumps(block.input))
            )
        if isinstance(block, ToolResultBlock):
            return (
                _STRUCTURED_BLOCK_OVERHEAD
                + self.count_text(block.tool_use_id)
                + self._count_tool_result_content(block.content)
            )
        if isinstance(block, DocumentBlock):
            total = _STRUCTURED_BLOCK_OVERHEAD
            for text in (block.title, block.context, block.source.data):
                if text:
                    total += self.count_text(text)
            return total
        if isinstance(block, SearchResultBlock):
            total = _STRUCTURED_BLOCK_OVERHEAD
            total += self.count_text(block.source) + self.count_text(block.title)
            total += sum(self.count_text(part.text) for part in block.content)
            return total
        return 0

    def _count_tool_result_content(self, content: str | list[dict[str, Any]] | None) -> int:
        if content is None:
            return 0
        if isinstance(content, str):
            return self.count_text(content)
        total = 0
        for part in content:
            if part.get("type") == "text":
                total += self.count_text(part.get("text", ""))
            elif part.get("type") == "image":
                total += _IMAGE_TOKENS
            else:
                total += self.count_text(json.dumps(part))
        return total

    def count_message(self, message: Message) -> int:
        """Count tokens in a message, including role and structure overhead."""
        total = _MESSAGE_OVERHEAD
        if isinstance(message.content, str):
            total += _BLOCK_OVERHEAD + self.count_text(message.content)
        else:
            for block in message.content:
                total += self.count_content_block(block)
        return total

    def count_messages(self, messages: Sequence[Message]) -> int:
        """Count tokens in a list of messages."""
        return sum(self.count_message(m) for m in messages)

    def count_system_prompt(self, system: str | list[SystemBlock]) -> int:
        """Count tokens in a system prompt."""
        if isinstance(system, str):
            return self.count_text(system)
        return sum(self.count_text(block.text) for block in system)

    def count_tool(self, tool: Tool) -> int:
        """Count tokens in a tool definition, which is billed as input."""
        return (
            _TOOL_OVERHEAD
            + self.count_text(tool.name)
            + self.count_text(tool.description)
            + self.count_text(json.dumps(tool.input_schema))
        )

    def count_request(self, request: MessagesRequest) -> int:
        """Estimate the input tokens a request will be charged for."""
        total = _REQUEST_OVERHEAD
        if request.system:
            total += self.count_system_prompt(request.system)
        total += self.count_messages(request.messages)
        for tool in request.tools or []:
            total += self.count_tool(tool)
        return total

    def validate_context_window(
        self,
        request: MessagesRequest,
        model: ModelInfo | str | None = None,
        *,
        use_extended_context: bool = False,
    ) -> int:
        """Check that input plus ``max_tokens`` fits in the model's context window.

        Args:
            request: Request to check
            model: Catalogue entry or model id (defaults to ``request.model``)
            use_extended_context: Measure against the 1M-token window where
                the model has one

        Returns:
            Estimated total tokens (input plus ``max_tokens``)

        Raises:
            ValidationError: Unknown model, or the request does not fit
        """
        info = model if isinstance(model, ModelInfo) else get_model(model or request.model)
        if info is None:
            raise ValidationError(
                f"Unknown model {model or request.model!r}; cannot check context window",
                field="model",
            )

        input_tokens = self.count_request(request)
        total = input_tokens + request.max_tokens
        limit = info.max_context_tokens
        extended = False
        if use_extended_context and info.max_context_tokens_extended is not None:
            limit = info.max_context_tokens_extended
            extended = True

        if total > limit:
            raise ValidationError(
                f"Request would use ~{total} tokens (input: {input_tokens}, "
                f"output: {request.max_tokens}) but model {info.name} has "
                f"{limit} token limit{' (extended)' if extended else ''}",
                field="max_tokens",
            )
        return total


class TiktokenCounter(TokenCounter):
    """Token counter using the ``cl100k_base`` tiktoken encoding.

    Claude's tokenizer is not published; ``cl100k_base`` is a close
    approximation. Requires the ``tokens`` extra.
    """

    def __init__(self, encoding_name: str = "cl100k_base") -> None:
        """Initialize with encoding.

        Args:
            encoding_name: Tiktoken encoding name

        Raises:
            ImportError: If tiktoken is not installed
        """
        require_extra("tokens", "tiktoken")
        import tiktoken

        self._encoding = tiktoken.get_encoding(encoding_name)

    def count_text(self, text: str) -> int:
        if not text:
            return 0
        return len(self._encoding.encode(text, allowed_special="all"))


class CharacterEstimator(TokenCounter):
    """Character-based estimator tuned for Claude models.

    Roughly 3.5 characters per token, plus a small surcharge for
    whitespace.
    """

    def __init__(self, chars_per_token: float = 3.5) -> None:
        self._chars_per_token = chars_per_token

    def count_text(self, text: str) -> int:
        if not text:
            return 0
        base_count = max(1, int(len(text) / self._chars_per_token))
        whitespace_count = text.count(" ") + text.count("\n") + text.count("\t")
        return base_count + int(whitespace_count * 0.1)


_default_counter: TokenCounter | None = None


def get_token_counter() -> TokenCounter:
    """Get the shared token counter (cached).

    Uses tiktoken when the ``tokens`` extra is installed and falls back to
    :class:`CharacterEstimator` otherwise.
    """
    global _default_counter
    if _default_counter is None:
        if _features.HAS_TIKTOKEN:
            _default_counter = TiktokenCounter()
        else:
            logger.debug("tiktoken not installed, using character estimate")
            _default_counter = CharacterEstimator()
    return _default_counter
