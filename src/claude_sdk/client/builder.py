"""
Builder classes for fluent API construction.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any

import httpx

from claude_sdk.client.config import ClientConfig
from claude_sdk.resilience import RetryPolicy
from claude_sdk.types.message import (
    CacheControl,
    ContentBlock,
    EffortLevel,
    Message,
    MessagesRequest,
    OutputConfig,
    Role,
    SystemBlock,
    TextBlock,
    ThinkingConfig,
    Tool,
    ToolChoice,
    ToolResultBlock,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from claude_sdk.client.core import ClaudeClient
    from claude_sdk.registry import EndpointStyle
    from claude_sdk.transport import Transport
    from claude_sdk.types.message import MessagesResponse


class ClaudeClientBuilder:
    """Builder for creating ClaudeClient instances with custom configuration.

    Settings not given explicitly are read from the environment.

    Example:
        >>> client = (
        ...     ClaudeClientBuilder()
        ...     .api_key("sk-ant-...")
        ...     .timeout(120)
        ...     .max_retries(5)
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        """Initialize the builder."""
        self._endpoint: EndpointStyle | None = None
        self._overrides: dict[str, Any] = {}
        self._retry: RetryPolicy | None = None
        self._max_retries: int | None = None
        self._betas: list[str] = []
        self._transport: Transport | None = None
        self._httpx_transport: httpx.AsyncBaseTransport | None = None

    def endpoint(self, endpoint: EndpointStyle) -> ClaudeClientBuilder:
        """Select the endpoint style ('anthropic' or 'vertex').

        Returns:
            Self for chaining
        """
        self._endpoint = endpoint
        return self

    def api_key(self, key: str) -> ClaudeClientBuilder:
        """Set explicit API key for the direct endpoint.

        Returns:
            Self for chaining
        """
        self._overrides["api_key"] = key
        return self

    def base_url(self, url: str) -> ClaudeClientBuilder:
        """Override the direct endpoint root URL.

        Returns:
            Self for chaining
        """
        self._overrides["base_url"] = url
        return self

    def vertex(
        self,
        project_id: str | None = None,
        region: str | None = None,
        access_token: str | Callable[[], str] | None = None,
    ) -> ClaudeClientBuilder:
        """Use Google Vertex AI.

        Args:
            project_id: GCP project
            region: Vertex region (e.g. 'us-east5' or 'global')
            access_token: OAuth token or a callable returning a fresh one

        Returns:
            Self for chaining
        """
        self._endpoint = "vertex"
        if project_id is not None:
            self._overrides["project_id"] = project_id
        if region is not None:
            self._overrides["region"] = region
        if access_token is not None:
            self._overrides["access_token"] = access_token
        return self

    def timeout(self, seconds: float) -> ClaudeClientBuilder:
        """Set request timeout.

        Returns:
            Self for chaining
        """
        self._overrides["timeout"] = seconds
        return self

    def proxy(self, url: str) -> ClaudeClientBuilder:
        """Route requests through a proxy.

        Returns:
            Self for chaining
        """
        self._overrides["proxy"] = url
        return self

    def retry_policy(self, policy: RetryPolicy) -> ClaudeClientBuilder:
        """Set the retry policy.

        Returns:
            Self for chaining
        """
        self._retry = policy
        return self

    def max_retries(self, n: int) -> ClaudeClientBuilder:
        """Set the number of retries after the first attempt.

        Returns:
            Self for chaining
        """
        self._max_retries = n
        return self

    def beta(self, flag: str) -> ClaudeClientBuilder:
        """Enable a beta feature (sent in ``anthropic-beta``).

        Returns:
            Self for chaining
        """
        self._betas.append(flag)
        return self

    def transport(self, transport: Transport) -> ClaudeClientBuilder:
        """Use a custom transport.

        Returns:
            Self for chaining
        """
        self._transport = transport
        return self

    def httpx_transport(self, transport: httpx.AsyncBaseTransport) -> ClaudeClientBuilder:
        """Build the HTTP client on a custom httpx transport (e.g. MockTransport).

        Returns:
            Self for chaining
        """
        self._httpx_transport = transport
        return self

    def config(self) -> ClientConfig:
        """Resolve the configuration this builder would use."""
        config = ClientConfig.from_env(self._endpoint)
        config = replace(config, **{k: v for k, v in self._overrides.items() if v is not None})
        if self._retry is not None:
            config.retry = self._retry
        if self._max_retries is not None:
            config.retry = replace(config.retry, max_attempts=self._max_retries + 1)
        if self._betas:
            config.betas = list(self._betas)
        return config

    def build(self) -> ClaudeClient:
        """Build the ClaudeClient instance.

        Raises:
            ValidationError: If credentials or the Vertex project are missing
        """
        from claude_sdk.client.core import ClaudeClient
        from claude_sdk.transport import HttpTransport

        config = self.config()
        transport = self._transport
        if transport is None and self._httpx_transport is not None:
            transport = HttpTransport(
                timeout=config.timeout, proxy=config.proxy, transport=self._httpx_transport
            )
        return ClaudeClient.from_config(config, transport)


class ConversationBuilder:
    """Multi-turn conversation state.

    Keeps the system prompt, tool definitions and message history, and
    builds a :class:`MessagesRequest` for the next turn. The whole state can
    be dumped with :meth:`to_dict` and restored with :meth:`from_dict`.

    Example:
        >>> conversation = ConversationBuilder().with_system("You are helpful")
        >>> conversation.add_user_message("Hello!")
        >>> response = await client.create_message(
        ...     conversation.build("claude-sonnet-4-5-20250929", 1024)
        ... )
        >>> conversation.add_response(response)
    """

    def __init__(self) -> None:
        self._system: str | list[SystemBlock] | None = None
        self._tools: list[Tool] = []
        self._messages: list[Message] = []
        self._tool_choice: ToolChoice | None = None
        self._thinking: ThinkingConfig | None = None
        self._output_config: OutputConfig | None = None

    # -- configuration (chainable) ----------------------------------------

    def with_system(self, prompt: str) -> ConversationBuilder:
        """Set the system prompt.

        Returns:
            Self for chaining
        """
        self._system = prompt
        return self

    def with_cached_system(self, prompt: str) -> ConversationBuilder:
        """Set the system prompt with a prompt-cache breakpoint.

        Returns:
            Self for chaining
        """
        self._system = [SystemBlock(text=prompt, cache_control=CacheControl.ephemeral())]
        return self

    def with_tool(self, tool: Tool) -> ConversationBuilder:
        """Add a tool definition.

        Returns:
            Self for chaining
        """
        self._tools.append(tool)
        return self

    def with_tools(self, tools: list[Tool]) -> ConversationBuilder:
        """Add multiple tool definitions.

        Returns:
            Self for chaining
        """
        self._tools.extend(tools)
        return self

    def with_cached_tool(self, tool: Tool) -> ConversationBuilder:
        """Add a tool definition with a prompt-cache breakpoint.

        Returns:
            Self for chaining
        """
        self._tools.append(tool.model_copy(update={"cache_control": CacheControl.ephemeral()}))
        return self

    def with_tool_choice(self, choice: ToolChoice) -> ConversationBuilder:
        """Set the tool selection policy.

        Returns:
            Self for chaining
        """
        self._tool_choice = choice
        return self

    def with_thinking(self, budget_tokens: int) -> ConversationBuilder:
        """Enable extended thinking.

        Returns:
            Self for chaining
        """
        self._thinking = ThinkingConfig(type="enabled", budget_tokens=budget_tokens)
        return self

    def with_effort(self, effort: EffortLevel | str) -> ConversationBuilder:
        """Set the effort level (needs the ``effort-2025-11-24`` beta flag).

        Returns:
            Self for chaining
        """
        self._output_config = OutputConfig(effort=EffortLevel(effort))
        return self

    # -- turns ----------------------------------------------------------------

    def add_user_message(self, content: str) -> ConversationBuilder:
        self._messages.append(Message.user(content))
        return self

    def add_user_blocks(self, content: list[ContentBlock]) -> ConversationBuilder:
        """Add a user turn made of content blocks (documents, search results, images)."""
        self._messages.append(Message(role=Role.USER, content=list(content)))
        return self

    def add_assistant_message(self, content: str) -> ConversationBuilder:
        self._messages.append(Message.assistant(content))
        return self

    def add_assistant_with_blocks(self, content: list[ContentBlock]) -> ConversationBuilder:
        """Add an assistant turn made of content blocks (e.g. tool use)."""
        self._messages.append(Message(role=Role.ASSISTANT, content=list(content)))
        return self

    def add_response(self, response: MessagesResponse) -> ConversationBuilder:
        """Append a model response as the next assistant turn."""
        self._messages.append(response.to_message())
        return self

    def add_tool_result(self, tool_use_id: str, result: str) -> ConversationBuilder:
        self._messages.append(Message.tool_result(tool_use_id, result))
        return self

    def add_tool_error(self, tool_use_id: str, error_message: str) -> ConversationBuilder:
        """Report a failed tool execution back to the model."""
        self._messages.append(Message.tool_result(tool_use_id, error_message, is_error=True))
        return self

    def add_tool_results(self, results: dict[str, str]) -> ConversationBuilder:
        """Add several tool results as a single user turn."""
        self._messages.append(
            Message(
                role=Role.USER,
                content=[
                    ToolResultBlock(tool_use_id=tool_use_id, content=result)
                    for tool_use_id, result in results.items()
                ],
            )
        )
        return self

    def clear_messages(self) -> ConversationBuilder:
        """Drop the history but keep the system prompt and tools."""
        self._messages.clear()
        return self

    # -- accessors --------------------------------------------------------------

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def tools(self) -> list[Tool]:
        return list(self._tools)

    @property
    def system(self) -> str | list[SystemBlock] | None:
        return self._system

    @property
    def last_text(self) -> str | None:
        """Text of the most recent assistant turn, if any."""
        for message in reversed(self._messages):
            if message.role is Role.ASSISTANT:
                if isinstance(message.content, str):
                    return message.content
                return "".join(b.text for b in message.content if isinstance(b, TextBlock))
        return None

    # -- building ---------------------------------------------------------------

    def build(self, model: str, max_tokens: int, **params: Any) -> MessagesRequest:
        """Build a request from the current conversation state.

        Args:
            model: Model id in any form the registry knows
            max_tokens: Output token limit
            **params: Extra request fields (temperature, stop_sequences, ...)
        """
        return MessagesRequest(
            model=model,
            max_tokens=max_tokens,
            messages=list(self._messages),
            system=self._system,
            tools=list(self._tools) or None,
            tool_choice=self._tool_choice,
            thinking=self._thinking,
            output_config=self._output_config,
            **params,
        )

    def to_dict(self) -> dict[str, Any]:
        """Dump the conversation so it can be resumed later."""
        data: dict[str, Any] = {
            "messages": [m.model_dump(mode="json", exclude_none=True) for m in self._messages],
        }
        if self._system is not None:
            data["system"] = (
                self._system
                if isinstance(self._system, str)
                else [b.model_dump(mode="json", exclude_none=True) for b in self._system]
            )
        if self._tools:
            data["tools"] = [t.model_dump(mode="json", exclude_none=True) for t in self._tools]
        if self._tool_choice is not None:
            data["tool_choice"] = self._tool_choice.model_dump(mode="json", exclude_none=True)
        if self._thinking is not None:
            data["thinking"] = self._thinking.model_dump(mode="json", exclude_none=True)
        if self._output_config is not None:
            data["output_config"] = self._output_config.model_dump(mode="json", exclude_none=True)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConversationBuilder:
        """Restore a conversation dumped with :meth:`to_dict`.

        Raises:
            pydantic.ValidationError: If the dump is malformed
        """
        builder = cls()
        system = data.get("system")
        if isinstance(system, str):
            builder._system = system
        elif system is not None:
            builder._system = [SystemBlock.model_validate(b) for b in system]
        builder._tools = [Tool.model_validate(t) for t in data.get("tools", [])]
        builder._messages = [Message.model_validate(m) for m in data.get("messages", [])]
        if data.get("tool_choice") is not None:
            builder._tool_choice = ToolChoice.model_validate(data["tool_choice"])
        if data.get("thinking") is not None:
            builder._thinking = ThinkingConfig.model_validate(data["thinking"])
        if data.get("output_config") is not None:
            builder._output_config = OutputConfig.model_validate(data["output_config"])
        return builder
