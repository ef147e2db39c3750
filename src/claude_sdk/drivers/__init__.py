"""端点驱动抽象层：通过 ABC 实现直连 API 与云网关的请求构建和响应解析。

Endpoint driver abstraction layer.

A driver turns a :class:`MessagesRequest` into a signed
:class:`HttpRequest` for one endpoint style and parses that endpoint's
non-streaming response. Both supported endpoints stream the same SSE event
format, so streaming responses share one pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import pydantic

from claude_sdk.errors import ProtocolError, ValidationError
from claude_sdk.registry import EndpointStyle, get_model
from claude_sdk.transport.http import HttpRequest
from claude_sdk.types.message import MessagesRequest, MessagesResponse

# Beta flag family that raises the context window to 1M tokens
EXTENDED_CONTEXT_BETA_PREFIX = "context-1m-"


class EndpointDriver(ABC):
    """Core abstract class for endpoint-specific request signing and routing."""

    _betas: list[str] = []

    @property
    @abstractmethod
    def endpoint_style(self) -> EndpointStyle:
        """Endpoint style this driver implements."""

    @abstractmethod
    def build_request(self, request: MessagesRequest, *, stream: bool) -> HttpRequest:
        """Build a signed HTTP request for this endpoint."""

    def parse_response(self, body: Any) -> MessagesResponse:
        """Parse a non-streaming response body.

        Raises:
            ProtocolError: If the body does not match the message schema
        """
        try:
            return MessagesResponse.model_validate(body)
        except pydantic.ValidationError as e:
            raise ProtocolError(
                f"Invalid message response: {e.error_count()} validation error(s)"
            ) from e

    @property
    def betas(self) -> list[str]:
        """Beta flags sent in ``anthropic-beta``."""
        return list(self._betas)

    @property
    def uses_extended_context(self) -> bool:
        """Whether the 1M-token context beta is enabled."""
        return any(flag.startswith(EXTENDED_CONTEXT_BETA_PREFIX) for flag in self._betas)

    def validate(self, request: MessagesRequest) -> None:
        """Check the request against catalogue limits for known models."""
        info = get_model(request.model)
        if info is None:
            return
        info.validate_request(request.max_tokens, use_extended_context=self.uses_extended_context)
        effort = request.output_config.effort if request.output_config else None
        if effort is not None and not info.supports_effort:
            raise ValidationError(
                f"Model {info.name} does not support the effort setting",
                field="output_config.effort",
            )


# ---------------------------------------------------------------------------
# Concrete drivers (imported after the base class to avoid circular deps)
# ---------------------------------------------------------------------------

from claude_sdk.drivers.anthropic import AnthropicDriver  # noqa: E402
from claude_sdk.drivers.vertex import VertexDriver  # noqa: E402


def create_driver(endpoint: EndpointStyle, **options: Any) -> EndpointDriver:
    """Factory: create the driver for an endpoint style.

    Args:
        endpoint: ``"anthropic"`` or ``"vertex"``
        **options: Driver constructor arguments

    Raises:
        ValueError: Unknown endpoint style
    """
    match endpoint:
        case "anthropic":
            return AnthropicDriver(**options)
        case "vertex":
            return VertexDriver(**options)
        case _:
            raise ValueError(f"Unknown endpoint style: {endpoint!r}")


__all__ = [
    "AnthropicDriver",
    "EndpointDriver",
    "VertexDriver",
    "create_driver",
]
