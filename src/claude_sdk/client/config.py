"""
Client configuration.

Environment variables:
- ANTHROPIC_API_KEY / ANTHROPIC_BASE_URL: direct endpoint
- ANTHROPIC_VERTEX_PROJECT_ID / CLOUD_ML_REGION /
  ANTHROPIC_VERTEX_ACCESS_TOKEN: Vertex AI endpoint
- CLAUDE_HTTP_TIMEOUT_SECS: request timeout in seconds
- CLAUDE_PROXY_URL / CLAUDE_HTTP_TRUST_ENV: proxy settings
- CLAUDE_MAX_RETRIES: retries after the first attempt
"""

from __future__ import annotations

import os
from contextlib import suppress
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from claude_sdk.resilience import RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Callable

    from claude_sdk.registry import EndpointStyle


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw:
        with suppress(ValueError):
            return int(raw)
    return None


def _env_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw:
        with suppress(ValueError):
            return float(raw)
    return None


@dataclass
class ClientConfig:
    """Everything needed to build a :class:`ClaudeClient`.

    Attributes:
        endpoint: 'anthropic' (direct) or 'vertex' (Google Vertex AI)
        api_key: Direct endpoint API key
        base_url: Direct endpoint root URL
        project_id: Vertex project
        region: Vertex region
        access_token: Vertex OAuth token, or a callable returning one
        timeout: Request timeout in seconds
        proxy: Proxy URL
        retry: Retry policy
        betas: Beta feature flags sent in ``anthropic-beta``
    """

    endpoint: EndpointStyle = "anthropic"
    api_key: str | None = None
    base_url: str | None = None
    project_id: str | None = None
    region: str | None = None
    access_token: str | Callable[[], str] | None = None
    timeout: float | None = None
    proxy: str | None = None
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    betas: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls, endpoint: EndpointStyle | None = None) -> ClientConfig:
        """Build a config from environment variables.

        When ``endpoint`` is omitted, Vertex AI is chosen if a Vertex project
        is configured and no API key is; otherwise the direct endpoint.
        """
        if endpoint is None:
            vertex = bool(os.getenv("ANTHROPIC_VERTEX_PROJECT_ID")) and not os.getenv(
                "ANTHROPIC_API_KEY"
            )
            endpoint = "vertex" if vertex else "anthropic"

        retry = RetryPolicy()
        max_retries = _env_int("CLAUDE_MAX_RETRIES")
        if max_retries is not None and max_retries >= 0:
            retry = replace(retry, max_attempts=max_retries + 1)

        return cls(
            endpoint=endpoint,
            base_url=os.getenv("ANTHROPIC_BASE_URL"),
            project_id=os.getenv("ANTHROPIC_VERTEX_PROJECT_ID"),
            region=os.getenv("CLOUD_ML_REGION"),
            timeout=_env_float("CLAUDE_HTTP_TIMEOUT_SECS"),
            retry=retry,
        )

    def driver_options(self) -> dict[str, Any]:
        """Constructor arguments for the configured endpoint driver."""
        if self.endpoint == "vertex":
            return {
                "project_id": self.project_id,
                "region": self.region,
                "access_token": self.access_token,
                "betas": self.betas,
            }
        return {
            "api_key": self.api_key,
            "base_url": self.base_url,
            "betas": self.betas,
        }
