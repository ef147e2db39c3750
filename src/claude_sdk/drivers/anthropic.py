"""Anthropic 直连 API 驱动：使用 x-api-key 签名，模型 ID 放在请求体中。

Direct Messages API driver.

- Requests go to ``{base_url}/v1/messages``.
- Signed with ``x-api-key`` plus the ``anthropic-version`` header.
- The model id travels in the body, in its plain form
  (``claude-sonnet-4-5-20250929``).
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Any

from claude_sdk.drivers import EndpointDriver
from claude_sdk.errors import ValidationError
from claude_sdk.registry import EndpointStyle, resolve_model_id
from claude_sdk.transport.auth import resolve_api_key
from claude_sdk.transport.http import HttpRequest
from claude_sdk.types.message import MessagesRequest

DEFAULT_BASE_URL = "https://api.anthropic.com"
API_VERSION = "2023-06-01"


class AnthropicDriver(EndpointDriver):
    """Driver for ``api.anthropic.com`` (or a compatible proxy)."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        api_version: str = API_VERSION,
        betas: Sequence[str] = (),
    ) -> None:
        """Initialize the driver.

        Args:
            api_key: API key (falls back to ANTHROPIC_API_KEY, then keyring)
            base_url: Endpoint root (falls back to ANTHROPIC_BASE_URL)
            api_version: Value of the ``anthropic-version`` header
            betas: Beta feature flags sent in ``anthropic-beta``

        Raises:
            ValidationError: If no API key can be resolved
        """
        key = resolve_api_key(api_key)
        if not key:
            raise ValidationError(
                "No API key configured; pass api_key or set ANTHROPIC_API_KEY",
                field="api_key",
            )
        self._api_key = key
        self._base_url = (base_url or os.getenv("ANTHROPIC_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self._api_version = api_version
        self._betas = list(betas)

    @property
    def endpoint_style(self) -> EndpointStyle:
        return "anthropic"

    @property
    def base_url(self) -> str:
        return self._base_url

    def build_request(self, request: MessagesRequest, *, stream: bool) -> HttpRequest:
        self.validate(request)

        body = request.to_body(stream=stream)
        body["model"] = resolve_model_id(request.model, "anthropic")

        return HttpRequest(
            method="POST",
            url=f"{self._base_url}/v1/messages",
            headers=self._headers(),
            body=body,
            stream=stream,
        )

    def api_request(
        self, method: str, path: str, body: dict[str, Any] | None = None
    ) -> HttpRequest:
        """Build a signed request for another API route.

        Args:
            method: HTTP method
            path: Route below the base URL (``/v1/...``) or an absolute URL
            body: JSON body
        """
        url = path if path.startswith(("http://", "https://")) else f"{self._base_url}{path}"
        return HttpRequest(method=method, url=url, headers=self._headers(), body=body)

    def _headers(self) -> dict[str, str]:
        headers = {
            "x-api-key": self._api_key,
            "anthropic-version": self._api_version,
        }
        if self._betas:
            headers["anthropic-beta"] = ",".join(self._betas)
        return headers
