"""Google Vertex AI 网关驱动：使用 OAuth Bearer 签名，模型 ID 放在 URL 中。

Vertex AI gateway driver. Key differences from the direct endpoint:
- The model id (``model@version`` form) is part of the URL, not the body.
- The body carries ``anthropic_version`` instead of a version header.
- Requests are signed with an OAuth access token.
- Streaming uses ``:streamRawPredict``; the response is the same SSE format.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence

from claude_sdk.drivers import EndpointDriver
from claude_sdk.errors import ValidationError
from claude_sdk.registry import EndpointStyle, resolve_model_id
from claude_sdk.transport.auth import resolve_vertex_token
from claude_sdk.transport.http import HttpRequest
from claude_sdk.types.message import MessagesRequest

VERTEX_API_VERSION = "vertex-2023-10-16"
DEFAULT_REGION = "us-east5"


class VertexDriver(EndpointDriver):
    """Driver for Claude models served through Vertex AI."""

    def __init__(
        self,
        *,
        project_id: str | None = None,
        region: str | None = None,
        access_token: str | Callable[[], str] | None = None,
        betas: Sequence[str] = (),
    ) -> None:
        """Initialize the driver.

        Args:
            project_id: GCP project (falls back to ANTHROPIC_VERTEX_PROJECT_ID)
            region: Vertex region (falls back to CLOUD_ML_REGION, then us-east5)
            access_token: OAuth token, or a callable returning a fresh one
                (falls back to ANTHROPIC_VERTEX_ACCESS_TOKEN, then keyring)
            betas: Beta feature flags sent in ``anthropic-beta``

        Raises:
            ValidationError: If the project or token cannot be resolved
        """
        self._project_id = project_id or os.getenv("ANTHROPIC_VERTEX_PROJECT_ID")
        if not self._project_id:
            raise ValidationError(
                "No Vertex project configured; pass project_id or set "
                "ANTHROPIC_VERTEX_PROJECT_ID",
                field="project_id",
            )
        self._region = region or os.getenv("CLOUD_ML_REGION") or DEFAULT_REGION

        if callable(access_token):
            self._token_provider: Callable[[], str] = access_token
        else:
            token = resolve_vertex_token(access_token)
            if not token:
                raise ValidationError(
                    "No Vertex access token configured; pass access_token or set "
                    "ANTHROPIC_VERTEX_ACCESS_TOKEN",
                    field="access_token",
                )
            self._token_provider = lambda: token
        self._betas = list(betas)

    @property
    def endpoint_style(self) -> EndpointStyle:
        return "vertex"

    @property
    def region(self) -> str:
        return self._region

    @property
    def base_url(self) -> str:
        if self._region == "global":
            return "https://aiplatform.googleapis.com"
        return f"https://{self._region}-aiplatform.googleapis.com"

    def model_url(self, model_id: str, *, stream: bool) -> str:
        method = "streamRawPredict" if stream else "rawPredict"
        return (
            f"{self.base_url}/v1/projects/{self._project_id}/locations/{self._region}"
            f"/publishers/anthropic/models/{model_id}:{method}"
        )

    def build_request(self, request: MessagesRequest, *, stream: bool) -> HttpRequest:
        self.validate(request)

        model_id = resolve_model_id(request.model, "vertex")
        body = request.to_body(stream=stream)
        del body["model"]
        body["anthropic_version"] = VERTEX_API_VERSION

        headers = {"Authorization": f"Bearer {self._token_provider()}"}
        if self._betas:
            headers["anthropic-beta"] = ",".join(self._betas)

        return HttpRequest(
            method="POST",
            url=self.model_url(model_id, stream=stream),
            headers=headers,
            body=body,
            stream=stream,
        )
