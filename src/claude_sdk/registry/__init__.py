"""模型注册表：从内置 YAML 目录加载 Claude 模型元数据并解析各端点的模型 ID。

Model registry backed by the bundled ``models.yaml`` catalogue.

Resolves any known model id (direct, Vertex or Bedrock form) to its
metadata, and translates ids between endpoint styles.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict

from claude_sdk.errors import ValidationError

EndpointStyle = Literal["anthropic", "vertex"]

_BEDROCK_REGION_PREFIXES = ("global.", "us.", "eu.", "ap.")


class ModelInfo(BaseModel):
    """Metadata and limits for one Claude model."""

    model_config = ConfigDict(frozen=True)

    name: str
    family: str
    version: str
    anthropic_id: str
    vertex_id: str | None = None
    bedrock_id: str | None = None
    bedrock_global_id: str | None = None
    max_context_tokens: int = 200_000
    max_context_tokens_extended: int | None = None
    max_output_tokens: int
    supports_vision: bool = True
    supports_tools: bool = True
    supports_caching: bool = True
    supports_extended_thinking: bool = True
    supports_effort: bool = False
    description: str = ""

    @property
    def supports_extended_context(self) -> bool:
        return self.max_context_tokens_extended is not None

    def id_for(self, endpoint: EndpointStyle) -> str:
        """Model id as the given endpoint expects it.

        Raises:
            ValidationError: If the model is not offered on that endpoint
        """
        if endpoint == "vertex":
            if self.vertex_id is None:
                raise ValidationError(f"{self.name} is not available on Vertex AI", field="model")
            return self.vertex_id
        return self.anthropic_id

    def bedrock_id_for_region(self, prefix: str = "") -> str | None:
        """Bedrock id with a region prefix such as ``"us."`` or ``"global."``."""
        if self.bedrock_id is None:
            return None
        return f"{prefix}{self.bedrock_id}"

    def validate_request(self, max_tokens: int, *, use_extended_context: bool = False) -> None:
        """Check request parameters against the model's limits.

        Raises:
            ValidationError: If ``max_tokens`` exceeds the output limit or
                extended context is requested on a model without it
        """
        if max_tokens > self.max_output_tokens:
            raise ValidationError(
                f"Requested max_tokens ({max_tokens}) exceeds model limit "
                f"({self.max_output_tokens})",
                field="max_tokens",
            )
        if use_extended_context and not self.supports_extended_context:
            raise ValidationError(
                f"Model {self.name} does not support extended context", field="model"
            )


class ModelRegistry:
    """Lookup table over a list of :class:`ModelInfo`.

    Example:
        >>> registry = ModelRegistry.default()
        >>> registry.get("claude-sonnet-4-5@20250929").anthropic_id
        'claude-sonnet-4-5-20250929'
    """

    def __init__(self, models: list[ModelInfo]) -> None:
        self._models = list(models)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModelRegistry:
        entries = data.get("models") or []
        return cls([ModelInfo.model_validate(entry) for entry in entries])

    @classmethod
    def from_yaml(cls, path: str | Path) -> ModelRegistry:
        """Load a catalogue from a YAML file with a top-level ``models`` list."""
        content = Path(path).read_text(encoding="utf-8")
        return cls.from_dict(yaml.safe_load(content) or {})

    @classmethod
    def default(cls) -> ModelRegistry:
        """The catalogue bundled with the package."""
        return _default_registry()

    def __iter__(self):
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)

    def by_anthropic_id(self, model_id: str) -> ModelInfo | None:
        return next((m for m in self._models if m.anthropic_id == model_id), None)

    def by_vertex_id(self, model_id: str) -> ModelInfo | None:
        return next((m for m in self._models if m.vertex_id == model_id), None)

    def by_bedrock_id(self, model_id: str) -> ModelInfo | None:
        """Find a model by Bedrock id, with or without a region prefix."""
        for m in self._models:
            if model_id in (m.bedrock_id, m.bedrock_global_id):
                return m
        base_id = model_id
        for prefix in _BEDROCK_REGION_PREFIXES:
            if model_id.startswith(prefix):
                base_id = model_id[len(prefix) :]
                break
        return next((m for m in self._models if m.bedrock_id == base_id), None)

    def get(self, model_id: str) -> ModelInfo | None:
        """Find a model by any of its ids."""
        return (
            self.by_anthropic_id(model_id)
            or self.by_bedrock_id(model_id)
            or self.by_vertex_id(model_id)
        )

    def family(self, family: str) -> list[ModelInfo]:
        return [m for m in self._models if m.family == family]

    def resolve_id(self, model_id: str, endpoint: EndpointStyle) -> str:
        """Translate a model id into the form ``endpoint`` expects.

        Unknown ids are passed through unchanged so that models newer than
        the catalogue still work.
        """
        info = self.get(model_id)
        if info is None:
            return model_id
        return info.id_for(endpoint)


@lru_cache(maxsize=1)
def _default_registry() -> ModelRegistry:
    content = resources.files("claude_sdk.registry").joinpath("models.yaml").read_text(
        encoding="utf-8"
    )
    return ModelRegistry.from_dict(yaml.safe_load(content) or {})


def get_model(model_id: str) -> ModelInfo | None:
    """Look up a model in the bundled catalogue by any of its ids."""
    return _default_registry().get(model_id)


def list_models() -> list[ModelInfo]:
    """All models in the bundled catalogue, latest first."""
    return list(_default_registry())


def resolve_model_id(model_id: str, endpoint: EndpointStyle) -> str:
    """Translate a model id for ``endpoint`` using the bundled catalogue."""
    return _default_registry().resolve_id(model_id, endpoint)


__all__ = [
    "EndpointStyle",
    "ModelInfo",
    "ModelRegistry",
    "get_model",
    "list_models",
    "resolve_model_id",
]
