"""
Transport layer - HTTP client for API communication.

Provides httpx-based transport with:
- Async streaming support
- Proxy configuration
- Timeout management
- Credential resolution
"""

from claude_sdk.transport.auth import resolve_api_key, resolve_vertex_token
from claude_sdk.transport.http import (
    HttpRequest,
    HttpTransport,
    Transport,
    TransportResponse,
)

__all__ = [
    "HttpRequest",
    "HttpTransport",
    "Transport",
    "TransportResponse",
    "resolve_api_key",
    "resolve_vertex_token",
]
