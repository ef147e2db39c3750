"""
Credential resolution utilities.

Resolves credentials from multiple sources:
1. Explicit value
2. Environment variables
3. System keyring (optional)
"""

from __future__ import annotations

import os

from claude_sdk import _features
from claude_sdk.telemetry import get_logger

logger = get_logger("claude_sdk.transport.auth")

API_KEY_ENV = "ANTHROPIC_API_KEY"
VERTEX_TOKEN_ENV = "ANTHROPIC_VERTEX_ACCESS_TOKEN"

_KEYRING_SERVICES = ("claude-sdk", "anthropic")


def resolve_api_key(explicit_key: str | None = None) -> str | None:
    """Resolve the API key for the direct endpoint.

    Resolution order:
    1. Explicit key if provided
    2. ``ANTHROPIC_API_KEY``
    3. System keyring (if available)

    Args:
        explicit_key: Explicitly provided API key

    Returns:
        Resolved API key or None if not found
    """
    if explicit_key:
        return explicit_key

    key = os.getenv(API_KEY_ENV)
    if key:
        return key

    return _try_keyring("api_key")


def resolve_vertex_token(explicit_token: str | None = None) -> str | None:
    """Resolve the OAuth access token for the Vertex AI endpoint.

    Resolution order:
    1. Explicit token if provided
    2. ``ANTHROPIC_VERTEX_ACCESS_TOKEN``
    3. System keyring (if available)

    Tokens are short-lived; refreshing them is the caller's job.
    """
    if explicit_token:
        return explicit_token

    token = os.getenv(VERTEX_TOKEN_ENV)
    if token:
        return token

    return _try_keyring("vertex_access_token")


def _try_keyring(username: str) -> str | None:
    """Try to get a credential from the system keyring.

    Args:
        username: Keyring entry name under the library's service names

    Returns:
        Credential from keyring or None
    """
    if not _features.HAS_KEYRING:
        return None
    try:
        import keyring
    except ImportError:
        return None

    for service in _KEYRING_SERVICES:
        try:
            secret = keyring.get_password(service, username)
        except Exception as e:
            # No usable backend (common in containers, WSL, CI)
            logger.debug("Keyring lookup failed", service=service, error=str(e))
            return None
        if secret:
            return secret

    return None
