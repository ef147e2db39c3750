"""
Token counting module for claude-sdk-python.

Provides request token estimates and context-window checks.
"""

from claude_sdk.tokens.counter import (
    CharacterEstimator,
    TiktokenCounter,
    TokenCounter,
    get_token_counter,
)

__all__ = [
    "CharacterEstimator",
    "TiktokenCounter",
    "TokenCounter",
    "get_token_counter",
]
