"""
Client module for claude-sdk-python.

Provides the main ClaudeClient class and supporting builders.
"""

from claude_sdk.client.builder import ClaudeClientBuilder, ConversationBuilder
from claude_sdk.client.config import ClientConfig
from claude_sdk.client.core import ClaudeClient
from claude_sdk.client.response import CallStats
from claude_sdk.client.stream import MessageStream

__all__ = [
    "CallStats",
    "ClaudeClient",
    "ClaudeClientBuilder",
    "ClientConfig",
    "ConversationBuilder",
    "MessageStream",
]
