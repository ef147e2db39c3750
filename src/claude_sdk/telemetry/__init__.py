"""
Telemetry module for claude-sdk-python.

Provides structured logging with request-scoped context and credential
masking.
"""

from claude_sdk.telemetry.logger import (
    ClaudeLogger,
    JsonFormatter,
    LogContext,
    LogLevel,
    SensitiveDataMasker,
    TextFormatter,
    clear_log_context,
    get_log_context,
    get_logger,
    log_context,
    reset_log_context,
    set_log_context,
)

__all__ = [
    "ClaudeLogger",
    "JsonFormatter",
    "LogContext",
    "LogLevel",
    "SensitiveDataMasker",
    "TextFormatter",
    "clear_log_context",
    "get_log_context",
    "get_logger",
    "log_context",
    "reset_log_context",
    "set_log_context",
]
