"""
Resilience layer for claude-sdk-python.

Whole-request retry with exponential backoff, jitter and retry-after
support.
"""

from claude_sdk.resilience.retry import (
    FatalFailure,
    RetryableFailure,
    RetryController,
    RetryOutcome,
    RetryPolicy,
    RetryResult,
    Success,
    with_retry,
)

__all__ = [
    "FatalFailure",
    "RetryController",
    "RetryOutcome",
    "RetryPolicy",
    "RetryResult",
    "RetryableFailure",
    "Success",
    "with_retry",
]
