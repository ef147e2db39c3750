"""
Message Batches module for claude-sdk-python.

Submits many Messages requests at once and reads their results back.
"""

from claude_sdk.batch.client import BatchClient
from claude_sdk.batch.types import (
    BatchError,
    BatchProcessingStatus,
    BatchRequest,
    BatchResult,
    CanceledResult,
    ErroredResult,
    ExpiredResult,
    MessageBatch,
    RequestCounts,
    SucceededResult,
)

__all__ = [
    "BatchClient",
    "BatchError",
    "BatchProcessingStatus",
    "BatchRequest",
    "BatchResult",
    "CanceledResult",
    "ErroredResult",
    "ExpiredResult",
    "MessageBatch",
    "RequestCounts",
    "SucceededResult",
]
