"""
Message Batches API models.

A batch runs many Messages requests asynchronously at reduced cost.
Results are fetched as JSON Lines once processing has ended.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from claude_sdk.types.message import MessagesRequest, MessagesResponse


class BatchProcessingStatus(str, Enum):
    """Processing status of a batch."""

    IN_PROGRESS = "in_progress"
    CANCELING = "canceling"
    ENDED = "ended"


class RequestCounts(BaseModel):
    """Number of requests in each state."""

    processing: int = 0
    succeeded: int = 0
    errored: int = 0
    canceled: int = 0
    expired: int = 0

    @property
    def total(self) -> int:
        return self.processing + self.succeeded + self.errored + self.canceled + self.expired


class BatchRequest(BaseModel):
    """One request inside a batch.

    Attributes:
        custom_id: Caller-chosen id used to match results to requests
        params: The Messages request to run
    """

    custom_id: str = Field(min_length=1, max_length=64)
    params: MessagesRequest

    def to_body(self, model_id: str) -> dict[str, Any]:
        """Serialize with ``model_id`` as the wire model id."""
        params = self.params.model_dump(mode="json", exclude_none=True)
        params.pop("stream", None)
        params["model"] = model_id
        return {"custom_id": self.custom_id, "params": params}


class MessageBatch(BaseModel):
    """A batch as reported by the server."""

    model_config = ConfigDict(extra="allow")

    id: str
    type: Literal["message_batch"] = "message_batch"
    processing_status: BatchProcessingStatus
    request_counts: RequestCounts = Field(default_factory=RequestCounts)
    created_at: str | None = None
    ended_at: str | None = None
    expires_at: str | None = None
    cancel_initiated_at: str | None = None
    archived_at: str | None = None
    results_url: str | None = None

    @property
    def is_ended(self) -> bool:
        return self.processing_status is BatchProcessingStatus.ENDED


class BatchError(BaseModel):
    """Error body of an errored request."""

    model_config = ConfigDict(extra="allow")

    type: str
    error: dict[str, Any] | None = None

    @property
    def error_type(self) -> str:
        return (self.error or {}).get("type", self.type)

    @property
    def message(self) -> str:
        return (self.error or {}).get("message", "")


class SucceededResult(BaseModel):
    type: Literal["succeeded"] = "succeeded"
    message: MessagesResponse


class ErroredResult(BaseModel):
    type: Literal["errored"] = "errored"
    error: BatchError


class CanceledResult(BaseModel):
    type: Literal["canceled"] = "canceled"


class ExpiredResult(BaseModel):
    type: Literal["expired"] = "expired"


BatchResultOutcome = Annotated[
    Union[SucceededResult, ErroredResult, CanceledResult, ExpiredResult],
    Field(discriminator="type"),
]


class BatchResult(BaseModel):
    """Outcome of one batch request, one JSON line of the results file."""

    custom_id: str
    result: BatchResultOutcome

    @property
    def succeeded(self) -> bool:
        return isinstance(self.result, SucceededResult)

    @property
    def message(self) -> MessagesResponse | None:
        """The response, for a succeeded request."""
        return self.result.message if isinstance(self.result, SucceededResult) else None
