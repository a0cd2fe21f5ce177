"""
Queue message schemas for the job pipeline.

Validates trigger and work message bodies and wraps broker deliveries.
Field names follow the JSON wire format (camelCase).

Dependencies: pydantic
System role: Data validation and contract definition
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_JOB_TYPE = "main-job-processing"
SYNTHETIC_TRIGGER = "synthetic"
SYNTHETIC_RECEIPT_HANDLE = "synthetic-handle"


class QueueMessage(BaseModel):
    """Single message delivered by the queue service."""

    messageId: str
    receiptHandle: str
    body: str  # JSON string containing a TriggerBody or WorkMessage
    attributes: dict[str, str] = Field(default_factory=dict)
    messageAttributes: dict[str, str] = Field(default_factory=dict)

    @property
    def receive_count(self) -> int:
        """Approximate number of times the broker has delivered this message."""
        try:
            return int(self.attributes.get("ApproximateReceiveCount", "1"))
        except ValueError:
            return 1

    @property
    def sent_at_ms(self) -> int | None:
        """Broker send timestamp in epoch milliseconds, if reported."""
        value = self.attributes.get("SentTimestamp")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def is_synthetic(self) -> bool:
        return self.receiptHandle == SYNTHETIC_RECEIPT_HANDLE


class TriggerBody(BaseModel):
    """Trigger message body received from the input queue."""

    model_config = ConfigDict(extra="allow")

    trigger: str
    timestamp: str
    triggerBackgroundJob: bool | None = None
    data: dict[str, Any] | None = None
    jobId: str | None = None
    jobType: str | None = None

    @property
    def wants_background_job(self) -> bool:
        """Background work is produced unless explicitly disabled."""
        return self.triggerBackgroundJob is not False


class WorkMessage(BaseModel):
    """Message body sent to the background work queue."""

    jobId: str = Field(..., min_length=1)
    jobType: str = DEFAULT_JOB_TYPE
    timestamp: str
    data: dict[str, Any] = Field(default_factory=dict)

    def attributes(self, correlation_id: str | None = None) -> dict[str, str]:
        """Message attributes for filterable consumption."""
        attrs = {"jobType": self.jobType, "jobId": self.jobId}
        if correlation_id:
            attrs["correlationId"] = correlation_id
        return attrs


class IncomingWorkBody(BaseModel):
    """
    Lenient view of a work message body as received.

    Producers are not trusted to set every field, so everything is optional.
    """

    model_config = ConfigDict(extra="allow")

    jobId: str | None = None
    jobType: str | None = None
    timestamp: str | None = None
    data: Any = None

    @field_validator("jobId", mode="before")
    @classmethod
    def _blank_job_id_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value
