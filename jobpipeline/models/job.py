"""
Job domain models.

Jobs derived from trigger messages, the trigger processor's result,
and structured per-job log records.

Dependencies: pydantic
System role: Job and log record contracts
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from jobpipeline.models.messages import DEFAULT_JOB_TYPE


class Job(BaseModel):
    """Job derived from a trigger message."""

    jobId: str = Field(..., min_length=1, description="Unique, sortable job identifier")
    jobType: str = Field(default=DEFAULT_JOB_TYPE, description="Job type tag")
    timestamp: str = Field(description="Creation time (ISO-8601, UTC)")
    payload: dict[str, Any] = Field(default_factory=dict, description="Trigger body carried as-is")
    triggerMessageId: str | None = Field(
        default=None, description="Broker ID of the originating trigger message"
    )


class TriggerResult(BaseModel):
    """Outcome of processing one trigger message."""

    job: Job
    processedAt: str
    result: str = "main job completed"
    backgroundJobQueued: bool = False
    workMessageId: str | None = None

    def summary(self) -> dict[str, Any]:
        """Result summary embedded in the work message as mainJobResult."""
        return {
            "jobId": self.job.jobId,
            "triggerMessageId": self.job.triggerMessageId,
            "processedAt": self.processedAt,
            "result": self.result,
        }


class LogLevel(str, Enum):
    """Levels accepted for per-job log records."""

    INFO = "INFO"
    ERROR = "ERROR"


class LogRecord(BaseModel):
    """Structured entry appended to a job's log destination."""

    jobId: str
    level: LogLevel
    message: str
    timestamp: str
    correlationId: str | None = None

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)
