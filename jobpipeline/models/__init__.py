"""
Pipeline data models.

Exports: QueueMessage, TriggerBody, WorkMessage, IncomingWorkBody, Job,
TriggerResult, LogRecord, LogLevel
"""

from jobpipeline.models.job import Job, LogLevel, LogRecord, TriggerResult
from jobpipeline.models.messages import (
    DEFAULT_JOB_TYPE,
    IncomingWorkBody,
    QueueMessage,
    TriggerBody,
    WorkMessage,
)

__all__ = [
    "DEFAULT_JOB_TYPE",
    "IncomingWorkBody",
    "Job",
    "LogLevel",
    "LogRecord",
    "QueueMessage",
    "TriggerBody",
    "TriggerResult",
    "WorkMessage",
]
