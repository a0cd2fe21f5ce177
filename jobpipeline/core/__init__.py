"""
Core pipeline logic module.

Contains the trigger and background processors, the pipeline driver,
job ID generation, and the exception hierarchy.
"""

from jobpipeline.core.exceptions import (
    ConfigurationError,
    DeleteError,
    DeliveryError,
    JobExecutionError,
    LogSinkError,
    MalformedPayloadError,
    PipelineException,
    QueueError,
    QueueReceiveError,
    VisibilityError,
)

__all__ = [
    "ConfigurationError",
    "DeleteError",
    "DeliveryError",
    "JobExecutionError",
    "LogSinkError",
    "MalformedPayloadError",
    "PipelineException",
    "QueueError",
    "QueueReceiveError",
    "VisibilityError",
]
