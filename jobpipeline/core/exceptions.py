"""
Exception hierarchy for the job pipeline.

Provides layered exception structure for pipeline errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class PipelineException(Exception):
    """Base exception for all job pipeline errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(PipelineException):
    """Raised when a processor cannot start with the given configuration."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize configuration error.

        Args:
            message: Error message
            setting: Name of the missing or invalid setting
            details: Additional context
        """
        details = details or {}
        if setting:
            details["setting"] = setting
        super().__init__(message, details)


class MalformedPayloadError(PipelineException):
    """Raised when a queue message body cannot be parsed or validated."""

    def __init__(
        self,
        message: str,
        message_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize malformed payload error.

        Args:
            message: Error message
            message_id: Broker message ID of the offending message
            details: Additional context
        """
        details = details or {}
        if message_id:
            details["message_id"] = message_id
        super().__init__(message, details)


class QueueError(PipelineException):
    """Base exception for queue service failures."""

    def __init__(
        self,
        message: str,
        queue: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize queue error.

        Args:
            message: Error message
            queue: Queue address the operation targeted
            details: Additional context
        """
        details = details or {}
        if queue:
            details["queue"] = queue
        super().__init__(message, details)


class QueueReceiveError(QueueError):
    """Raised when a receive (poll) call fails. Transient."""

    pass


class DeliveryError(QueueError):
    """Raised when a message cannot be sent (unreachable queue or oversized body)."""

    pass


class DeleteError(QueueError):
    """Raised when a message cannot be deleted, e.g. stale receipt handle. Non-fatal."""

    pass


class VisibilityError(QueueError):
    """Raised when a message's visibility timeout cannot be changed."""

    pass


class LogSinkError(PipelineException):
    """Raised when the per-job log sink rejects an operation (non-critical)."""

    def __init__(
        self,
        message: str,
        destination: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if destination:
            details["destination"] = destination
        super().__init__(message, details)


class JobExecutionError(PipelineException):
    """Raised when a job handler fails."""

    def __init__(
        self,
        message: str,
        job_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize job execution error.

        Args:
            message: Error message
            job_id: ID of the job that failed
            details: Additional context
        """
        details = details or {}
        if job_id:
            details["job_id"] = job_id
        super().__init__(message, details)
