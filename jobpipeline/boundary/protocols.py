"""
Boundary interfaces for external collaborators.

The core depends on the queue service and the log sink only through
these protocols; AWS implementations live in jobpipeline.boundary.aws.

Dependencies: typing
System role: Narrow seams between the pipeline core and infrastructure
"""

from typing import Mapping, Protocol, Sequence

from jobpipeline.models import QueueMessage


class QueueClient(Protocol):
    """Durable at-least-once queue with long-poll receive."""

    def receive(
        self,
        queue: str,
        max_messages: int,
        wait_seconds: int,
        visibility_timeout: int,
    ) -> Sequence[QueueMessage]:
        """Long-poll for up to max_messages. Raises QueueReceiveError."""
        ...

    def send(self, queue: str, body: str, attributes: Mapping[str, str]) -> str:
        """Send a message, returning its broker ID. Raises DeliveryError."""
        ...

    def delete(self, queue: str, receipt_handle: str) -> None:
        """Acknowledge a message. Raises DeleteError."""
        ...

    def change_visibility(self, queue: str, receipt_handle: str, timeout_seconds: int) -> None:
        """Extend an in-flight message's visibility. Raises VisibilityError."""
        ...


class LogSink(Protocol):
    """Structured log store addressable by named destinations."""

    def create_destination(self, group: str, destination: str) -> bool:
        """
        Create a destination. Idempotent.

        Returns True if created, False if it already existed.
        Raises LogSinkError.
        """
        ...

    def put_record(self, group: str, destination: str, timestamp_ms: int, message: str) -> None:
        """Append one record. Raises LogSinkError."""
        ...
