"""
SQS client for pipeline queue operations.

Wraps boto3 SQS calls behind the QueueClient protocol and maps
botocore failures onto the pipeline's queue error taxonomy.

Dependencies: boto3, botocore
System role: Queue Client backed by Amazon SQS
"""

import base64
import logging
from typing import Any, Mapping

from botocore.exceptions import BotoCoreError, ClientError

from jobpipeline.core.exceptions import (
    DeleteError,
    DeliveryError,
    QueueReceiveError,
    VisibilityError,
)
from jobpipeline.models import QueueMessage

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 256 * 1024
MAX_RECEIVE_BATCH = 10
SYSTEM_ATTRIBUTES = ["SentTimestamp", "ApproximateReceiveCount"]


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code", "Unknown")
    return type(exc).__name__


def _flatten_attributes(raw: Mapping[str, Any]) -> dict[str, str]:
    """Reduce SQS MessageAttributes to a plain string map (binary values base64-encoded)."""
    flat = {}
    for name, value in raw.items():
        if "StringValue" in value:
            flat[name] = value["StringValue"]
        elif "BinaryValue" in value:
            flat[name] = base64.b64encode(value["BinaryValue"]).decode("ascii")
    return flat


class SqsQueueClient:
    """SQS-backed queue client (long-poll receive, send, delete)."""

    def __init__(self, sqs_client) -> None:
        """
        Initialize queue client.

        Args:
            sqs_client: boto3 SQS client (see boundary.aws.clients)
        """
        self._sqs = sqs_client

    def receive(
        self,
        queue: str,
        max_messages: int,
        wait_seconds: int,
        visibility_timeout: int,
    ) -> list[QueueMessage]:
        """
        Long-poll the queue for messages.

        Args:
            queue: Queue URL
            max_messages: Upper bound on returned messages (SQS caps at 10)
            wait_seconds: Long-poll wait time
            visibility_timeout: Seconds received messages stay hidden

        Returns:
            list[QueueMessage]: Zero or more messages, at most max_messages

        Raises:
            QueueReceiveError: Broker unreachable or request rejected
        """
        batch = max(1, min(max_messages, MAX_RECEIVE_BATCH))
        try:
            response = self._sqs.receive_message(
                QueueUrl=queue,
                MaxNumberOfMessages=batch,
                WaitTimeSeconds=wait_seconds,
                VisibilityTimeout=visibility_timeout,
                AttributeNames=SYSTEM_ATTRIBUTES,
                MessageAttributeNames=["All"],
            )
        except (ClientError, BotoCoreError) as e:
            raise QueueReceiveError(
                f"Receive failed: {e}", queue=queue, details={"code": _error_code(e)}
            ) from e

        messages = [
            QueueMessage(
                messageId=raw["MessageId"],
                receiptHandle=raw["ReceiptHandle"],
                body=raw.get("Body", ""),
                attributes=raw.get("Attributes", {}),
                messageAttributes=_flatten_attributes(raw.get("MessageAttributes", {})),
            )
            for raw in response.get("Messages", [])
        ]
        return messages[:batch]

    def send(self, queue: str, body: str, attributes: Mapping[str, str]) -> str:
        """
        Send a message with string attributes.

        Args:
            queue: Queue URL
            body: Encoded message body
            attributes: Message attributes (all sent as String)

        Returns:
            str: Broker message ID

        Raises:
            DeliveryError: Body too large, queue unreachable, or send rejected
        """
        size = len(body.encode("utf-8"))
        if size > MAX_BODY_BYTES:
            raise DeliveryError(
                f"Message body of {size} bytes exceeds {MAX_BODY_BYTES} byte limit",
                queue=queue,
                details={"size_bytes": size},
            )

        params = {
            "QueueUrl": queue,
            "MessageBody": body,
            "MessageAttributes": {
                name: {"DataType": "String", "StringValue": value}
                for name, value in attributes.items()
                if value
            },
        }
        try:
            response = self._sqs.send_message(**params)
        except (ClientError, BotoCoreError) as e:
            raise DeliveryError(
                f"Send failed: {e}", queue=queue, details={"code": _error_code(e)}
            ) from e

        message_id = response.get("MessageId", "")
        logger.debug("%s:send - Sent message %s (%d bytes)", __name__, message_id, size)
        return message_id

    def delete(self, queue: str, receipt_handle: str) -> None:
        """
        Delete (acknowledge) a received message.

        Raises:
            DeleteError: Receipt handle stale/invalid or broker unreachable
        """
        try:
            self._sqs.delete_message(QueueUrl=queue, ReceiptHandle=receipt_handle)
        except (ClientError, BotoCoreError) as e:
            raise DeleteError(
                f"Delete failed: {e}", queue=queue, details={"code": _error_code(e)}
            ) from e

    def change_visibility(self, queue: str, receipt_handle: str, timeout_seconds: int) -> None:
        """
        Reset the visibility timeout of an in-flight message.

        Raises:
            VisibilityError: Receipt handle stale/invalid or broker unreachable
        """
        try:
            self._sqs.change_message_visibility(
                QueueUrl=queue,
                ReceiptHandle=receipt_handle,
                VisibilityTimeout=timeout_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            raise VisibilityError(
                f"Visibility change failed: {e}", queue=queue, details={"code": _error_code(e)}
            ) from e
