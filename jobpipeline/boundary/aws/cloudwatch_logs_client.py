"""
CloudWatch Logs sink for per-job log streams.

Creates log streams and appends JSON records to them.

Dependencies: boto3, botocore
System role: Log sink backed by Amazon CloudWatch Logs
"""

import logging

from botocore.exceptions import BotoCoreError, ClientError

from jobpipeline.core.exceptions import LogSinkError

logger = logging.getLogger(__name__)


class CloudWatchLogSink:
    """CloudWatch Logs implementation of the LogSink protocol."""

    def __init__(self, logs_client) -> None:
        """
        Initialize sink.

        Args:
            logs_client: boto3 CloudWatch Logs client (see boundary.aws.clients)
        """
        self._logs = logs_client

    def create_destination(self, group: str, destination: str) -> bool:
        """
        Create a log stream in the group.

        Args:
            group: Log group name
            destination: Log stream name

        Returns:
            bool: True if created, False if the stream already existed

        Raises:
            LogSinkError: Any other CloudWatch failure
        """
        try:
            self._logs.create_log_stream(logGroupName=group, logStreamName=destination)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ResourceAlreadyExistsException":
                return False
            raise LogSinkError(f"Failed to create log stream: {e}", destination=destination) from e
        except BotoCoreError as e:
            raise LogSinkError(f"Failed to create log stream: {e}", destination=destination) from e

    def put_record(self, group: str, destination: str, timestamp_ms: int, message: str) -> None:
        """
        Append a single log event to a stream.

        Raises:
            LogSinkError: CloudWatch rejected the event or was unreachable
        """
        try:
            response = self._logs.put_log_events(
                logGroupName=group,
                logStreamName=destination,
                logEvents=[{"timestamp": timestamp_ms, "message": message}],
            )
        except (ClientError, BotoCoreError) as e:
            raise LogSinkError(f"Failed to write log event: {e}", destination=destination) from e

        rejected = response.get("rejectedLogEventsInfo")
        if rejected:
            raise LogSinkError(
                "Log event rejected", destination=destination, details={"rejected": rejected}
            )
