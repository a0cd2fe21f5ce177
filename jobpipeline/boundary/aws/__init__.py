"""
AWS boundary modules.

Exports: SqsQueueClient, CloudWatchLogSink, create_sqs_client, create_logs_client
"""

from .clients import create_logs_client, create_sqs_client
from .cloudwatch_logs_client import CloudWatchLogSink
from .sqs_client import SqsQueueClient

__all__ = ["CloudWatchLogSink", "SqsQueueClient", "create_logs_client", "create_sqs_client"]
