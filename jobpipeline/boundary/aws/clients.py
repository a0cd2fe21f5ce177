"""
AWS client factory.

Creates boto3 clients with explicit region and timeout configuration.
Clients are built per processor and passed in; nothing is cached here.

Dependencies: boto3, botocore
System role: Construction of AWS service clients
"""

import logging

import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)


def create_sqs_client(region: str, wait_seconds: int = 20):
    """
    Create an SQS client.

    The read timeout must outlast the long-poll wait, otherwise botocore
    abandons a receive the broker is still holding open.

    Args:
        region: AWS region
        wait_seconds: Long-poll wait used with this client

    Returns:
        botocore.client.SQS: Configured SQS client
    """
    config = Config(
        connect_timeout=10,
        read_timeout=wait_seconds + 10,
        retries={"max_attempts": 3, "mode": "standard"},
    )
    client = boto3.client("sqs", region_name=region, config=config)
    logger.info("%s:create_sqs_client - SQS client initialized (region=%s)", __name__, region)
    return client


def create_logs_client(region: str):
    """
    Create a CloudWatch Logs client.

    Args:
        region: AWS region

    Returns:
        botocore.client.CloudWatchLogs: Configured CloudWatch Logs client
    """
    config = Config(
        connect_timeout=10,
        read_timeout=30,
        retries={"max_attempts": 3, "mode": "standard"},
    )
    client = boto3.client("logs", region_name=region, config=config)
    logger.info("%s:create_logs_client - CloudWatch Logs client initialized (region=%s)", __name__, region)
    return client
