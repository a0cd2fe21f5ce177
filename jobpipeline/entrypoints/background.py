"""
Background job processor entry point.

Environment variables:
- SQS_QUEUE_URL: work queue (required)
- LOG_GROUP_NAME: CloudWatch log group for per-job streams
- AWS_REGION: AWS region
- LOG_LEVEL: Logging level

Dependencies: jobpipeline.core, jobpipeline.boundary.aws
System role: Process entry point for the background processor
"""

import sys

from jobpipeline.boundary.aws import (
    CloudWatchLogSink,
    SqsQueueClient,
    create_logs_client,
    create_sqs_client,
)
from jobpipeline.configs import Settings
from jobpipeline.core.background_processor import BackgroundProcessor
from jobpipeline.core.driver import PipelineDriver
from jobpipeline.core.exceptions import ConfigurationError
from jobpipeline.core.handlers import JobHandler
from jobpipeline.entrypoints.common import EXIT_FAILURE, load_settings, run_driver
from jobpipeline.observability.job_logger import JobLogger
from jobpipeline.observability.logger import get_logger

logger = get_logger(__name__)


def build_processor(
    settings: Settings,
    sqs_client=None,
    logs_client=None,
    handler: JobHandler | None = None,
) -> BackgroundProcessor:
    """
    Wire a background processor from settings.

    Args:
        settings: Application settings
        sqs_client: boto3 SQS client (created from settings if None)
        logs_client: boto3 CloudWatch Logs client (created from settings if None)
        handler: Job body (simulated work if None)

    Raises:
        ConfigurationError: SQS_QUEUE_URL is not set
    """
    queues = settings.queues
    if not queues.sqs_queue_url:
        raise ConfigurationError("SQS_QUEUE_URL environment variable not set", setting="SQS_QUEUE_URL")

    sqs_client = sqs_client or create_sqs_client(settings.aws_region, queues.queue_wait_seconds)
    logs_client = logs_client or create_logs_client(settings.aws_region)
    job_logger = JobLogger(CloudWatchLogSink(logs_client), settings.worker.log_group_name)

    return BackgroundProcessor.from_settings(
        queues,
        settings.worker,
        queue_client=SqsQueueClient(sqs_client),
        job_logger=job_logger,
        handler=handler,
    )


def main() -> int:
    """Start the background processor; returns the process exit status."""
    try:
        settings = load_settings()
        logger.info("%s:main - Starting background job processor...", __name__)
        logger.info("%s:main - Queue URL: %s", __name__, settings.queues.sqs_queue_url)
        logger.info("%s:main - LOG_GROUP_NAME: %s", __name__, settings.worker.log_group_name)
        processor = build_processor(settings)
    except ConfigurationError as e:
        logger.critical("%s:main - %s", __name__, e)
        return EXIT_FAILURE

    driver = PipelineDriver(
        processor,
        idle_delay_seconds=0.0,
        error_backoff_seconds=settings.queues.poll_error_backoff_seconds,
    )
    return run_driver(driver, settings)


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
