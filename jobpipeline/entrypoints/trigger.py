"""
Trigger processor entry point.

Environment variables:
- INPUT_QUEUE_URL: trigger queue (unset runs standalone with synthetic triggers)
- SQS_QUEUE_URL: background work queue
- POLL_INTERVAL_MS: synthetic trigger interval in standalone mode
- AWS_REGION: AWS region
- LOG_LEVEL: Logging level

Dependencies: jobpipeline.core, jobpipeline.boundary.aws
System role: Process entry point for the trigger processor
"""

import sys

from jobpipeline.boundary.aws import SqsQueueClient, create_sqs_client
from jobpipeline.configs import Settings
from jobpipeline.core.driver import PipelineDriver
from jobpipeline.core.exceptions import ConfigurationError
from jobpipeline.core.trigger_processor import TriggerProcessor
from jobpipeline.entrypoints.common import EXIT_FAILURE, load_settings, run_driver
from jobpipeline.observability.logger import get_logger

logger = get_logger(__name__)


def build_processor(settings: Settings, sqs_client=None) -> TriggerProcessor:
    """
    Wire a trigger processor from settings.

    Args:
        settings: Application settings
        sqs_client: boto3 SQS client (created from settings if None)
    """
    queues = settings.queues
    sqs_client = sqs_client or create_sqs_client(settings.aws_region, queues.queue_wait_seconds)
    return TriggerProcessor.from_settings(queues, SqsQueueClient(sqs_client))


def idle_delay_seconds(settings: Settings) -> float:
    """Delay between polls: the poll interval in standalone mode, a short pause otherwise."""
    queues = settings.queues
    if queues.standalone:
        return queues.poll_interval_seconds
    return queues.trigger_idle_delay_seconds


def main() -> int:
    """Start the trigger processor; returns the process exit status."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.critical("%s:main - %s", __name__, e)
        return EXIT_FAILURE

    queues = settings.queues
    logger.info("%s:main - Starting message-driven main job processor...", __name__)
    logger.info(
        "%s:main - Input queue: %s", __name__, queues.input_queue_url or "Not configured (synthetic mode)"
    )
    logger.info("%s:main - Output queue: %s", __name__, queues.sqs_queue_url or "Not configured")
    logger.info("%s:main - Poll interval: %d ms", __name__, queues.poll_interval_ms)

    driver = PipelineDriver(
        build_processor(settings),
        idle_delay_seconds=idle_delay_seconds(settings),
        error_backoff_seconds=queues.poll_error_backoff_seconds,
    )
    return run_driver(driver, settings)


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
