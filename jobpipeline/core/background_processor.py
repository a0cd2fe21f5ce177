"""
Background job processor.

Consumes work messages, opens a correlated log destination per job,
runs the job handler and records the job's lifecycle. Messages are
deleted only after the handler succeeds; failures leave them for
broker redelivery and eventual dead-lettering.

Dependencies: jobpipeline.boundary.protocols, jobpipeline.observability, pydantic
System role: Second stage of the pipeline (work queue -> job log destination)
"""

import json
import logging
from datetime import datetime
from typing import Any, Callable

from pydantic import ValidationError

from jobpipeline.boundary.protocols import QueueClient
from jobpipeline.configs.queues import QueueSettings
from jobpipeline.configs.worker import WorkerSettings
from jobpipeline.core.exceptions import DeleteError, JobExecutionError, MalformedPayloadError
from jobpipeline.core.handlers import JobHandler, SimulatedWorkHandler
from jobpipeline.core.heartbeat import VisibilityHeartbeat
from jobpipeline.core.job_ids import JobIdGenerator
from jobpipeline.core.timeutil import isoformat_utc, utc_now
from jobpipeline.models import DEFAULT_JOB_TYPE, IncomingWorkBody, Job, QueueMessage
from jobpipeline.observability.correlation import correlation_scope
from jobpipeline.observability.job_logger import JobLogger
from jobpipeline.observability.log_utils import (
    log_exception_with_context,
    log_with_context,
    message_context,
)

logger = logging.getLogger(__name__)


def parse_work_body(message: QueueMessage) -> IncomingWorkBody:
    """
    Parse a work message body.

    Raises:
        MalformedPayloadError: Body is not a JSON object
    """
    try:
        raw = json.loads(message.body)
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedPayloadError(
            f"Invalid JSON in work message body: {e}", message_id=message.messageId
        ) from e

    if not isinstance(raw, dict):
        raise MalformedPayloadError(
            f"Work message body must be a JSON object, got {type(raw).__name__}",
            message_id=message.messageId,
        )

    try:
        return IncomingWorkBody.model_validate(raw)
    except ValidationError as e:
        raise MalformedPayloadError(
            f"Invalid work message schema: {e.error_count()} error(s)",
            message_id=message.messageId,
        ) from e


class BackgroundProcessor:
    """Executes background jobs delivered on the work queue."""

    name = "background"

    def __init__(
        self,
        queue_client: QueueClient,
        work_queue_url: str,
        job_logger: JobLogger,
        handler: JobHandler | None = None,
        id_generator: JobIdGenerator | None = None,
        max_messages: int = 10,
        wait_seconds: int = 20,
        visibility_timeout: int = 60,
        heartbeat_seconds: float = 0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize background processor.

        Args:
            queue_client: Queue client for the work queue
            work_queue_url: Work queue address
            job_logger: Opens per-job log destinations
            handler: Job body (SimulatedWorkHandler if None)
            id_generator: Fallback job ID source for messages without a jobId
            max_messages: Batch size per receive
            wait_seconds: Long-poll wait
            visibility_timeout: Visibility timeout on receive and on heartbeat
            heartbeat_seconds: Visibility heartbeat interval (0 disables)
            clock: UTC clock (defaults to wall clock)
        """
        self._queue_client = queue_client
        self.work_queue_url = work_queue_url
        self._job_logger = job_logger
        self._handler = handler or SimulatedWorkHandler()
        self._ids = id_generator or JobIdGenerator()
        self._max_messages = max_messages
        self._wait_seconds = wait_seconds
        self._visibility_timeout = visibility_timeout
        self._heartbeat_seconds = heartbeat_seconds
        self._clock = clock or utc_now

    @classmethod
    def from_settings(
        cls,
        queues: QueueSettings,
        worker: WorkerSettings,
        queue_client: QueueClient,
        job_logger: JobLogger,
        handler: JobHandler | None = None,
    ) -> "BackgroundProcessor":
        return cls(
            queue_client=queue_client,
            work_queue_url=queues.sqs_queue_url,
            job_logger=job_logger,
            handler=handler or SimulatedWorkHandler(worker.simulated_work_seconds),
            max_messages=queues.work_max_messages,
            wait_seconds=queues.queue_wait_seconds,
            visibility_timeout=queues.queue_visibility_timeout,
            heartbeat_seconds=worker.visibility_heartbeat_seconds,
        )

    def poll(self) -> list[QueueMessage]:
        """
        Long-poll the work queue.

        Raises:
            QueueReceiveError: Broker failure
        """
        logger.debug("%s:poll - Polling for messages from queue: %s", __name__, self.work_queue_url)
        messages = list(
            self._queue_client.receive(
                self.work_queue_url,
                max_messages=self._max_messages,
                wait_seconds=self._wait_seconds,
                visibility_timeout=self._visibility_timeout,
            )
        )
        if messages:
            logger.info("%s:poll - Received %d messages", __name__, len(messages))
        else:
            logger.debug("%s:poll - No messages received", __name__)
        return messages

    def process(self, message: QueueMessage) -> Any:
        """
        Run the job carried by one work message.

        Records, in order: job start, job data, processing, then either
        completion or a single failure record.

        Args:
            message: Delivered work message

        Returns:
            Any: The handler's result

        Raises:
            MalformedPayloadError: Body is not a JSON object
            JobExecutionError: The handler failed
        """
        logger.info(
            "%s:process - Processing message: %s",
            __name__,
            message.messageId,
            extra=message_context(message),
        )
        body = parse_work_body(message)
        job_id = body.jobId or self._ids.new_id()
        if not body.jobId:
            logger.warning(
                "%s:process - Message %s has no jobId, assigned %s", __name__, message.messageId, job_id
            )

        job_type = body.jobType or DEFAULT_JOB_TYPE
        if body.data is None or isinstance(body.data, dict):
            data = body.data or {}
        else:
            data = {"value": body.data}
        job = Job(
            jobId=job_id,
            jobType=job_type,
            timestamp=body.timestamp or isoformat_utc(self._clock()),
            payload=data,
            triggerMessageId=message.messageAttributes.get("correlationId"),
        )
        correlation_id = job.triggerMessageId or job_id

        with correlation_scope(correlation_id):
            stream = self._job_logger.open(job_id, correlation_id=correlation_id)
            stream.info(f"Job started: {job_type}")
            stream.info(f"Job data: {json.dumps(body.data, default=str)}")
            if message.receive_count > 1:
                log_with_context(
                    logger,
                    logging.INFO,
                    f"{__name__}:process - Redelivery of job {job_id}",
                    job_id=job_id,
                    **message_context(message),
                )

            stream.info("Processing job...")
            try:
                with VisibilityHeartbeat(
                    self._queue_client,
                    self.work_queue_url,
                    message.receiptHandle,
                    interval_seconds=self._heartbeat_seconds,
                    visibility_timeout=self._visibility_timeout,
                    job_id=job_id,
                ):
                    result = self._handler(job)
            except Exception as e:
                stream.error(f"Job failed: {e}")
                raise JobExecutionError(f"Job failed: {e}", job_id=job_id) from e

            stream.info("Job completed successfully")
            logger.info("%s:process - Job completed successfully: %s", __name__, job_id)
            return result

    def handle(self, message: QueueMessage) -> Any:
        """Process a work message and delete it on success."""
        result = self.process(message)
        self._acknowledge(message)
        return result

    def _acknowledge(self, message: QueueMessage) -> None:
        try:
            self._queue_client.delete(self.work_queue_url, message.receiptHandle)
            logger.info("%s:_acknowledge - Message deleted from queue: %s", __name__, message.messageId)
        except DeleteError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_acknowledge - Could not delete message {message.messageId}",
                e,
                **message_context(message),
            )
