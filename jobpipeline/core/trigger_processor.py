"""
Trigger processor.

Turns one trigger message into a Job and, unless the trigger opts out,
one WorkMessage on the background queue. Without an input queue it runs
in standalone mode and synthesizes one trigger per poll.

Dependencies: jobpipeline.boundary.protocols, jobpipeline.models, pydantic
System role: First stage of the pipeline (input queue -> work queue)
"""

import json
import logging
from datetime import datetime
from typing import Any, Callable

from pydantic import ValidationError

from jobpipeline.boundary.protocols import QueueClient
from jobpipeline.configs.queues import QueueSettings
from jobpipeline.core.exceptions import DeleteError, MalformedPayloadError
from jobpipeline.core.job_ids import JobIdGenerator, derive_job_id
from jobpipeline.core.timeutil import isoformat_utc, utc_now
from jobpipeline.models import (
    DEFAULT_JOB_TYPE,
    Job,
    QueueMessage,
    TriggerBody,
    TriggerResult,
    WorkMessage,
)
from jobpipeline.models.messages import SYNTHETIC_RECEIPT_HANDLE, SYNTHETIC_TRIGGER
from jobpipeline.observability.correlation import correlation_scope
from jobpipeline.observability.log_utils import message_context

logger = logging.getLogger(__name__)


def parse_trigger_body(message: QueueMessage) -> tuple[TriggerBody, dict[str, Any]]:
    """
    Parse and validate a trigger message body.

    Args:
        message: Delivered trigger message

    Returns:
        tuple: (validated TriggerBody, raw decoded body)

    Raises:
        MalformedPayloadError: Body is not JSON, not an object, or misses fields
    """
    try:
        raw = json.loads(message.body)
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedPayloadError(
            f"Invalid JSON in trigger body: {e}", message_id=message.messageId
        ) from e

    if not isinstance(raw, dict):
        raise MalformedPayloadError(
            f"Trigger body must be a JSON object, got {type(raw).__name__}",
            message_id=message.messageId,
        )

    try:
        body = TriggerBody.model_validate(raw)
    except ValidationError as e:
        raise MalformedPayloadError(
            f"Invalid trigger schema: {e.error_count()} error(s)",
            message_id=message.messageId,
            details={"errors": [err["loc"] for err in e.errors()]},
        ) from e
    return body, raw


class TriggerProcessor:
    """Consumes trigger messages and conditionally enqueues background jobs."""

    name = "trigger"

    def __init__(
        self,
        queue_client: QueueClient,
        input_queue_url: str | None,
        work_queue_url: str | None,
        id_generator: JobIdGenerator | None = None,
        max_messages: int = 5,
        wait_seconds: int = 20,
        visibility_timeout: int = 60,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize trigger processor.

        Args:
            queue_client: Queue client used for both queues
            input_queue_url: Trigger queue (None selects standalone mode)
            work_queue_url: Background work queue (None skips fan-out)
            id_generator: Job ID source (new generator if None)
            max_messages: Batch size per receive
            wait_seconds: Long-poll wait
            visibility_timeout: Visibility timeout on receive
            clock: UTC clock (defaults to wall clock)
        """
        self._queue_client = queue_client
        self.input_queue_url = input_queue_url
        self.work_queue_url = work_queue_url
        self._ids = id_generator or JobIdGenerator()
        self._max_messages = max_messages
        self._wait_seconds = wait_seconds
        self._visibility_timeout = visibility_timeout
        self._clock = clock or utc_now

    @classmethod
    def from_settings(
        cls,
        settings: QueueSettings,
        queue_client: QueueClient,
        id_generator: JobIdGenerator | None = None,
    ) -> "TriggerProcessor":
        return cls(
            queue_client=queue_client,
            input_queue_url=settings.input_queue_url,
            work_queue_url=settings.sqs_queue_url,
            id_generator=id_generator,
            max_messages=settings.trigger_max_messages,
            wait_seconds=settings.queue_wait_seconds,
            visibility_timeout=settings.queue_visibility_timeout,
        )

    @property
    def standalone(self) -> bool:
        return not self.input_queue_url

    def poll(self) -> list[QueueMessage]:
        """
        Fetch the next batch of trigger messages.

        In standalone mode returns exactly one synthetic trigger.

        Raises:
            QueueReceiveError: Broker failure while polling the input queue
        """
        if self.standalone:
            logger.info("%s:poll - No input queue configured, running in standalone mode", __name__)
            return [self.synthesize_trigger()]

        messages = list(
            self._queue_client.receive(
                self.input_queue_url,
                max_messages=self._max_messages,
                wait_seconds=self._wait_seconds,
                visibility_timeout=self._visibility_timeout,
            )
        )
        if messages:
            logger.info("%s:poll - Received %d trigger messages", __name__, len(messages))
        else:
            logger.debug("%s:poll - No trigger messages available", __name__)
        return messages

    def synthesize_trigger(self) -> QueueMessage:
        """Build a synthetic trigger that always requests background work."""
        body = {
            "trigger": SYNTHETIC_TRIGGER,
            "timestamp": isoformat_utc(self._clock()),
            "triggerBackgroundJob": True,
        }
        return QueueMessage(
            messageId=f"synthetic-{self._ids.new_id()}",
            receiptHandle=SYNTHETIC_RECEIPT_HANDLE,
            body=json.dumps(body),
        )

    def resolve_job_id(self, message: QueueMessage, body: TriggerBody) -> str:
        """
        Pick the job ID for a trigger.

        Order: explicit jobId in the body, then an ID derived from the
        broker delivery (stable across redeliveries), then a fresh ID.
        """
        if body.jobId:
            return body.jobId
        if not message.is_synthetic and message.sent_at_ms is not None:
            return derive_job_id(message.messageId, message.sent_at_ms)
        return self._ids.new_id()

    def process(self, message: QueueMessage) -> TriggerResult:
        """
        Process one trigger message.

        Args:
            message: Delivered (or synthetic) trigger message

        Returns:
            TriggerResult: The job created and whether work was queued

        Raises:
            MalformedPayloadError: Body failed validation
            DeliveryError: Work message could not be sent
        """
        logger.info(
            "%s:process - Processing main job trigger %s",
            __name__,
            message.messageId,
            extra=message_context(message),
        )
        body, raw = parse_trigger_body(message)

        now = self._clock()
        job = Job(
            jobId=self.resolve_job_id(message, body),
            jobType=body.jobType or DEFAULT_JOB_TYPE,
            timestamp=isoformat_utc(now),
            payload=raw,
            triggerMessageId=message.messageId,
        )
        result = TriggerResult(job=job, processedAt=isoformat_utc(now))
        logger.info(
            "%s:process - Main job processed: job_id=%s trigger=%s",
            __name__,
            job.jobId,
            body.trigger,
        )

        if body.wants_background_job:
            work_message_id = self.send_background_job(result)
            result.backgroundJobQueued = work_message_id is not None
            result.workMessageId = work_message_id
        else:
            logger.info("%s:process - Background job not requested for %s", __name__, job.jobId)

        return result

    def send_background_job(self, result: TriggerResult) -> str | None:
        """
        Send the work message for a processed trigger.

        Returns:
            str | None: Work message ID, or None if no work queue is configured

        Raises:
            DeliveryError: Send failed
        """
        job = result.job
        if not self.work_queue_url:
            logger.warning(
                "%s:send_background_job - No output queue configured, skipping background job %s",
                __name__,
                job.jobId,
            )
            return None

        work = WorkMessage(
            jobId=job.jobId,
            jobType=job.jobType,
            timestamp=isoformat_utc(self._clock()),
            data={"originalTrigger": job.payload, "mainJobResult": result.summary()},
        )
        message_id = self._queue_client.send(
            self.work_queue_url,
            work.model_dump_json(),
            work.attributes(correlation_id=job.triggerMessageId),
        )
        logger.info("%s:send_background_job - Background job queued: %s", __name__, job.jobId)
        return message_id

    def handle(self, message: QueueMessage) -> TriggerResult:
        """
        Process a trigger and acknowledge it on success.

        Synthetic triggers have no broker copy and are never deleted.
        A failed delete is logged; the broker may redeliver, and the
        derived job ID keeps the duplicate on the same job.
        """
        with correlation_scope(message.messageId):
            result = self.process(message)
            if not message.is_synthetic:
                self._acknowledge(message)
        return result

    def _acknowledge(self, message: QueueMessage) -> None:
        try:
            self._queue_client.delete(self.input_queue_url, message.receiptHandle)
            logger.info("%s:_acknowledge - Trigger message deleted: %s", __name__, message.messageId)
        except DeleteError as e:
            logger.warning(
                "%s:_acknowledge - Could not delete trigger %s: %s", __name__, message.messageId, e
            )
