"""
Pipeline driver.

Owns one processor's poll/process/shutdown cycle:
RUNNING -> POLLING -> PROCESSING -> RUNNING | STOPPING -> STOPPED.
Per-message failures are contained at the message boundary; poll
failures back off and retry; only stop() ends the loop.

Dependencies: threading (stdlib), signal (stdlib)
System role: Long-running loop for the trigger and background processors
"""

import logging
import os
import signal
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol, Sequence

from jobpipeline.core.exceptions import (
    DeliveryError,
    JobExecutionError,
    MalformedPayloadError,
    QueueReceiveError,
)
from jobpipeline.models import QueueMessage
from jobpipeline.observability.log_utils import log_exception_with_context, message_context

logger = logging.getLogger(__name__)

DEFAULT_ERROR_BACKOFF_SECONDS = 5.0


class DriverState(str, Enum):
    """Lifecycle states of a pipeline driver."""

    RUNNING = "running"
    POLLING = "polling"
    PROCESSING = "processing"
    STOPPING = "stopping"
    STOPPED = "stopped"


class MessageProcessor(Protocol):
    """What the driver needs from a processor."""

    name: str

    def poll(self) -> Sequence[QueueMessage]:
        ...

    def handle(self, message: QueueMessage) -> Any:
        ...


@dataclass
class BatchReport:
    """Outcome of processing one received batch."""

    received: int = 0
    succeeded: int = 0
    failed: list[str] = field(default_factory=list)


class PipelineDriver:
    """Runs a processor's poll loop until stopped."""

    def __init__(
        self,
        processor: MessageProcessor,
        idle_delay_seconds: float = 0.0,
        error_backoff_seconds: float = DEFAULT_ERROR_BACKOFF_SECONDS,
    ) -> None:
        """
        Initialize driver.

        Args:
            processor: Processor supplying poll() and handle()
            idle_delay_seconds: Wait between polls (0 for back-to-back long polls)
            error_backoff_seconds: Wait after a failed poll
        """
        self._processor = processor
        self._idle_delay = idle_delay_seconds
        self._error_backoff = error_backoff_seconds
        self._stop_event = threading.Event()
        self.state = DriverState.RUNNING
        self.iterations = 0

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def run(self, max_iterations: int | None = None) -> None:
        """
        Poll and process until stop() is called.

        The stop flag is observed only between iterations: a batch that
        has been received is always processed to the end.

        Args:
            max_iterations: Optional bound on poll cycles for this call
        """
        name = self._processor.name
        logger.info("%s:run - Starting %s processor loop", __name__, name)
        if not self.stopping:
            self.state = DriverState.RUNNING

        polls = 0
        try:
            while not self.stopping:
                if max_iterations is not None and polls >= max_iterations:
                    break
                polls += 1
                self.iterations += 1

                self._set_state(DriverState.POLLING)
                try:
                    messages = self._processor.poll()
                except QueueReceiveError as e:
                    logger.error("%s:run - Error polling for messages: %s", __name__, e)
                    self._set_state(DriverState.RUNNING)
                    self._wait(self._error_backoff)
                    continue
                except Exception as e:
                    log_exception_with_context(logger, f"{__name__}:run - Main loop error", e)
                    self._set_state(DriverState.RUNNING)
                    self._wait(self._error_backoff)
                    continue

                self._set_state(DriverState.PROCESSING)
                self.process_batch(messages)
                self._set_state(DriverState.RUNNING)

                if self._idle_delay > 0:
                    self._wait(self._idle_delay)
        finally:
            self.state = DriverState.STOPPED
            logger.info("%s:run - %s processor stopped after %d poll(s)", __name__, name, self.iterations)

    def process_batch(self, messages: Sequence[QueueMessage]) -> BatchReport:
        """
        Handle each message independently.

        A failing message is logged and left on the queue; it never
        prevents the rest of the batch from being handled.
        """
        report = BatchReport(received=len(messages))
        for message in messages:
            try:
                self._processor.handle(message)
                report.succeeded += 1
            except MalformedPayloadError as e:
                report.failed.append(message.messageId)
                logger.warning(
                    "%s:process_batch - Malformed message %s left for redelivery: %s",
                    __name__,
                    message.messageId,
                    e,
                    extra=message_context(message),
                )
            except (JobExecutionError, DeliveryError) as e:
                report.failed.append(message.messageId)
                logger.error(
                    "%s:process_batch - Failed to process message %s: %s",
                    __name__,
                    message.messageId,
                    e,
                    extra=message_context(message),
                )
            except Exception as e:
                report.failed.append(message.messageId)
                log_exception_with_context(
                    logger,
                    f"{__name__}:process_batch - Unexpected error processing {message.messageId}",
                    e,
                    **message_context(message),
                )

        if report.received:
            logger.info(
                "%s:process_batch - Batch complete: %d ok, %d failed",
                __name__,
                report.succeeded,
                len(report.failed),
            )
        return report

    def stop(self) -> None:
        """Request shutdown; takes effect at the next iteration boundary."""
        if self.state is not DriverState.STOPPED:
            self.state = DriverState.STOPPING
        logger.info("%s:stop - Stopping %s processor...", __name__, self._processor.name)
        self._stop_event.set()

    def _set_state(self, state: DriverState) -> None:
        if self.stopping and state is DriverState.RUNNING:
            self.state = DriverState.STOPPING
        else:
            self.state = state

    def _wait(self, seconds: float) -> None:
        # Returns early when stop() is called.
        self._stop_event.wait(seconds)


def install_signal_handlers(
    driver: PipelineDriver,
    grace_seconds: float,
    force_exit: Callable[[int], None] = os._exit,
) -> None:
    """
    Stop the driver on SIGINT/SIGTERM, forcing exit after a grace period.

    A second signal forces exit immediately.

    Args:
        driver: Driver to stop
        grace_seconds: Time allowed for the in-flight batch to finish
        force_exit: Process exit function (os._exit by default)
    """

    def _force(reason: str) -> None:
        logger.warning("%s:install_signal_handlers - %s, forcing exit", __name__, reason)
        logging.shutdown()
        force_exit(0)

    def _on_signal(signum, _frame) -> None:
        signame = signal.Signals(signum).name
        if driver.stopping:
            _force(f"{signame} received during shutdown")
            return
        logger.info("%s:install_signal_handlers - %s received, shutting down gracefully...", __name__, signame)
        driver.stop()
        timer = threading.Timer(grace_seconds, _force, args=(f"Grace period of {grace_seconds}s elapsed",))
        timer.daemon = True
        timer.start()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _on_signal)
