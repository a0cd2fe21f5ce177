"""
Per-job correlated logging.

Each job gets its own log destination named job-streams/<UTC-date>/<jobId>.
Records are JSON LogRecords. Sink failures are reported on the process
logger and never propagate into job execution.

Dependencies: jobpipeline.boundary.protocols, jobpipeline.models
System role: Correlated Logger for background jobs
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from jobpipeline.boundary.protocols import LogSink
from jobpipeline.core.exceptions import LogSinkError
from jobpipeline.core.timeutil import isoformat_utc, utc_now
from jobpipeline.models import LogLevel, LogRecord

logger = logging.getLogger(__name__)

DESTINATION_PREFIX = "job-streams"


def destination_name(job_id: str, created_at: datetime) -> str:
    """Deterministic destination name for a job."""
    day = created_at.astimezone(timezone.utc).strftime("%Y-%m-%d")
    return f"{DESTINATION_PREFIX}/{day}/{job_id}"


class JobLogStream:
    """Handle for appending records to one job's destination."""

    def __init__(
        self,
        sink: LogSink,
        group: str,
        job_id: str,
        destination: str,
        available: bool,
        correlation_id: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._sink = sink
        self._group = group
        self.job_id = job_id
        self.destination = destination
        self.available = available
        self.correlation_id = correlation_id
        self._clock = clock or utc_now

    def info(self, message: str) -> LogRecord:
        return self.write(LogLevel.INFO, message)

    def error(self, message: str) -> LogRecord:
        return self.write(LogLevel.ERROR, message)

    def write(self, level: LogLevel, message: str) -> LogRecord:
        """
        Append one record to the job's destination.

        When the destination could not be created or the write fails, the
        record is emitted on the process logger instead.

        Args:
            level: Record level
            message: Record text

        Returns:
            LogRecord: The record that was built
        """
        now = self._clock()
        record = LogRecord(
            jobId=self.job_id,
            level=level,
            message=message,
            timestamp=isoformat_utc(now),
            correlationId=self.correlation_id,
        )
        payload = record.to_json()

        if self.available:
            try:
                self._sink.put_record(self._group, self.destination, int(now.timestamp() * 1000), payload)
                return record
            except LogSinkError as e:
                logger.error(
                    "%s:write - Error writing job log to %s: %s",
                    __name__,
                    self.destination,
                    e,
                    extra={"job_id": self.job_id},
                )
            except Exception as e:
                logger.error(
                    "%s:write - Unexpected %s writing job log to %s: %s",
                    __name__,
                    type(e).__name__,
                    self.destination,
                    e,
                    extra={"job_id": self.job_id},
                )

        py_level = logging.ERROR if level is LogLevel.ERROR else logging.INFO
        logger.log(py_level, "%s:write - [job %s] %s", __name__, self.job_id, payload)
        return record


class JobLogger:
    """
    Opens correlated log destinations for jobs.

    Destination creation is idempotent: an existing destination is reused.
    """

    def __init__(
        self,
        sink: LogSink,
        group: str,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize job logger.

        Args:
            sink: Log sink holding per-job destinations
            group: Log group name
            clock: UTC clock (defaults to wall clock)
        """
        self._sink = sink
        self._group = group
        self._clock = clock or utc_now

    @property
    def group(self) -> str:
        return self._group

    def open(self, job_id: str, correlation_id: str | None = None) -> JobLogStream:
        """
        Create or reuse the destination for a job.

        Args:
            job_id: Job ID the destination belongs to
            correlation_id: Optional correlation ID stamped on every record

        Returns:
            JobLogStream: Stream handle; unavailable if creation failed
        """
        name = destination_name(job_id, self._clock())
        available = True
        started = time.monotonic()
        try:
            created = self._sink.create_destination(self._group, name)
            if created:
                logger.info("%s:open - Created log stream: %s", __name__, name)
            else:
                logger.info("%s:open - Log stream already exists: %s", __name__, name)
        except Exception as e:
            available = False
            logger.error(
                "%s:open - Error creating log stream %s after %.0fms: %s: %s",
                __name__,
                name,
                (time.monotonic() - started) * 1000,
                type(e).__name__,
                e,
                extra={"job_id": job_id},
            )

        return JobLogStream(
            sink=self._sink,
            group=self._group,
            job_id=job_id,
            destination=name,
            available=available,
            correlation_id=correlation_id,
            clock=self._clock,
        )
