"""
Visibility heartbeat for long-running jobs.

Keeps an in-flight message hidden while its handler runs by periodically
resetting the visibility timeout. Stops on the first failure.

Dependencies: threading (stdlib), jobpipeline.boundary.protocols
System role: Lease extension for work messages
"""

import logging
import threading

from jobpipeline.boundary.protocols import QueueClient
from jobpipeline.core.exceptions import VisibilityError

logger = logging.getLogger(__name__)


class VisibilityHeartbeat:
    """
    Context manager running a visibility-extension loop on a daemon thread.

    An interval of 0 disables the heartbeat entirely.
    """

    def __init__(
        self,
        queue_client: QueueClient,
        queue: str,
        receipt_handle: str,
        interval_seconds: float,
        visibility_timeout: int,
        job_id: str | None = None,
    ) -> None:
        self._queue_client = queue_client
        self._queue = queue
        self._receipt_handle = receipt_handle
        self._interval = interval_seconds
        self._visibility_timeout = visibility_timeout
        self._job_id = job_id
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.beats = 0

    def __enter__(self) -> "VisibilityHeartbeat":
        if self._interval > 0:
            self._thread = threading.Thread(
                target=self._run,
                name=f"heartbeat-{self._job_id or 'job'}",
                daemon=True,
            )
            self._thread.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self._interval + 1)

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self._queue_client.change_visibility(
                    self._queue, self._receipt_handle, self._visibility_timeout
                )
                self.beats += 1
                logger.debug("%s:_run - Extended visibility for job %s", __name__, self._job_id)
            except VisibilityError as e:
                logger.warning(
                    "%s:_run - Heartbeat failed for job %s, stopping: %s", __name__, self._job_id, e
                )
                return
            except Exception as e:
                logger.error(
                    "%s:_run - Unexpected %s in heartbeat for job %s: %s",
                    __name__,
                    type(e).__name__,
                    self._job_id,
                    e,
                )
                return
