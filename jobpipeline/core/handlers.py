"""
Job handler capability.

The background processor never knows what a job computes: it calls a
handler with the Job and treats any exception as a job failure.

Dependencies: jobpipeline.models
System role: Pluggable job body
"""

import logging
import time
from typing import Any, Callable

from jobpipeline.models import Job

logger = logging.getLogger(__name__)

JobHandler = Callable[[Job], Any]


class SimulatedWorkHandler:
    """Default job body: waits a fixed duration and reports success."""

    def __init__(self, duration_seconds: float = 1.0) -> None:
        self._duration = duration_seconds

    def __call__(self, job: Job) -> dict[str, Any]:
        started = time.monotonic()
        time.sleep(self._duration)
        elapsed_ms = (time.monotonic() - started) * 1000
        logger.debug("%s:__call__ - Simulated work for %s took %.0fms", __name__, job.jobId, elapsed_ms)
        return {"jobId": job.jobId, "elapsedMs": round(elapsed_ms)}
