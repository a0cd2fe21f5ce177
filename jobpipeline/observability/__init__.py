"""
Observability module.

Provides process logging configuration, correlation ID tracking,
and per-job correlated log destinations.
"""

from jobpipeline.observability.job_logger import JobLogger, JobLogStream
from jobpipeline.observability.logger import configure_logging, get_logger

__all__ = ["JobLogStream", "JobLogger", "configure_logging", "get_logger"]
