"""
Correlation ID context manager.

Manages correlation ID propagation through message handling using contextvars.
Process log lines pick up the current value via CorrelationIdFilter.

Dependencies: contextvars
System role: Tracing one job across queue hops and log lines
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """
    Get current correlation ID from context.

    Returns:
        str: Current correlation ID ("" when unset)
    """
    return correlation_id_ctx.get()


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    """Bind a correlation ID for the duration of a block, restoring the previous one."""
    token = correlation_id_ctx.set(correlation_id)
    try:
        yield correlation_id
    finally:
        correlation_id_ctx.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Attach the current correlation ID to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        return True
