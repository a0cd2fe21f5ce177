"""
Logging utilities for safe structured logging.

Keeps queue payloads out of log lines in raw form: values are summarised
and truncated before they are attached as structured context.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import logging
from typing import Any

from jobpipeline.models import QueueMessage
from jobpipeline.observability.correlation import get_correlation_id


def safe_log_value(value: Any, max_length: int = 500) -> str:
    """
    Safely convert any value to a string for logging.

    Args:
        value: Value to convert
        max_length: Maximum length before truncating

    Returns:
        str: Safe string representation
    """
    try:
        if value is None:
            return "None"
        if isinstance(value, str):
            val_str = value
        elif isinstance(value, (list, tuple)):
            val_str = f"{type(value).__name__}({len(value)} items)"
        elif isinstance(value, dict):
            val_str = f"dict({len(value)} keys)"
        else:
            val_str = str(value)
    except Exception as e:
        return f"<unable to log: {type(e).__name__}>"

    if len(val_str) > max_length:
        return val_str[:max_length] + f"... (truncated, {len(val_str)} total)"
    return val_str


def message_context(message: QueueMessage) -> dict[str, Any]:
    """Structured context describing one queue delivery."""
    return {
        "message_id": message.messageId,
        "receive_count": message.receive_count,
        "body_bytes": len(message.body.encode("utf-8")),
    }


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context,
) -> None:
    """
    Log a message with structured context, safely converting all values.

    The current correlation ID is attached unless the caller supplies one.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Context dict with arbitrary key-value pairs
    """
    context.setdefault("correlation", get_correlation_id() or None)
    safe_context = {key: safe_log_value(val) for key, val in context.items()}
    logger.log(level, message, extra=safe_context)


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context,
) -> None:
    """
    Log an exception with its type, text and traceback.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        **context: Additional context dict
    """
    context.setdefault("correlation", get_correlation_id() or None)
    safe_context = {key: safe_log_value(val) for key, val in context.items()}
    safe_context.update({
        "error_type": type(exc).__name__,
        "error_msg": safe_log_value(str(exc)),
    })
    logger.error("%s: %s: %s", message, type(exc).__name__, exc, exc_info=exc, extra=safe_context)
