"""
Job ID generation.

Job IDs are ULIDs: 48-bit millisecond timestamp + 80 bits of entropy,
Crockford base32 encoded, so string order follows creation order.

Dependencies: python-ulid
System role: Correlation ID source for jobs
"""

import hashlib
import os
import threading
import time
from typing import Callable

from ulid import ULID

_TIMESTAMP_BYTES = 6
_RANDOM_BYTES = 10
_RANDOM_MASK = (1 << (_RANDOM_BYTES * 8)) - 1


def _ulid_at(timestamp_ms: int, entropy: bytes) -> ULID:
    return ULID.from_bytes(timestamp_ms.to_bytes(_TIMESTAMP_BYTES, "big") + entropy)


class JobIdGenerator:
    """
    Monotonic ULID generator.

    IDs minted within the same millisecond increment the previous value
    instead of drawing fresh entropy, so sequential IDs always sort in
    creation order. Safe to share between threads.
    """

    def __init__(self, clock_ms: Callable[[], int] | None = None) -> None:
        """
        Initialize generator.

        Args:
            clock_ms: Epoch-milliseconds clock (defaults to wall clock)
        """
        self._clock_ms = clock_ms or (lambda: time.time_ns() // 1_000_000)
        self._lock = threading.Lock()
        self._last: ULID | None = None

    def new_id(self) -> str:
        """
        Mint a new job ID.

        Returns:
            str: 26-character ULID string
        """
        with self._lock:
            now_ms = self._clock_ms()
            last = self._last
            if last is not None and now_ms <= last.milliseconds:
                value = int(last) + 1
                if value & _RANDOM_MASK == 0:
                    # Entropy exhausted for this millisecond; step the timestamp.
                    candidate = _ulid_at(last.milliseconds + 1, os.urandom(_RANDOM_BYTES))
                else:
                    candidate = ULID.from_int(value)
            else:
                candidate = _ulid_at(now_ms, os.urandom(_RANDOM_BYTES))
            self._last = candidate
            return str(candidate)


def derive_job_id(message_id: str, sent_at_ms: int) -> str:
    """
    Derive a stable job ID from a broker delivery.

    The same message ID and send timestamp always produce the same ULID,
    so a redelivered trigger maps onto the job it already created.

    Args:
        message_id: Broker-assigned message ID
        sent_at_ms: Broker send timestamp in epoch milliseconds

    Returns:
        str: 26-character ULID string
    """
    entropy = hashlib.sha256(message_id.encode("utf-8")).digest()[:_RANDOM_BYTES]
    return str(_ulid_at(sent_at_ms, entropy))
