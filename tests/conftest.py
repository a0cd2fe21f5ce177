"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory queue broker with visibility timeouts and DLQ redrive,
in-memory log sink, fixed clocks
Dependencies: pytest
System role: Test infrastructure and fixture management
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

import pytest

from jobpipeline.core.exceptions import (
    DeleteError,
    DeliveryError,
    LogSinkError,
    QueueReceiveError,
    VisibilityError,
)
from jobpipeline.models import QueueMessage

INPUT_QUEUE = "https://sqs.test/000000000000/trigger-queue"
WORK_QUEUE = "https://sqs.test/000000000000/work-queue"
FIXED_NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@dataclass
class StoredMessage:
    """Broker-side copy of a message."""

    message_id: str
    body: str
    attributes: dict
    sent_at_ms: int
    receive_count: int = 0
    receipt_handle: str | None = None
    invisible_until: float = 0.0


@dataclass
class FakeQueue:
    messages: list = field(default_factory=list)
    dead_letters: list = field(default_factory=list)


class FakeQueueBroker:
    """
    In-memory stand-in for the queue service.

    Enforces visibility timeouts against a manual clock and moves a
    message to the queue's dead letters once it has been received
    max_receive_count times without being deleted.
    """

    def __init__(self, max_receive_count: int = 3, max_body_bytes: int = 256 * 1024) -> None:
        self.max_receive_count = max_receive_count
        self.max_body_bytes = max_body_bytes
        self.queues: dict[str, FakeQueue] = {}
        self.now = 0.0
        self.receive_calls = 0
        self.fail_next_receives = 0
        self.fail_sends = False
        self.visibility_changes: list[tuple[str, int]] = []

    def create_queue(self, url: str) -> str:
        self.queues.setdefault(url, FakeQueue())
        return url

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def publish(self, queue: str, body, attributes: dict | None = None) -> str:
        """Publish as an external producer would."""
        encoded = body if isinstance(body, str) else json.dumps(body)
        return self.send(queue, encoded, attributes or {})

    # QueueClient protocol

    def receive(self, queue, max_messages, wait_seconds, visibility_timeout):
        self.receive_calls += 1
        if self.fail_next_receives:
            self.fail_next_receives -= 1
            raise QueueReceiveError("broker unavailable", queue=queue)
        if queue not in self.queues:
            raise QueueReceiveError("queue does not exist", queue=queue)

        q = self.queues[queue]
        delivered = []
        for stored in list(q.messages):
            if len(delivered) >= max_messages:
                break
            if stored.invisible_until > self.now:
                continue
            if stored.receive_count >= self.max_receive_count:
                q.messages.remove(stored)
                q.dead_letters.append(stored)
                continue
            stored.receive_count += 1
            stored.receipt_handle = f"rh-{uuid.uuid4().hex}"
            stored.invisible_until = self.now + visibility_timeout
            delivered.append(
                QueueMessage(
                    messageId=stored.message_id,
                    receiptHandle=stored.receipt_handle,
                    body=stored.body,
                    attributes={
                        "SentTimestamp": str(stored.sent_at_ms),
                        "ApproximateReceiveCount": str(stored.receive_count),
                    },
                    messageAttributes=dict(stored.attributes),
                )
            )
        return delivered

    def send(self, queue, body, attributes):
        if self.fail_sends or queue not in self.queues:
            raise DeliveryError("queue unreachable", queue=queue)
        if len(body.encode("utf-8")) > self.max_body_bytes:
            raise DeliveryError("message too large", queue=queue)
        message_id = str(uuid.uuid4())
        self.queues[queue].messages.append(
            StoredMessage(
                message_id=message_id,
                body=body,
                attributes=dict(attributes),
                sent_at_ms=1735732800000 + len(self.queues[queue].messages),
            )
        )
        return message_id

    def delete(self, queue, receipt_handle):
        q = self.queues.get(queue)
        if q is not None:
            for stored in q.messages:
                if stored.receipt_handle == receipt_handle:
                    q.messages.remove(stored)
                    return
        raise DeleteError("receipt handle is stale", queue=queue)

    def change_visibility(self, queue, receipt_handle, timeout_seconds):
        q = self.queues.get(queue)
        if q is not None:
            for stored in q.messages:
                if stored.receipt_handle == receipt_handle:
                    stored.invisible_until = self.now + timeout_seconds
                    self.visibility_changes.append((receipt_handle, timeout_seconds))
                    return
        raise VisibilityError("receipt handle is stale", queue=queue)

    # Inspection helpers

    def bodies(self, queue: str) -> list[dict]:
        return [json.loads(m.body) for m in self.queues[queue].messages]

    def stored(self, queue: str) -> list[StoredMessage]:
        return self.queues[queue].messages

    def dead_letters(self, queue: str) -> list[StoredMessage]:
        return self.queues[queue].dead_letters


class FakeLogSink:
    """In-memory log sink keyed by (group, destination)."""

    def __init__(self) -> None:
        self.destinations: dict[tuple[str, str], list[dict]] = {}
        self.create_calls = 0
        self.fail_create = False
        self.fail_put = False

    def create_destination(self, group, destination):
        self.create_calls += 1
        if self.fail_create:
            raise LogSinkError("log service unavailable", destination=destination)
        key = (group, destination)
        if key in self.destinations:
            return False
        self.destinations[key] = []
        return True

    def put_record(self, group, destination, timestamp_ms, message):
        if self.fail_put:
            raise LogSinkError("throttled", destination=destination)
        key = (group, destination)
        if key not in self.destinations:
            raise LogSinkError("destination does not exist", destination=destination)
        self.destinations[key].append(json.loads(message))

    def records(self, destination: str, group: str | None = None) -> list[dict]:
        for (g, d), records in self.destinations.items():
            if d == destination and (group is None or g == group):
                return records
        return []

    def all_records(self) -> list[dict]:
        return [r for records in self.destinations.values() for r in records]


@pytest.fixture
def broker():
    """Fake broker with trigger and work queues."""
    fake = FakeQueueBroker(max_receive_count=3)
    fake.create_queue(INPUT_QUEUE)
    fake.create_queue(WORK_QUEUE)
    return fake


@pytest.fixture
def log_sink():
    return FakeLogSink()


@pytest.fixture
def fixed_clock():
    """Clock frozen at 2025-01-01T12:00:00Z."""
    return lambda: FIXED_NOW


@pytest.fixture
def input_queue():
    return INPUT_QUEUE


@pytest.fixture
def work_queue():
    return WORK_QUEUE
