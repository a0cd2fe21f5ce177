"""
Unit tests for PipelineDriver and signal handling.

Dependencies: pytest
System role: Driver lifecycle validation
"""

import signal
import time

import pytest

from jobpipeline.core import driver as driver_module
from jobpipeline.core.driver import DriverState, PipelineDriver, install_signal_handlers
from jobpipeline.core.exceptions import (
    DeliveryError,
    JobExecutionError,
    MalformedPayloadError,
    QueueReceiveError,
)
from jobpipeline.models import QueueMessage


def _message(message_id: str) -> QueueMessage:
    return QueueMessage(messageId=message_id, receiptHandle=f"rh-{message_id}", body="{}")


class ScriptedProcessor:
    """Processor returning scripted batches and failing selected messages."""

    name = "scripted"

    def __init__(self, batches=None, failures=None, driver=None):
        self.batches = list(batches or [])
        self.failures = failures or {}
        self.driver = driver
        self.poll_calls = 0
        self.handled = []
        self.states_seen = []
        self.on_handle = None

    def poll(self):
        self.poll_calls += 1
        if self.driver is not None:
            self.states_seen.append(("poll", self.driver.state))
        if not self.batches:
            return []
        batch = self.batches.pop(0)
        if isinstance(batch, Exception):
            raise batch
        return batch

    def handle(self, message):
        if self.driver is not None:
            self.states_seen.append(("handle", self.driver.state))
        self.handled.append(message.messageId)
        if self.on_handle is not None:
            self.on_handle(message)
        error = self.failures.get(message.messageId)
        if error is not None:
            raise error


class TestProcessBatch:
    """Test suite for per-message failure isolation."""

    def test_failures_do_not_stop_the_batch(self):
        """
        Test every message in a batch is handled despite failures.

        Arrange: Batch where three of four messages fail differently
        Act: Process the batch
        Assert: All handled, failures reported, no exception escapes
        """
        # Arrange
        processor = ScriptedProcessor(
            failures={
                "m1": JobExecutionError("Job failed: boom", job_id="J1"),
                "m3": ValueError("unexpected"),
                "m4": MalformedPayloadError("bad body", message_id="m4"),
            }
        )
        driver = PipelineDriver(processor, error_backoff_seconds=0)
        batch = [_message(m) for m in ("m1", "m2", "m3", "m4")]

        # Act
        report = driver.process_batch(batch)

        # Assert
        assert processor.handled == ["m1", "m2", "m3", "m4"]
        assert report.received == 4
        assert report.succeeded == 1
        assert report.failed == ["m1", "m3", "m4"]

    def test_delivery_errors_are_contained(self):
        """Test a send failure on one trigger is contained."""
        processor = ScriptedProcessor(failures={"m1": DeliveryError("queue unreachable")})
        driver = PipelineDriver(processor)

        report = driver.process_batch([_message("m1"), _message("m2")])

        assert report.succeeded == 1
        assert report.failed == ["m1"]


class TestRun:
    """Test suite for the poll loop."""

    def test_poll_error_backs_off_and_continues(self):
        """Test a receive failure is followed by another poll."""
        processor = ScriptedProcessor(
            batches=[QueueReceiveError("broker unavailable"), [_message("m1")]]
        )
        driver = PipelineDriver(processor, error_backoff_seconds=0)

        driver.run(max_iterations=2)

        assert processor.poll_calls == 2
        assert processor.handled == ["m1"]
        assert driver.state is DriverState.STOPPED

    def test_unexpected_poll_error_continues(self):
        """Test any poll exception is survived."""
        processor = ScriptedProcessor(batches=[RuntimeError("boom"), [_message("m1")]])
        driver = PipelineDriver(processor, error_backoff_seconds=0)

        driver.run(max_iterations=2)

        assert processor.handled == ["m1"]

    def test_states_during_iteration(self):
        """Test POLLING during poll and PROCESSING during handle."""
        processor = ScriptedProcessor(batches=[[_message("m1")]])
        driver = PipelineDriver(processor)
        processor.driver = driver

        assert driver.state is DriverState.RUNNING
        driver.run(max_iterations=1)

        assert processor.states_seen == [
            ("poll", DriverState.POLLING),
            ("handle", DriverState.PROCESSING),
        ]
        assert driver.state is DriverState.STOPPED

    def test_repeated_bounded_runs_each_poll(self):
        """Test max_iterations bounds each call, not the driver's lifetime."""
        processor = ScriptedProcessor()
        driver = PipelineDriver(processor)

        driver.run(max_iterations=1)
        driver.run(max_iterations=1)
        driver.run(max_iterations=2)

        assert processor.poll_calls == 4
        assert driver.iterations == 4

    def test_stop_before_run_never_polls(self):
        """Test a stopped driver exits immediately."""
        processor = ScriptedProcessor(batches=[[_message("m1")]])
        driver = PipelineDriver(processor)

        driver.stop()
        driver.run()

        assert processor.poll_calls == 0
        assert driver.state is DriverState.STOPPED

    def test_stop_mid_batch_finishes_batch_then_exits(self):
        """
        Test stop during processing lets the batch finish.

        Arrange: Three-message batch; stop requested while handling the first
        Act: Run with a long idle delay
        Assert: All three handled, no further poll, run returns promptly
        """
        # Arrange
        processor = ScriptedProcessor(batches=[[_message("m1"), _message("m2"), _message("m3")]])
        driver = PipelineDriver(processor, idle_delay_seconds=30)
        processor.driver = driver
        processor.on_handle = lambda message: driver.stop() if message.messageId == "m1" else None

        # Act
        started = time.monotonic()
        driver.run()
        elapsed = time.monotonic() - started

        # Assert
        assert processor.handled == ["m1", "m2", "m3"]
        assert processor.poll_calls == 1
        assert ("handle", DriverState.STOPPING) in processor.states_seen
        assert elapsed < 5
        assert driver.state is DriverState.STOPPED


class FakeTimer:
    """Stand-in for threading.Timer that never starts a thread."""

    instances = []

    def __init__(self, interval, function, args=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.daemon = False
        self.started = False
        FakeTimer.instances.append(self)

    def start(self):
        self.started = True

    def fire(self):
        self.function(*self.args)


@pytest.fixture
def signal_env(monkeypatch):
    """Capture installed signal handlers and timers."""
    handlers = {}
    FakeTimer.instances = []
    monkeypatch.setattr(signal, "signal", lambda sig, handler: handlers.__setitem__(sig, handler))
    monkeypatch.setattr(driver_module.threading, "Timer", FakeTimer)
    monkeypatch.setattr(driver_module.logging, "shutdown", lambda: None)
    return handlers


class TestSignalHandlers:
    """Test suite for graceful shutdown on signals."""

    def test_installs_sigint_and_sigterm(self, signal_env):
        """Test both termination signals are handled."""
        install_signal_handlers(PipelineDriver(ScriptedProcessor()), grace_seconds=1, force_exit=lambda code: None)

        assert set(signal_env) == {signal.SIGINT, signal.SIGTERM}

    def test_first_signal_stops_driver(self, signal_env):
        """Test SIGTERM requests a graceful stop and arms the grace timer."""
        exits = []
        driver = PipelineDriver(ScriptedProcessor())
        install_signal_handlers(driver, grace_seconds=30, force_exit=exits.append)

        signal_env[signal.SIGTERM](signal.SIGTERM, None)

        assert driver.stopping
        assert driver.state is DriverState.STOPPING
        assert exits == []
        timer = FakeTimer.instances[0]
        assert timer.started
        assert timer.daemon
        assert timer.interval == 30

    def test_grace_period_expiry_forces_exit(self, signal_env):
        """Test the grace timer exits with status 0."""
        exits = []
        driver = PipelineDriver(ScriptedProcessor())
        install_signal_handlers(driver, grace_seconds=30, force_exit=exits.append)
        signal_env[signal.SIGINT](signal.SIGINT, None)

        FakeTimer.instances[0].fire()

        assert exits == [0]

    def test_second_signal_forces_exit(self, signal_env):
        """Test a repeated signal exits immediately."""
        exits = []
        driver = PipelineDriver(ScriptedProcessor())
        install_signal_handlers(driver, grace_seconds=30, force_exit=exits.append)

        signal_env[signal.SIGTERM](signal.SIGTERM, None)
        signal_env[signal.SIGINT](signal.SIGINT, None)

        assert exits == [0]
        assert len(FakeTimer.instances) == 1
