"""
Unit tests for settings and process entry points.

Dependencies: pytest, pydantic
System role: Configuration and bootstrap validation
"""

import logging
from unittest.mock import MagicMock

import pytest

from jobpipeline.configs import Settings, get_settings
from jobpipeline.configs.queues import QueueSettings
from jobpipeline.core.background_processor import BackgroundProcessor
from jobpipeline.core.driver import PipelineDriver
from jobpipeline.core.exceptions import ConfigurationError
from jobpipeline.entrypoints import background, common, trigger

ENV_VARS = (
    "ENVIRONMENT",
    "INPUT_QUEUE_URL",
    "SQS_QUEUE_URL",
    "POLL_INTERVAL_MS",
    "LOG_GROUP_NAME",
    "AWS_REGION",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate settings from the host environment and any .env file."""
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(common, "load_dotenv", lambda: None)
    monkeypatch.setattr(common, "configure_logging", lambda level: None)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


class TestSettings:
    """Test suite for environment-driven settings."""

    def test_defaults(self, clean_env):
        """Test defaults match the documented configuration."""
        settings = Settings()

        assert settings.queues.standalone
        assert settings.queues.sqs_queue_url is None
        assert settings.queues.poll_interval_ms == 5000
        assert settings.queues.queue_wait_seconds == 20
        assert settings.queues.queue_visibility_timeout == 60
        assert settings.queues.trigger_max_messages == 5
        assert settings.queues.work_max_messages == 10
        assert settings.worker.log_group_name == "/ecs/message-driven-microservices-prod/background-job"

    def test_environment_overrides(self, clean_env):
        """Test variables are read from the environment."""
        clean_env.setenv("INPUT_QUEUE_URL", "https://sqs.test/q/in")
        clean_env.setenv("SQS_QUEUE_URL", "https://sqs.test/q/work")
        clean_env.setenv("POLL_INTERVAL_MS", "250")
        clean_env.setenv("LOG_GROUP_NAME", "/custom/group")

        settings = Settings()

        assert not settings.queues.standalone
        assert settings.queues.sqs_queue_url == "https://sqs.test/q/work"
        assert settings.queues.poll_interval_seconds == 0.25
        assert settings.worker.log_group_name == "/custom/group"

    def test_get_settings_is_cached(self, clean_env):
        """Test settings are built once per process."""
        assert get_settings() is get_settings()


class TestLoadSettings:
    """Test suite for bootstrap settings loading."""

    def test_invalid_settings_raise_configuration_error(self, clean_env):
        """Test validation errors surface as ConfigurationError."""
        clean_env.setattr(common, "get_settings", lambda: QueueSettings(poll_interval_ms=-1))

        with pytest.raises(ConfigurationError) as exc_info:
            common.load_settings()

        assert "poll_interval_ms" in exc_info.value.details["errors"]

    def test_load_settings_logs_environment(self, clean_env, caplog):
        """Test the deployment environment is reported at startup."""
        clean_env.setenv("ENVIRONMENT", "staging")

        with caplog.at_level(logging.INFO, logger="jobpipeline.entrypoints.common"):
            settings = common.load_settings()

        assert settings.environment == "staging"
        assert "Environment: staging" in caplog.text

    def test_run_driver_returns_zero_after_stop(self, clean_env):
        """Test a driver stopped before running exits cleanly."""
        clean_env.setattr(common, "install_signal_handlers", lambda driver, grace: None)
        driver = PipelineDriver(MagicMock())
        driver.stop()

        assert common.run_driver(driver, Settings()) == common.EXIT_OK

    def test_run_driver_returns_failure_on_crash(self, clean_env):
        """Test an escaping exception maps to exit status 1."""
        clean_env.setattr(common, "install_signal_handlers", lambda driver, grace: None)
        driver = MagicMock()
        driver.run.side_effect = RuntimeError("boom")

        assert common.run_driver(driver, Settings()) == common.EXIT_FAILURE


class TestBackgroundEntrypoint:
    """Test suite for the background processor entry point."""

    def test_missing_work_queue_exits_with_failure(self, clean_env):
        """Test startup without SQS_QUEUE_URL returns exit status 1."""
        assert background.main() == common.EXIT_FAILURE

    def test_build_processor_requires_work_queue(self, clean_env):
        """Test the missing setting is named in the error."""
        with pytest.raises(ConfigurationError) as exc_info:
            background.build_processor(Settings(), sqs_client=MagicMock(), logs_client=MagicMock())

        assert exc_info.value.details["setting"] == "SQS_QUEUE_URL"

    def test_build_processor_wires_settings(self, clean_env):
        """Test the processor targets the configured queue."""
        clean_env.setenv("SQS_QUEUE_URL", "https://sqs.test/q/work")

        processor = background.build_processor(Settings(), sqs_client=MagicMock(), logs_client=MagicMock())

        assert isinstance(processor, BackgroundProcessor)
        assert processor.work_queue_url == "https://sqs.test/q/work"


class TestTriggerEntrypoint:
    """Test suite for the trigger processor entry point."""

    def test_standalone_without_input_queue(self, clean_env):
        """Test no INPUT_QUEUE_URL selects standalone mode and the poll interval."""
        settings = Settings()

        processor = trigger.build_processor(settings, sqs_client=MagicMock())

        assert processor.standalone
        assert trigger.idle_delay_seconds(settings) == 5.0

    def test_queue_mode_uses_short_idle_delay(self, clean_env):
        """Test a configured input queue polls back-to-back with a short pause."""
        clean_env.setenv("INPUT_QUEUE_URL", "https://sqs.test/q/in")
        settings = Settings()

        processor = trigger.build_processor(settings, sqs_client=MagicMock())

        assert not processor.standalone
        assert trigger.idle_delay_seconds(settings) == 1.0
