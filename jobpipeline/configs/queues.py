"""
Queue configuration settings.

Queue addresses and long-poll parameters for the trigger and work queues.
Variable names match the container environment (INPUT_QUEUE_URL, SQS_QUEUE_URL).

Dependencies: pydantic_settings
System role: Messaging configuration for both processors
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class QueueSettings(BaseSettings):
    """SQS queue addresses and polling behaviour."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    input_queue_url: str | None = Field(
        default=None,
        description="Trigger queue URL (unset selects standalone/synthetic mode)",
    )
    sqs_queue_url: str | None = Field(
        default=None,
        description="Background work queue URL",
    )
    poll_interval_ms: int = Field(
        default=5000,
        ge=0,
        description="Delay between synthetic triggers in standalone mode",
    )
    queue_wait_seconds: int = Field(
        default=20,
        ge=0,
        le=20,
        description="Long-poll wait time for receive calls",
    )
    queue_visibility_timeout: int = Field(
        default=60,
        ge=0,
        description="Visibility timeout applied to received messages",
    )
    trigger_max_messages: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Max trigger messages per receive",
    )
    work_max_messages: int = Field(
        default=10,
        ge=1,
        le=10,
        description="Max work messages per receive",
    )
    poll_error_backoff_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Backoff after a failed poll before retrying",
    )
    trigger_idle_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Delay between trigger polls when an input queue is configured",
    )

    @property
    def standalone(self) -> bool:
        """True when no input queue is configured."""
        return not self.input_queue_url

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0
