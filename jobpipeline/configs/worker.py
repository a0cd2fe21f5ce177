"""
Worker configuration settings.

Settings for per-job log destinations, the default job handler,
visibility heartbeats and shutdown behaviour.

Dependencies: pydantic_settings
System role: Background processor and driver configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkerSettings(BaseSettings):
    """Background processor and driver settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_group_name: str = Field(
        default="/ecs/message-driven-microservices-prod/background-job",
        description="CloudWatch log group holding per-job log streams",
    )
    simulated_work_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Duration of the default simulated job body",
    )
    visibility_heartbeat_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Interval for extending message visibility while a job runs (0 disables)",
    )
    shutdown_grace_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Grace period after a shutdown signal before forced exit",
    )
