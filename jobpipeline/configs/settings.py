"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from jobpipeline.configs.base import BaseSettings
from jobpipeline.configs.queues import QueueSettings
from jobpipeline.configs.worker import WorkerSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    queues: QueueSettings = Field(default_factory=QueueSettings)
    worker: WorkerSettings = Field(default_factory=WorkerSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for the lifetime of the process.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from jobpipeline.configs import get_settings
        settings = get_settings()
    """
    return Settings()
