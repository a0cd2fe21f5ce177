"""
Shared process bootstrap for the pipeline entry points.

Loads .env, validates settings, configures logging and runs a driver
until a termination signal arrives.

Dependencies: python-dotenv, pydantic
System role: Process lifecycle helpers
"""

from dotenv import load_dotenv
from pydantic import ValidationError

from jobpipeline.configs import Settings, get_settings
from jobpipeline.core.driver import PipelineDriver, install_signal_handlers
from jobpipeline.core.exceptions import ConfigurationError
from jobpipeline.observability.logger import configure_logging, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def load_settings() -> Settings:
    """
    Load settings from the environment (and .env when present).

    Raises:
        ConfigurationError: A setting failed validation
    """
    # Load environment variables from .env if present
    load_dotenv()
    try:
        settings = get_settings()
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} error(s)",
            details={"errors": [".".join(str(p) for p in err["loc"]) for err in e.errors()]},
        ) from e
    configure_logging(settings.log_level)
    logger.info(
        "%s:load_settings - Environment: %s, region: %s", __name__, settings.environment, settings.aws_region
    )
    return settings


def run_driver(driver: PipelineDriver, settings: Settings) -> int:
    """
    Run a driver in the foreground until it stops.

    Returns:
        int: Process exit status
    """
    install_signal_handlers(driver, settings.worker.shutdown_grace_seconds)
    try:
        driver.run()
    except Exception as e:
        logger.exception("%s:run_driver - Fatal error: %s", __name__, e)
        return EXIT_FAILURE
    return EXIT_OK
