"""Startup helper: configure logging, then resolve the client configuration.

Example usage:

    from clientconf.bootstrap import bootstrap

    config = bootstrap()
    if config.devservices is not None:
        start_dev_container(config.devservices)
"""

from clientconf.config import ClientConfSettings, get_mongodb_config
from clientconf.config.models import MongoClientBuildTimeConfig
from clientconf.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)


def bootstrap(log_level: str | None = None) -> MongoClientBuildTimeConfig:
    """Configure logging from CLIENTCONF_* settings and resolve the configuration.

    Args:
        log_level: Overrides CLIENTCONF_LOG_LEVEL when given

    Raises:
        ConfigResolutionError: If the configuration is invalid
    """
    settings = ClientConfSettings()
    setup_logging(level=log_level or settings.log_level, format=settings.log_format)

    config = get_mongodb_config()
    logger.info(
        "bootstrap_complete",
        env=settings.env,
        strict=settings.strict,
        devservices=config.devservices is not None,
    )
    return config
