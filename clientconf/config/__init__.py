"""Configuration resolution for clientconf.

Usage:
    from clientconf.config import get_mongodb_config

    config = get_mongodb_config()
    if config.health_enabled:
        ...

Configuration is resolved in this order (lowest to highest precedence):
1. Schema defaults (in code)
2. config/default.toml (base configuration)
3. config/{CLIENTCONF_ENV}.toml (environment overrides)
4. CLIENTCONF_MONGODB_* environment variables (runtime overrides)
"""

from functools import lru_cache

from clientconf.config.errors import (
    ConfigError,
    ConfigResolutionError,
    MissingRequiredValue,
    SchemaError,
    TypeCoercionFailure,
    UnknownKey,
    ValueOutOfRange,
)
from clientconf.config.loader import build_layers
from clientconf.config.models import MONGODB_SCHEMA, MongoClientBuildTimeConfig
from clientconf.config.resolved import ResolvedConfig
from clientconf.config.resolver import resolve
from clientconf.config.settings import ClientConfSettings


@lru_cache(maxsize=1)
def get_mongodb_config() -> MongoClientBuildTimeConfig:
    """Get the process-wide MongoDB client configuration.

    The result is cached for the lifetime of the process.
    Call `get_mongodb_config.cache_clear()` to resolve again.

    Raises:
        ConfigResolutionError: If the configuration is invalid
    """
    settings = ClientConfSettings()
    layers = build_layers(MONGODB_SCHEMA, settings)
    resolved = resolve(MONGODB_SCHEMA, layers, strict=settings.strict)
    return MongoClientBuildTimeConfig.from_resolved(resolved)


def reload_mongodb_config() -> MongoClientBuildTimeConfig:
    """Clear the cache and resolve the configuration again.

    Useful for testing or when configuration files have changed.
    """
    get_mongodb_config.cache_clear()
    return get_mongodb_config()


__all__ = [
    "ClientConfSettings",
    "ConfigError",
    "ConfigResolutionError",
    "MissingRequiredValue",
    "ResolvedConfig",
    "SchemaError",
    "TypeCoercionFailure",
    "UnknownKey",
    "ValueOutOfRange",
    "get_mongodb_config",
    "reload_mongodb_config",
    "resolve",
]
