"""Configuration model exports.

    from clientconf.config.models import MONGODB_SCHEMA, MongoClientBuildTimeConfig
"""

from clientconf.config.models.mongodb import (
    MONGODB_SCHEMA,
    DevServicesBuildTimeConfig,
    MongoClientBuildTimeConfig,
)

__all__ = [
    "MONGODB_SCHEMA",
    "DevServicesBuildTimeConfig",
    "MongoClientBuildTimeConfig",
]
