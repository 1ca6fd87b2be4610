"""MongoDB client build-time configuration."""

from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field

from clientconf.config.resolved import ResolvedConfig
from clientconf.config.schema import FieldType, field, flag, group, schema

MONGODB_SCHEMA = schema(
    "mongodb",
    flag(
        "health.enabled",
        default=True,
        description="Whether a health check is published when a health extension is present",
    ),
    flag(
        "metrics.enabled",
        default=False,
        description="Whether metrics are published when a metrics extension is present",
    ),
    flag(
        "force-default-clients",
        default=False,
        description="Create the default clients even with no injection points using them",
    ),
    flag(
        "tracing.enabled",
        default=False,
        description="Whether tracing spans of driver commands are sent",
    ),
    group(
        "devservices",
        field("image-name", FieldType.STRING, optional=True, description="Container image"),
        field(
            "port",
            FieldType.INTEGER,
            optional=True,
            minimum=1,
            maximum=65535,
            description="Fixed exposed port",
        ),
        flag("shared", default=True, description="Share the container between applications"),
        field(
            "service-name",
            FieldType.STRING,
            default="mongodb",
            description="Label used to find a shared container",
        ),
        field(
            "startup-timeout",
            FieldType.DURATION,
            default="60s",
            description="How long to wait for the container to start",
        ),
        enabled=True,
        description="Automatic MongoDB startup in dev and test mode",
    ),
)


class DevServicesBuildTimeConfig(BaseModel):
    """Dev services settings, present only when the group is enabled.

    Built by MongoClientBuildTimeConfig.from_resolved; defaults live in MONGODB_SCHEMA.
    """

    model_config = ConfigDict(frozen=True)

    image_name: str | None = Field(description="Container image")
    port: int | None = Field(description="Fixed exposed port")
    shared: bool = Field(description="Share the container between applications")
    service_name: str = Field(description="Shared container label")
    startup_timeout: timedelta = Field(description="Container startup timeout")


class MongoClientBuildTimeConfig(BaseModel):
    """Typed, frozen view of a resolved ``mongodb`` configuration.

    Every field is required: values come from resolving MONGODB_SCHEMA.
    """

    model_config = ConfigDict(frozen=True)

    health_enabled: bool
    metrics_enabled: bool
    force_default_clients: bool
    tracing_enabled: bool
    devservices: DevServicesBuildTimeConfig | None = Field(
        description="None when dev services are disabled",
    )

    @classmethod
    def from_resolved(cls, resolved: ResolvedConfig) -> "MongoClientBuildTimeConfig":
        devservices = None
        if resolved.is_enabled("devservices"):
            devservices = DevServicesBuildTimeConfig(
                image_name=resolved["devservices.image-name"],
                port=resolved["devservices.port"],
                shared=resolved["devservices.shared"],
                service_name=resolved["devservices.service-name"],
                startup_timeout=resolved["devservices.startup-timeout"],
            )
        return cls(
            health_enabled=resolved["health.enabled"],
            metrics_enabled=resolved["metrics.enabled"],
            force_default_clients=resolved["force-default-clients"],
            tracing_enabled=resolved["tracing.enabled"],
            devservices=devservices,
        )
