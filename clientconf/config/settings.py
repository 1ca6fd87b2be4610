"""Runtime settings for clientconf itself."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["json", "console"]


class ClientConfSettings(BaseSettings):
    """Settings that control how schemas are resolved, read from CLIENTCONF_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="CLIENTCONF_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    env: str = Field(default="development", description="Active environment profile")
    config_dir: Path | None = Field(
        default=None,
        description="Directory holding default.toml and {env}.toml",
    )
    strict: bool = Field(
        default=False,
        description="Report layer keys the schema does not declare",
    )
    env_prefix: str = Field(
        default="CLIENTCONF_",
        description="Prefix of environment variables that feed schema values",
    )
    log_level: LogLevel = Field(default="INFO", description="Logging level")
    log_format: LogFormat = Field(default="json", description="Log output format")
