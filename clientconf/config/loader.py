"""File-based configuration layers with deep merge support."""

import tomllib
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

from clientconf.config.layers import Layer, defaults_layer, environment_layer
from clientconf.config.schema import ConfigSchema
from clientconf.config.settings import ClientConfSettings
from clientconf.observability.logging import get_logger

FILE_LAYER = "file"

logger = get_logger(__name__)


def get_config_dir(settings: ClientConfSettings | None = None) -> Path:
    """Get the configuration directory path.

    The config directory can be overridden with CLIENTCONF_CONFIG_DIR.
    Defaults to the nearest 'config/' in the current or parent directories.
    """
    settings = settings or ClientConfSettings()
    if settings.config_dir is not None:
        if not settings.config_dir.exists():
            raise FileNotFoundError(f"Config directory not found: {settings.config_dir}")
        return settings.config_dir

    current = Path.cwd()
    for _ in range(5):  # Look up to 5 levels
        config_path = current / "config"
        if config_path.exists():
            return config_path
        current = current.parent

    return Path("config")


def get_environment(settings: ClientConfSettings | None = None) -> str:
    """Get the active environment from CLIENTCONF_ENV, 'development' if unset."""
    return (settings or ClientConfSettings()).env


def load_toml(file_path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents as a dictionary.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with file_path.open("rb") as f:
        return tomllib.load(f)


def load_yaml(file_path: Path) -> dict[str, Any]:
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with file_path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML configuration must be a mapping: {file_path}")
    return data


def load_properties(file_path: Path) -> dict[str, str]:
    """Load a Java-style ``.properties`` file.

    Supports ``#`` and ``!`` comments, ``=``, ``:`` or whitespace separators,
    backslash line continuations and the escapes ``\\t``, ``\\n``, ``\\r``,
    ``\\f`` and ``\\uXXXX``. Any other escaped character stands for itself,
    so ``a\\=b = c`` defines the key ``a=b``.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    result: dict[str, str] = {}
    for line in _logical_lines(file_path.read_text(encoding="utf-8")):
        key, value = _split_property(line)
        result[_unescape(key)] = _unescape(value)
    return result


def _logical_lines(text: str) -> Iterator[str]:
    pending: str | None = None
    for raw in text.splitlines():
        line = raw.lstrip()
        if pending is None and (not line or line[0] in "#!"):
            continue
        # An odd run of trailing backslashes continues onto the next line
        trailing = len(line) - len(line.rstrip("\\"))
        continued = trailing % 2 == 1
        if continued:
            line = line[:-1]
        pending = line if pending is None else pending + line
        if not continued:
            yield pending
            pending = None
    if pending is not None:
        yield pending


def _split_property(line: str) -> tuple[str, str]:
    index = 0
    while index < len(line):
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char in "=: \t\f":
            break
        index += 1
    key = line[:index]
    rest = line[index:].lstrip(" \t\f")
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(" \t\f")
    return key, rest


_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _unescape(text: str) -> str:
    if "\\" not in text:
        return text
    chars: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char != "\\" or index + 1 == len(text):
            chars.append(char)
            index += 1
            continue
        escaped = text[index + 1]
        if escaped == "u":
            code = text[index + 2 : index + 6]
            if len(code) != 4 or not all(c in "0123456789abcdefABCDEF" for c in code):
                raise ValueError(f"Malformed \\uXXXX escape in properties value: {text!r}")
            chars.append(chr(int(code, 16)))
            index += 6
            continue
        chars.append(_ESCAPES.get(escaped, escaped))
        index += 2
    return "".join(chars)


def load_dotenv_file(file_path: Path) -> dict[str, str]:
    """Load a ``.env`` file as-is; keys without a value are dropped."""
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    return {key: value for key, value in dotenv_values(file_path).items() if value is not None}


def dotenv_layer(
    schema: ConfigSchema,
    file_path: Path,
    prefix: str = "CLIENTCONF_",
) -> Layer:
    """Load a ``.env`` file whose keys are environment variable names.

    ``CLIENTCONF_MONGODB_TRACING_ENABLED=true`` feeds ``tracing.enabled``.
    """
    layer = environment_layer(schema, prefix=prefix, environ=load_dotenv_file(file_path))
    return Layer(name=str(file_path), values=layer.values)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence.

    For nested dictionaries, values are merged recursively.
    For other values, override replaces base.
    """
    result = base.copy()

    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested tables into dotted keys.

    ``{"health": {"enabled": True}}`` becomes ``{"health.enabled": True}``.
    """
    result: dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            result.update(flatten(value, dotted))
        else:
            result[dotted] = value
    return result


def select_section(values: Mapping[str, Any], section: str | None) -> dict[str, Any]:
    """Keep the dotted keys below ``section`` with the prefix removed."""
    if not section:
        return dict(values)
    prefix = f"{section}."
    return {k[len(prefix) :]: v for k, v in values.items() if k.startswith(prefix)}


def read_config_file(file_path: Path) -> dict[str, Any]:
    """Read a configuration file into a flat dictionary of dotted keys."""
    suffix = file_path.suffix.lower()
    if suffix == ".toml":
        return flatten(load_toml(file_path))
    if suffix in {".yaml", ".yml"}:
        return flatten(load_yaml(file_path))
    if suffix == ".properties":
        return load_properties(file_path)
    if suffix == ".env" or file_path.name == ".env":
        return load_dotenv_file(file_path)
    raise ValueError(f"Unsupported configuration format: {file_path}")


def load_layer_file(
    file_path: Path,
    section: str | None = None,
    name: str | None = None,
) -> Layer:
    """Load a file layer, keeping only the keys under ``section``."""
    values = select_section(read_config_file(file_path), section)
    return Layer(name=name or str(file_path), values=values)


def load_config(settings: ClientConfSettings | None = None) -> dict[str, Any]:
    """Load configuration from TOML files.

    Loading order:
    1. config/default.toml
    2. config/{CLIENTCONF_ENV}.toml (optional)

    Without CLIENTCONF_CONFIG_DIR a missing default.toml gives an empty
    file layer, so defaults and environment variables still apply.

    Returns:
        Merged configuration dictionary

    Raises:
        FileNotFoundError: If CLIENTCONF_CONFIG_DIR is set and has no default.toml
    """
    settings = settings or ClientConfSettings()
    config_dir = get_config_dir(settings)
    env = get_environment(settings)

    default_path = config_dir / "default.toml"
    if not default_path.exists():
        if settings.config_dir is not None:
            raise FileNotFoundError(
                f"Default configuration file not found: {default_path}. "
                "CLIENTCONF_CONFIG_DIR is set, so default.toml is required."
            )
        logger.debug("config_file_layer_empty", config_dir=str(config_dir))
        return {}

    config = load_toml(default_path)

    env_path = config_dir / f"{env}.toml"
    if env_path.exists():
        config = deep_merge(config, load_toml(env_path))

    return config


def build_layers(
    schema: ConfigSchema,
    settings: ClientConfSettings | None = None,
    environ: Mapping[str, str] | None = None,
) -> list[Layer]:
    """Build the conventional layers for ``schema``.

    Precedence order (lowest to highest):
    1. schema defaults
    2. config/default.toml merged with config/{env}.toml, section [<schema name>]
    3. <PREFIX><SCHEMA>_* environment variables
    """
    settings = settings or ClientConfSettings()
    file_values = select_section(flatten(load_config(settings)), schema.name)
    return [
        defaults_layer(schema),
        Layer(name=FILE_LAYER, values=file_values),
        environment_layer(schema, prefix=settings.env_prefix, environ=environ),
    ]
