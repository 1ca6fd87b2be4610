"""Configuration layers: ordered sources of raw key/value pairs."""

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from clientconf.config.schema import ConfigSchema

DEFAULTS_LAYER = "defaults"
ENVIRONMENT_LAYER = "environment"

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


@dataclass(frozen=True)
class Layer:
    """A named, read-only mapping of dotted keys to raw values."""

    name: str
    values: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def get(self, key: str) -> Any:
        return self.values.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.values


def as_layer(source: "Layer | Mapping[str, Any]", index: int) -> Layer:
    """Wrap a plain mapping in a Layer named after its position."""
    if isinstance(source, Layer):
        return source
    return Layer(name=f"layer-{index}", values=source)


def defaults_layer(schema: ConfigSchema) -> Layer:
    """Build a layer holding every default the schema declares."""
    return Layer(
        name=DEFAULTS_LAYER,
        values={f.key: f.default for f in schema.all_fields() if f.has_default},
    )


def env_var_name(prefix: str, schema_name: str, key: str) -> str:
    """Return the environment variable that feeds ``key``.

    ``("CLIENTCONF_", "mongodb", "force-default-clients")`` gives
    ``CLIENTCONF_MONGODB_FORCE_DEFAULT_CLIENTS``.
    """
    return _NON_ALNUM.sub("_", f"{prefix}{schema_name}_{key}").upper()


def environment_layer(
    schema: ConfigSchema,
    prefix: str = "CLIENTCONF_",
    environ: Mapping[str, str] | None = None,
) -> Layer:
    """Build a layer from environment variables.

    Variables matching a schema key map back to that key. Other variables
    under the schema's prefix are kept as lower-cased dotted keys so that
    strict resolution can report them.
    """
    environ = os.environ if environ is None else environ
    known = {env_var_name(prefix, schema.name, key): key for key in schema.keys()}
    root_prefix = env_var_name(prefix, schema.name, "")

    values: dict[str, Any] = {}
    for name, value in environ.items():
        upper = name.upper()
        if upper in known:
            values[known[upper]] = value
        elif upper.startswith(root_prefix) and len(upper) > len(root_prefix):
            values[upper[len(root_prefix) :].lower().replace("_", ".")] = value
    return Layer(name=ENVIRONMENT_LAYER, values=values)
