"""Declarative configuration schema.

A schema is plain data: a named tree of field descriptors and groups.
Nothing here converts or validates values; all fallible work happens in
the resolver so the same schema works with any layer source.

Usage:
    from clientconf.config.schema import FieldType, field, flag, group, schema

    MY_SCHEMA = schema(
        "cache",
        flag("health.enabled", default=True),
        field("ttl", FieldType.DURATION, default="5m"),
        group("devservices", field("port", FieldType.INTEGER, optional=True)),
    )
"""

import re
from collections.abc import Iterator
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from clientconf.config.errors import SchemaError

KEY_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*(\.[a-z0-9][a-z0-9-]*)*$")
TOGGLE_SUFFIX = "enabled"
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


class FieldType(str, Enum):
    """Primitive types a leaf field can declare."""

    BOOLEAN = "boolean"
    STRING = "string"
    INTEGER = "integer"
    DURATION = "duration"


class ConfigField(BaseModel):
    """A single leaf of the schema."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Dotted key path relative to the schema root")
    type: FieldType = Field(description="Declared primitive type")
    default: Any = Field(
        default=None,
        description="Declared default (raw, converted at resolution time)",
    )
    optional: bool = Field(
        default=False,
        description="Resolve to None when nothing supplies a value",
    )
    description: str = Field(default="", description="Human readable description")
    minimum: int | None = Field(default=None, description="Lowest accepted integer")
    maximum: int | None = Field(default=None, description="Highest accepted integer")

    @model_validator(mode="after")
    def check_key(self) -> "ConfigField":
        if not KEY_PATTERN.match(self.key):
            raise SchemaError(f"Invalid configuration key: {self.key!r}")
        bounded = self.minimum is not None or self.maximum is not None
        if bounded and self.type is not FieldType.INTEGER:
            raise SchemaError(f"Bounds are only allowed on integer fields: {self.key!r}")
        if (
            self.minimum is not None
            and self.maximum is not None
            and self.minimum > self.maximum
        ):
            raise SchemaError(f"Empty range for {self.key!r}: {self.minimum} > {self.maximum}")
        return self

    @property
    def has_default(self) -> bool:
        return self.default is not None


class ConfigGroup(BaseModel):
    """A nested sub-tree whose presence is decided by a toggle on its parent."""

    model_config = ConfigDict(frozen=True)

    name: str
    toggle: ConfigField
    fields: tuple[ConfigField, ...] = ()
    groups: tuple["ConfigGroup", ...] = ()
    description: str = ""

    @model_validator(mode="after")
    def check_members(self) -> "ConfigGroup":
        if self.toggle.type is not FieldType.BOOLEAN:
            raise SchemaError(f"Toggle of group {self.name!r} must be boolean")
        prefix = f"{self.name}."
        for member in self.fields:
            if not member.key.startswith(prefix):
                raise SchemaError(f"Field {member.key!r} is outside group {self.name!r}")
        for child in self.groups:
            if not child.name.startswith(prefix):
                raise SchemaError(f"Group {child.name!r} is outside group {self.name!r}")
        return self


class ConfigSchema(BaseModel):
    """Named root of a configuration tree."""

    model_config = ConfigDict(frozen=True)

    name: str
    fields: tuple[ConfigField, ...] = ()
    groups: tuple[ConfigGroup, ...] = ()

    @model_validator(mode="after")
    def check_unique_keys(self) -> "ConfigSchema":
        seen: set[str] = set()
        env_names: dict[str, str] = {}
        for member in self.all_fields():
            if member.key in seen:
                raise SchemaError(f"Duplicate configuration key: {member.key!r}")
            seen.add(member.key)
            env_name = _NON_ALNUM.sub("_", member.key).upper()
            if env_name in env_names:
                raise SchemaError(
                    f"Keys {env_names[env_name]!r} and {member.key!r} share the "
                    f"environment name {env_name!r}"
                )
            env_names[env_name] = member.key

        # A leaf cannot also be the parent of another leaf
        for key in seen:
            parts = key.split(".")
            for depth in range(1, len(parts)):
                parent = ".".join(parts[:depth])
                if parent in seen:
                    raise SchemaError(f"Key {parent!r} is both a value and the parent of {key!r}")
        return self

    def all_fields(self) -> Iterator[ConfigField]:
        """Yield every leaf in declaration order, including toggles and group members."""
        yield from self.fields
        for child in self.groups:
            yield from _group_fields(child)

    def keys(self) -> list[str]:
        return [member.key for member in self.all_fields()]

    def get_field(self, key: str) -> ConfigField | None:
        for member in self.all_fields():
            if member.key == key:
                return member
        return None


def _group_fields(group_: ConfigGroup) -> Iterator[ConfigField]:
    yield group_.toggle
    yield from group_.fields
    for child in group_.groups:
        yield from _group_fields(child)


def field(
    key: str,
    type: FieldType,
    default: Any = None,
    *,
    optional: bool = False,
    description: str = "",
    minimum: int | None = None,
    maximum: int | None = None,
) -> ConfigField:
    """Declare a leaf field; integer fields may carry inclusive bounds."""
    return ConfigField(
        key=key,
        type=type,
        default=default,
        optional=optional,
        description=description,
        minimum=minimum,
        maximum=maximum,
    )


def flag(key: str, default: bool = False, *, description: str = "") -> ConfigField:
    """Declare a boolean field.

    The default is always written into the descriptor, so a flag that is
    off unless configured carries an explicit ``False``.
    """
    return field(key, FieldType.BOOLEAN, default=default, description=description)


def _prefixed(prefix: str, member: ConfigField | ConfigGroup) -> ConfigField | ConfigGroup:
    if isinstance(member, ConfigField):
        return member.model_copy(update={"key": f"{prefix}.{member.key}"})
    return ConfigGroup(
        name=f"{prefix}.{member.name}",
        toggle=member.toggle.model_copy(update={"key": f"{prefix}.{member.toggle.key}"}),
        fields=tuple(_prefixed(prefix, f) for f in member.fields),  # type: ignore[misc]
        groups=tuple(_prefixed(prefix, g) for g in member.groups),  # type: ignore[misc]
        description=member.description,
    )


def group(
    name: str,
    *members: ConfigField | ConfigGroup,
    enabled: bool = True,
    description: str = "",
) -> ConfigGroup:
    """Declare a group; member keys are given relative to the group name.

    The group's toggle is ``<name>.enabled`` and defaults to ``enabled``.
    """
    prefixed = [_prefixed(name, m) for m in members]
    return ConfigGroup(
        name=name,
        toggle=flag(
            f"{name}.{TOGGLE_SUFFIX}",
            default=enabled,
            description=f"Whether the {name} group is active",
        ),
        fields=tuple(m for m in prefixed if isinstance(m, ConfigField)),
        groups=tuple(m for m in prefixed if isinstance(m, ConfigGroup)),
        description=description,
    )


def schema(name: str, *members: ConfigField | ConfigGroup) -> ConfigSchema:
    """Declare a schema root from fields and groups."""
    return ConfigSchema(
        name=name,
        fields=tuple(m for m in members if isinstance(m, ConfigField)),
        groups=tuple(m for m in members if isinstance(m, ConfigGroup)),
    )
