"""Schema resolution against ordered layers.

``resolve`` is the single place where raw values are looked up, converted
and validated. It collects every problem before failing so that a broken
configuration is reported in one pass.
"""

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from clientconf.config.coercion import coerce
from clientconf.config.errors import (
    ConfigResolutionError,
    ConfigViolation,
    MissingRequiredValue,
    TypeCoercionFailure,
    UnknownKey,
    ValueOutOfRange,
)
from clientconf.config.layers import Layer, as_layer
from clientconf.config.resolved import DEFAULT_SOURCE, ResolvedConfig
from clientconf.config.schema import ConfigField, ConfigGroup, ConfigSchema
from clientconf.observability.logging import get_logger
from clientconf.observability.metrics import RESOLUTIONS, VIOLATIONS

logger = get_logger(__name__)


class _Resolution:
    """Mutable state of one resolve() call."""

    def __init__(self, layers: list[Layer]) -> None:
        self.layers = layers
        self.values: dict[str, Any] = {}
        self.sources: dict[str, str] = {}
        self.groups: dict[str, bool] = {}
        self.errors: list[ConfigViolation] = []

    def lookup(self, key: str) -> tuple[Any, str] | None:
        """Return (raw value, layer name) from the highest layer providing ``key``."""
        for layer in reversed(self.layers):
            if key in layer and layer.get(key) is not None:
                return layer.get(key), layer.name
        return None

    def resolve_field(self, member: ConfigField) -> Any:
        found = self.lookup(member.key)
        if found is not None:
            raw, source = found
        elif member.has_default:
            raw, source = member.default, DEFAULT_SOURCE
        elif member.optional:
            self.values[member.key] = None
            self.sources[member.key] = DEFAULT_SOURCE
            return None
        else:
            self.errors.append(MissingRequiredValue(member.key))
            return None

        try:
            value = coerce(raw, member.type)
        except (ValueError, TypeError):
            self.errors.append(TypeCoercionFailure(member.key, raw, member.type.value))
            return None

        if not _in_range(value, member):
            self.errors.append(ValueOutOfRange(member.key, value, member.minimum, member.maximum))
            return None

        self.values[member.key] = value
        self.sources[member.key] = source
        return value

    def resolve_members(
        self,
        fields: Iterable[ConfigField],
        groups: Iterable[ConfigGroup],
    ) -> None:
        for member in fields:
            self.resolve_field(member)
        for child in groups:
            enabled = self.resolve_field(child.toggle) is True
            self.groups[child.name] = enabled
            if enabled:
                self.resolve_members(child.fields, child.groups)
            else:
                _mark_disabled(child, self.groups)


def _in_range(value: Any, member: ConfigField) -> bool:
    if member.minimum is not None and value < member.minimum:
        return False
    if member.maximum is not None and value > member.maximum:
        return False
    return True


def _mark_disabled(group: ConfigGroup, groups: dict[str, bool]) -> None:
    for child in group.groups:
        groups[child.name] = False
        _mark_disabled(child, groups)


def _unknown_keys(schema: ConfigSchema, layers: Sequence[Layer]) -> list[UnknownKey]:
    declared = set(schema.keys())
    unknown: list[UnknownKey] = []
    seen: set[str] = set()
    for layer in layers:
        for key in layer.values:
            if key not in declared and key not in seen:
                seen.add(key)
                unknown.append(UnknownKey(key))
    return unknown


def resolve(
    schema: ConfigSchema,
    layers: Sequence[Layer | Mapping[str, Any]] = (),
    strict: bool = False,
) -> ResolvedConfig:
    """Resolve ``schema`` against ``layers``.

    Args:
        schema: The schema to resolve
        layers: Sources ordered from lowest to highest precedence; plain
            mappings are accepted and named by position
        strict: Report layer keys the schema does not declare

    Returns:
        Immutable resolved configuration

    Raises:
        ConfigResolutionError: Listing every missing value, conversion
            failure, out-of-range integer and (in strict mode) unknown key
    """
    wrapped = [as_layer(source, index) for index, source in enumerate(layers)]
    state = _Resolution(wrapped)
    state.resolve_members(schema.fields, schema.groups)

    if strict:
        state.errors.extend(_unknown_keys(schema, wrapped))

    if state.errors:
        RESOLUTIONS.labels(schema=schema.name, outcome="failure").inc()
        for error in state.errors:
            VIOLATIONS.labels(schema=schema.name, kind=error.kind).inc()
        logger.error(
            "config_resolution_failed",
            schema=schema.name,
            violations=len(state.errors),
            keys=[error.key for error in state.errors],
        )
        raise ConfigResolutionError(schema.name, state.errors)

    RESOLUTIONS.labels(schema=schema.name, outcome="success").inc()
    logger.info(
        "config_resolved",
        schema=schema.name,
        keys=len(state.values),
        sources=dict(Counter(state.sources.values())),
        disabled_groups=[name for name, on in state.groups.items() if not on],
    )
    return ResolvedConfig(schema.name, state.values, state.sources, state.groups)
