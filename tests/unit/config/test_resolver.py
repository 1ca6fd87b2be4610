"""Unit tests for schema resolution."""

from datetime import timedelta

import pytest

from clientconf.config.errors import (
    ConfigResolutionError,
    MissingRequiredValue,
    TypeCoercionFailure,
    UnknownKey,
    ValueOutOfRange,
)
from clientconf.config.layers import Layer, defaults_layer
from clientconf.config.resolver import resolve
from clientconf.config.schema import FieldType, field, flag, group, schema

CLIENT_SCHEMA = schema(
    "mongodb",
    flag("health.enabled", default=True),
    flag("metrics.enabled", default=False),
    flag("tracing.enabled", default=False),
    flag("force-default-clients", default=False),
)


class TestDefaults:
    """Resolution with no layers."""

    def test_no_layers_returns_declared_defaults(self) -> None:
        """Every field falls back to its declared default."""
        resolved = resolve(CLIENT_SCHEMA, [])
        assert resolved.to_dict() == {
            "health.enabled": True,
            "metrics.enabled": False,
            "tracing.enabled": False,
            "force-default-clients": False,
        }

    def test_defaults_report_default_source(self) -> None:
        """Values taken from declarations are attributed to 'default'."""
        resolved = resolve(CLIENT_SCHEMA)
        assert resolved.source_of("health.enabled") == "default"

    def test_declared_defaults_are_coerced(self) -> None:
        """String defaults are converted to the declared type."""
        timeouts = schema(
            "client",
            field("timeout", FieldType.DURATION, default="10s"),
            field("retries", FieldType.INTEGER, default="3"),
        )
        resolved = resolve(timeouts)
        assert resolved["timeout"] == timedelta(seconds=10)
        assert resolved["retries"] == 3


class TestPrecedence:
    """Later layers override earlier ones."""

    def test_higher_layer_wins(self) -> None:
        """The highest layer providing a key supplies the value."""
        layers = [
            Layer("file", {"metrics.enabled": "false"}),
            Layer("environment", {"metrics.enabled": "true"}),
        ]
        resolved = resolve(CLIENT_SCHEMA, layers)
        assert resolved["metrics.enabled"] is True
        assert resolved.source_of("metrics.enabled") == "environment"

    def test_lower_layer_used_when_higher_silent(self) -> None:
        """A key absent from the top layer comes from the next one down."""
        layers = [
            Layer("file", {"metrics.enabled": "true"}),
            Layer("environment", {"tracing.enabled": "true"}),
        ]
        resolved = resolve(CLIENT_SCHEMA, layers)
        assert resolved["metrics.enabled"] is True
        assert resolved.source_of("metrics.enabled") == "file"

    def test_none_value_is_treated_as_absent(self) -> None:
        """A None in a higher layer does not mask a lower value."""
        layers = [Layer("file", {"metrics.enabled": True}), Layer("yaml", {"metrics.enabled": None})]
        resolved = resolve(CLIENT_SCHEMA, layers)
        assert resolved["metrics.enabled"] is True

    def test_plain_mappings_are_accepted(self) -> None:
        """Mappings are wrapped as layers named by position."""
        resolved = resolve(CLIENT_SCHEMA, [{}, {"tracing.enabled": "TRUE"}])
        assert resolved["tracing.enabled"] is True
        assert resolved.source_of("tracing.enabled") == "layer-1"

    def test_tracing_override_scenario(self) -> None:
        """Only the overridden flag changes."""
        layers = [defaults_layer(CLIENT_SCHEMA), {"tracing.enabled": "true"}]
        resolved = resolve(CLIENT_SCHEMA, layers)
        assert resolved == {
            "health.enabled": True,
            "metrics.enabled": False,
            "tracing.enabled": True,
            "force-default-clients": False,
        }


class TestViolations:
    """Errors are collected and reported together."""

    def test_non_boolean_string_fails(self) -> None:
        """A non-boolean string for a boolean field is a coercion failure."""
        layers = [defaults_layer(CLIENT_SCHEMA), {"metrics.enabled": "notabool"}]
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve(CLIENT_SCHEMA, layers)

        assert exc_info.value.errors == [
            TypeCoercionFailure("metrics.enabled", "notabool", "boolean")
        ]

    def test_maybe_is_not_a_boolean(self) -> None:
        """'maybe' names the offending key in the report."""
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve(CLIENT_SCHEMA, [{"health.enabled": "maybe"}])

        error = exc_info.value.errors[0]
        assert isinstance(error, TypeCoercionFailure)
        assert error.key == "health.enabled"
        assert error.raw_value == "maybe"
        assert "health.enabled" in str(exc_info.value)

    def test_missing_required_value(self) -> None:
        """A field with no default and no value is missing."""
        required = schema("client", field("connection-string", FieldType.STRING))
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve(required, [])

        assert exc_info.value.errors == [MissingRequiredValue("connection-string")]

    def test_optional_field_resolves_to_none(self) -> None:
        """An optional field with nothing supplied resolves to None."""
        optional = schema("client", field("port", FieldType.INTEGER, optional=True))
        resolved = resolve(optional, [])
        assert resolved["port"] is None

    def test_all_violations_reported(self) -> None:
        """Every problem is listed, in declaration order."""
        mixed = schema(
            "client",
            field("host", FieldType.STRING),
            field("port", FieldType.INTEGER, default=27017),
            flag("tls", default=False),
        )
        layers = [{"port": "abc", "tls": "sometimes"}]
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve(mixed, layers)

        assert exc_info.value.keys() == ["host", "port", "tls"]
        assert exc_info.value.schema_name == "client"

    def test_bad_default_is_reported(self) -> None:
        """Declared defaults go through the same conversion."""
        broken = schema("client", field("retries", FieldType.INTEGER, default="many"))
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve(broken)

        assert exc_info.value.errors == [TypeCoercionFailure("retries", "many", "integer")]

    def test_oversized_duration_is_a_coercion_failure(self) -> None:
        """A duration beyond timedelta's range is reported, not raised as OverflowError."""
        timeouts = schema("client", field("timeout", FieldType.DURATION, default="1s"))
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve(timeouts, [{"timeout": "99999999999d"}])

        assert exc_info.value.errors == [
            TypeCoercionFailure("timeout", "99999999999d", "duration")
        ]

    def test_integer_outside_bounds(self) -> None:
        """Bounded integers are checked after conversion."""
        ports = schema(
            "client",
            field("port", FieldType.INTEGER, optional=True, minimum=1, maximum=65535),
            field("retries", FieldType.INTEGER, default=3, minimum=0),
        )
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve(ports, [{"port": "70000", "retries": -1}])

        assert exc_info.value.errors == [
            ValueOutOfRange("port", 70000, 1, 65535),
            ValueOutOfRange("retries", -1, 0, None),
        ]
        assert "70000 is outside [1, 65535]" in str(exc_info.value)

    def test_bounds_are_inclusive(self) -> None:
        """The declared minimum and maximum are accepted."""
        ports = schema(
            "client",
            field("low", FieldType.INTEGER, default=1, minimum=1, maximum=65535),
            field("high", FieldType.INTEGER, default=65535, minimum=1, maximum=65535),
        )
        resolved = resolve(ports)
        assert resolved["low"] == 1
        assert resolved["high"] == 65535


class TestStrictMode:
    """Unknown keys are reported only in strict mode."""

    def test_unknown_key_ignored_by_default(self) -> None:
        """Lenient resolution ignores undeclared keys."""
        resolved = resolve(CLIENT_SCHEMA, [{"unknown.key": "x"}])
        assert "unknown.key" not in resolved

    def test_unknown_key_fails_in_strict_mode(self) -> None:
        """Strict resolution reports undeclared keys."""
        layers = [defaults_layer(CLIENT_SCHEMA), {"unknown.key": "x"}]
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve(CLIENT_SCHEMA, layers, strict=True)

        assert exc_info.value.errors == [UnknownKey("unknown.key")]

    def test_unknown_keys_listed_after_field_errors(self) -> None:
        """Unknown keys come last, each reported once."""
        layers = [
            {"unknown.key": "x", "metrics.enabled": "nope"},
            {"unknown.key": "y"},
        ]
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve(CLIENT_SCHEMA, layers, strict=True)

        assert exc_info.value.errors == [
            TypeCoercionFailure("metrics.enabled", "nope", "boolean"),
            UnknownKey("unknown.key"),
        ]

    def test_disabled_group_keys_are_known(self) -> None:
        """Keys under a disabled group are declared, not unknown."""
        with_group = schema(
            "mongodb",
            group("devservices", field("port", FieldType.INTEGER, optional=True)),
        )
        layers = [{"devservices.enabled": "false", "devservices.port": "27018"}]
        resolved = resolve(with_group, layers, strict=True)
        assert "devservices.port" not in resolved


class TestGroups:
    """Group presence is decided by the toggle on the parent."""

    DEV_SCHEMA = schema(
        "mongodb",
        flag("health.enabled", default=True),
        group(
            "devservices",
            field("port", FieldType.INTEGER, optional=True),
            field("image-name", FieldType.STRING, default="mongo:7.0"),
            group("volumes", field("path", FieldType.STRING, default="/data"), enabled=False),
        ),
    )

    def test_enabled_group_resolves_children(self) -> None:
        """Children of an enabled group are present."""
        resolved = resolve(self.DEV_SCHEMA, [{"devservices.port": "27018"}])
        assert resolved.is_enabled("devservices") is True
        assert resolved["devservices.port"] == 27018
        assert resolved["devservices.image-name"] == "mongo:7.0"

    def test_disabled_group_is_absent(self) -> None:
        """Children of a disabled group are not resolved."""
        resolved = resolve(self.DEV_SCHEMA, [{"devservices.enabled": "false"}])
        assert resolved.is_enabled("devservices") is False
        assert resolved["devservices.enabled"] is False
        assert "devservices.port" not in resolved

    def test_disabled_group_children_not_validated(self) -> None:
        """Bad values below a disabled group do not fail resolution."""
        layers = [{"devservices.enabled": "false", "devservices.port": "not-a-port"}]
        resolved = resolve(self.DEV_SCHEMA, layers)
        assert "devservices.port" not in resolved

    def test_nested_group_follows_its_own_toggle(self) -> None:
        """A nested group defaults off and can be switched on."""
        resolved = resolve(self.DEV_SCHEMA)
        assert resolved.is_enabled("devservices.volumes") is False

        resolved = resolve(self.DEV_SCHEMA, [{"devservices.volumes.enabled": "true"}])
        assert resolved["devservices.volumes.path"] == "/data"

    def test_disabled_parent_disables_nested_group(self) -> None:
        """Turning off a parent group removes nested groups as well."""
        layers = [{"devservices.enabled": "false", "devservices.volumes.enabled": "true"}]
        resolved = resolve(self.DEV_SCHEMA, layers)
        assert resolved.is_enabled("devservices.volumes") is False
        assert "devservices.volumes.path" not in resolved

    def test_invalid_toggle_is_reported(self) -> None:
        """A malformed toggle is a coercion failure, not a silent 'off'."""
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve(self.DEV_SCHEMA, [{"devservices.enabled": "perhaps"}])

        assert exc_info.value.keys() == ["devservices.enabled"]


class TestDeterminism:
    """Resolution is a pure function of its inputs."""

    def test_same_inputs_give_equal_results(self) -> None:
        """Resolving twice yields structurally equal results."""
        layers = [defaults_layer(CLIENT_SCHEMA), {"tracing.enabled": "true"}]
        first = resolve(CLIENT_SCHEMA, layers)
        second = resolve(CLIENT_SCHEMA, layers)
        assert first == second
        assert first.as_tree() == second.as_tree()

    def test_layers_are_not_modified(self) -> None:
        """Input mappings are left untouched."""
        overrides = {"tracing.enabled": "true"}
        resolve(CLIENT_SCHEMA, [overrides])
        assert overrides == {"tracing.enabled": "true"}
