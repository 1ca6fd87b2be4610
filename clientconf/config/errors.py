"""Configuration error hierarchy.

All errors inherit from ConfigError. Individual problems found while
resolving a schema are ConfigViolation instances; the resolver collects
every violation and raises a single ConfigResolutionError listing them.
"""

from typing import Any


class ConfigError(Exception):
    """Base exception for all configuration errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SchemaError(ConfigError):
    """Raised when a schema declaration is invalid."""


class ConfigViolation(ConfigError):
    """A single problem found during resolution, attached to one key."""

    kind: str = "violation"

    def __init__(self, key: str, message: str) -> None:
        super().__init__(message)
        self.key = key

    def _fields(self) -> tuple[Any, ...]:
        return (self.key,)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._fields() == other._fields()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self).__name__, *self._fields()))

    def __repr__(self) -> str:
        args = ", ".join(repr(f) for f in self._fields())
        return f"{type(self).__name__}({args})"


class MissingRequiredValue(ConfigViolation):
    """Raised when no layer and no default supply a value."""

    kind = "missing"

    def __init__(self, key: str) -> None:
        super().__init__(key, f"{key}: no value provided and no default declared")


class TypeCoercionFailure(ConfigViolation):
    """Raised when a raw value cannot be converted to the declared type."""

    kind = "coercion"

    def __init__(self, key: str, raw_value: Any, expected_type: str) -> None:
        super().__init__(
            key,
            f"{key}: cannot convert {raw_value!r} to {expected_type}",
        )
        self.raw_value = raw_value
        self.expected_type = expected_type

    def _fields(self) -> tuple[Any, ...]:
        return (self.key, self.raw_value, self.expected_type)

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.key, repr(self.raw_value), self.expected_type))


class ValueOutOfRange(ConfigViolation):
    """Raised when a converted integer falls outside its declared bounds."""

    kind = "range"

    def __init__(self, key: str, value: int, minimum: int | None, maximum: int | None) -> None:
        low = "-inf" if minimum is None else minimum
        high = "+inf" if maximum is None else maximum
        super().__init__(key, f"{key}: {value} is outside [{low}, {high}]")
        self.value = value
        self.minimum = minimum
        self.maximum = maximum

    def _fields(self) -> tuple[Any, ...]:
        return (self.key, self.value, self.minimum, self.maximum)


class UnknownKey(ConfigViolation):
    """Raised in strict mode for a layer key the schema does not declare."""

    kind = "unknown"

    def __init__(self, key: str) -> None:
        super().__init__(key, f"{key}: not declared by the schema")


class ConfigResolutionError(ConfigError):
    """Raised when resolution finds one or more violations.

    The message lists every violation so all problems can be fixed in one pass.
    """

    def __init__(self, schema_name: str, errors: list[ConfigViolation]) -> None:
        self.schema_name = schema_name
        self.errors = list(errors)
        lines = [f"Invalid configuration for '{schema_name}' ({len(self.errors)} problem(s)):"]
        lines.extend(f"  - {error.message}" for error in self.errors)
        super().__init__("\n".join(lines))

    def keys(self) -> list[str]:
        """Return the offending keys in report order."""
        return [error.key for error in self.errors]
