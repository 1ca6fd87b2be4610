"""Immutable result of a resolution."""

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

DEFAULT_SOURCE = "default"


class ResolvedConfig(Mapping[str, Any]):
    """Read-only mapping from dotted key to typed value.

    Members of disabled groups are absent; the group's toggle is always
    present. Each key remembers the name of the layer that supplied it
    (or ``"default"``).
    """

    __slots__ = ("_schema_name", "_values", "_sources", "_groups")

    def __init__(
        self,
        schema_name: str,
        values: Mapping[str, Any],
        sources: Mapping[str, str],
        groups: Mapping[str, bool],
    ) -> None:
        self._schema_name = schema_name
        self._values = MappingProxyType(dict(values))
        self._sources = MappingProxyType(dict(sources))
        self._groups = MappingProxyType(dict(groups))

    @property
    def schema_name(self) -> str:
        return self._schema_name

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    # Compares equal to plain mappings, so unhashable like dict
    __hash__ = None  # type: ignore[assignment]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ResolvedConfig):
            return (
                self._schema_name == other._schema_name
                and dict(self._values) == dict(other._values)
                and dict(self._groups) == dict(other._groups)
            )
        if isinstance(other, Mapping):
            return dict(self._values) == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ResolvedConfig({self._schema_name!r}, {dict(self._values)!r})"

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(self, "_groups"):
            raise AttributeError("ResolvedConfig is immutable")
        object.__setattr__(self, name, value)

    def source_of(self, key: str) -> str:
        """Return the layer name that supplied ``key``."""
        return self._sources[key]

    def is_enabled(self, group: str) -> bool:
        """Return whether the named group resolved as present."""
        try:
            return self._groups[group]
        except KeyError:
            raise KeyError(f"Unknown group: {group}") from None

    def as_tree(self) -> Mapping[str, Any]:
        """Return a nested read-only view mirroring the dotted keys.

        A disabled group holds only its toggle.
        """
        tree: dict[str, Any] = {}
        for key, value in self._values.items():
            _insert(tree, key, value)
        return _freeze(tree)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._values)


def _insert(tree: dict[str, Any], key: str, value: Any) -> None:
    *parents, leaf = key.split(".")
    node = tree
    for part in parents:
        child = node.get(part)
        if child is None:
            child = node[part] = {}
        node = child
    node[leaf] = value


def _freeze(tree: dict[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(
        {k: _freeze(v) if isinstance(v, dict) else v for k, v in tree.items()}
    )
