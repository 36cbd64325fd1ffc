"""Mapping model.

Frozen dataclasses describing what a compiled TypeMap contains: the type
pair it is keyed by, property paths, and the three mapping variants.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from type_mapper.accessors.protocol import PropertyInfo
from type_mapper.mapping.protocol import Condition, Converter, Provider


@dataclass(frozen=True)
class TypePair:
    """Registry key: exact (source type, destination type)."""

    source_type: type
    destination_type: type

    def __str__(self) -> str:
        return f"{self.source_type.__qualname__} -> {self.destination_type.__qualname__}"


@dataclass(frozen=True)
class PropertyPath:
    """Non-empty chain of properties from a root type to a value."""

    properties: tuple[PropertyInfo, ...]

    def __post_init__(self) -> None:
        if not self.properties:
            raise ValueError("PropertyPath requires at least one property")

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(prop.name for prop in self.properties)

    @property
    def leaf(self) -> PropertyInfo:
        return self.properties[-1]

    @property
    def value_type(self) -> Any:
        return self.leaf.value_type

    def child(self, prop: PropertyInfo) -> PropertyPath:
        return PropertyPath((*self.properties, prop))

    def is_prefix_of(self, other: PropertyPath) -> bool:
        """True if ``other`` equals this path or continues it."""
        return other.names[: len(self.names)] == self.names

    def overlaps(self, other: PropertyPath) -> bool:
        return self.is_prefix_of(other) or other.is_prefix_of(self)

    def __len__(self) -> int:
        return len(self.properties)

    def __str__(self) -> str:
        return ".".join(self.names)


@dataclass(frozen=True, kw_only=True)
class Mapping:
    """Correspondence to one destination path, plus optional behavior."""

    destination: PropertyPath
    converter: Converter | None = None
    condition: Condition | None = None
    provider: Provider | None = None
    skip: bool = False
    explicit: bool = False

    @property
    def destination_name(self) -> str:
        return str(self.destination)

    @property
    def signature(self) -> tuple[Any, ...]:
        """Identity of a mapping for re-merge checks; hooks are not compared."""
        return (type(self).__name__, self.source_description, self.destination.names, self.skip)

    @property
    def source_description(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        if self.skip:
            return f"skip {self.destination}"
        return f"{self.source_description} -> {self.destination}"


@dataclass(frozen=True, kw_only=True)
class PropertyMapping(Mapping):
    """Copies the value at a source path to the destination path."""

    source: PropertyPath

    @property
    def source_description(self) -> str:
        return str(self.source)


@dataclass(frozen=True, kw_only=True)
class ConstantMapping(Mapping):
    """Writes a caller-supplied constant to the destination path."""

    constant: Any = None

    @property
    def source_description(self) -> str:
        return f"constant {self.constant!r}"


@dataclass(frozen=True, kw_only=True)
class SourceMapping(Mapping):
    """Converts the root source instance into the destination path."""

    @property
    def source_description(self) -> str:
        return "<source>"
