"""Compiled mapping plan.

A TypeMap holds the ordered mappings for one type pair plus an optional
converter that replaces the whole plan. Its mapping tuple is replaced as
a unit, so a reader iterating ``mappings`` never sees a half-applied
change.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar

from type_mapper.core.enums import Side
from type_mapper.core.policy import MappingPolicy
from type_mapper.mapping.model import Mapping, TypePair
from type_mapper.mapping.protocol import Converter, Provider

if TYPE_CHECKING:
    from type_mapper.accessors.protocol import PropertyAccessor

S = TypeVar("S")
D = TypeVar("D")


class TypeMap(Generic[S, D]):
    """Ordered mappings from ``source_type`` to ``destination_type``."""

    def __init__(
        self,
        source_type: type[S],
        destination_type: type[D],
        policy: MappingPolicy,
    ) -> None:
        self._type_pair = TypePair(source_type, destination_type)
        self._policy = policy
        self._mappings: tuple[Mapping, ...] = ()
        self._converter: Converter | None = None
        self._provider: Provider | None = None

    @property
    def type_pair(self) -> TypePair:
        return self._type_pair

    @property
    def source_type(self) -> type[S]:
        return self._type_pair.source_type

    @property
    def destination_type(self) -> type[D]:
        return self._type_pair.destination_type

    @property
    def policy(self) -> MappingPolicy:
        return self._policy

    @property
    def mappings(self) -> tuple[Mapping, ...]:
        """All mappings in execution order, skipped ones included."""
        return self._mappings

    @property
    def effective_mappings(self) -> tuple[Mapping, ...]:
        """Mappings that copy a value, i.e. everything not skipped."""
        return tuple(m for m in self._mappings if not m.skip)

    @property
    def converter(self) -> Converter | None:
        return self._converter

    def set_converter(self, converter: Converter | None) -> None:
        """Replace the whole-plan converter."""
        self._converter = converter

    @property
    def provider(self) -> Provider | None:
        return self._provider

    def set_provider(self, provider: Provider | None) -> None:
        """Set the provider used to create destination instances for this plan."""
        self._provider = provider

    def get_mapping(self, destination_path: str) -> Mapping | None:
        for mapping in self._mappings:
            if mapping.destination_name == destination_path:
                return mapping
        return None

    def is_mapped(self, destination_path: str) -> bool:
        """Whether the path, or one of its ancestors, has a mapping (skips included)."""
        names = tuple(destination_path.split("."))
        return any(names[: len(m.destination)] == m.destination.names for m in self._mappings)

    def is_skipped(self, destination_path: str) -> bool:
        mapping = self.get_mapping(destination_path)
        return mapping is not None and mapping.skip

    def unmapped_destination_paths(self, accessor: PropertyAccessor) -> list[str]:
        """Top-level writable destination properties nothing maps to."""
        covered = {m.destination.names[0] for m in self._mappings}
        return [
            prop.name
            for prop in accessor.properties(self.destination_type, self._policy, Side.DESTINATION)
            if prop.name not in covered
        ]

    def _publish(self, mappings: tuple[Mapping, ...]) -> None:
        self._mappings = mappings

    def __len__(self) -> int:
        return len(self._mappings)

    def __repr__(self) -> str:
        return f"TypeMap({self._type_pair}, {len(self._mappings)} mappings)"

    def describe(self) -> str:
        lines: list[str] = [f"TypeMap[{self._type_pair}]"]
        lines.extend(f"  {mapping}" for mapping in self._mappings)
        if self._converter is not None:
            lines.append(f"  converter: {self._converter!r}")
        return "\n".join(lines)
