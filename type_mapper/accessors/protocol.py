"""Property accessor protocol.

The matcher, builder and engine only reach into user objects through a
PropertyAccessor. IntrospectingAccessor is the default implementation;
applications can supply their own, e.g. for generated code or objects
that expose data through a custom API.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from type_mapper.core.enums import PropertyKind, Side

if TYPE_CHECKING:
    from type_mapper.core.policy import MappingPolicy


@dataclass(frozen=True)
class PropertyInfo:
    """One accessible property of a type.

    ``name`` is the property name used for matching; ``member`` is the
    attribute or method actually used to read or write the value.
    """

    name: str
    member: str
    kind: PropertyKind
    owner: type
    value_type: Any = None
    readable: bool = True
    writable: bool = True

    def __repr__(self) -> str:
        return f"PropertyInfo({self.owner.__qualname__}.{self.name}, {self.kind.value})"


@runtime_checkable
class PropertyAccessor(Protocol):
    """Enumerates, reads, writes and instantiates properties of user types."""

    def properties(
        self, owner: Any, policy: MappingPolicy, side: Side
    ) -> list[PropertyInfo]:
        """Properties of ``owner`` visible under ``policy`` for ``side``, in declaration order."""
        ...

    def find_property(
        self, owner: Any, name: str, policy: MappingPolicy, side: Side
    ) -> PropertyInfo | None:
        """Resolve one named property for an explicit mapping."""
        ...

    def read(self, instance: Any, prop: PropertyInfo) -> Any: ...

    def write(self, instance: Any, prop: PropertyInfo, value: Any) -> None: ...

    def instantiate(self, target: Any) -> Any:
        """Create an empty instance of ``target`` ready to be populated."""
        ...

    def is_terminal(self, target: Any) -> bool: ...
