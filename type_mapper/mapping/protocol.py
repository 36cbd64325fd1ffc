"""Converter, condition and provider protocols.

User-facing hooks are plain callables:

- Converter: ``(source_value, destination_type) -> value``; return
  ``NotImplemented`` to decline and fall back to the default conversion.
- Condition: ``(source_value) -> bool``; a false result leaves the
  destination untouched.
- Provider: ``(destination_type) -> instance``; supplies the destination
  object to populate.

The engine's converter chain is made of ConditionalConverters.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from type_mapper.core.engine import MappingContext

Converter = Callable[[Any, Any], Any]
Condition = Callable[[Any], bool]
Provider = Callable[[Any], Any]


@runtime_checkable
class ConditionalConverter(Protocol):
    """A converter that declares which type pairs it handles."""

    def supports(self, source_type: type, destination_type: Any) -> bool:
        """Whether values of ``source_type`` can be converted to ``destination_type``."""
        ...

    def convert(self, source: Any, destination_type: Any, context: MappingContext) -> Any:
        """Convert ``source``, or return ``NotImplemented`` to decline."""
        ...
