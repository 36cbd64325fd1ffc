"""Default converter chain.

Converters are tried in order; the first that supports the type pair and
does not return ``NotImplemented`` wins:

1. AssignableConverter - non-collection values already of the target type.
2. EnumConverter - enums by name, then by value.
3. StringConverter - numbers, enums, dates and ids rendered as text.
4. CollectionConverter - lists, tuples and sets, element by element.
5. MappingConverter - dicts, key and value by value.
6. TypeAdapterConverter - Pydantic coercion for terminal values.

Elements of collections and dicts go back through the engine, so nested
objects inside collections are mapped with their own plans.
"""

from __future__ import annotations

import datetime
import enum
import functools
import pathlib
import uuid
from collections.abc import Collection, Iterable, Mapping, MutableSequence, MutableSet, Sequence
from collections.abc import Set as AbstractSet
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from pydantic import PydanticUserError, TypeAdapter, ValidationError

from type_mapper.accessors.annotations import (
    is_pydantic_model,
    is_terminal,
    resolve_class,
    type_arguments,
)
from type_mapper.mapping.protocol import ConditionalConverter

if TYPE_CHECKING:
    from type_mapper.core.engine import MappingContext

_CONCRETE_COLLECTIONS = (list, tuple, set, frozenset)
_STRINGABLE = (
    int,
    float,
    Decimal,
    uuid.UUID,
    enum.Enum,
    datetime.date,
    datetime.time,
    pathlib.PurePath,
)


def _is_collection_source(source_type: type) -> bool:
    if not issubclass(source_type, Iterable) or is_pydantic_model(source_type):
        return False
    return not issubclass(source_type, (str, bytes, bytearray, Mapping))


class AssignableConverter:
    """Passes through values that are already instances of the destination type."""

    def supports(self, source_type: type, destination_type: Any) -> bool:
        cls = resolve_class(destination_type)
        if cls is None:
            return True
        if issubclass(cls, (*_CONCRETE_COLLECTIONS, dict)):
            return False
        return issubclass(source_type, cls)

    def convert(self, source: Any, destination_type: Any, context: MappingContext) -> Any:
        return source


class EnumConverter:
    """Converts enum members and strings to enum members by name, then by value."""

    def supports(self, source_type: type, destination_type: Any) -> bool:
        cls = resolve_class(destination_type)
        return cls is not None and issubclass(cls, enum.Enum)

    def convert(self, source: Any, destination_type: Any, context: MappingContext) -> Any:
        cls = resolve_class(destination_type)
        name = source.name if isinstance(source, enum.Enum) else source
        if isinstance(name, str) and name in cls.__members__:
            return cls[name]
        value = source.value if isinstance(source, enum.Enum) else source
        try:
            return cls(value)
        except ValueError:
            return NotImplemented


class StringConverter:
    """Renders scalars as strings; dates and times use ISO format."""

    def supports(self, source_type: type, destination_type: Any) -> bool:
        return resolve_class(destination_type) is str and issubclass(source_type, _STRINGABLE)

    def convert(self, source: Any, destination_type: Any, context: MappingContext) -> Any:
        if isinstance(source, enum.Enum):
            return source.name
        if isinstance(source, (datetime.date, datetime.time)):
            return source.isoformat()
        return str(source)


class CollectionConverter:
    """Maps iterables into lists, tuples and sets of the destination element type."""

    def supports(self, source_type: type, destination_type: Any) -> bool:
        cls = resolve_class(destination_type)
        if cls is None or not _is_collection_source(source_type):
            return False
        if issubclass(cls, (str, bytes, bytearray, Mapping)):
            return False
        return issubclass(cls, _CONCRETE_COLLECTIONS) or cls in (
            Iterable,
            Collection,
            Sequence,
            MutableSequence,
            AbstractSet,
            MutableSet,
        )

    def convert(self, source: Any, destination_type: Any, context: MappingContext) -> Any:
        cls = resolve_class(destination_type)
        args = type_arguments(destination_type)
        items = list(source)

        if issubclass(cls, tuple) and args and not (len(args) == 2 and args[1] is Ellipsis):
            if len(args) != len(items):
                return NotImplemented
            return tuple(context.map(item, arg) for item, arg in zip(items, args, strict=True))

        element_type = args[0] if args else None
        converted = [context.map(item, element_type) for item in items]
        if cls in (AbstractSet, MutableSet):
            return set(converted)
        if cls in (Iterable, Collection, Sequence, MutableSequence):
            return converted
        return cls(converted)


class MappingConverter:
    """Maps dict-like sources into dicts of the destination key and value types."""

    def supports(self, source_type: type, destination_type: Any) -> bool:
        cls = resolve_class(destination_type)
        return (
            cls is not None
            and issubclass(source_type, Mapping)
            and (issubclass(cls, dict) or cls is Mapping)
        )

    def convert(self, source: Any, destination_type: Any, context: MappingContext) -> Any:
        cls = resolve_class(destination_type)
        args = type_arguments(destination_type)
        key_type, value_type = args if len(args) == 2 else (None, None)
        result = {context.map(k, key_type): context.map(v, value_type) for k, v in source.items()}
        return result if cls is Mapping else cls(result)


@functools.lru_cache(maxsize=256)
def _type_adapter(destination_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(destination_type)


class TypeAdapterConverter:
    """Coerces terminal values with Pydantic (``"42"`` -> ``42``, ISO strings -> dates)."""

    def supports(self, source_type: type, destination_type: Any) -> bool:
        return is_terminal(destination_type)

    def convert(self, source: Any, destination_type: Any, context: MappingContext) -> Any:
        try:
            try:
                adapter = _type_adapter(destination_type)
            except TypeError:  # unhashable annotation
                adapter = TypeAdapter(destination_type)
        except PydanticUserError:
            return NotImplemented
        try:
            return adapter.validate_python(source)
        except ValidationError:
            return NotImplemented


def default_converters() -> tuple[ConditionalConverter, ...]:
    """A fresh default converter chain."""
    return (
        AssignableConverter(),
        EnumConverter(),
        StringConverter(),
        CollectionConverter(),
        MappingConverter(),
        TypeAdapterConverter(),
    )
