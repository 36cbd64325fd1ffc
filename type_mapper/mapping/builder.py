"""Explicit mapping DSL builder.

Explicit mappings are declared in a block that receives a
MappingExpression. Each statement is an optional set of single-use
modifiers, a finalizer and a destination selection:

    class OrderMap(PropertyMap[Order, OrderDto]):
        def configure(self, m):
            m.map(m.source.customer.name).to(m.destination.buyer)
            m.using(str.upper).map("status").to("state")
            m.when(lambda total: total > 0).map("total").to("amount")
            m.map().to("origin", "web")
            m.map(m.source).to("summary")
            m.skip("internal_notes")

Paths are strings (``"customer.name"``) or recorded through the
``m.source`` / ``m.destination`` stand-ins. Every problem found in a
block is collected and reported together as one ConfigurationError.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, get_args, get_origin

from type_mapper.accessors.annotations import describe
from type_mapper.accessors.protocol import PropertyAccessor
from type_mapper.core.enums import ErrorKind, Side
from type_mapper.core.exceptions import (
    AccessorError,
    ConfigurationError,
    ErrorCollector,
    ErrorMessage,
)
from type_mapper.core.policy import MappingPolicy
from type_mapper.mapping.model import (
    ConstantMapping,
    Mapping,
    PropertyMapping,
    PropertyPath,
    SourceMapping,
)
from type_mapper.mapping.protocol import Condition, Converter, Provider

logger = logging.getLogger(__name__)

S = TypeVar("S")
D = TypeVar("D")


class PathRecorder:
    """Stand-in that records attribute access as a property path."""

    __slots__ = ("_side", "_segments")

    def __init__(self, side: Side, segments: tuple[str, ...] = ()) -> None:
        object.__setattr__(self, "_side", side)
        object.__setattr__(self, "_segments", segments)

    def __getattr__(self, name: str) -> PathRecorder:
        if name.startswith("__"):
            raise AttributeError(name)
        return PathRecorder(self._side, (*self._segments, name))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Path stand-ins are read-only; select destinations with .to(...)")

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        raise AccessorError(
            f"Cannot call '{self}' on a {self._side.value} stand-in; "
            "record paths by attribute access only",
            kind=ErrorKind.USAGE,
        )

    def __repr__(self) -> str:
        return f"<{self._side.value}{''.join('.' + s for s in self._segments)}>"


def _segments(path: str | PathRecorder) -> tuple[str, ...]:
    if isinstance(path, PathRecorder):
        return object.__getattribute__(path, "_segments")
    return tuple(segment for segment in path.split(".") if segment)


def _side(path: str | PathRecorder) -> Side | None:
    if isinstance(path, PathRecorder):
        return object.__getattribute__(path, "_side")
    return None


@dataclass
class _MappingOptions:
    converter: Converter | None = None
    condition: Condition | None = None
    provider: Provider | None = None


@dataclass
class _Pending:
    """A finalized statement waiting for its destination."""

    kind: type[Mapping]
    source: tuple[str, ...] = ()
    skip: bool = False


class MappingExpression(Generic[S, D]):
    """The object a declaration block records its statements on."""

    def __init__(
        self,
        source_type: type[S],
        destination_type: type[D],
        accessor: PropertyAccessor,
        policy: MappingPolicy,
    ) -> None:
        self._source_type = source_type
        self._destination_type = destination_type
        self._accessor = accessor
        self._policy = policy
        self.errors = ErrorCollector()
        self._mappings: list[Mapping] = []
        self._options = _MappingOptions()
        self._modified = False
        self._pending: _Pending | None = None
        self._lock = threading.Lock()
        self._source: PathRecorder | None = None
        self._destination: PathRecorder | None = None

    # --- Stand-ins ---

    @property
    def source(self) -> Any:
        """Stand-in for the source root; attribute access records a source path."""
        if self._source is None:
            with self._lock:
                if self._source is None:
                    self._source = PathRecorder(Side.SOURCE)
        return self._source

    @property
    def destination(self) -> Any:
        """Stand-in for the destination root; attribute access records a destination path."""
        if self._destination is None:
            with self._lock:
                if self._destination is None:
                    self._destination = PathRecorder(Side.DESTINATION)
        return self._destination

    # --- Modifiers ---

    def using(self, converter: Converter) -> MappingExpression[S, D]:
        """Convert the mapped value with ``converter``."""
        self._check_last_mapping()
        if self._options.converter is not None:
            self.errors.usage("using() can only be called once per mapping")
        else:
            self._options.converter = converter
            self._modified = True
        return self

    def when(self, condition: Condition) -> MappingExpression[S, D]:
        """Only map when ``condition(source_value)`` is true."""
        self._check_last_mapping()
        if self._options.condition is not None:
            self.errors.usage("when() can only be called once per mapping")
        else:
            self._options.condition = condition
            self._modified = True
        return self

    def with_provider(self, provider: Provider) -> MappingExpression[S, D]:
        """Create the destination value with ``provider``."""
        self._check_last_mapping()
        if self._options.provider is not None:
            self.errors.usage("with_provider() can only be called once per mapping")
        else:
            self._options.provider = provider
            self._modified = True
        return self

    # --- Finalizers ---

    def map(self, source: str | PathRecorder | None = None) -> MappingExpression[S, D]:
        """Start a mapping from a source path, the source root, or a constant.

        ``map()`` maps a constant given to ``to()``; ``map(m.source)`` maps
        the whole source object.
        """
        self._check_last_mapping()
        if source is None:
            self._pending = _Pending(ConstantMapping)
            return self
        if _side(source) is Side.DESTINATION:
            self.errors.usage(f"map() expects a source path, got destination path {source!r}")
            self._reset()
            return self
        segments = _segments(source)
        if not segments:
            self._pending = _Pending(SourceMapping)
        else:
            self._pending = _Pending(PropertyMapping, segments)
        return self

    def skip(self, destination: str | PathRecorder | None = None) -> MappingExpression[S, D]:
        """Reserve a destination path so nothing is mapped to it."""
        self._check_last_mapping()
        self._pending = _Pending(ConstantMapping, skip=True)
        if destination is not None:
            self.to(destination)
        return self

    # --- Destination selection ---

    def to(self, destination: str | PathRecorder, constant: Any = None) -> MappingExpression[S, D]:
        """Select the destination path and save the pending mapping."""
        pending = self._pending
        if pending is None:
            self.errors.usage(f"to({destination!r}) must follow map() or skip()")
            self._reset()
            return self
        try:
            if _side(destination) is Side.SOURCE:
                self.errors.usage(f"to() expects a destination path, got source path {destination!r}")
                return self
            segments = _segments(destination)
            if not segments:
                self.errors.missing_destination()
                return self
            self._save(pending, segments, constant)
        finally:
            self._reset()
        return self

    # --- Internals ---

    @property
    def mappings(self) -> list[Mapping]:
        return list(self._mappings)

    def finish(self) -> None:
        """Validate the end of the block."""
        self._check_last_mapping()
        if self._modified:
            self.errors.usage("using()/when()/with_provider() must be followed by map() or skip()")
            self._reset()

    def _check_last_mapping(self) -> None:
        if self._pending is not None:
            self.errors.missing_destination()
            self._reset()

    def _reset(self) -> None:
        self._pending = None
        self._options = _MappingOptions()
        self._modified = False

    def _save(self, pending: _Pending, destination: tuple[str, ...], constant: Any) -> None:
        dotted = ".".join(destination)
        try:
            destination_path = self._resolve(self._destination_type, destination, Side.DESTINATION)
            source_path = None
            if pending.kind is PropertyMapping:
                source_path = self._resolve(self._source_type, pending.source, Side.SOURCE)
        except AccessorError as e:
            self.errors.merge([e.to_message(dotted)])
            return

        options = self._options
        common: dict[str, Any] = {
            "destination": destination_path,
            "converter": options.converter,
            "condition": options.condition,
            "provider": options.provider,
            "skip": pending.skip,
            "explicit": True,
        }
        mapping: Mapping
        if pending.kind is PropertyMapping:
            mapping = PropertyMapping(source=source_path, **common)
        elif pending.kind is SourceMapping:
            mapping = SourceMapping(**common)
        else:
            mapping = ConstantMapping(constant=constant, **common)

        if any(m.destination.names == destination_path.names for m in self._mappings):
            self.errors.duplicate_mapping(dotted)
            return
        self._mappings.append(mapping)

    def _resolve(self, owner: type, segments: tuple[str, ...], side: Side) -> PropertyPath:
        properties = []
        current: Any = owner
        for name in segments:
            prop = self._accessor.find_property(current, name, self._policy, side)
            if prop is None:
                access = "readable" if side is Side.SOURCE else "writable"
                raise AccessorError(
                    f"{describe(current)} has no {access} property '{name}'",
                    kind=ErrorKind.INVALID_PATH,
                )
            properties.append(prop)
            current = prop.value_type
        return PropertyPath(tuple(properties))


class PropertyMap(Generic[S, D]):
    """A reusable block of explicit mappings for one type pair.

    Types are taken from the generic parameters, class attributes or
    constructor arguments:

        class UserMap(PropertyMap[User, UserDto]):
            def configure(self, m):
                m.skip("password")
    """

    source_type: type[S]
    destination_type: type[D]

    def __init__(
        self,
        source_type: type[S] | None = None,
        destination_type: type[D] | None = None,
    ) -> None:
        inferred = self._generic_types()
        resolved_source = source_type or getattr(type(self), "source_type", None) or inferred[0]
        resolved_destination = (
            destination_type or getattr(type(self), "destination_type", None) or inferred[1]
        )
        if resolved_source is None or resolved_destination is None:
            raise ConfigurationError(
                [
                    ErrorMessage(
                        ErrorKind.USAGE,
                        f"{type(self).__qualname__} must declare its source and destination types",
                    )
                ]
            )
        self.source_type = resolved_source
        self.destination_type = resolved_destination

    @classmethod
    def _generic_types(cls) -> tuple[Any, Any]:
        for base in getattr(cls, "__orig_bases__", ()):
            if get_origin(base) is PropertyMap:
                args = get_args(base)
                if len(args) == 2 and all(isinstance(arg, type) for arg in args):
                    return args[0], args[1]
        return None, None

    def configure(self, m: MappingExpression[S, D]) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}({describe(self.source_type)} -> {describe(self.destination_type)})"


class _CallablePropertyMap(PropertyMap[Any, Any]):
    def __init__(
        self,
        declaration: Callable[[MappingExpression[Any, Any]], None],
        source_type: type,
        destination_type: type,
    ) -> None:
        super().__init__(source_type, destination_type)
        self._declaration = declaration

    def configure(self, m: MappingExpression[Any, Any]) -> None:
        self._declaration(m)

    def __repr__(self) -> str:
        name = getattr(self._declaration, "__qualname__", repr(self._declaration))
        return f"{name}({describe(self.source_type)} -> {describe(self.destination_type)})"


def as_property_map(
    declaration: PropertyMap[Any, Any] | Callable[[MappingExpression[Any, Any]], None],
    source_type: type,
    destination_type: type,
) -> PropertyMap[Any, Any]:
    """Normalize a PropertyMap or a plain declaration callable."""
    if isinstance(declaration, PropertyMap):
        return declaration
    return _CallablePropertyMap(declaration, source_type, destination_type)


class MappingBuilder:
    """Runs declaration blocks and merges their output into plans."""

    def __init__(self, accessor: PropertyAccessor, policy: MappingPolicy) -> None:
        self._accessor = accessor
        self._policy = policy

    def build(
        self,
        property_map: PropertyMap[Any, Any],
        source_type: type,
        destination_type: type,
    ) -> list[Mapping]:
        """Run ``property_map`` and return its explicit mappings in declaration order.

        Raises:
            ConfigurationError: With every problem found in the block.
        """
        expression: MappingExpression[Any, Any] = MappingExpression(
            source_type, destination_type, self._accessor, self._policy
        )
        try:
            property_map.configure(expression)
        except ConfigurationError as e:
            expression.errors.merge(e.messages)
        except AccessorError as e:
            expression.errors.merge([e.to_message()])
        except Exception as e:
            expression.errors.add(
                ErrorKind.DECLARATION,
                f"Failed to apply {property_map!r}: {e!r}",
                cause=e,
            )
        expression.finish()
        expression.errors.raise_configuration_error()

        mappings = expression.mappings
        logger.debug("Built %d explicit mappings from %r", len(mappings), property_map)
        return mappings


def merge_explicit(
    existing: Sequence[Mapping],
    additions: Sequence[Mapping],
    errors: ErrorCollector,
) -> tuple[Mapping, ...]:
    """Merge explicit mappings into an ordered mapping list.

    Explicit mappings come first, in the order they were added. An
    explicit mapping replaces any implicit mapping whose destination
    overlaps its own. Re-adding a mapping with the same signature is a
    no-op; a different explicit mapping for an already explicit
    destination is a duplicate.
    """
    explicit = [m for m in existing if m.explicit]
    implicit = [m for m in existing if not m.explicit]
    for mapping in additions:
        current = next(
            (m for m in explicit if m.destination.names == mapping.destination.names), None
        )
        if current is not None:
            if current.signature != mapping.signature:
                errors.duplicate_mapping(mapping.destination_name)
            continue
        explicit.append(mapping)
        implicit = [m for m in implicit if not m.destination.overlaps(mapping.destination)]
    return (*explicit, *implicit)
