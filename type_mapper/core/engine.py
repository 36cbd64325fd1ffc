"""Execution engine - applies compiled plans to source instances.

Conversion order for a single value:

1. ``None`` -> ``None``
2. Destination type unknown (no annotation, ``Any``) -> value as is
3. Object destinations: the in-progress destination of a cycle, then a
   stored plan for the runtime type pair
4. The converter chain, in order
5. Object destinations: an implicitly created plan
6. Otherwise a conversion error

Errors are collected per call and raised together as one MappingError
once the top-level call completes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from type_mapper.accessors.annotations import describe, resolve_class
from type_mapper.accessors.protocol import PropertyAccessor, PropertyInfo
from type_mapper.core.enums import ErrorKind, PropertyKind, Side
from type_mapper.core.exceptions import (
    AccessorError,
    ConfigurationError,
    ConversionError,
    ErrorCollector,
)
from type_mapper.core.policy import MappingPolicy
from type_mapper.core.registry import PlanStore
from type_mapper.mapping.converters import default_converters
from type_mapper.mapping.model import ConstantMapping, Mapping, PropertyMapping, PropertyPath
from type_mapper.mapping.plan import TypeMap
from type_mapper.mapping.protocol import ConditionalConverter, Provider

logger = logging.getLogger(__name__)

D = TypeVar("D")

_MISSING = object()


class MappingContext:
    """Per-call state: in-progress destinations, collected errors, current path.

    Created at the start of a top-level call and discarded at its end.
    Not shared between threads.
    """

    def __init__(self, engine: MappingEngine) -> None:
        self._engine = engine
        self.errors = ErrorCollector()
        # Sources are held alongside destinations so their ids stay unique
        self._in_progress: dict[tuple[int, type], tuple[Any, Any]] = {}
        self._path: list[str] = []

    def map(self, value: Any, destination_type: Any) -> Any:
        """Convert ``value`` to ``destination_type`` within this call."""
        return self._engine._convert(value, destination_type, self)

    def in_progress(self, source: Any, destination_type: type) -> Any:
        entry = self._in_progress.get((id(source), destination_type))
        return _MISSING if entry is None else entry[1]

    def register(self, source: Any, destination_type: type, destination: Any) -> None:
        self._in_progress[(id(source), destination_type)] = (source, destination)

    @property
    def path(self) -> str:
        return ".".join(self._path)

    @contextmanager
    def descend(self, segment: str) -> Iterator[None]:
        self._path.append(segment)
        try:
            yield
        finally:
            self._path.pop()


class MappingEngine:
    """Maps source instances into destination instances using stored plans.

    Args:
        store: Plan store consulted, and extended, for every object value.
        accessor: Property accessor used to read, write and instantiate.
        policy: Policy governing cycle resolution, the converter chain,
            inhibited types and the fallback provider.
    """

    def __init__(self, store: PlanStore, accessor: PropertyAccessor, policy: MappingPolicy) -> None:
        self._store = store
        self._accessor = accessor
        self._policy = policy
        converters = policy.converters if policy.converters is not None else default_converters()
        self._converters: tuple[ConditionalConverter, ...] = tuple(converters)

    @property
    def converters(self) -> tuple[ConditionalConverter, ...]:
        return self._converters

    # --- Top-level operations ---

    def map(self, source: Any, destination_type: type[D]) -> D:
        """Map ``source`` into a new instance of ``destination_type``.

        Raises:
            MappingError: With every problem found while mapping.
            ConfigurationError: If a plan needed along the way cannot be compiled.
        """
        context = MappingContext(self)
        result = self._map_root(source, destination_type, context)
        context.errors.raise_mapping_error()
        return result

    def map_into(self, source: Any, destination: D) -> D:
        """Map ``source`` onto an existing ``destination`` instance."""
        if source is None:
            return destination
        context = MappingContext(self)
        destination_type = type(destination)
        plan = self._store.get_or_create(type(source), destination_type)
        if plan.converter is not None:
            context.errors.add(
                ErrorKind.CONVERSION,
                f"{plan.type_pair} is handled by a whole-plan converter "
                "and cannot populate an existing instance",
            )
        else:
            if self._policy.resolve_circular:
                context.register(source, destination_type, destination)
            self._populate(plan, source, destination, context)
        context.errors.raise_mapping_error()
        return destination

    def map_many(self, sources: Iterable[Any], destination_type: type[D]) -> list[D]:
        """Map each source; shared references map to one destination instance."""
        context = MappingContext(self)
        results = []
        for index, source in enumerate(sources):
            with context.descend(f"[{index}]"):
                results.append(self._map_root(source, destination_type, context))
        context.errors.raise_mapping_error()
        return results

    def _map_root(self, source: Any, destination_type: Any, context: MappingContext) -> Any:
        if source is None:
            return None
        try:
            cls = self._object_class(destination_type)
            if cls is not None and not self._policy.is_instantiation_inhibited(cls):
                if self._policy.resolve_circular:
                    existing = context.in_progress(source, cls)
                    if existing is not _MISSING:
                        return existing
                plan = self._store.get_or_create(type(source), cls)
                return self._map_with_plan(plan, source, cls, context)
            return self._convert(source, destination_type, context)
        except (ConfigurationError, RecursionError):
            raise
        except Exception as e:
            self._record(context, e)
            return None

    # --- Value conversion ---

    def _convert(self, value: Any, destination_type: Any, context: MappingContext) -> Any:
        if value is None:
            return None
        if resolve_class(destination_type) is None:
            return value

        source_type = type(value)
        cls = self._object_class(destination_type)
        if cls is not None:
            if self._policy.resolve_circular:
                existing = context.in_progress(value, cls)
                if existing is not _MISSING:
                    logger.debug(
                        "Resolved circular reference to %s at '%s'", cls.__qualname__, context.path
                    )
                    return existing
            plan = self._store.get(source_type, cls)
            if plan is not None:
                return self._map_with_plan(plan, value, cls, context)

        for converter in self._converters:
            if not converter.supports(source_type, destination_type):
                continue
            result = converter.convert(value, destination_type, context)
            if result is not NotImplemented:
                return result

        if cls is not None and not self._policy.is_instantiation_inhibited(cls):
            plan = self._store.get_or_create(source_type, cls)
            return self._map_with_plan(plan, value, cls, context)

        raise ConversionError(
            f"Cannot convert {describe(source_type)} to {describe(destination_type)}"
        )

    def _object_class(self, destination_type: Any) -> type | None:
        """The destination class when values of it are built from plans, else None."""
        cls = resolve_class(destination_type)
        if cls is None or self._accessor.is_terminal(destination_type):
            return None
        return cls

    # --- Plan execution ---

    def _map_with_plan(
        self,
        plan: TypeMap[Any, Any],
        source: Any,
        destination_type: type,
        context: MappingContext,
        provider: Provider | None = None,
    ) -> Any:
        if plan.converter is not None:
            result = plan.converter(source, destination_type)
            if result is not NotImplemented:
                return result

        destination = self._instantiate(destination_type, provider, plan.provider)
        if self._policy.resolve_circular:
            context.register(source, destination_type, destination)
        self._populate(plan, source, destination, context)
        return destination

    def _populate(
        self,
        plan: TypeMap[Any, Any],
        source: Any,
        destination: Any,
        context: MappingContext,
    ) -> None:
        # Intermediates created in this pass, keyed by destination path prefix
        created: dict[tuple[str, ...], Any] = {}
        for mapping in plan.effective_mappings:
            with context.descend(mapping.destination_name):
                try:
                    self._apply(plan, mapping, source, destination, context, created)
                except (ConfigurationError, RecursionError):
                    raise
                except Exception as e:
                    self._record(context, e)

    def _apply(
        self,
        plan: TypeMap[Any, Any],
        mapping: Mapping,
        source: Any,
        destination: Any,
        context: MappingContext,
        created: dict[tuple[str, ...], Any],
    ) -> None:
        if isinstance(mapping, PropertyMapping):
            value = self._read_path(source, mapping.source)
        elif isinstance(mapping, ConstantMapping):
            value = mapping.constant
        else:
            value = source

        if mapping.condition is not None and not mapping.condition(value):
            return
        if value is None and plan.policy.skip_null:
            return

        parent = self._resolve_parent(mapping, destination, plan, created)
        leaf = mapping.destination.leaf
        self._accessor.write(parent, leaf, self._convert_leaf(mapping, value, leaf, context))

    def _convert_leaf(
        self,
        mapping: Mapping,
        value: Any,
        leaf: PropertyInfo,
        context: MappingContext,
    ) -> Any:
        destination_type = leaf.value_type
        if mapping.converter is not None:
            converted = mapping.converter(value, destination_type)
            if converted is not NotImplemented:
                return converted

        cls = self._object_class(destination_type)
        if mapping.provider is not None and value is not None and cls is not None:
            plan = self._store.get_or_create(type(value), cls)
            return self._map_with_plan(plan, value, cls, context, mapping.provider)
        return context.map(value, destination_type)

    def _read_path(self, source: Any, path: PropertyPath) -> Any:
        value = source
        for prop in path.properties:
            value = self._accessor.read(value, prop)
            if value is None:
                return None
        return value

    def _resolve_parent(
        self,
        mapping: Mapping,
        destination: Any,
        plan: TypeMap[Any, Any],
        created: dict[tuple[str, ...], Any],
    ) -> Any:
        """The object owning the mapping's leaf, creating missing intermediates.

        Intermediates created earlier in the same pass are reused, so
        sibling mappings under one prefix land on one instance even when
        the intermediate is only writable through a setter.
        """
        current = destination
        names = mapping.destination.names
        for depth, prop in enumerate(mapping.destination.properties[:-1], start=1):
            prefix = names[:depth]
            child = created.get(prefix)
            if child is None:
                child = self._existing(current, prop, plan.policy)
            if child is None:
                child = self._instantiate(prop.value_type, mapping.provider, plan.provider)
                self._accessor.write(current, prop, child)
                created[prefix] = child
            current = child
        return current

    def _existing(self, instance: Any, prop: PropertyInfo, policy: MappingPolicy) -> Any:
        """The current value of an intermediate, read through its getter for setters."""
        if prop.kind is PropertyKind.METHOD:
            getter = self._accessor.find_property(type(instance), prop.name, policy, Side.SOURCE)
            if getter is None or not getter.readable:
                return None
            return self._accessor.read(instance, getter)
        if not prop.readable:
            return None
        return getattr(instance, prop.member, None)

    def _instantiate(self, target: Any, *providers: Provider | None) -> Any:
        for provider in (*providers, self._policy.provider):
            if provider is None:
                continue
            instance = provider(target)
            if instance is not None:
                return instance
        return self._accessor.instantiate(target)

    # --- Errors ---

    @staticmethod
    def _record(context: MappingContext, error: Exception) -> None:
        path = context.path or None
        if isinstance(error, (AccessorError, ConversionError)):
            context.errors.merge([error.to_message(path)])
        else:
            context.errors.add(
                ErrorKind.CONVERSION,
                f"Mapping failed: {error!r}",
                path,
                cause=error,
            )
